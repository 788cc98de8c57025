from __future__ import annotations

import contextlib
from pathlib import Path

import pytest

from app import create_app
from config import Config
from db import Database, init_schema
from posts import PostStore
from users import UserStore


@pytest.fixture()
def config(tmp_path: Path) -> Config:
    return Config(
        database=str(tmp_path / "test.db"),
        upload_folder=str(tmp_path / "uploads"),
        jwt_secret="test-secret",
        jwt_expire_seconds=3600,
        log_level="WARNING",
        testing=True,
    )


@pytest.fixture()
def app(config: Config):
    return create_app(config)


@pytest.fixture()
def client(app):
    return app.test_client()


@pytest.fixture()
def conn(tmp_path: Path):
    with contextlib.closing(Database(str(tmp_path / "store.db")).connect()) as c:
        init_schema(c)
        yield c


@pytest.fixture()
def users(conn) -> UserStore:
    return UserStore(conn)


@pytest.fixture()
def posts(conn) -> PostStore:
    return PostStore(conn)


def make_user_payload(name: str) -> dict:
    return {"username": name, "email": f"{name}@example.com", "password": "Sup3rSecret!"}


def register(client, name: str) -> tuple[dict, dict]:
    """Register ``name`` through the API, returning (user, auth headers)."""
    resp = client.post("/auth/register", json=make_user_payload(name))
    assert resp.status_code == 201, resp.get_json()
    data = resp.get_json()["data"]
    return data["user"], {"Authorization": f"Bearer {data['token']}"}
