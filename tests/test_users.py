from __future__ import annotations

import pytest

from errors import ConflictError, DuplicateUser, ValidationError
from users import verify_password


def test_register_returns_public_user(users) -> None:
    user = users.register("alice", "alice@example.com", "hunter22")
    assert user["username"] == "alice"
    assert user["email"] == "alice@example.com"
    assert user["avatar"] is None
    assert user["bio"] == ""
    assert "passwordHash" not in user
    assert "password" not in user


def test_password_is_hashed(users, conn) -> None:
    users.register("alice", "alice@example.com", "hunter22")
    row = conn.execute("SELECT password_hash FROM users WHERE username = 'alice'").fetchone()
    assert row["password_hash"] != "hunter22"
    assert "hunter22" not in row["password_hash"]


def test_duplicate_email_is_conflict(users) -> None:
    users.register("alice", "same@example.com", "hunter22")
    with pytest.raises(ConflictError):
        users.register("bob", "same@example.com", "hunter22")


def test_duplicate_username_is_conflict(users) -> None:
    users.register("alice", "alice@example.com", "hunter22")
    with pytest.raises(DuplicateUser):
        users.register("alice", "other@example.com", "hunter22")


def test_different_emails_register_independently(users) -> None:
    a = users.register("alice", "alice@example.com", "hunter22")
    b = users.register("bob", "bob@example.com", "hunter22")
    assert a["id"] != b["id"]


@pytest.mark.parametrize(
    "username,email,password",
    [
        ("al", "al@example.com", "hunter22"),
        ("x" * 31, "x@example.com", "hunter22"),
        ("alice", "not-an-email", "hunter22"),
        ("alice", "alice@example.com", "short"),
    ],
)
def test_register_validation(users, username, email, password) -> None:
    with pytest.raises(ValidationError) as exc:
        users.register(username, email, password)
    assert exc.value.errors


def test_find_by_email_hides_secret_unless_requested(users) -> None:
    users.register("alice", "alice@example.com", "hunter22")
    assert "passwordHash" not in users.find_by_email("alice@example.com")
    assert "passwordHash" in users.find_by_email("alice@example.com", include_secret=True)
    assert users.find_by_email("nobody@example.com") is None


def test_verify_password(users) -> None:
    users.register("alice", "alice@example.com", "hunter22")
    user = users.find_by_email("alice@example.com", include_secret=True)
    assert verify_password(user, "hunter22")
    assert not verify_password(user, "hunter23")
    assert not verify_password(None, "hunter22")


def test_authenticate(users) -> None:
    created = users.register("alice", "alice@example.com", "hunter22")
    assert users.authenticate("alice@example.com", "hunter22") == created
    assert users.authenticate("alice@example.com", "wrong-password") is None
    assert users.authenticate("nobody@example.com", "hunter22") is None


def test_find_by_id(users) -> None:
    created = users.register("alice", "alice@example.com", "hunter22")
    assert users.find_by_id(created["id"]) == created
    assert users.find_by_id(9999) is None
