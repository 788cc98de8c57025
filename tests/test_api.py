from __future__ import annotations

import io
from pathlib import Path

from conftest import make_user_payload, register
from posts import PostStore


def test_health(client) -> None:
    resp = client.get("/health")
    assert resp.status_code == 200
    body = resp.get_json()
    assert body["success"] is True
    assert body["data"] == {"status": "OK", "database": "connected"}


def test_register_and_login(client) -> None:
    user, headers = register(client, "alice")
    assert "passwordHash" not in user

    resp = client.post("/auth/login", json={"email": "alice@example.com", "password": "Sup3rSecret!"})
    assert resp.status_code == 200
    data = resp.get_json()["data"]
    assert data["user"]["id"] == user["id"]

    me = client.get("/auth/me", headers={"Authorization": f"Bearer {data['token']}"})
    assert me.get_json()["data"]["user"]["username"] == "alice"


def test_register_duplicate_email(client) -> None:
    register(client, "alice")
    payload = make_user_payload("bob")
    payload["email"] = "alice@example.com"
    resp = client.post("/auth/register", json=payload)
    assert resp.status_code == 400
    assert resp.get_json() == {
        "success": False,
        "message": "User with this email or username already exists",
    }


def test_register_validation_errors(client) -> None:
    resp = client.post("/auth/register", json={"username": "al", "email": "nope", "password": "x"})
    assert resp.status_code == 400
    body = resp.get_json()
    assert body["message"] == "Validation failed"
    assert {e["field"] for e in body["errors"]} == {"username", "email", "password"}


def test_login_bad_credentials(client) -> None:
    register(client, "alice")
    wrong = client.post("/auth/login", json={"email": "alice@example.com", "password": "nope-nope"})
    unknown = client.post("/auth/login", json={"email": "who@example.com", "password": "nope-nope"})
    assert wrong.status_code == unknown.status_code == 401
    assert wrong.get_json() == unknown.get_json() == {"success": False, "message": "Invalid credentials"}


def test_like_flow_end_to_end(client) -> None:
    _, alice = register(client, "alice")
    _, bob = register(client, "bob")

    resp = client.post("/posts", json={"content": "hello"}, headers=alice)
    assert resp.status_code == 201
    post_id = resp.get_json()["data"]["post"]["id"]

    liked = client.post(f"/posts/{post_id}/like", headers=bob).get_json()["data"]
    assert liked == {"liked": True, "likesCount": 1}

    unliked = client.post(f"/posts/{post_id}/like", headers=bob).get_json()["data"]
    assert unliked == {"liked": False, "likesCount": 0}


def test_create_post_with_image(client, config) -> None:
    _, alice = register(client, "alice")
    resp = client.post(
        "/posts",
        data={"content": "look", "image": (io.BytesIO(b"\x89PNG fake"), "photo.png")},
        content_type="multipart/form-data",
        headers=alice,
    )
    assert resp.status_code == 201
    image = resp.get_json()["data"]["post"]["image"]
    assert image.startswith("/uploads/") and image.endswith("_photo.png")
    assert (Path(config.upload_folder) / image.rsplit("/", 1)[1]).exists()

    served = client.get(image)
    assert served.status_code == 200
    assert served.data == b"\x89PNG fake"


def test_create_post_too_long_is_rejected(client) -> None:
    _, alice = register(client, "alice")
    resp = client.post("/posts", json={"content": "x" * 1001}, headers=alice)
    assert resp.status_code == 400
    assert resp.get_json()["errors"][0]["field"] == "content"
    feed = client.get("/posts", headers=alice).get_json()["data"]
    assert feed["pagination"]["totalPosts"] == 0


def test_update_and_delete_ownership(client) -> None:
    _, alice = register(client, "alice")
    _, bob = register(client, "bob")
    post_id = client.post("/posts", json={"content": "mine"}, headers=alice).get_json()["data"]["post"]["id"]

    assert client.put(f"/posts/{post_id}", json={"content": ""}, headers=bob).status_code == 403
    assert client.delete(f"/posts/{post_id}", headers=bob).status_code == 403

    resp = client.put(f"/posts/{post_id}", json={"content": "edited"}, headers=alice)
    assert resp.status_code == 200
    assert resp.get_json()["data"]["post"]["content"] == "edited"

    assert client.delete(f"/posts/{post_id}", headers=alice).status_code == 200
    assert client.get(f"/posts/{post_id}", headers=alice).status_code == 404


def test_update_replaces_image(client) -> None:
    _, alice = register(client, "alice")
    post_id = client.post("/posts", json={"content": "mine"}, headers=alice).get_json()["data"]["post"]["id"]
    resp = client.put(
        f"/posts/{post_id}",
        data={"image": (io.BytesIO(b"gif"), "new.gif")},
        content_type="multipart/form-data",
        headers=alice,
    )
    post = resp.get_json()["data"]["post"]
    assert post["content"] == "mine"
    assert post["image"].endswith("_new.gif")


def test_feed_pagination_over_api(client) -> None:
    _, alice = register(client, "alice")
    for i in range(25):
        client.post("/posts", json={"content": f"post {i}"}, headers=alice)

    page3 = client.get("/posts?page=3&limit=10", headers=alice).get_json()["data"]
    assert len(page3["posts"]) == 5
    assert page3["pagination"] == {"currentPage": 3, "totalPages": 3, "totalPosts": 25, "hasMore": False}

    default = client.get("/posts?page=abc", headers=alice).get_json()["data"]
    assert default["pagination"]["currentPage"] == 1
    assert len(default["posts"]) == 10
    assert default["posts"][0]["content"] == "post 24"


def test_user_profile_and_posts(client) -> None:
    alice_user, alice = register(client, "alice")
    _, bob = register(client, "bob")
    client.post("/posts", json={"content": "a"}, headers=alice)
    client.post("/posts", json={"content": "b"}, headers=bob)

    profile = client.get(f"/users/{alice_user['id']}", headers=bob).get_json()["data"]
    assert profile["user"]["username"] == "alice"
    assert profile["postCount"] == 1
    assert "passwordHash" not in profile["user"]

    listing = client.get(f"/users/{alice_user['id']}/posts", headers=bob).get_json()["data"]
    assert [p["content"] for p in listing["posts"]] == ["a"]

    assert client.get("/users/999", headers=bob).status_code == 404


def test_comments(client) -> None:
    _, alice = register(client, "alice")
    post_id = client.post("/posts", json={"content": "mine"}, headers=alice).get_json()["data"]["post"]["id"]
    resp = client.post(f"/posts/{post_id}/comments", json={"text": "first!"}, headers=alice)
    assert resp.status_code == 201
    assert resp.get_json()["data"]["comment"]["text"] == "first!"

    comments = client.get(f"/posts/{post_id}/comments", headers=alice).get_json()["data"]["comments"]
    assert [c["text"] for c in comments] == ["first!"]
    assert client.post(f"/posts/{post_id}/comments", json={"text": ""}, headers=alice).status_code == 400
    assert client.get("/posts/999/comments", headers=alice).status_code == 404


def test_unknown_route_uses_envelope(client) -> None:
    resp = client.get("/nowhere")
    assert resp.status_code == 404
    assert resp.get_json() == {"success": False, "message": "Not found"}


def test_internal_errors_are_generic(client, monkeypatch) -> None:
    _, alice = register(client, "alice")

    def boom(self, *args, **kwargs):
        raise RuntimeError("secret internal detail")

    monkeypatch.setattr(PostStore, "list_page", boom)
    resp = client.get("/posts", headers=alice)
    assert resp.status_code == 500
    assert resp.get_json() == {"success": False, "message": "Internal server error"}
    assert b"secret" not in resp.data


def test_security_headers(client) -> None:
    resp = client.get("/health")
    assert resp.headers["X-Content-Type-Options"] == "nosniff"
    assert resp.headers["X-Frame-Options"] == "DENY"


def test_ids_beyond_sqlite_range_are_not_found(client) -> None:
    _, alice = register(client, "alice")
    huge = "99999999999999999999"
    for method, path in [
        ("get", f"/posts/{huge}"),
        ("put", f"/posts/{huge}"),
        ("delete", f"/posts/{huge}"),
        ("post", f"/posts/{huge}/like"),
        ("get", f"/posts/{huge}/comments"),
        ("get", f"/users/{huge}"),
        ("get", f"/users/{huge}/posts"),
    ]:
        resp = getattr(client, method)(path, headers=alice)
        assert resp.status_code == 404, path
        assert resp.get_json() == {"success": False, "message": "Not found"}


def test_largest_row_id_still_routes(client) -> None:
    _, alice = register(client, "alice")
    resp = client.get(f"/posts/{2**63 - 1}", headers=alice)
    assert resp.status_code == 404
    assert resp.get_json()["message"] == "Post not found"


def test_huge_page_number_is_an_empty_page(client) -> None:
    _, alice = register(client, "alice")
    client.post("/posts", json={"content": "only"}, headers=alice)
    resp = client.get("/posts?page=99999999999999999999&limit=100", headers=alice)
    assert resp.status_code == 200
    data = resp.get_json()["data"]
    assert data["posts"] == []
    assert data["pagination"]["hasMore"] is False


def test_non_ascii_upload_name_is_accepted(client, config) -> None:
    _, alice = register(client, "alice")
    resp = client.post(
        "/posts",
        data={"content": "look", "image": (io.BytesIO(b"\x89PNG"), "照片")},
        content_type="multipart/form-data",
        headers=alice,
    )
    assert resp.status_code == 201
    image = resp.get_json()["data"]["post"]["image"]
    name = image.rsplit("/", 1)[1]
    assert image == f"/uploads/{name}" and len(name) == 32
    assert (Path(config.upload_folder) / name).read_bytes() == b"\x89PNG"
    assert client.get(image).data == b"\x89PNG"
