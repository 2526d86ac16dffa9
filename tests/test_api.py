"""Tests for the HTTP layer: routing, bodies and error translation."""

import pytest
from httpx import AsyncClient

from contentgraph.errors import (
    AlreadyLikedError,
    BlockedError,
    ContentGraphError,
    NotFoundError,
    SelfReferenceError,
    ValidationError,
)
from contentgraph.main import status_for


async def _create_user(client: AsyncClient, username: str) -> str:
    resp = await client.post(
        "/users/", json={"username": username, "email": f"{username}@example.com"}
    )
    assert resp.status_code == 201, resp.text
    return resp.json()["user_id"]


@pytest.mark.parametrize(
    ("exc", "status"),
    [
        (NotFoundError("Post", "p1"), 404),
        (SelfReferenceError(), 400),
        (ValidationError("bad"), 422),
        (BlockedError(), 403),
        (AlreadyLikedError(), 409),
        (ContentGraphError(), 400),
    ],
)
def test_status_mapping(exc, status):
    assert status_for(exc) == status


async def test_health(client: AsyncClient):
    resp = await client.get("/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"


class TestUserRoutes:
    async def test_follow_flow(self, client: AsyncClient):
        alice = await _create_user(client, "alice")
        bob = await _create_user(client, "bob")

        resp = await client.post(f"/users/{bob}/follow", json={"user_id": alice})
        assert resp.status_code == 200
        assert resp.json()["following"] == [bob]

        resp = await client.post(f"/users/{bob}/follow", json={"user_id": alice})
        assert resp.status_code == 409
        assert resp.json()["code"] == "already_following"

        resp = await client.post(f"/users/{bob}/block", json={"user_id": alice})
        assert resp.json()["block_list"] == [bob]
        assert resp.json()["following"] == []

        resp = await client.post(f"/users/{bob}/follow", json={"user_id": alice})
        assert resp.status_code == 403
        assert resp.json()["code"] == "blocked"

        resp = await client.get(f"/users/{alice}/blocked")
        assert [u["username"] for u in resp.json()] == ["bob"]

    async def test_self_follow_and_missing_user(self, client: AsyncClient):
        alice = await _create_user(client, "alice")

        resp = await client.post(f"/users/{alice}/follow", json={"user_id": alice})
        assert resp.status_code == 400

        resp = await client.get("/users/nobody")
        assert resp.status_code == 404
        assert resp.json()["code"] == "not_found"

    async def test_duplicate_user(self, client: AsyncClient):
        await _create_user(client, "alice")
        resp = await client.post(
            "/users/", json={"username": "alice", "email": "x@example.com"}
        )
        assert resp.status_code == 409

    async def test_profile_and_search(self, client: AsyncClient):
        alice = await _create_user(client, "alice")
        resp = await client.patch(f"/users/{alice}", json={"full_name": "Alice Chen"})
        assert resp.json()["full_name"] == "Alice Chen"

        resp = await client.get("/users/search", params={"q": "chen"})
        assert [u["user_id"] for u in resp.json()] == [alice]

    async def test_delete_user_reports_steps(self, client: AsyncClient):
        alice = await _create_user(client, "alice")
        await client.post("/posts/", json={"user_id": alice, "caption": "hi"})
        await client.post("/stories/", json={"user_id": alice, "text": "story"})

        resp = await client.delete(f"/users/{alice}")
        assert resp.status_code == 200
        steps = resp.json()["steps"]
        assert steps["delete_owned_posts"] == 1
        assert steps["delete_owned_stories"] == 1

        resp = await client.delete(f"/users/{alice}")
        assert resp.status_code == 404


class TestContentRoutes:
    async def test_post_comment_reply_flow(self, client: AsyncClient):
        alice = await _create_user(client, "alice")
        bob = await _create_user(client, "bob")

        resp = await client.post("/posts/", json={"user_id": alice, "caption": "hi"})
        assert resp.status_code == 201
        post_id = resp.json()["post_id"]

        resp = await client.post(f"/posts/{post_id}/like", json={"user_id": bob})
        assert resp.json()["likes"] == [bob]
        resp = await client.post(f"/posts/{post_id}/like", json={"user_id": bob})
        assert resp.status_code == 409
        assert resp.json()["code"] == "already_liked"

        resp = await client.post(
            "/comments/", json={"post_id": post_id, "user_id": bob, "text": "nice"}
        )
        assert resp.status_code == 201
        comment_id = resp.json()["comment_id"]

        resp = await client.post(
            f"/comments/{comment_id}/replies", json={"user_id": alice, "text": "thanks"}
        )
        assert resp.status_code == 201
        reply_id = resp.json()["replies"][0]["reply_id"]

        resp = await client.patch(
            f"/comments/{comment_id}/replies/{reply_id}",
            json={"user_id": bob, "text": "not mine"},
        )
        assert resp.status_code == 403
        assert resp.json()["code"] == "not_author"

        resp = await client.post(
            f"/comments/{comment_id}/replies/{reply_id}/like", json={"user_id": bob}
        )
        assert resp.json()["replies"][0]["likes"] == [bob]

        resp = await client.get(f"/posts/{post_id}/comments")
        (thread,) = resp.json()
        assert thread["author"]["username"] == "bob"

        resp = await client.delete(f"/comments/{comment_id}/replies/{reply_id}")
        assert resp.json()["replies"] == []

        resp = await client.delete(f"/comments/{comment_id}")
        assert resp.status_code == 204
        resp = await client.get(f"/posts/{post_id}")
        assert resp.json()["comments"] == []

    async def test_validation_errors(self, client: AsyncClient):
        alice = await _create_user(client, "alice")
        resp = await client.post("/posts/", json={"user_id": alice, "caption": "  "})
        assert resp.status_code == 422
        assert resp.json()["code"] == "validation_error"

    async def test_user_listings(self, client: AsyncClient):
        alice = await _create_user(client, "alice")
        await client.post("/posts/", json={"user_id": alice, "caption": "one"})
        await client.post("/posts/", json={"user_id": alice, "media": ["a.png"]})
        await client.post("/stories/", json={"user_id": alice, "text": "story"})

        posts = (await client.get(f"/users/{alice}/posts")).json()
        assert [p["caption"] for p in posts] == ["one", ""]
        assert posts[1]["media"] == ["a.png"]

        stories = (await client.get(f"/users/{alice}/stories")).json()
        assert [s["text"] for s in stories] == ["story"]

    async def test_delete_post(self, client: AsyncClient):
        alice = await _create_user(client, "alice")
        post_id = (
            await client.post("/posts/", json={"user_id": alice, "caption": "hi"})
        ).json()["post_id"]

        resp = await client.delete(f"/posts/{post_id}")
        assert resp.status_code == 204
        assert (await client.get(f"/users/{alice}")).json()["posts"] == []
        assert (await client.delete(f"/posts/{post_id}")).status_code == 404
