"""Tests for the entity store primitives and unit-of-work behaviour."""

import pytest

from contentgraph.errors import NotFoundError
from contentgraph.models import Post, User
from contentgraph.store import EntityStore, set_field


async def _user(store: EntityStore, name: str) -> str:
    async with store.unit() as tx:
        user = await tx.create(User, username=name, email=f"{name}@example.com")
        return user.user_id


class TestSetPrimitives:
    async def test_set_add_is_strict(self, store: EntityStore):
        a = await _user(store, "a")
        b = await _user(store, "b")

        async with store.unit() as tx:
            assert await tx.set_add(User, a, "following", b) is True
        async with store.unit() as tx:
            assert await tx.set_add(User, a, "following", b) is False

        async with store.unit() as tx:
            assert await tx.set_members(User, a, "following") == [b]

    async def test_set_add_with_missing_row_is_not_a_duplicate(self, store: EntityStore):
        a = await _user(store, "a")
        async with store.unit() as tx:
            post = await tx.create(Post, user_id=a, caption="hi")

        with pytest.raises(NotFoundError) as excinfo:
            async with store.unit() as tx:
                await tx.set_add(Post, post.post_id, "likes", "deleted-user")
        assert excinfo.value.entity_type == "User"

        with pytest.raises(NotFoundError) as excinfo:
            async with store.unit() as tx:
                await tx.set_add(Post, "deleted-post", "likes", a)
        assert excinfo.value.entity_type == "Post"

        async with store.unit() as tx:
            assert await tx.set_members(Post, post.post_id, "likes") == []

    async def test_following_and_followers_share_one_edge(self, store: EntityStore):
        a = await _user(store, "a")
        b = await _user(store, "b")

        async with store.unit() as tx:
            await tx.set_add(User, a, "following", b)

        async with store.unit() as tx:
            assert await tx.set_contains(User, b, "followers", a)
            assert await tx.set_members(User, a, "followers") == []

        async with store.unit() as tx:
            assert await tx.set_remove(User, b, "followers", a) is True
        async with store.unit() as tx:
            assert await tx.set_members(User, a, "following") == []

    async def test_set_remove_reports_absence(self, store: EntityStore):
        a = await _user(store, "a")
        b = await _user(store, "b")
        async with store.unit() as tx:
            assert await tx.set_remove(User, a, "block_list", b) is False

    async def test_set_members_many(self, store: EntityStore):
        a = await _user(store, "a")
        b = await _user(store, "b")
        async with store.unit() as tx:
            post = await tx.create(Post, user_id=a, caption="hi", media=[])
            await tx.set_add(Post, post.post_id, "likes", a)
            await tx.set_add(Post, post.post_id, "likes", b)
            likes = await tx.set_members_many(Post, [post.post_id, "missing"], "likes")

        assert sorted(likes[post.post_id]) == sorted([a, b])
        assert likes["missing"] == []

    def test_unknown_set_field(self):
        with pytest.raises(KeyError):
            set_field(Post, "comments")


class TestUnit:
    async def test_require_raises_typed_not_found(self, store: EntityStore):
        with pytest.raises(NotFoundError) as info:
            async with store.unit() as tx:
                await tx.require(User, "nope")
        assert info.value.entity_type == "User"
        assert info.value.entity_id == "nope"

    async def test_error_rolls_back_unit(self, store: EntityStore):
        with pytest.raises(RuntimeError):
            async with store.unit() as tx:
                await tx.create(User, username="ghost", email="ghost@example.com")
                raise RuntimeError("boom")

        async with store.unit() as tx:
            assert await tx.find_where(User, User.username == "ghost") == []

    async def test_update_and_bulk_operations(self, store: EntityStore):
        a = await _user(store, "a")
        async with store.unit() as tx:
            for caption in ("one", "two", "three"):
                await tx.create(Post, user_id=a, caption=caption, media=[])

        async with store.unit() as tx:
            ids = await tx.find_ids(Post, Post.user_id == a)
            assert await tx.update_fields(Post, ids[0], caption="first") is True
            assert await tx.update_fields(Post, "missing", caption="x") is False
            assert await tx.bulk_update(Post, Post.caption == "two", values={"caption": "2"}) == 1

        async with store.unit() as tx:
            posts = await tx.find_where(Post, Post.user_id == a)
            assert [p.caption for p in posts] == ["first", "2", "three"]
            assert await tx.bulk_delete(Post, Post.user_id == a) == 3
            assert await tx.delete(Post, ids[0]) is False
