"""Tests for the cascading user deletion."""

import pytest
from sqlalchemy import or_

from contentgraph.cascade import UserDeletion
from contentgraph.content import ContentGraph
from contentgraph.errors import NotFoundError
from contentgraph.models import (
    Block,
    Comment,
    CommentLike,
    Follow,
    Post,
    PostLike,
    Reply,
    ReplyLike,
    Story,
)
from contentgraph.relationships import RelationshipGraph
from contentgraph.store import EntityStore


async def _traces_of(store: EntityStore, user_id: str) -> dict[str, int]:
    """Rows anywhere in the store that still reference `user_id`."""
    async with store.unit() as tx:
        return {
            "posts": len(await tx.find_where(Post, Post.user_id == user_id)),
            "comments": len(await tx.find_where(Comment, Comment.user_id == user_id)),
            "replies": len(await tx.find_where(Reply, Reply.user_id == user_id)),
            "stories": len(await tx.find_where(Story, Story.user_id == user_id)),
            "post_likes": len(await tx.find_where(PostLike, PostLike.user_id == user_id)),
            "comment_likes": len(
                await tx.find_where(CommentLike, CommentLike.user_id == user_id)
            ),
            "reply_likes": len(await tx.find_where(ReplyLike, ReplyLike.user_id == user_id)),
            "follows": len(
                await tx.find_where(
                    Follow, or_(Follow.follower_id == user_id, Follow.followee_id == user_id)
                )
            ),
            "blocks": len(
                await tx.find_where(
                    Block, or_(Block.blocker_id == user_id, Block.blocked_id == user_id)
                )
            ),
        }


@pytest.fixture
async def busy_bob(graph: RelationshipGraph, content: ContentGraph, alice, bob, carol):
    """bob has content of his own and traces all over alice's and carol's."""
    alice_post = await content.create_post(alice.user_id, "hi")
    bob_post = await content.create_post(bob.user_id, "bob's post")

    bob_comment = await content.create_comment(alice_post.post_id, bob.user_id, "nice")
    carol_comment = await content.create_comment(alice_post.post_id, carol.user_id, "cool")
    on_bob_post = await content.create_comment(bob_post.post_id, carol.user_id, "yo")

    await content.create_reply(bob_comment.comment_id, bob.user_id, "thanks")
    await content.create_reply(bob_comment.comment_id, carol.user_id, "agreed")
    doc = await content.create_reply(carol_comment.comment_id, bob.user_id, "+1")
    bob_reply = doc.replies[0].reply_id
    doc = await content.create_reply(carol_comment.comment_id, alice.user_id, "ty")
    alice_reply = doc.replies[1].reply_id

    await content.like_post(alice_post.post_id, bob.user_id)
    await content.like_post(bob_post.post_id, alice.user_id)
    await content.like_comment(carol_comment.comment_id, bob.user_id)
    await content.like_reply(carol_comment.comment_id, alice_reply, bob.user_id)
    await content.like_reply(carol_comment.comment_id, bob_reply, carol.user_id)
    await content.create_story(bob.user_id, "story time")

    # Blocks first: a block would sever these follow edges
    await graph.block(alice.user_id, bob.user_id)
    await graph.block(bob.user_id, carol.user_id)
    await graph.follow(bob.user_id, alice.user_id)
    await graph.follow(carol.user_id, bob.user_id)

    return {
        "alice_post": alice_post.post_id,
        "bob_post": bob_post.post_id,
        "bob_comment": bob_comment.comment_id,
        "carol_comment": carol_comment.comment_id,
        "on_bob_post": on_bob_post.comment_id,
        "alice_reply": alice_reply,
    }


class TestDeleteUser:
    async def test_removes_every_trace(
        self,
        store: EntityStore,
        deletion: UserDeletion,
        graph: RelationshipGraph,
        content: ContentGraph,
        alice,
        bob,
        carol,
        busy_bob,
    ):
        before = await _traces_of(store, bob.user_id)
        assert before["follows"] == before["blocks"] == 2

        report = await deletion.delete_user(bob.user_id)

        assert list(report.steps) == [name for name, _ in deletion.steps]
        assert report.steps["delete_user_record"] == 1
        assert set((await _traces_of(store, bob.user_id)).values()) == {0}

        with pytest.raises(NotFoundError):
            await graph.get_user(bob.user_id)
        with pytest.raises(NotFoundError):
            await content.get_post(busy_bob["bob_post"])

        alice_doc = await graph.get_user(alice.user_id)
        carol_doc = await graph.get_user(carol.user_id)
        assert bob.user_id not in alice_doc.followers + alice_doc.block_list
        assert bob.user_id not in carol_doc.following

        post = await content.get_post(busy_bob["alice_post"])
        assert post.comments == [busy_bob["carol_comment"]]
        assert post.likes == []

        (thread,) = await content.list_post_comments(busy_bob["alice_post"])
        assert thread.likes == []
        assert [r.reply_id for r in thread.replies] == [busy_bob["alice_reply"]]
        assert thread.replies[0].likes == []

    async def test_missing_user(self, deletion: UserDeletion):
        with pytest.raises(NotFoundError):
            await deletion.delete_user("missing")

    async def test_alice_bob_scenario(
        self, deletion: UserDeletion, graph: RelationshipGraph, content: ContentGraph, alice, bob
    ):
        p1 = await content.create_post(alice.user_id, "hi")
        c1 = await content.create_comment(p1.post_id, bob.user_id, "nice")
        assert (await content.get_post(p1.post_id)).comments == [c1.comment_id]
        doc = await content.create_reply(c1.comment_id, bob.user_id, "thanks")
        assert len(doc.replies) == 1

        await deletion.delete_user(bob.user_id)

        assert (await content.get_post(p1.post_id)).comments == []
        assert await content.list_post_comments(p1.post_id) == []
        alice_doc = await graph.get_user(alice.user_id)
        assert alice_doc.posts == [p1.post_id]
        assert alice_doc.followers == alice_doc.following == alice_doc.block_list == []


class TestSteps:
    async def test_steps_are_idempotent(
        self, store: EntityStore, deletion: UserDeletion, bob, busy_bob
    ):
        assert await deletion.purge_likes(bob.user_id) == 3
        assert await deletion.purge_likes(bob.user_id) == 0
        first = await _traces_of(store, bob.user_id)

        await deletion.purge_likes(bob.user_id)
        assert await _traces_of(store, bob.user_id) == first

    async def test_every_step_reruns_as_noop(self, deletion: UserDeletion, bob, busy_bob):
        for name, step in deletion.steps[:-1]:
            await step(bob.user_id)
            assert await step(bob.user_id) == 0, name

    async def test_detach_then_delete_authored_comments(
        self, store: EntityStore, deletion: UserDeletion, content: ContentGraph, bob, busy_bob
    ):
        await deletion.delete_owned_posts(bob.user_id)
        assert await deletion.detach_authored_comments(bob.user_id) == 1
        assert (await content.get_post(busy_bob["alice_post"])).comments == [
            busy_bob["carol_comment"]
        ]

        async with store.unit() as tx:
            orphan = await tx.require(Comment, busy_bob["bob_comment"])
            assert orphan.post_id is None

        assert await deletion.delete_authored_comments(bob.user_id) == 1
        async with store.unit() as tx:
            assert await tx.get(Comment, busy_bob["bob_comment"]) is None

    async def test_resume_after_failed_step(
        self,
        store: EntityStore,
        deletion: UserDeletion,
        graph: RelationshipGraph,
        bob,
        busy_bob,
        monkeypatch: pytest.MonkeyPatch,
    ):
        async def broken(user_id: str) -> int:
            raise RuntimeError("store went away")

        monkeypatch.setattr(deletion, "purge_likes", broken)
        with pytest.raises(RuntimeError):
            await deletion.delete_user(bob.user_id)

        # Steps before the failure are durable, the user is still there
        traces = await _traces_of(store, bob.user_id)
        assert traces["posts"] == traces["stories"] == traces["replies"] == 0
        assert traces["post_likes"] == 1
        assert (await graph.get_user(bob.user_id)).user_id == bob.user_id

        monkeypatch.undo()
        await deletion.delete_user(bob.user_id)
        assert set((await _traces_of(store, bob.user_id)).values()) == {0}
