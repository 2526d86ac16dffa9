"""
Content graph: posts, comments, replies, stories and their like sets.

Ownership:
  User    → posts (Post.user_id), stories
  Post    → comments (Comment.post_id), likes
  Comment → replies (Reply.comment_id), likes
  Reply   → likes; addressed only as (comment_id, reply_id)

Deleting an owner removes everything it owns, children first, so the store's
foreign keys hold at every step. Likes follow the same strict toggle
contract as follow/block.
"""
import logging
from collections.abc import Sequence
from typing import Optional

from opentelemetry import trace
from sqlalchemy import select

from contentgraph.documents import (
    comment_document,
    comment_documents,
    post_document,
    post_documents,
    story_document,
)
from contentgraph.errors import (
    AlreadyLikedError,
    NotAuthorError,
    NotFoundError,
    NotLikedError,
    ValidationError,
)
from contentgraph.models import (
    Comment,
    CommentLike,
    Post,
    PostLike,
    Reply,
    ReplyLike,
    Story,
    User,
)
from contentgraph.schemas import CommentDocument, PostDocument, StoryDocument
from contentgraph.store import EntityStore, StoreSession
from contentgraph.telemetry import CONTENT_CREATED_TOTAL, count_toggle
from contentgraph.validation import clean_text

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)


# ─────────────────────── Bulk removal (shared with cascade) ───────────────

async def delete_replies_where(tx: StoreSession, *criteria) -> int:
    """Delete matching replies and their like sets."""
    reply_ids = select(Reply.reply_id).where(*criteria)
    await tx.bulk_delete(ReplyLike, ReplyLike.reply_id.in_(reply_ids))
    return await tx.bulk_delete(Reply, *criteria)


async def delete_comments_where(tx: StoreSession, *criteria) -> int:
    """Delete matching comments with every reply under them and all like sets."""
    comment_ids = select(Comment.comment_id).where(*criteria)
    await delete_replies_where(tx, Reply.comment_id.in_(comment_ids))
    await tx.bulk_delete(CommentLike, CommentLike.comment_id.in_(comment_ids))
    return await tx.bulk_delete(Comment, *criteria)


async def delete_posts_where(tx: StoreSession, *criteria) -> int:
    """Delete matching posts with their comment trees and like sets."""
    post_ids = select(Post.post_id).where(*criteria)
    await delete_comments_where(tx, Comment.post_id.in_(post_ids))
    await tx.bulk_delete(PostLike, PostLike.post_id.in_(post_ids))
    return await tx.bulk_delete(Post, *criteria)


async def _require_reply(tx: StoreSession, comment_id: str, reply_id: str) -> Reply:
    await tx.require(Comment, comment_id)
    found = await tx.find_where(
        Reply, Reply.comment_id == comment_id, Reply.reply_id == reply_id
    )
    if not found:
        raise NotFoundError("Reply", reply_id)
    return found[0]


class ContentGraph:
    def __init__(
        self,
        store: EntityStore,
        max_text_length: int = 2000,
        post_media_limit: int = 5,
    ):
        self._store = store
        self._max_text_length = max_text_length
        self._post_media_limit = post_media_limit

    def _text(self, value: Optional[str], field: str = "text") -> str:
        return clean_text(value, field, self._max_text_length)

    # ── Posts ─────────────────────────────────────────────────────────────

    async def create_post(
        self, user_id: str, caption: str = "", media: Sequence[str] = ()
    ) -> PostDocument:
        media = [m for m in media if m]
        if len(media) > self._post_media_limit:
            raise ValidationError(f"A post takes at most {self._post_media_limit} media items")
        caption = clean_text(caption, "caption", self._max_text_length, required=not media)

        with tracer.start_as_current_span("create_post") as span:
            async with self._store.unit() as tx:
                await tx.require(User, user_id)
                post = await tx.create(Post, user_id=user_id, caption=caption, media=media)
                doc = await post_document(tx, post.post_id)
            span.set_attribute("post.id", doc.post_id)
            span.set_attribute("post.user_id", user_id)

        CONTENT_CREATED_TOTAL.labels("post").inc()
        logger.info("Post created: %s by user %s", doc.post_id, user_id)
        return doc

    async def get_post(self, post_id: str) -> PostDocument:
        async with self._store.unit() as tx:
            return await post_document(tx, post_id)

    async def update_post(self, post_id: str, caption: str) -> PostDocument:
        async with self._store.unit() as tx:
            post = await tx.require(Post, post_id)
            # Media-only posts may have their caption cleared
            caption = clean_text(
                caption, "caption", self._max_text_length, required=not post.media
            )
            await tx.update_fields(Post, post_id, caption=caption)
            return await post_document(tx, post_id)

    async def delete_post(self, post_id: str) -> None:
        with tracer.start_as_current_span("delete_post"):
            async with self._store.unit() as tx:
                await tx.require(Post, post_id)
                # Dropping the row also drops it from the owner's post list
                await delete_posts_where(tx, Post.post_id == post_id)
        logger.info("Post deleted: %s", post_id)

    async def list_user_posts(self, user_id: str) -> list[PostDocument]:
        async with self._store.unit() as tx:
            await tx.require(User, user_id)
            posts = await tx.find_where(Post, Post.user_id == user_id)
            return await post_documents(tx, posts)

    async def like_post(self, post_id: str, user_id: str) -> PostDocument:
        with tracer.start_as_current_span("like_post"), count_toggle("like_post"):
            async with self._store.unit() as tx:
                await tx.require(Post, post_id)
                await tx.require(User, user_id)
                if not await tx.set_add(Post, post_id, "likes", user_id):
                    raise AlreadyLikedError("You have already liked this post")
                return await post_document(tx, post_id)

    async def dislike_post(self, post_id: str, user_id: str) -> PostDocument:
        with tracer.start_as_current_span("dislike_post"), count_toggle("dislike_post"):
            async with self._store.unit() as tx:
                await tx.require(Post, post_id)
                await tx.require(User, user_id)
                if not await tx.set_remove(Post, post_id, "likes", user_id):
                    raise NotLikedError("You have not liked this post")
                return await post_document(tx, post_id)

    # ── Comments ──────────────────────────────────────────────────────────

    async def create_comment(self, post_id: str, user_id: str, text: str) -> CommentDocument:
        text = self._text(text)
        with tracer.start_as_current_span("create_comment"):
            async with self._store.unit() as tx:
                await tx.require(Post, post_id)
                await tx.require(User, user_id)
                comment = await tx.create(Comment, post_id=post_id, user_id=user_id, text=text)
                doc = await comment_document(tx, comment.comment_id)

        CONTENT_CREATED_TOTAL.labels("comment").inc()
        logger.info("Comment %s on post %s by %s", doc.comment_id, post_id, user_id)
        return doc

    async def update_comment(self, comment_id: str, user_id: str, text: str) -> CommentDocument:
        text = self._text(text)
        async with self._store.unit() as tx:
            comment = await tx.require(Comment, comment_id)
            if comment.user_id != user_id:
                raise NotAuthorError("You can update only your own comment")
            await tx.update_fields(Comment, comment_id, text=text)
            return await comment_document(tx, comment_id)

    async def delete_comment(self, comment_id: str) -> None:
        with tracer.start_as_current_span("delete_comment"):
            async with self._store.unit() as tx:
                await tx.require(Comment, comment_id)
                await delete_comments_where(tx, Comment.comment_id == comment_id)
        logger.info("Comment deleted: %s", comment_id)

    async def list_post_comments(self, post_id: str) -> list[CommentDocument]:
        """Comment thread of a post with authors populated."""
        async with self._store.unit() as tx:
            await tx.require(Post, post_id)
            comments = await tx.find_where(Comment, Comment.post_id == post_id)
            return await comment_documents(tx, comments, populate=True)

    async def like_comment(self, comment_id: str, user_id: str) -> CommentDocument:
        with tracer.start_as_current_span("like_comment"), count_toggle("like_comment"):
            async with self._store.unit() as tx:
                await tx.require(Comment, comment_id)
                await tx.require(User, user_id)
                if not await tx.set_add(Comment, comment_id, "likes", user_id):
                    raise AlreadyLikedError("You have already liked this comment")
                return await comment_document(tx, comment_id)

    async def dislike_comment(self, comment_id: str, user_id: str) -> CommentDocument:
        with tracer.start_as_current_span("dislike_comment"), count_toggle("dislike_comment"):
            async with self._store.unit() as tx:
                await tx.require(Comment, comment_id)
                await tx.require(User, user_id)
                if not await tx.set_remove(Comment, comment_id, "likes", user_id):
                    raise NotLikedError("Cannot dislike, you have not liked the comment")
                return await comment_document(tx, comment_id)

    # ── Replies ───────────────────────────────────────────────────────────

    async def create_reply(self, comment_id: str, user_id: str, text: str) -> CommentDocument:
        text = self._text(text)
        with tracer.start_as_current_span("create_reply"):
            async with self._store.unit() as tx:
                await tx.require(Comment, comment_id)
                await tx.require(User, user_id)
                reply = await tx.create(Reply, comment_id=comment_id, user_id=user_id, text=text)
                doc = await comment_document(tx, comment_id)

        CONTENT_CREATED_TOTAL.labels("reply").inc()
        logger.info("Reply %s on comment %s by %s", reply.reply_id, comment_id, user_id)
        return doc

    async def update_reply(
        self, comment_id: str, reply_id: str, user_id: str, text: str
    ) -> CommentDocument:
        text = self._text(text)
        async with self._store.unit() as tx:
            reply = await _require_reply(tx, comment_id, reply_id)
            if reply.user_id != user_id:
                raise NotAuthorError("You cannot update someone else's reply")
            await tx.update_fields(Reply, reply_id, text=text)
            return await comment_document(tx, comment_id)

    async def delete_reply(self, comment_id: str, reply_id: str) -> CommentDocument:
        async with self._store.unit() as tx:
            await _require_reply(tx, comment_id, reply_id)
            await delete_replies_where(
                tx, Reply.comment_id == comment_id, Reply.reply_id == reply_id
            )
            doc = await comment_document(tx, comment_id)
        logger.info("Reply %s removed from comment %s", reply_id, comment_id)
        return doc

    async def like_reply(self, comment_id: str, reply_id: str, user_id: str) -> CommentDocument:
        with tracer.start_as_current_span("like_reply"), count_toggle("like_reply"):
            async with self._store.unit() as tx:
                await _require_reply(tx, comment_id, reply_id)
                await tx.require(User, user_id)
                if not await tx.set_add(Reply, reply_id, "likes", user_id):
                    raise AlreadyLikedError("Already liked the reply")
                return await comment_document(tx, comment_id)

    async def dislike_reply(
        self, comment_id: str, reply_id: str, user_id: str
    ) -> CommentDocument:
        with tracer.start_as_current_span("dislike_reply"), count_toggle("dislike_reply"):
            async with self._store.unit() as tx:
                await _require_reply(tx, comment_id, reply_id)
                await tx.require(User, user_id)
                if not await tx.set_remove(Reply, reply_id, "likes", user_id):
                    raise NotLikedError("Reply is not liked, like it to dislike")
                return await comment_document(tx, comment_id)

    # ── Stories ───────────────────────────────────────────────────────────

    async def create_story(
        self, user_id: str, text: str, image: Optional[str] = None
    ) -> StoryDocument:
        text = self._text(text)
        async with self._store.unit() as tx:
            await tx.require(User, user_id)
            story = await tx.create(Story, user_id=user_id, text=text, image=image or None)
            doc = story_document(story)

        CONTENT_CREATED_TOTAL.labels("story").inc()
        logger.info("Story %s by %s", doc.story_id, user_id)
        return doc

    async def list_user_stories(self, user_id: str) -> list[StoryDocument]:
        async with self._store.unit() as tx:
            await tx.require(User, user_id)
            stories = await tx.find_where(Story, Story.user_id == user_id)
            return [story_document(s) for s in stories]
