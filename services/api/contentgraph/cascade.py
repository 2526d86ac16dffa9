"""
Cascading user deletion.

Removing a user touches every collection, and there is no transaction that
spans all of it. The deletion therefore runs as an ordered list of steps:

  1. delete_owned_posts        posts owned by the user, with their threads
  2. detach_authored_comments  user's comments leave other people's posts
  3. remove_authored_replies   user's replies leave every comment
  4. delete_authored_comments  the now detached comments (and replies under them)
  5. delete_owned_stories
  6. purge_likes               user leaves every post/comment/reply like set
  7. sever_edges               follow and block edges in both directions
  8. delete_user_record

Each step commits in its own unit and is idempotent, so running it again is
a no-op. A failure leaves the earlier steps committed and propagates; calling
delete_user() again resumes from wherever the data now stands.
"""
import logging
import time
from collections.abc import Awaitable, Callable

from opentelemetry import trace
from sqlalchemy import or_

from contentgraph.content import (
    delete_comments_where,
    delete_posts_where,
    delete_replies_where,
)
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
    User,
)
from contentgraph.schemas import DeletionReport
from contentgraph.store import EntityStore
from contentgraph.telemetry import CASCADE_STEP_SECONDS, USER_DELETIONS_TOTAL

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)


class UserDeletion:
    """Ordered, resumable removal of a user and every reference to them."""

    def __init__(self, store: EntityStore):
        self._store = store

    @property
    def steps(self) -> list[tuple[str, Callable[[str], Awaitable[int]]]]:
        return [
            ("delete_owned_posts", self.delete_owned_posts),
            ("detach_authored_comments", self.detach_authored_comments),
            ("remove_authored_replies", self.remove_authored_replies),
            ("delete_authored_comments", self.delete_authored_comments),
            ("delete_owned_stories", self.delete_owned_stories),
            ("purge_likes", self.purge_likes),
            ("sever_edges", self.sever_edges),
            ("delete_user_record", self.delete_user_record),
        ]

    async def delete_user(self, user_id: str) -> DeletionReport:
        async with self._store.unit() as tx:
            await tx.require(User, user_id)

        report = DeletionReport(user_id=user_id, steps={})
        with tracer.start_as_current_span("delete_user") as span:
            span.set_attribute("user.id", user_id)
            for name, step in self.steps:
                started = time.perf_counter()
                try:
                    with tracer.start_as_current_span(name):
                        report.steps[name] = await step(user_id)
                except Exception:
                    USER_DELETIONS_TOTAL.labels("failed").inc()
                    logger.warning(
                        "Deletion of user %s stopped at step %s; completed: %s",
                        user_id, name, ", ".join(report.steps) or "none",
                    )
                    raise
                finally:
                    CASCADE_STEP_SECONDS.labels(name).observe(time.perf_counter() - started)

        USER_DELETIONS_TOTAL.labels("completed").inc()
        logger.info("Deleted user %s: %s", user_id, report.steps)
        return report

    # ── Steps ─────────────────────────────────────────────────────────────

    async def delete_owned_posts(self, user_id: str) -> int:
        async with self._store.unit() as tx:
            return await delete_posts_where(tx, Post.user_id == user_id)

    async def detach_authored_comments(self, user_id: str) -> int:
        async with self._store.unit() as tx:
            return await tx.bulk_update(
                Comment,
                Comment.user_id == user_id,
                Comment.post_id.is_not(None),
                values={"post_id": None},
            )

    async def remove_authored_replies(self, user_id: str) -> int:
        async with self._store.unit() as tx:
            return await delete_replies_where(tx, Reply.user_id == user_id)

    async def delete_authored_comments(self, user_id: str) -> int:
        async with self._store.unit() as tx:
            return await delete_comments_where(tx, Comment.user_id == user_id)

    async def delete_owned_stories(self, user_id: str) -> int:
        async with self._store.unit() as tx:
            return await tx.bulk_delete(Story, Story.user_id == user_id)

    async def purge_likes(self, user_id: str) -> int:
        async with self._store.unit() as tx:
            removed = await tx.bulk_delete(PostLike, PostLike.user_id == user_id)
            removed += await tx.bulk_delete(CommentLike, CommentLike.user_id == user_id)
            removed += await tx.bulk_delete(ReplyLike, ReplyLike.user_id == user_id)
            return removed

    async def sever_edges(self, user_id: str) -> int:
        async with self._store.unit() as tx:
            # Leaves the followers set of everyone they followed and the
            # following set of everyone who followed them.
            removed = await tx.bulk_delete(
                Follow, or_(Follow.follower_id == user_id, Follow.followee_id == user_id)
            )
            removed += await tx.bulk_delete(
                Block, or_(Block.blocker_id == user_id, Block.blocked_id == user_id)
            )
            return removed

    async def delete_user_record(self, user_id: str) -> int:
        async with self._store.unit() as tx:
            return int(await tx.delete(User, user_id))
