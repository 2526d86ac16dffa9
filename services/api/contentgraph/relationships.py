"""
Relationship graph: follow / block edges between users, plus profile upkeep.

Edge rules:
  • nobody follows or blocks themselves
  • follow is refused while the actor has the target blocked
  • block severs the follow edge between the pair in both directions
  • unblock never restores an edge

Every toggle is strict: adding an existing edge or removing a missing one
fails with a typed error instead of silently succeeding.
"""
import logging
from typing import Optional

from opentelemetry import trace
from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError

from contentgraph.documents import user_document, user_summaries
from contentgraph.errors import (
    AlreadyBlockedError,
    AlreadyExistsError,
    AlreadyFollowingError,
    BlockedError,
    NotBlockedError,
    NotFollowingError,
    SelfReferenceError,
    ValidationError,
)
from contentgraph.models import User
from contentgraph.schemas import UserDocument, UserSummary
from contentgraph.store import EntityStore, StoreSession
from contentgraph.telemetry import CONTENT_CREATED_TOTAL, count_toggle
from contentgraph.validation import clean_text

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)

PROFILE_FIELDS = frozenset({"full_name", "bio", "profile_picture", "cover_picture"})


class RelationshipGraph:
    def __init__(self, store: EntityStore, search_limit: int = 50):
        self._store = store
        self._search_limit = search_limit

    # ── Users ─────────────────────────────────────────────────────────────

    async def create_user(
        self,
        username: str,
        email: str,
        full_name: Optional[str] = None,
        password_hash: Optional[str] = None,
    ) -> UserDocument:
        username = clean_text(username, "username", 100)
        email = clean_text(email, "email", 255).lower()
        with tracer.start_as_current_span("create_user"):
            try:
                async with self._store.unit() as tx:
                    taken = await tx.find_where(
                        User, or_(User.username == username, User.email == email), limit=1
                    )
                    if taken:
                        raise AlreadyExistsError("Username or email already exists")
                    user = await tx.create(
                        User,
                        username=username,
                        email=email,
                        full_name=full_name,
                        password_hash=password_hash,
                    )
                    doc = await user_document(tx, user.user_id)
            except IntegrityError:
                # Lost a race on the unique constraints
                raise AlreadyExistsError("Username or email already exists") from None

        CONTENT_CREATED_TOTAL.labels("user").inc()
        logger.info("Created user %s (id=%s)", doc.username, doc.user_id)
        return doc

    async def get_user(self, user_id: str) -> UserDocument:
        async with self._store.unit() as tx:
            return await user_document(tx, user_id)

    async def update_profile(self, user_id: str, **fields) -> UserDocument:
        unknown = set(fields) - PROFILE_FIELDS
        if unknown:
            raise ValidationError(f"Fields not editable: {', '.join(sorted(unknown))}")
        async with self._store.unit() as tx:
            await tx.require(User, user_id)
            if fields:
                await tx.update_fields(User, user_id, **fields)
            return await user_document(tx, user_id)

    async def search_users(self, query: str) -> list[UserSummary]:
        query = clean_text(query, "query", 100)
        async with self._store.unit() as tx:
            users = await tx.find_where(
                User,
                or_(
                    User.username.icontains(query, autoescape=True),
                    User.full_name.icontains(query, autoescape=True),
                ),
                limit=self._search_limit,
            )
            return [UserSummary.model_validate(u) for u in users]

    # ── Edges ─────────────────────────────────────────────────────────────

    async def _require_pair(self, tx: StoreSession, actor_id: str, target_id: str) -> None:
        if actor_id == target_id:
            raise SelfReferenceError()
        await tx.require(User, actor_id)
        await tx.require(User, target_id)

    async def follow(self, actor_id: str, target_id: str) -> UserDocument:
        with tracer.start_as_current_span("follow"), count_toggle("follow"):
            async with self._store.unit() as tx:
                await self._require_pair(tx, actor_id, target_id)
                if await tx.set_contains(User, actor_id, "block_list", target_id):
                    raise BlockedError()
                # One row backs actor.following and target.followers
                if not await tx.set_add(User, actor_id, "following", target_id):
                    raise AlreadyFollowingError()
                doc = await user_document(tx, actor_id)
        logger.info("%s followed %s", actor_id, target_id)
        return doc

    async def unfollow(self, actor_id: str, target_id: str) -> UserDocument:
        with tracer.start_as_current_span("unfollow"), count_toggle("unfollow"):
            async with self._store.unit() as tx:
                await self._require_pair(tx, actor_id, target_id)
                if not await tx.set_remove(User, actor_id, "following", target_id):
                    raise NotFollowingError()
                doc = await user_document(tx, actor_id)
        logger.info("%s unfollowed %s", actor_id, target_id)
        return doc

    async def block(self, actor_id: str, target_id: str) -> UserDocument:
        with tracer.start_as_current_span("block"), count_toggle("block"):
            async with self._store.unit() as tx:
                await self._require_pair(tx, actor_id, target_id)
                if not await tx.set_add(User, actor_id, "block_list", target_id):
                    raise AlreadyBlockedError()
                # Absent edges are fine here, unlike an explicit unfollow
                await tx.set_remove(User, actor_id, "following", target_id)
                await tx.set_remove(User, target_id, "following", actor_id)
                doc = await user_document(tx, actor_id)
        logger.info("%s blocked %s", actor_id, target_id)
        return doc

    async def unblock(self, actor_id: str, target_id: str) -> UserDocument:
        with tracer.start_as_current_span("unblock"), count_toggle("unblock"):
            async with self._store.unit() as tx:
                await self._require_pair(tx, actor_id, target_id)
                if not await tx.set_remove(User, actor_id, "block_list", target_id):
                    raise NotBlockedError()
                doc = await user_document(tx, actor_id)
        logger.info("%s unblocked %s", actor_id, target_id)
        return doc

    async def list_blocked(self, user_id: str) -> list[UserSummary]:
        async with self._store.unit() as tx:
            await tx.require(User, user_id)
            blocked = await tx.set_members(User, user_id, "block_list")
            return await user_summaries(tx, blocked)
