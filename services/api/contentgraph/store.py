"""
Entity store over the async SQLAlchemy session.

The managers never touch sessions directly. Each public operation opens one
unit (session + transaction) and talks to it through the primitives below:

  get / require / find_where / create
  set_add / set_remove / set_members / set_contains
  update_fields / delete / bulk_delete / bulk_update

Set fields (follow edges, block lists, like sets) live in association tables
keyed by (owner, member). Adding a member is a single INSERT guarded by the
composite primary key, removing one is a single DELETE, so two concurrent
toggles on the same document can never lose an update.
"""
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Any, Optional

from sqlalchemy import delete, insert, inspect, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

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
    User,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SetField:
    table: type
    owner: str
    member: str

    @property
    def owner_column(self):
        return getattr(self.table, self.owner)

    @property
    def member_column(self):
        return getattr(self.table, self.member)


# following/followers are the two directions of the same follows row, so an
# edge can never be present on one side only.
SET_FIELDS: dict[tuple[type, str], SetField] = {
    (User, "following"): SetField(Follow, "follower_id", "followee_id"),
    (User, "followers"): SetField(Follow, "followee_id", "follower_id"),
    (User, "block_list"): SetField(Block, "blocker_id", "blocked_id"),
    (Post, "likes"): SetField(PostLike, "post_id", "user_id"),
    (Comment, "likes"): SetField(CommentLike, "comment_id", "user_id"),
    (Reply, "likes"): SetField(ReplyLike, "reply_id", "user_id"),
}


def set_field(model: type, field: str) -> SetField:
    try:
        return SET_FIELDS[(model, field)]
    except KeyError:
        raise KeyError(f"{model.__name__}.{field} is not a set field") from None


def _pk(model: type):
    return inspect(model).primary_key[0]


def _order(model: type):
    return (model.created_at, _pk(model))


class StoreSession:
    """One unit of work against the store."""

    def __init__(self, session: AsyncSession):
        self._session = session

    # ── Point lookup / predicate find ────────────────────────────────────

    async def get(self, model: type, entity_id: str) -> Optional[Any]:
        return await self._session.get(model, entity_id, populate_existing=True)

    async def require(self, model: type, entity_id: str) -> Any:
        entity = await self.get(model, entity_id)
        if entity is None:
            raise NotFoundError(model.__name__, entity_id)
        return entity

    async def find_where(self, model: type, *criteria, limit: Optional[int] = None) -> list:
        """Entities matching every criterion, in creation order."""
        stmt = select(model).where(*criteria).order_by(*_order(model))
        if limit is not None:
            stmt = stmt.limit(limit)
        rows = await self._session.execute(stmt)
        return list(rows.scalars().all())

    async def find_ids(self, model: type, *criteria) -> list[str]:
        stmt = select(_pk(model)).where(*criteria).order_by(*_order(model))
        rows = await self._session.execute(stmt)
        return [r[0] for r in rows.all()]

    async def create(self, model: type, **fields) -> Any:
        entity = model(**fields)
        self._session.add(entity)
        await self._session.flush()
        return entity

    # ── Atomic set primitives ────────────────────────────────────────────

    async def set_add(self, model: type, owner_id: str, field: str, value: str) -> bool:
        """
        Add `value` to the set; False if it was already a member.

        A rejected insert rolls the unit back, so callers must treat False as
        terminal and raise. An insert rejected because the owner or member
        row is gone raises NotFoundError instead.
        """
        sf = set_field(model, field)
        try:
            await self._session.execute(
                insert(sf.table).values({sf.owner: owner_id, sf.member: value})
            )
        except IntegrityError:
            await self._session.rollback()
            if await self.set_contains(model, owner_id, field, value):
                logger.debug("%s.%s already contains %s", model.__name__, field, value)
                return False
            # Every set holds user ids; the owner is either a user or content
            if await self.get(model, owner_id) is None:
                raise NotFoundError(model.__name__, owner_id)
            raise NotFoundError(User.__name__, value)
        return True

    async def set_remove(self, model: type, owner_id: str, field: str, value: str) -> bool:
        """Remove `value` from the set; False if it was not a member."""
        sf = set_field(model, field)
        result = await self._session.execute(
            delete(sf.table).where(sf.owner_column == owner_id, sf.member_column == value)
        )
        return result.rowcount > 0

    async def set_contains(self, model: type, owner_id: str, field: str, value: str) -> bool:
        sf = set_field(model, field)
        row = await self._session.execute(
            select(sf.member_column).where(
                sf.owner_column == owner_id, sf.member_column == value
            )
        )
        return row.first() is not None

    async def set_members(self, model: type, owner_id: str, field: str) -> list[str]:
        """Members in insertion order."""
        sf = set_field(model, field)
        rows = await self._session.execute(
            select(sf.member_column)
            .where(sf.owner_column == owner_id)
            .order_by(sf.table.created_at, sf.member_column)
        )
        return [r[0] for r in rows.all()]

    async def set_members_many(
        self, model: type, owner_ids: list[str], field: str
    ) -> dict[str, list[str]]:
        sf = set_field(model, field)
        members: dict[str, list[str]] = {oid: [] for oid in owner_ids}
        if not owner_ids:
            return members
        rows = await self._session.execute(
            select(sf.owner_column, sf.member_column)
            .where(sf.owner_column.in_(owner_ids))
            .order_by(sf.table.created_at, sf.member_column)
        )
        for owner_id, member in rows.all():
            members[owner_id].append(member)
        return members

    # ── Field / bulk mutation ────────────────────────────────────────────

    async def update_fields(self, model: type, entity_id: str, **fields) -> bool:
        result = await self._session.execute(
            update(model).where(_pk(model) == entity_id).values(**fields)
        )
        return result.rowcount > 0

    async def delete(self, model: type, entity_id: str) -> bool:
        result = await self._session.execute(
            delete(model).where(_pk(model) == entity_id)
        )
        return result.rowcount > 0

    async def bulk_delete(self, model: type, *criteria) -> int:
        result = await self._session.execute(
            delete(model).where(*criteria).execution_options(synchronize_session=False)
        )
        return result.rowcount

    async def bulk_update(self, model: type, *criteria, values: dict) -> int:
        result = await self._session.execute(
            update(model)
            .where(*criteria)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount


class EntityStore:
    """Process-lifetime handle; hands out one StoreSession per operation."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    @asynccontextmanager
    async def unit(self) -> AsyncIterator[StoreSession]:
        """Commit on success, roll back on any error."""
        async with self._session_factory() as session:
            try:
                yield StoreSession(session)
                await session.commit()
            except Exception:
                await session.rollback()
                raise
