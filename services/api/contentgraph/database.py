"""
Async SQLAlchemy engine + session factory.

Deployment targets TiDB (wire-compatible with MySQL 5.7, aiomysql driver);
local runs and tests use SQLite through aiosqlite. The engine is created
once in the app lifespan and handed to the entity store explicitly.
"""
import logging

from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    pass


def _configure_sqlite(engine: AsyncEngine) -> None:
    """
    Make SQLite behave like a real transactional store.

    pysqlite defers BEGIN until the first DML statement, so two concurrent
    units both hold SHARED locks and deadlock on upgrade. Taking the write
    lock up front serialises units instead; foreign keys are off by default.
    """

    @event.listens_for(engine.sync_engine, "connect")
    def _on_connect(dbapi_connection, connection_record):  # noqa: ANN001
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine.sync_engine, "begin")
    def _on_begin(conn):  # noqa: ANN001
        conn.exec_driver_sql("BEGIN IMMEDIATE")


def build_engine(url: str, pool_size: int = 20, max_overflow: int = 10) -> AsyncEngine:
    if url.startswith("sqlite"):
        engine = create_async_engine(url, echo=False)
        _configure_sqlite(engine)
    else:
        engine = create_async_engine(
            url,
            pool_pre_ping=True,
            pool_size=pool_size,
            max_overflow=max_overflow,
            echo=False,
        )
    return engine


def build_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


async def init_db(engine: AsyncEngine) -> None:
    """Create all tables if they don't exist (idempotent)."""
    # Import for side effect: registers every table on Base.metadata
    from contentgraph import models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database tables initialised")
