"""Shared test fixtures and factories."""

import os

# Settings are read at import time; keep exporters off for the whole suite.
os.environ.setdefault("TRACING_ENABLED", "false")

from collections.abc import AsyncGenerator
from pathlib import Path

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncEngine

from contentgraph.cascade import UserDeletion
from contentgraph.config import Settings
from contentgraph.content import ContentGraph
from contentgraph.database import build_engine, build_session_factory, init_db
from contentgraph.deps import Services, build_services
from contentgraph.main import create_app
from contentgraph.relationships import RelationshipGraph
from contentgraph.schemas import UserDocument
from contentgraph.store import EntityStore

# =============================================================================
# Store Fixtures
# =============================================================================


@pytest.fixture
def settings() -> Settings:
    return Settings(
        tracing_enabled=False,
        max_text_length=200,
        post_media_limit=3,
        search_limit=10,
    )


@pytest.fixture
async def engine(tmp_path: Path) -> AsyncGenerator[AsyncEngine, None]:
    """Temporary SQLite database with every table created."""
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    await init_db(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def store(engine: AsyncEngine) -> EntityStore:
    return EntityStore(build_session_factory(engine))


@pytest.fixture
def services(store: EntityStore, settings: Settings) -> Services:
    return build_services(store, settings)


@pytest.fixture
def graph(services: Services) -> RelationshipGraph:
    return services.relationships


@pytest.fixture
def content(services: Services) -> ContentGraph:
    return services.content


@pytest.fixture
def deletion(services: Services) -> UserDeletion:
    return services.deletion


# =============================================================================
# User Factories
# =============================================================================


@pytest.fixture
def make_user(graph: RelationshipGraph):
    async def _make(username: str, full_name: str | None = None) -> UserDocument:
        return await graph.create_user(username, f"{username}@example.com", full_name)

    return _make


@pytest.fixture
async def alice(make_user) -> UserDocument:
    return await make_user("alice", "Alice Chen")


@pytest.fixture
async def bob(make_user) -> UserDocument:
    return await make_user("bob", "Bob Martinez")


@pytest.fixture
async def carol(make_user) -> UserDocument:
    return await make_user("carol", "Carol Singh")


# =============================================================================
# HTTP Fixtures
# =============================================================================


@pytest.fixture
async def client(services: Services, settings: Settings) -> AsyncGenerator[AsyncClient, None]:
    """API client wired to the test store (the lifespan hook is not run)."""
    app = create_app(settings)
    app.state.services = services
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as c:
        yield c
