"""
Content Graph API — entry point.

Startup sequence:
  1. Configure OTel tracing (→ Jaeger via OTLP), if enabled
  2. Build the DB engine (TiDB, or SQLite for local runs)
  3. Create tables if not present
  4. Wire the entity store into the relationship / content / deletion managers
  5. Expose Prometheus /metrics endpoint

Core errors are translated to HTTP responses here and nowhere else.
"""
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from prometheus_client import make_asgi_app

from contentgraph.config import Settings, settings as default_settings
from contentgraph.database import build_engine, build_session_factory, init_db
from contentgraph.deps import build_services
from contentgraph.errors import (
    ConflictError,
    ContentGraphError,
    ForbiddenError,
    NotFoundError,
    SelfReferenceError,
    ValidationError,
)
from contentgraph.routers import comments, posts, stories, users
from contentgraph.store import EntityStore
from contentgraph.telemetry import instrument_app, setup_tracing

logger = logging.getLogger(__name__)

# Most specific first; ContentGraphError is the catch-all
ERROR_STATUS: list[tuple[type, int]] = [
    (NotFoundError, 404),
    (SelfReferenceError, 400),
    (ValidationError, 422),
    (ForbiddenError, 403),
    (ConflictError, 409),
    (ContentGraphError, 400),
]


def status_for(exc: ContentGraphError) -> int:
    return next(code for kind, code in ERROR_STATUS if isinstance(exc, kind))


async def content_graph_error_handler(request: Request, exc: ContentGraphError):
    return JSONResponse(
        status_code=status_for(exc),
        content={"detail": str(exc), "code": exc.code},
    )


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s — %(message)s",
    )


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or default_settings

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Own the engine for the lifetime of the process."""
        logger.info("Starting Content Graph API (env=%s)", settings.environment)

        engine = build_engine(
            settings.sqlalchemy_url,
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_max_overflow,
        )
        await init_db(engine)
        store = EntityStore(build_session_factory(engine))
        app.state.services = build_services(store, settings)

        logger.info("Entity store connected. API ready.")
        yield

        logger.info("Shutting down...")
        await engine.dispose()

    if settings.tracing_enabled:
        # Set up tracing before requests arrive so store calls are instrumented
        setup_tracing(settings)

    app = FastAPI(
        title="Content Graph API",
        description=(
            "Users, posts, comment threads, likes and the follow/block graph, "
            "with cascading user deletion."
        ),
        version="1.0.0",
        lifespan=lifespan,
    )

    app.add_exception_handler(ContentGraphError, content_graph_error_handler)

    # ── Routers ────────────────────────────────────────────────────────────
    app.include_router(users.router, prefix="/users", tags=["Users"])
    app.include_router(posts.router, prefix="/posts", tags=["Posts"])
    app.include_router(comments.router, prefix="/comments", tags=["Comments"])
    app.include_router(stories.router, prefix="/stories", tags=["Stories"])

    # ── Prometheus metrics endpoint ────────────────────────────────────────
    app.mount("/metrics", make_asgi_app())

    # ── OTel FastAPI instrumentation ──────────────────────────────────────
    if settings.tracing_enabled:
        instrument_app(app)

    @app.get("/health", tags=["Health"])
    async def health():
        return {"status": "ok", "service": settings.service_name}

    return app


configure_logging(default_settings.log_level)
app = create_app()
