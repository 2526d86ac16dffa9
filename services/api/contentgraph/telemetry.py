"""
Observability setup:
  - OpenTelemetry distributed tracing → Jaeger (via OTLP gRPC)
  - Prometheus metrics: toggle outcomes, content creation, cascade step latency

Tracing is initialised once by create_app() when enabled; metrics are
module-level and exposed at /metrics.
"""
import logging
from collections.abc import Iterator
from contextlib import contextmanager

from opentelemetry import trace
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.instrumentation.sqlalchemy import SQLAlchemyInstrumentor
from prometheus_client import Counter, Histogram

from contentgraph.config import Settings
from contentgraph.errors import ContentGraphError

logger = logging.getLogger(__name__)

# ─────────────────────────── Prometheus Metrics ───────────────────────────
GRAPH_TOGGLE_TOTAL = Counter(
    "graph_toggle_total",
    "Follow/block/like toggles by operation and outcome",
    ["operation", "outcome"],  # outcome: 'ok' or the error code
)

CONTENT_CREATED_TOTAL = Counter(
    "content_created_total",
    "Entities created",
    ["kind"],  # 'user' | 'post' | 'comment' | 'reply' | 'story'
)

CASCADE_STEP_SECONDS = Histogram(
    "cascade_step_seconds",
    "Duration of each user-deletion cascade step",
    ["step"],
    buckets=[0.005, 0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 5.0],
)

USER_DELETIONS_TOTAL = Counter(
    "user_deletions_total",
    "Cascading user deletions by outcome",
    ["outcome"],  # 'completed' | 'failed'
)


# ─────────────────────────── OpenTelemetry Setup ──────────────────────────
def setup_tracing(settings: Settings) -> None:
    """Configure the global OTel TracerProvider with OTLP/Jaeger export."""
    resource = Resource.create(
        {
            "service.name": settings.service_name,
            "deployment.environment": settings.environment,
        }
    )

    provider = TracerProvider(resource=resource)

    try:
        otlp_exporter = OTLPSpanExporter(
            endpoint=settings.otel_exporter_otlp_endpoint,
            insecure=True,
        )
        provider.add_span_processor(BatchSpanProcessor(otlp_exporter))
        logger.info(
            "OTel tracing configured → %s", settings.otel_exporter_otlp_endpoint
        )
    except Exception as exc:
        logger.warning("Could not connect to OTLP exporter: %s — traces disabled", exc)

    trace.set_tracer_provider(provider)

    # Auto-instrument SQLAlchemy so store calls appear under request spans
    SQLAlchemyInstrumentor().instrument()


def instrument_app(app) -> None:  # noqa: ANN001
    """Call after app is created to add FastAPI request spans."""
    FastAPIInstrumentor.instrument_app(app)


@contextmanager
def count_toggle(operation: str) -> Iterator[None]:
    """Record the outcome of one toggle under GRAPH_TOGGLE_TOTAL."""
    try:
        yield
    except ContentGraphError as exc:
        GRAPH_TOGGLE_TOTAL.labels(operation, exc.code).inc()
        raise
    GRAPH_TOGGLE_TOTAL.labels(operation, "ok").inc()
