"""
Observability setup:
  - OpenTelemetry distributed tracing → Jaeger (via OTLP gRPC)
  - Prometheus metrics: surface latency, candidate volume, degraded sources,
    cold starts, profile fallbacks, page-cache hits

Both are initialised once at startup and injected into FastAPI via middleware.
"""
import logging

from opentelemetry import trace
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.instrumentation.redis import RedisInstrumentor
from opentelemetry.instrumentation.sqlalchemy import SQLAlchemyInstrumentor
from prometheus_client import Counter, Histogram

from feedrank.config import settings

logger = logging.getLogger(__name__)

# ─────────────────────────── Prometheus Metrics ───────────────────────────
SURFACE_LATENCY = Histogram(
    "ranking_surface_latency_seconds",
    "End-to-end latency of one ranked surface request",
    ["surface"],
    buckets=[0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.0, 5.0],
)

CANDIDATES_TOTAL = Counter(
    "ranking_candidates_total",
    "Unique candidates considered per surface request",
    ["surface"],
)

SOURCE_DEGRADED_TOTAL = Counter(
    "ranking_source_degraded_total",
    "Per-kind content fetches that failed or timed out",
    ["kind", "reason"],  # reason: 'error' | 'timeout'
)

COLD_START_TOTAL = Counter(
    "ranking_cold_start_total",
    "Personalized requests served the trending ranking (no interaction history)",
)

PROFILE_FALLBACK_TOTAL = Counter(
    "ranking_profile_fallback_total",
    "Personalized requests that fell back to engagement-decay (profile unreadable)",
)

FEED_CACHE_TOTAL = Counter(
    "feed_cache_requests_total",
    "Home-feed page cache lookups",
    ["result"],  # 'hit' | 'miss' | 'error'
)


# ─────────────────────────── OpenTelemetry Setup ──────────────────────────
def setup_tracing() -> None:
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

    RedisInstrumentor().instrument()
    SQLAlchemyInstrumentor().instrument()


def instrument_app(app) -> None:  # noqa: ANN001
    """Call after app is created to add FastAPI request spans."""
    FastAPIInstrumentor.instrument_app(app)
