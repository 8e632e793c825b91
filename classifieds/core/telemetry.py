"""
Telemetry configuration (Metrics & Tracing).
Sets up Prometheus instrumentation, placement counters and OpenTelemetry.
"""
from fastapi import FastAPI
from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from prometheus_client import Counter
from prometheus_fastapi_instrumentator import Instrumentator

from classifieds.config import get_settings

# Premium vs. regular listings served, per view (homepage, search, category...)
LISTINGS_PLACED = Counter(
    "classifieds_listings_placed_total",
    "Listings placed on a rendered view, by tier group",
    ["view", "tier_group"],
)


def record_placement(view: str, premium: int, regular: int) -> None:
    """Count the listings a view returned, split by tier group."""
    if premium:
        LISTINGS_PLACED.labels(view=view, tier_group="premium").inc(premium)
    if regular:
        LISTINGS_PLACED.labels(view=view, tier_group="regular").inc(regular)


def setup_telemetry(app: FastAPI) -> None:
    """
    Setup Observability (Metrics & Tracing).

    1. Prometheus Metrics via /metrics
    2. OpenTelemetry Tracing via OTLP
    """
    settings = get_settings()

    if settings.ENABLE_PROMETHEUS:
        instrumentator = Instrumentator(
            should_group_status_codes=False,
            should_ignore_untemplated=True,
            should_respect_env_var=True,
            excluded_handlers=["/metrics", "/health", "/health/ready"],
            env_var_name="ENABLE_METRICS",
        )
        instrumentator.instrument(app).expose(app, include_in_schema=False)

    if settings.ENABLE_OTEL:
        resource = Resource.create(attributes={
            "service.name": settings.APP_NAME,
            "service.version": settings.APP_VERSION,
            "deployment.environment": "development" if settings.DEBUG else "production",
        })

        provider = TracerProvider(resource=resource)
        # OTLP endpoint defaults to localhost:4317
        provider.add_span_processor(BatchSpanProcessor(OTLPSpanExporter()))
        trace.set_tracer_provider(provider)

        FastAPIInstrumentor.instrument_app(app, tracer_provider=provider)
