"""
Telemetry configuration (Metrics & Tracing).
Prometheus request metrics, OTLP export, and spans around feed assembly,
notification aggregation and auth service calls.
"""
from contextlib import contextmanager
from typing import Any, Iterator, Mapping, Optional
from uuid import UUID

from fastapi import FastAPI
from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from opentelemetry.trace import Span
from prometheus_fastapi_instrumentator import Instrumentator

from geofeed.config import get_settings

TRACER_NAME = "geofeed"

# Health checks and docs stay out of request metrics and traces
EXCLUDED_HANDLERS = ["/metrics", "/health", "/health/ready", "/docs", "/redoc", "/openapi.json"]


def get_tracer() -> trace.Tracer:
    """Tracer from the global provider (no-op until tracing is set up)."""
    return trace.get_tracer(TRACER_NAME)


def _attribute_value(value: Any) -> Any:
    if isinstance(value, UUID):
        return str(value)
    if isinstance(value, (list, tuple)):
        return [str(v) for v in value]
    return value


@contextmanager
def start_span(name: str, attributes: Optional[Mapping[str, Any]] = None) -> Iterator[Span]:
    """
    Open a span named ``geofeed.<name>``.

    None-valued attributes are skipped; UUIDs are recorded as strings.
    An exception escaping the block is recorded and marks the span as an error.
    """
    with get_tracer().start_as_current_span(f"{TRACER_NAME}.{name}") as span:
        for key, value in (attributes or {}).items():
            if value is not None:
                span.set_attribute(key, _attribute_value(value))
        yield span


def setup_telemetry(app: FastAPI) -> None:
    """
    Setup Observability (Metrics & Tracing).

    1. Prometheus Metrics via /metrics, labelled by route template so every
       feed type shares /posts/feed/{feed_type}
    2. OpenTelemetry Tracing via OTLP; the service's own spans attach to the
       request spans created by the FastAPI instrumentation
    """
    settings = get_settings()

    if settings.ENABLE_PROMETHEUS:
        instrumentator = Instrumentator(
            should_group_status_codes=False,
            should_ignore_untemplated=True,
            should_respect_env_var=True,
            should_instrument_requests_inprogress=True,
            excluded_handlers=EXCLUDED_HANDLERS,
            env_var_name="ENABLE_METRICS",
            inprogress_name="geofeed_requests_inprogress",
            inprogress_labels=True,
        )
        instrumentator.instrument(app).expose(app, include_in_schema=False)

    if settings.ENABLE_OTEL:
        resource = Resource.create(attributes={
            "service.name": settings.APP_NAME,
            "service.version": settings.APP_VERSION,
            "deployment.environment": "development" if settings.DEBUG else "production",
            "geofeed.profile_source": "auth_service" if settings.AUTH_SERVICE_URL else "in_memory",
        })

        provider = TracerProvider(resource=resource)
        # OTLP exporter, localhost:4317 unless OTEL_EXPORTER_OTLP_ENDPOINT is set
        provider.add_span_processor(BatchSpanProcessor(OTLPSpanExporter()))
        trace.set_tracer_provider(provider)

        FastAPIInstrumentor.instrument_app(
            app,
            tracer_provider=provider,
            excluded_urls=",".join(EXCLUDED_HANDLERS),
        )
