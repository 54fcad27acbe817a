"""OpenTelemetry tracing for the HTTP app, off unless OTEL_ENABLED is set."""

from fastapi import FastAPI
from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.sdk.resources import SERVICE_NAME, Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor, SpanExporter

from src.authcore.core.config import Settings, get_settings
from src.authcore.core.logging import get_logger

logger = get_logger(__name__)

# Health checks and scrapes would drown out real traffic
EXCLUDED_URLS = "/health,/metrics"


def setup_telemetry(
    app: FastAPI,
    settings: Settings | None = None,
    exporter: SpanExporter | None = None,
) -> TracerProvider | None:
    """Instrument the app with a tracer provider of its own.

    The provider is kept on ``app.state.tracer_provider`` so the lifespan can
    flush it on shutdown. Returns None when tracing is disabled.
    """
    settings = settings or get_settings()
    if not settings.otel_enabled:
        return None

    service_name = settings.otel_service_name or settings.app_name
    provider = TracerProvider(resource=Resource.create({SERVICE_NAME: service_name}))
    provider.add_span_processor(
        BatchSpanProcessor(exporter or OTLPSpanExporter(endpoint=settings.otel_exporter_endpoint))
    )

    FastAPIInstrumentor.instrument_app(
        app, tracer_provider=provider, excluded_urls=EXCLUDED_URLS
    )
    app.state.tracer_provider = provider

    logger.info("Tracing enabled", service_name=service_name)
    return provider


def shutdown_telemetry(app: FastAPI) -> None:
    provider: TracerProvider | None = getattr(app.state, "tracer_provider", None)
    if provider is not None:
        provider.shutdown()
