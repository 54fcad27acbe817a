"""Tests for OpenTelemetry request tracing."""

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from opentelemetry.sdk.trace.export.in_memory_span_exporter import InMemorySpanExporter
from opentelemetry.trace import SpanKind

from src.authcore.core.config import get_settings
from src.authcore.core.telemetry import setup_telemetry, shutdown_telemetry

pytestmark = pytest.mark.unit


def _app() -> FastAPI:
    app = FastAPI()

    @app.get("/ping")
    async def ping() -> dict[str, str]:
        return {"status": "ok"}

    @app.get("/health")
    async def health() -> dict[str, str]:
        return {"status": "healthy"}

    return app


def test_disabled_by_default():
    app = _app()

    assert get_settings().otel_enabled is False
    assert setup_telemetry(app) is None
    assert getattr(app.state, "tracer_provider", None) is None


async def test_requests_are_traced_except_health_checks():
    app = _app()
    exporter = InMemorySpanExporter()
    settings = get_settings().model_copy(
        update={"otel_enabled": True, "otel_service_name": "authcore-test"}
    )

    provider = setup_telemetry(app, settings, exporter=exporter)
    assert provider is app.state.tracer_provider

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        await client.get("/ping")
        await client.get("/health")
    provider.force_flush()

    server_spans = [s for s in exporter.get_finished_spans() if s.kind == SpanKind.SERVER]
    assert [s.attributes["http.route"] for s in server_spans] == ["/ping"]
    assert server_spans[0].resource.attributes["service.name"] == "authcore-test"

    shutdown_telemetry(app)
