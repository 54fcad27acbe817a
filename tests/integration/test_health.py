"""Tests for the health, liveness and readiness endpoints."""

from unittest.mock import AsyncMock, patch

import pytest
from httpx import AsyncClient

from src.authcore.core.shutdown import request_tracker

pytestmark = [pytest.mark.integration, pytest.mark.asyncio]


async def test_health_reports_database(client: AsyncClient) -> None:
    response = await client.get("/health")

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert data["database"] == "healthy"
    assert data["redis"] == "not_configured"
    assert data["cached"] is False


async def test_health_check_caching(client: AsyncClient) -> None:
    """Results are cached for 10 seconds."""
    await client.get("/health")

    response = await client.get("/health")

    data = response.json()
    assert data["cached"] is True
    assert data["cache_age_seconds"] < 10


async def test_health_unhealthy_database(client: AsyncClient) -> None:
    with patch(
        "src.authcore.core.health._check_database",
        new=AsyncMock(return_value="unhealthy: connection refused"),
    ):
        response = await client.get("/health")

    assert response.status_code == 503
    assert response.json()["status"] == "unhealthy"


async def test_health_degraded_when_redis_down(client: AsyncClient) -> None:
    broken = AsyncMock()
    broken.ping.side_effect = ConnectionError("redis down")

    with patch("src.authcore.core.health.get_redis", new=AsyncMock(return_value=broken)):
        response = await client.get("/health")

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "degraded"
    assert data["redis"].startswith("unhealthy")


async def test_liveness(client: AsyncClient) -> None:
    response = await client.get("/health/liveness")

    assert response.status_code == 200
    assert response.json() == {"status": "alive"}


async def test_readiness(client: AsyncClient) -> None:
    response = await client.get("/health/readiness")

    assert response.status_code == 200
    assert response.json() == {"status": "ready", "database": "healthy"}


async def test_readiness_fails_without_database(client: AsyncClient) -> None:
    with patch(
        "src.authcore.core.health._check_database",
        new=AsyncMock(return_value="unhealthy: gone"),
    ):
        response = await client.get("/health/readiness")

    assert response.status_code == 503
    assert response.json()["status"] == "not_ready"


async def test_health_endpoints_report_draining_during_shutdown(client: AsyncClient) -> None:
    await request_tracker.start_shutdown()

    for path in ("/health", "/health/liveness", "/health/readiness"):
        response = await client.get(path)
        assert response.status_code == 503
        assert response.json()["status"] == "draining"


async def test_metrics_exposed(client: AsyncClient) -> None:
    response = await client.get("/metrics")
    assert response.status_code == 200
