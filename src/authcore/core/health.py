"""Health, liveness, readiness and Prometheus metrics endpoints."""

import secrets
import time
from typing import Any

from fastapi import Depends, FastAPI, HTTPException, status
from fastapi.responses import JSONResponse
from fastapi.security import APIKeyHeader
from prometheus_fastapi_instrumentator import Instrumentator
from sqlalchemy import text

from src.authcore.core.config import get_settings
from src.authcore.core.db import get_session
from src.authcore.core.redis import get_redis
from src.authcore.core.shutdown import request_tracker

HEALTH_CACHE_TTL = 10  # seconds

_cached_report: dict[str, Any] | None = None
_cached_at: float = 0


def reset_health_cache() -> None:
    global _cached_report, _cached_at
    _cached_report = None
    _cached_at = 0


async def _check_database() -> str:
    try:
        async with get_session() as session:
            await session.execute(text("SELECT 1"))
        return "healthy"
    except Exception as e:
        return f"unhealthy: {e!s}"


async def _check_redis() -> str:
    redis = await get_redis()
    if redis is None:
        return "not_configured"
    try:
        await redis.ping()  # type: ignore[misc]
        return "healthy"
    except Exception as e:
        return f"unhealthy: {e!s}"


def _overall(database: str, redis: str) -> str:
    # Redis only backs the revocation cache, so losing it degrades, never fails
    if database != "healthy":
        return "unhealthy"
    if redis.startswith("unhealthy"):
        return "degraded"
    return "healthy"


def _report_response(report: dict[str, Any]) -> JSONResponse:
    code = status.HTTP_503_SERVICE_UNAVAILABLE if report["status"] == "unhealthy" else 200
    return JSONResponse(content=report, status_code=code)


def _draining_response() -> JSONResponse:
    return JSONResponse(
        content={
            "status": "draining",
            "in_flight_requests": request_tracker.in_flight_count,
            "message": "Server is shutting down",
        },
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
    )


def setup_health_endpoint(app: FastAPI) -> None:
    """Register /health, /health/liveness and /health/readiness."""

    @app.get("/health", tags=["health"])
    async def health() -> JSONResponse:
        """Database and optional Redis status, reused for HEALTH_CACHE_TTL seconds."""
        global _cached_report, _cached_at

        if request_tracker.is_shutting_down:
            return _draining_response()

        now = time.time()
        age = now - _cached_at
        if _cached_report and age < HEALTH_CACHE_TTL:
            return _report_response(
                {**_cached_report, "cached": True, "cache_age_seconds": round(age, 1)}
            )

        database = await _check_database()
        redis = await _check_redis()
        report = {
            "status": _overall(database, redis),
            "database": database,
            "redis": redis,
            "cached": False,
            "timestamp": now,
        }
        _cached_report, _cached_at = report, now
        return _report_response(report)

    @app.get("/health/liveness", tags=["health"])
    async def liveness() -> JSONResponse:
        if request_tracker.is_shutting_down:
            return _draining_response()
        return JSONResponse(content={"status": "alive"})

    @app.get("/health/readiness", tags=["health"])
    async def readiness() -> JSONResponse:
        if request_tracker.is_shutting_down:
            return _draining_response()
        database = await _check_database()
        ready = database == "healthy"
        return JSONResponse(
            content={"status": "ready" if ready else "not_ready", "database": database},
            status_code=200 if ready else status.HTTP_503_SERVICE_UNAVAILABLE,
        )


def setup_metrics(app: FastAPI) -> None:
    """Configure Prometheus metrics with optional API key protection."""
    settings = get_settings()
    instrumentator = Instrumentator(excluded_handlers=["/health.*", "/metrics"]).instrument(app)

    if settings.metrics_api_key:
        api_key_header = APIKeyHeader(name="X-Metrics-Key", auto_error=False)

        async def verify_metrics_key(
            api_key: str | None = Depends(api_key_header),
        ) -> None:
            if (
                api_key is None
                or settings.metrics_api_key is None
                or not secrets.compare_digest(api_key, settings.metrics_api_key)
            ):
                raise HTTPException(
                    status_code=status.HTTP_401_UNAUTHORIZED,
                    detail="Invalid or missing metrics API key",
                )

        instrumentator.expose(app, endpoint="/metrics", dependencies=[Depends(verify_metrics_key)])
    else:
        instrumentator.expose(app, endpoint="/metrics")
