from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from src.authcore.api.middlewares import setup_middlewares
from src.authcore.api.v1.router import api_router
from src.authcore.core.config import get_settings
from src.authcore.core.db import dispose_engine
from src.authcore.core.exceptions import setup_exception_handlers
from src.authcore.core.health import setup_health_endpoint, setup_metrics
from src.authcore.core.logging import get_logger, setup_logging
from src.authcore.core.rate_limit import limiter
from src.authcore.core.redis import close_redis
from src.authcore.core.shutdown import request_tracker
from src.authcore.core.telemetry import setup_telemetry, shutdown_telemetry

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None]:
    """Application lifespan - startup and shutdown."""
    settings = get_settings()
    setup_logging(settings.debug)
    logger.info("Starting application", app_name=settings.app_name, env=settings.app_env)

    yield

    grace_period = settings.shutdown_grace_period
    await request_tracker.start_shutdown()
    drained = await request_tracker.wait_for_drain(timeout=grace_period)
    if not drained:
        logger.warning(
            "Closing connections with requests still in flight",
            in_flight=request_tracker.in_flight_count,
        )

    await close_redis()
    await dispose_engine()
    shutdown_telemetry(app)
    logger.info("Shutdown complete")


OPENAPI_TAGS = [
    {"name": "auth", "description": "Login, token rotation, registration and logout"},
    {"name": "audit", "description": "Authentication audit trail (super admin)"},
    {"name": "health", "description": "Liveness and readiness checks"},
]


def create_app() -> FastAPI:
    settings = get_settings()

    app = FastAPI(
        title=settings.app_name,
        description="Authentication core: JWT access tokens, rotating refresh tokens, audit log",
        version="0.1.0",
        openapi_tags=OPENAPI_TAGS,
        openapi_url="/openapi.json" if settings.enable_openapi else None,
        lifespan=lifespan,
    )

    setup_exception_handlers(app)

    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)  # type: ignore[arg-type]

    setup_middlewares(app, settings)

    app.include_router(api_router)
    setup_health_endpoint(app)
    setup_metrics(app)
    setup_telemetry(app, settings)

    return app


app = create_app()
