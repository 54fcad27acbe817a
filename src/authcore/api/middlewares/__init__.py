"""Application middlewares."""

from asgi_correlation_id import CorrelationIdMiddleware
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from src.authcore.core.config import Settings

from .logging_context import logging_context_middleware
from .request_context import RequestContextMiddleware
from .request_tracking import request_tracking_middleware
from .security_headers import SecurityHeadersMiddleware

__all__ = [
    "setup_middlewares",
    "RequestContextMiddleware",
    "SecurityHeadersMiddleware",
    "logging_context_middleware",
    "request_tracking_middleware",
]


def setup_middlewares(app: FastAPI, settings: Settings) -> None:
    """Configure all application middlewares.

    Starlette wraps each added middleware around the previous ones, so the
    last one added runs first. Correlation ID goes last: everything inside it
    can read the request id.
    """

    @app.middleware("http")
    async def _request_tracking(request, call_next):  # type: ignore[no-untyped-def]
        return await request_tracking_middleware(request, call_next)

    # IP address, user agent and request id for audit entries
    app.add_middleware(RequestContextMiddleware)

    @app.middleware("http")
    async def _logging_context(request, call_next):  # type: ignore[no-untyped-def]
        return await logging_context_middleware(request, call_next)

    # Stricter CSP in production when OpenAPI docs are disabled
    csp = None
    if not settings.enable_openapi and settings.csp_production:
        csp = settings.csp_production
    app.add_middleware(SecurityHeadersMiddleware, content_security_policy=csp)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST"],
        allow_headers=["Authorization", "Content-Type", "X-Request-ID"],
    )

    app.add_middleware(CorrelationIdMiddleware)
