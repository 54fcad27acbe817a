"""Auth error kinds and the exception handlers that render them with request_id."""

from typing import ClassVar

from asgi_correlation_id import correlation_id
from fastapi import FastAPI, HTTPException, Request, status
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from src.authcore.core.logging import get_logger

logger = get_logger(__name__)


class AuthError(Exception):
    """Base class for terminal auth failures.

    Each subclass maps to one HTTP status and a stable machine-readable code.
    None of them are retried internally.
    """

    status_code: ClassVar[int] = status.HTTP_400_BAD_REQUEST
    code: ClassVar[str] = "auth_error"
    default_detail: ClassVar[str] = "Authentication error"

    def __init__(self, detail: str | None = None) -> None:
        self.detail = detail or self.default_detail
        super().__init__(self.detail)


class RateLimitedError(AuthError):
    status_code = status.HTTP_403_FORBIDDEN
    code = "rate_limited"
    default_detail = "Too many failed attempts. Please try again later."


class InvalidCredentialsError(AuthError):
    status_code = status.HTTP_401_UNAUTHORIZED
    code = "invalid_credentials"
    default_detail = "Invalid credentials"


class AccountInactiveError(AuthError):
    status_code = status.HTTP_403_FORBIDDEN
    code = "account_inactive"
    default_detail = "User account is inactive"


class TenantAccessDeniedError(AuthError):
    status_code = status.HTTP_403_FORBIDDEN
    code = "tenant_access_denied"
    default_detail = "Access to this tenant is not allowed"


class InvalidRefreshTokenError(AuthError):
    status_code = status.HTTP_401_UNAUTHORIZED
    code = "invalid_refresh_token"
    default_detail = "Invalid refresh token"


class DuplicateEmailError(AuthError):
    status_code = status.HTTP_403_FORBIDDEN
    code = "duplicate_email"
    default_detail = "Email already registered"


class UnauthenticatedError(AuthError):
    status_code = status.HTTP_401_UNAUTHORIZED
    code = "unauthenticated"
    default_detail = "Not authenticated"


class ForbiddenError(AuthError):
    status_code = status.HTTP_403_FORBIDDEN
    code = "forbidden"
    default_detail = "Requires super admin privileges"


class InvalidTokenError(AuthError):
    status_code = status.HTTP_401_UNAUTHORIZED
    code = "invalid_token"
    default_detail = "Invalid or expired token"


def setup_exception_handlers(app: FastAPI) -> None:
    """Configure exception handlers that include request_id in responses."""

    @app.exception_handler(AuthError)
    async def auth_error_handler(request: Request, exc: AuthError) -> JSONResponse:
        headers = None
        if exc.status_code == status.HTTP_401_UNAUTHORIZED:
            headers = {"WWW-Authenticate": "Bearer"}
        return JSONResponse(
            status_code=exc.status_code,
            content={
                "detail": exc.detail,
                "code": exc.code,
                "request_id": correlation_id.get(),
            },
            headers=headers,
        )

    @app.exception_handler(StarletteHTTPException)
    async def starlette_exception_handler(
        request: Request, exc: StarletteHTTPException
    ) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content={
                "detail": exc.detail,
                "request_id": correlation_id.get(),
            },
        )

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content={
                "detail": exc.detail,
                "request_id": correlation_id.get(),
            },
        )

    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        request_id = correlation_id.get()
        logger.exception(
            "Unhandled exception",
            exc_info=exc,
            request_id=request_id,
            path=request.url.path,
        )
        return JSONResponse(
            status_code=500,
            content={
                "detail": "Internal server error",
                "request_id": request_id,
            },
        )
