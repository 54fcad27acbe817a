"""Per-request log line, bound to the request's correlation id."""

import time

from asgi_correlation_id import correlation_id
from fastapi import Request, Response
from starlette.middleware.base import RequestResponseEndpoint

from src.authcore.core.logging import bind_request_context, clear_request_context, get_logger


def _elapsed_ms(started: float) -> float:
    return round((time.perf_counter() - started) * 1000, 2)


async def logging_context_middleware(
    request: Request, call_next: RequestResponseEndpoint
) -> Response:
    """Bind request_id, then log method, path, status and duration.

    Exceptions that escape every handler are logged with their traceback and
    re-raised for the server error middleware to answer.
    """
    logger = get_logger("authcore.http")
    clear_request_context()
    bind_request_context(correlation_id.get())
    started = time.perf_counter()
    request_fields = {"method": request.method, "path": request.url.path}

    try:
        response = await call_next(request)
    except Exception as e:
        logger.exception(
            "Request failed",
            **request_fields,
            status_code=500,
            duration_ms=_elapsed_ms(started),
            error=type(e).__name__,
        )
        raise
    else:
        logger.info(
            "Request completed",
            **request_fields,
            status_code=response.status_code,
            duration_ms=_elapsed_ms(started),
        )
        return response
    finally:
        clear_request_context()
