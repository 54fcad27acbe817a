"""Endpoint throttling with slowapi.

Uses Redis storage when REDIS_URL is configured so limits are shared across
workers, otherwise per-process memory. Login lockout after repeated failures
is a separate mechanism computed from audit rows.
"""

from slowapi import Limiter
from slowapi.util import get_remote_address
from starlette.requests import Request

from src.authcore.core.config import get_settings
from src.authcore.core.logging import get_logger

logger = get_logger(__name__)

LOGIN_LIMIT = "10/minute"
REFRESH_LIMIT = "20/minute"
REGISTER_LIMIT = "10/hour"


def get_rate_limit_key(request: Request) -> str:
    """Key throttling by client IP only.

    Never include user-controlled headers here, rotating them would create
    unlimited buckets.
    """
    return get_remote_address(request) or "unknown"


def create_limiter() -> Limiter:
    """Create the limiter. Disabled in the testing environment."""
    settings = get_settings()

    if settings.app_env == "testing":
        logger.info("Rate limiter disabled (testing environment)")
        return Limiter(key_func=get_rate_limit_key, enabled=False)

    if settings.redis_url:
        logger.info("Rate limiter using Redis backend")
        return Limiter(key_func=get_rate_limit_key, storage_uri=settings.redis_url)

    logger.info("Rate limiter using in-memory backend (not distributed)")
    return Limiter(key_func=get_rate_limit_key)


# Reads settings at import time, reconfiguration needs a restart
limiter = create_limiter()
