"""Refresh-token revocation cache backed by Redis.

The database stays the source of truth. The cache only short-circuits lookups
of tokens already known to be revoked; every function degrades to a no-op
when Redis is unavailable.
"""

from src.authcore.core.redis import get_redis

PREFIX_REVOKED_TOKEN = "revoked_refresh_token"


def _key(token_hash: str) -> str:
    return f"{PREFIX_REVOKED_TOKEN}:{token_hash}"


async def mark_token_revoked(token_hash: str, ttl: int) -> bool:
    """Record a revoked token hash.

    Args:
        token_hash: SHA256 hash of the refresh token
        ttl: Seconds until the token would have expired anyway

    Returns:
        True if written to Redis, False if Redis unavailable or ttl expired
    """
    if ttl <= 0:
        return False
    redis = await get_redis()
    if not redis:
        return False
    await redis.setex(_key(token_hash), ttl, "1")
    return True


async def is_token_revoked(token_hash: str) -> bool | None:
    """Check the cache for a revoked token.

    Returns:
        True: Token is known revoked
        False: Not in the cache (the database decides)
        None: Redis unavailable (the database decides)
    """
    redis = await get_redis()
    if not redis:
        return None
    result = await redis.get(_key(token_hash))
    return result is not None


async def mark_tokens_revoked(tokens_with_ttls: list[tuple[str, int]]) -> int:
    """Bulk record revoked token hashes with individual TTLs.

    Used when every token of a user is revoked at once.

    Returns:
        Number of hashes written (0 if Redis unavailable)
    """
    live = [(token_hash, ttl) for token_hash, ttl in tokens_with_ttls if ttl > 0]
    if not live:
        return 0
    redis = await get_redis()
    if not redis:
        return 0

    pipe = redis.pipeline()
    for token_hash, ttl in live:
        pipe.setex(_key(token_hash), ttl, "1")
    await pipe.execute()
    return len(live)
