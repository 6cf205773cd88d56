"""Lazily created Redis client, shared by the rate limiter.

Redis holds nothing but request counters; if it is down only rate limiting
is affected. The pool is created on first use so the app (and the test
suite) starts without Redis when RATE_LIMIT_ENABLED is off.
"""

import redis.asyncio as aioredis

from config.settings import settings

_client: aioredis.Redis | None = None


async def get_redis() -> aioredis.Redis:
    global _client  # noqa: PLW0603
    if _client is None:
        pool = aioredis.ConnectionPool.from_url(
            settings.REDIS_URL,
            max_connections=settings.REDIS_MAX_CONNECTIONS,
            socket_timeout=settings.REDIS_SOCKET_TIMEOUT_SECONDS,
            decode_responses=True,
        )
        _client = aioredis.Redis(connection_pool=pool)
    return _client


async def close_redis() -> None:
    """Release pooled connections; no-op if Redis was never used."""
    global _client  # noqa: PLW0603
    if _client is None:
        return
    await _client.aclose()
    await _client.connection_pool.disconnect()
    _client = None
