"""
Shared Redis pool for the back office.

Redis only holds rate-limit counters; account state lives in PostgreSQL.
"""

import redis.asyncio as aioredis

from dealership.core.config import get_settings

settings = get_settings()

_pool: aioredis.Redis | None = None


async def get_redis() -> aioredis.Redis:
    """Return the process-wide client, connecting lazily on first use."""
    global _pool
    if _pool is None:
        _pool = aioredis.from_url(
            settings.REDIS_URL,
            encoding="utf-8",
            decode_responses=True,
            max_connections=20,
        )
    return _pool


async def redis_available() -> bool:
    """Round-trip a PING. Connection errors count as unavailable."""
    try:
        client = await get_redis()
        return bool(await client.ping())
    except (aioredis.RedisError, OSError):
        return False


async def close_redis() -> None:
    global _pool
    if _pool is not None:
        await _pool.aclose()
        _pool = None
