"""
Fixed-window rate limiter backed by Redis.

Guards the anonymous endpoints (login, registration, password reset).
Each client IP gets its own window per path.

Usage
-----
    @router.post("/login", dependencies=[Depends(rate_limit_auth)])
"""

from fastapi import HTTPException, Request, status

from dealership.core.config import get_settings
from dealership.core.logging import get_logger
from dealership.core.redis import get_redis

logger = get_logger("rate_limiter")
settings = get_settings()


async def check_rate_limit(
    request: Request,
    limit: int | None = None,
    window: int = 60,
) -> None:
    """
    Count the request against its window and raise HTTP 429 once over `limit`.

    A Redis outage lets the request through; the failure is logged.
    """
    if limit is None:
        limit = settings.RATE_LIMIT_PER_MINUTE

    client_ip = request.client.host if request.client else "unknown"
    identity = f"ip:{client_ip}"

    path = request.url.path.rstrip("/") or "/"
    key = f"rl:{identity}:{path}"

    try:
        redis = await get_redis()

        current = await redis.get(key)
        if current is not None and int(current) >= limit:
            logger.warning(
                "Rate limit hit: %s on %s (%s req/%ds)",
                identity, path, limit, window,
            )
            raise HTTPException(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                detail="Too many requests. Please slow down and try again.",
                headers={"Retry-After": str(window)},
            )

        pipe = redis.pipeline()
        pipe.incr(key)
        pipe.expire(key, window)
        await pipe.execute()

    except HTTPException:
        raise
    except Exception as exc:
        logger.error("Rate limiter Redis error (allowing request through): %s", exc)


async def rate_limit_auth(request: Request) -> None:
    """Strict limit for login, registration and password reset."""
    await check_rate_limit(request, limit=settings.RATE_LIMIT_AUTH_PER_MINUTE, window=60)
