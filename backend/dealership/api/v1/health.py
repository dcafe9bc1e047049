"""
Health check endpoints for load balancers and uptime probes.
"""

from fastapi import APIRouter
from sqlalchemy import text

from dealership.core.config import get_settings
from dealership.core.database import engine
from dealership.core.logging import get_logger
from dealership.core.redis import redis_available

router = APIRouter(tags=["Health"])
logger = get_logger("health")
settings = get_settings()


async def _probe_database() -> str:
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except Exception as exc:
        logger.error("Database health check failed: %s", exc)
        return "error"
    return "connected"


async def _probe_redis() -> str:
    # The rate limiter fails open, so a Redis outage only degrades
    if await redis_available():
        return "connected"
    logger.error("Redis health check failed")
    return "error"


@router.get("/health")
async def health_check():
    """Database and Redis connectivity. Status is "degraded" when either probe fails."""
    checks = {"database": await _probe_database(), "redis": await _probe_redis()}
    status = "healthy" if all(v == "connected" for v in checks.values()) else "degraded"
    return {
        "status": status,
        "service": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "environment": settings.APP_ENV,
        **checks,
    }


@router.get("/ping")
async def ping():
    return {"ping": "pong"}
