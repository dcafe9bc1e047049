"""
Auto2G Back Office - Main FastAPI Application
=============================================
Initializes the app with middleware, routes, error handlers and lifecycle events.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from dealership.api.errors import register_exception_handlers
from dealership.api.v1.router import api_v1_router
from dealership.core.config import get_settings
from dealership.core.logging import get_logger, setup_logging
from dealership.core.database import dispose_engine
from dealership.core.redis import close_redis

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifecycle: startup and shutdown events."""
    # ── Startup ──────────────────────────────────────────────────────────
    setup_logging()
    logger = get_logger("main")
    logger.info("Starting %s (env=%s)", settings.APP_NAME, settings.APP_ENV)
    logger.info("API prefix: %s", settings.API_PREFIX)

    try:
        from dealership.core.database import Base, engine
        from dealership.models.account import Account  # noqa: F401
        from dealership.seed import run_seed

        # In production, rely on Alembic migrations exclusively.
        if settings.is_production:
            logger.info("Production mode - using Alembic migrations only (skipping create_all)")
        else:
            async with engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
            logger.info("Database tables verified (dev mode - create_all)")

        if settings.SEED_DEFAULT_ADMIN or not settings.is_production:
            await run_seed(settings)
    except Exception as e:
        logger.error("Database setup error: %s", str(e))
        logger.info("Make sure PostgreSQL is running and DATABASE_URL is correct")

    yield

    # ── Shutdown ─────────────────────────────────────────────────────────
    logger.info("Shutting down %s...", settings.APP_NAME)
    await close_redis()
    await dispose_engine()


def create_app() -> FastAPI:
    """Application factory."""
    app = FastAPI(
        title=f"{settings.APP_NAME} API",
        description=(
            "Back office API for a used-car dealership: accounts, authentication "
            "and role-gated administration."
        ),
        version=settings.APP_VERSION,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    # ── CORS Middleware ──────────────────────────────────────────────────
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)

    # ── Routes ───────────────────────────────────────────────────────────
    app.include_router(api_v1_router, prefix=settings.API_PREFIX)

    @app.get("/", tags=["Root"])
    async def root():
        return {
            "name": settings.APP_NAME,
            "version": settings.APP_VERSION,
            "docs": "/docs",
            "health": f"{settings.API_PREFIX}/health",
        }

    return app


app = create_app()
