"""
Async database engine and transaction scopes.
Uses SQLAlchemy 2.0 async with asyncpg driver.

Account writes that must agree with each other (counting the active
administrators, then disabling one of them) run in a single transaction:
the HTTP request's, or the one opened by ``transaction()`` for scripts.
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from dealership.core.config import get_settings

settings = get_settings()

# ── Engine ───────────────────────────────────────────────────────────────────
engine = create_async_engine(
    settings.DATABASE_URL,
    echo=settings.DATABASE_ECHO,
    pool_size=settings.DATABASE_POOL_SIZE,
    max_overflow=settings.DATABASE_MAX_OVERFLOW,
    pool_pre_ping=True,
    pool_recycle=300,
)

async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


class Base(DeclarativeBase):
    """Declarative base for all ORM models."""


# ── Transaction scopes ───────────────────────────────────────────────────────
@asynccontextmanager
async def transaction() -> AsyncGenerator[AsyncSession, None]:
    """Open a session, commit when the block exits cleanly, roll back otherwise."""
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency: one transaction per request."""
    async with transaction() as session:
        yield session


async def dispose_engine() -> None:
    await engine.dispose()
