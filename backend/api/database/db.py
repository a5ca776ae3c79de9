"""PostgreSQL connection management.

SQLAlchemy async owns schema creation; request handling runs raw SQL on
an asyncpg pool created during API startup.
"""

from typing import AsyncGenerator, Optional

import asyncpg
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from ..config import (
    DATABASE_URL,
    DB_POOL_MAX_SIZE,
    DB_POOL_MIN_SIZE,
    get_database_dsn,
    get_sqlalchemy_url,
)


class Base(DeclarativeBase):
    """SQLAlchemy declarative base for all models."""

    pass


# Create async engine (only if DATABASE_URL is configured)
engine: Optional[AsyncEngine] = None

if DATABASE_URL:
    engine = create_async_engine(
        get_sqlalchemy_url(),
        echo=False,  # Set to True for SQL debugging
        pool_pre_ping=True,  # Verify connections before use
    )

# Global asyncpg pool (set during API startup)
_pool: Optional[asyncpg.Pool] = None


def _check_configured():
    """Raise an error if the database is not configured."""
    if engine is None:
        raise RuntimeError(
            "Database not configured. Set DATABASE_URL environment variable "
            "to a PostgreSQL connection string."
        )


async def init_db() -> None:
    """Initialize database - create all tables."""
    _check_configured()
    from . import models  # noqa: F401 - registers tables on Base.metadata

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def init_pool() -> asyncpg.Pool:
    """Create the asyncpg pool. Called during API startup."""
    global _pool
    _check_configured()
    _pool = await asyncpg.create_pool(
        get_database_dsn(),
        min_size=DB_POOL_MIN_SIZE,
        max_size=DB_POOL_MAX_SIZE,
    )
    return _pool


def get_pool() -> asyncpg.Pool:
    """Get the asyncpg pool. Raises if not initialized."""
    if _pool is None:
        raise RuntimeError(
            "Database pool not initialized. Ensure the API server is running."
        )
    return _pool


async def close_pool() -> None:
    """Close the pool and dispose the engine. Called during API shutdown."""
    global _pool
    if _pool is not None:
        await _pool.close()
        _pool = None
    if engine is not None:
        await engine.dispose()


async def get_connection() -> AsyncGenerator[asyncpg.Connection, None]:
    """Dependency injection helper for FastAPI."""
    async with get_pool().acquire() as conn:
        yield conn
