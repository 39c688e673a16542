"""Database configuration and connection management."""

import asyncio
from collections.abc import AsyncGenerator
from typing import Any

from sqlalchemy import inspect, text
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from app.config import settings
from app.models import metadata


def create_engine_for_url(database_url: str, echo: bool = False) -> AsyncEngine:
    """
    Create an async engine with pool settings suited to the backend.

    Args:
        database_url: SQLAlchemy URL with an async driver
        echo: Log emitted SQL

    Returns:
        Configured async engine
    """
    url = make_url(database_url)
    options: dict[str, Any] = {"echo": echo, "pool_pre_ping": True}

    if url.get_backend_name() == "postgresql":
        options.update(
            pool_size=settings.database_pool_size,
            max_overflow=settings.database_max_overflow,
            pool_recycle=3600,
            connect_args={
                "server_settings": {
                    "application_name": settings.app_name,
                },
            },
        )

    return create_async_engine(url, **options)


# Create async engine with connection pooling
engine: AsyncEngine = create_engine_for_url(settings.async_database_url, echo=settings.debug)

# Async session factory
AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Dependency for getting async database sessions."""
    async with AsyncSessionLocal() as session:
        try:
            yield session
        except (Exception, asyncio.CancelledError):
            await session.rollback()
            raise
        finally:
            await session.close()


async def check_database_connection() -> bool:
    """Check if database connection is healthy."""
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        return True
    except Exception:
        return False


async def find_missing_tables(session: AsyncSession) -> list[str]:
    """
    List scheduling tables absent from the connected database.

    Args:
        session: Session whose connection is inspected

    Returns:
        Sorted names of missing tables; empty once ``scripts/init_db.py`` has run
    """
    conn = await session.connection()
    existing = await conn.run_sync(lambda sync_conn: set(inspect(sync_conn).get_table_names()))
    return sorted(name for name in metadata.tables if name not in existing)
