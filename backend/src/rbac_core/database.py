"""Database connection and session management."""

from collections.abc import AsyncGenerator
from functools import lru_cache

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from rbac_core.config import Settings, get_settings


def create_engine_from_settings(settings: Settings) -> AsyncEngine:
    """Build an async engine for the configured store."""
    if settings.is_sqlite:
        return create_async_engine(settings.async_database_url, echo=False)

    return create_async_engine(
        settings.async_database_url,
        pool_size=settings.database_pool_size,
        max_overflow=settings.database_max_overflow,
        # Validate connections before checkout to detect stale connections
        pool_pre_ping=True,
        # Recycle connections after 1 hour (important for cloud proxies)
        pool_recycle=3600,
        # Never echo SQL statements, they may contain sensitive data
        echo=False,
        # Bound connection acquisition by the store timeout
        pool_timeout=settings.store_timeout_seconds,
    )


@lru_cache
def get_engine() -> AsyncEngine:
    """Get the process-wide engine."""
    return create_engine_from_settings(get_settings())


@lru_cache
def get_session_maker() -> async_sessionmaker[AsyncSession]:
    """Get the process-wide session factory."""
    return async_sessionmaker(
        get_engine(),
        class_=AsyncSession,
        expire_on_commit=False,
    )


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Get database session dependency."""
    async with get_session_maker()() as session:
        try:
            yield session
            await session.commit()
        except SQLAlchemyError:
            await session.rollback()
            raise
