"""Async database engine and session factory."""

from functools import lru_cache

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from ironcore.config import get_settings

from .models import Base


def create_engine(database_url: str | None = None) -> AsyncEngine:
    """Create async database engine."""
    settings = get_settings()
    return create_async_engine(
        database_url or settings.database_url,
        echo=settings.debug,
    )


@lru_cache
def get_engine() -> AsyncEngine:
    """Get the shared engine, created on first use."""
    return create_engine()


def get_session_factory(engine: AsyncEngine | None = None) -> async_sessionmaker[AsyncSession]:
    """Build a session factory bound to the given (or shared) engine."""
    return async_sessionmaker(
        engine or get_engine(),
        class_=AsyncSession,
        expire_on_commit=False,
    )


async def create_tables(engine: AsyncEngine | None = None) -> None:
    """Create missing tables. Deployments use the Alembic migrations instead."""
    async with (engine or get_engine()).begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
