"""Async SQLAlchemy engine and session factory helpers."""

from __future__ import annotations

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from user_credentials.infrastructure.db.metadata import metadata


def create_engine(database_url: str) -> AsyncEngine:
    """Create an async engine that never echoes bound parameters in errors."""

    return create_async_engine(database_url, hide_parameters=True)


def create_session_factory(database_url: str) -> async_sessionmaker[AsyncSession]:
    """Create a reusable async session factory for the provided database URL."""

    return async_sessionmaker(create_engine(database_url), expire_on_commit=False)


async def create_schema(database_url: str) -> None:
    """Create credential tables that do not exist yet; migrations are owned by the host."""

    engine = create_engine(database_url)
    try:
        async with engine.begin() as connection:
            await connection.run_sync(metadata.create_all)
    finally:
        await engine.dispose()
