"""Async SQLAlchemy engine and session factory helpers."""

from __future__ import annotations

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)


def create_engine_for_url(database_url: str) -> AsyncEngine:
    """Create an async engine that checks pooled connections before use."""

    return create_async_engine(database_url, pool_pre_ping=True)


def create_session_factory(database_url: str) -> async_sessionmaker[AsyncSession]:
    """Create a reusable async session factory for the provided database URL."""

    engine = create_engine_for_url(database_url)
    return async_sessionmaker(engine, expire_on_commit=False)
