"""Async SQLAlchemy engine, the session factory and the FastAPI session dependency."""

from __future__ import annotations

from collections.abc import AsyncIterator

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from smena.core.config import settings


def build_engine(database_url: str, *, echo: bool = False) -> AsyncEngine:
    """
    Create the engine for ``DATABASE_URL``.

    PostgreSQL (asyncpg) gets a pre-pinged, recycled pool. In-memory SQLite is
    pinned to a single connection so every session sees the same database.
    """
    url = make_url(database_url)
    if url.get_backend_name() != "sqlite":
        return create_async_engine(url, echo=echo, pool_pre_ping=True, pool_recycle=1800)

    if url.database in (None, "", ":memory:"):
        return create_async_engine(
            url,
            echo=echo,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    return create_async_engine(url, echo=echo)


def build_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    # Route handlers read ORM attributes after commit.
    return async_sessionmaker(engine, expire_on_commit=False)


engine: AsyncEngine = build_engine(settings.database_url, echo=settings.debug)
session_factory = build_session_factory(engine)


async def get_session() -> AsyncIterator[AsyncSession]:
    """FastAPI dependency yielding one AsyncSession per request."""

    async with session_factory() as session:
        yield session


async def dispose_engine() -> None:
    await engine.dispose()


__all__ = [
    "build_engine",
    "build_session_factory",
    "dispose_engine",
    "engine",
    "get_session",
    "session_factory",
]
