from __future__ import annotations

import os
from collections.abc import AsyncIterator
from typing import Final

import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from tests.helpers import TEST_BOT_TOKEN

_TEST_ENV_VARS: Final[dict[str, str]] = {
    "APP_ENV": "test",
    "DATABASE_URL": "sqlite+aiosqlite:///:memory:",
    "TELEGRAM_BOT_TOKEN": TEST_BOT_TOKEN,
}

for key, value in _TEST_ENV_VARS.items():
    os.environ.setdefault(key, value)

from smena.core.auth import TelegramAuthenticator  # noqa: E402
from smena.core.db import build_engine, build_session_factory, get_session  # noqa: E402
from smena.main import create_app  # noqa: E402
from smena.models.base import Base  # noqa: E402
from smena.services.auth import make_user_lookup  # noqa: E402


@pytest_asyncio.fixture()
async def session_factory() -> AsyncIterator[async_sessionmaker[AsyncSession]]:
    engine = build_engine("sqlite+aiosqlite:///:memory:")

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield build_session_factory(engine)

    await engine.dispose()


@pytest_asyncio.fixture()
async def db_session(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncIterator[AsyncSession]:
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture()
async def api_client(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncIterator[AsyncClient]:
    """Client for the full application wired to the in-memory database."""

    app = create_app(
        authenticator=TelegramAuthenticator(
            bot_token=TEST_BOT_TOKEN,
            user_lookup=make_user_lookup(session_factory),
        )
    )

    async def _session_override() -> AsyncIterator[AsyncSession]:
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_session] = _session_override

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as client:
        yield client
