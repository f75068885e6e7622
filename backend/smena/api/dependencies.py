"""Shared FastAPI dependencies."""

from __future__ import annotations

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from smena.core.auth import AuthenticatedUser
from smena.core.config import settings
from smena.core.db import get_session
from smena.core.errors import UnauthorizedError
from smena.models.user import User
from smena.services.auth import AuthService
from smena.services.team import TeamService


def get_current_user(request: Request) -> User:
    """
    Return the user attached by ``TelegramAuthMiddleware``.

    A route reaching this dependency without an attached user is never treated
    as anonymous.
    """
    auth = getattr(request.state, "auth", None)
    if not isinstance(auth, AuthenticatedUser):
        raise UnauthorizedError("User not authenticated", scheme=settings.telegram_auth_scheme)
    return auth.user


def get_auth_service(
    session: AsyncSession = Depends(get_session),  # noqa: B008
) -> AuthService:
    return AuthService(
        session=session,
        bot_token=settings.telegram_bot_token.get_secret_value(),
        max_age_seconds=settings.telegram_init_data_max_age_seconds,
    )


def get_team_service(
    session: AsyncSession = Depends(get_session),  # noqa: B008
) -> TeamService:
    return TeamService(session)


__all__ = ["get_auth_service", "get_current_user", "get_team_service"]
