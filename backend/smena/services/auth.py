"""Authentication service: the explicit init call and the user lookup used by the middleware."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from smena.core.auth import TelegramAuthenticator, UserLookup
from smena.core.config import Settings
from smena.core.errors import ErrorCode, UnauthorizedError
from smena.core.telegram import InitDataRejected, TelegramUser, verify_init_data
from smena.models.user import User
from smena.repositories.team import TeamMemberRepository, TeamMembership
from smena.repositories.user import UserRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class InitResult:
    user: User
    teams: list[TeamMembership]


class AuthService:
    """Business logic around user registration through Telegram initData."""

    def __init__(
        self,
        *,
        session: AsyncSession,
        bot_token: str,
        max_age_seconds: int,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._session = session
        self._users = UserRepository(session)
        self._members = TeamMemberRepository(session)
        self._bot_token = bot_token
        self._max_age_seconds = max_age_seconds
        self._clock = clock

    async def init_user(self, init_data: str) -> InitResult:
        """
        Verify initData, then find or create the local user.

        Profile fields are refreshed when Telegram reports different names.
        Raises UnauthorizedError(INVALID_INIT_DATA) when verification fails.
        """
        verified = verify_init_data(
            init_data,
            self._bot_token,
            max_age_seconds=self._max_age_seconds,
            now=self._clock(),
        )
        if isinstance(verified, InitDataRejected):
            logger.warning(
                "initData rejected during init: %s",
                verified.reason.value,
                extra={"event": "auth_init_failed", "auth_reason": verified.reason.value},
            )
            raise UnauthorizedError("Invalid or expired initData", code=ErrorCode.INVALID_INIT_DATA)

        user = await self._find_or_create(verified)
        teams = await self._members.list_for_user(user.id)
        await self._session.commit()
        return InitResult(user=user, teams=teams)

    async def _find_or_create(self, telegram_user: TelegramUser) -> User:
        user = await self._users.get_by_telegram_id(telegram_user.id)
        if user is None:
            try:
                user = await self._users.create(
                    telegram_id=telegram_user.id,
                    first_name=telegram_user.first_name,
                    last_name=telegram_user.last_name,
                    username=telegram_user.username,
                )
            except IntegrityError:
                # A parallel init for the same Telegram id committed first.
                await self._session.rollback()
                user = await self._users.get_by_telegram_id(telegram_user.id)
                if user is None:
                    raise
                logger.info(
                    "User registered by a concurrent init",
                    extra={"user_id": user.id, "telegram_id": user.telegram_id},
                )
            else:
                logger.info(
                    "Registered user", extra={"user_id": user.id, "telegram_id": user.telegram_id}
                )
                return user

        if (user.first_name, user.last_name, user.username) != (
            telegram_user.first_name,
            telegram_user.last_name,
            telegram_user.username,
        ):
            user = await self._users.update_profile(
                user,
                first_name=telegram_user.first_name,
                last_name=telegram_user.last_name,
                username=telegram_user.username,
            )
        return user


def make_user_lookup(session_factory: async_sessionmaker[AsyncSession]) -> UserLookup:
    """Return a read-only lookup opening one short-lived session per call."""

    async def lookup(telegram_id: int) -> User | None:
        async with session_factory() as session:
            return await UserRepository(session).get_by_telegram_id(telegram_id)

    return lookup


def build_authenticator(settings: Settings, user_lookup: UserLookup) -> TelegramAuthenticator:
    """Create the request authenticator from process configuration."""

    return TelegramAuthenticator(
        bot_token=settings.telegram_bot_token.get_secret_value(),
        user_lookup=user_lookup,
        scheme=settings.telegram_auth_scheme,
        max_age_seconds=settings.telegram_init_data_max_age_seconds,
    )


__all__ = ["AuthService", "InitResult", "build_authenticator", "make_user_lookup"]
