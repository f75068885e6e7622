"""
Telegram Mini App authentication for protected API routes.

Clients send ``Authorization: tma <initData>``. ``TelegramAuthenticator`` turns
that header into either an ``AuthenticatedUser`` or a classified
``AuthFailure``; it never raises for bad input and never creates users (the
explicit ``POST /api/auth/init`` call does that).
"""

from __future__ import annotations

import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import StrEnum

from smena.core.telegram import (
    DEFAULT_MAX_AGE_SECONDS,
    InitDataRejected,
    RejectionReason,
    TelegramUser,
    verify_init_data,
)
from smena.models.user import User

DEFAULT_AUTH_SCHEME = "tma"

UserLookup = Callable[[int], Awaitable[User | None]]


class AuthFailureKind(StrEnum):
    """Classification surfaced to the HTTP layer."""

    NO_CREDENTIALS = "NoCredentials"
    INVALID_CREDENTIALS = "InvalidCredentials"


class AuthFailureCause(StrEnum):
    """Finer cause, recorded in logs and metrics only."""

    MISSING_CREDENTIALS = "MissingCredentials"
    VERIFICATION_FAILED = "VerificationFailed"
    UNKNOWN_USER = "UnknownUser"


@dataclass(frozen=True, slots=True)
class AuthFailure:
    kind: AuthFailureKind
    cause: AuthFailureCause
    rejection: RejectionReason | None = None
    telegram_id: int | None = None


@dataclass(frozen=True, slots=True)
class AuthenticatedUser:
    user: User
    identity: TelegramUser


class TelegramAuthenticator:
    """Verify the Authorization header and resolve the local user."""

    def __init__(
        self,
        *,
        bot_token: str,
        user_lookup: UserLookup,
        scheme: str = DEFAULT_AUTH_SCHEME,
        max_age_seconds: int = DEFAULT_MAX_AGE_SECONDS,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._bot_token = bot_token
        self._user_lookup = user_lookup
        self._prefix = f"{scheme} "
        self._max_age_seconds = max_age_seconds
        self._clock = clock
        self.scheme = scheme

    def __repr__(self) -> str:
        return f"TelegramAuthenticator(scheme={self.scheme!r}, max_age_seconds={self._max_age_seconds})"

    async def authenticate(self, authorization: str | None) -> AuthenticatedUser | AuthFailure:
        if not authorization or not authorization.startswith(self._prefix):
            return AuthFailure(
                kind=AuthFailureKind.NO_CREDENTIALS,
                cause=AuthFailureCause.MISSING_CREDENTIALS,
            )

        init_data = authorization[len(self._prefix):]
        verified = verify_init_data(
            init_data,
            self._bot_token,
            max_age_seconds=self._max_age_seconds,
            now=self._clock(),
        )
        if isinstance(verified, InitDataRejected):
            return AuthFailure(
                kind=AuthFailureKind.INVALID_CREDENTIALS,
                cause=AuthFailureCause.VERIFICATION_FAILED,
                rejection=verified.reason,
            )

        user = await self._user_lookup(verified.id)
        if user is None:
            return AuthFailure(
                kind=AuthFailureKind.INVALID_CREDENTIALS,
                cause=AuthFailureCause.UNKNOWN_USER,
                telegram_id=verified.id,
            )

        return AuthenticatedUser(user=user, identity=verified)


__all__ = [
    "AuthFailure",
    "AuthFailureCause",
    "AuthFailureKind",
    "AuthenticatedUser",
    "DEFAULT_AUTH_SCHEME",
    "TelegramAuthenticator",
    "UserLookup",
]
