"""
Telegram Mini App initData verification.

The verification algorithm (see
https://core.telegram.org/bots/webapps#validating-data-received-via-the-mini-app):

1. Parse initData (``key=value`` pairs joined by ``&``, values form-url-encoded)
2. Extract and remove the hash parameter
3. Require ``user`` and ``auth_date``; reject payloads older than the freshness window
4. Build data_check_string (sorted ``key=value`` pairs separated by ``\\n``)
5. Compute secret_key = HMAC-SHA256(key="WebAppData", msg=bot_token)
6. Compute expected_hash = HMAC-SHA256(key=secret_key, msg=data_check_string)
7. Compare expected_hash with the received hash in constant time
8. Decode the embedded user JSON only after the signature matched

Every failure is returned as an ``InitDataRejected`` value; nothing here raises
on malformed input and nothing here performs I/O.
"""

from __future__ import annotations

import hashlib
import hmac
import time
from dataclasses import dataclass
from enum import StrEnum
from typing import Final
from urllib.parse import unquote_plus

from pydantic import BaseModel, ConfigDict, ValidationError

DEFAULT_MAX_AGE_SECONDS: Final[int] = 300

_WEB_APP_DATA_KEY: Final[bytes] = b"WebAppData"

# Unix seconds fit in a signed 64-bit integer.
_MAX_AUTH_DATE_DIGITS: Final[int] = 19


class TelegramUser(BaseModel):
    """Telegram user embedded in a verified initData payload."""

    id: int
    first_name: str
    last_name: str | None = None
    username: str | None = None

    model_config = ConfigDict(frozen=True, strict=True, extra="ignore")


class RejectionReason(StrEnum):
    """Diagnostic reason for a rejected payload. For logs only."""

    EMPTY = "empty"
    MISSING_HASH = "missing_hash"
    MISSING_USER = "missing_user"
    MISSING_AUTH_DATE = "missing_auth_date"
    MALFORMED_AUTH_DATE = "malformed_auth_date"
    EXPIRED = "expired"
    SIGNATURE_MISMATCH = "signature_mismatch"
    MALFORMED_USER = "malformed_user"


@dataclass(frozen=True, slots=True)
class InitDataRejected:
    """Opaque verification failure."""

    reason: RejectionReason


def verify_init_data(
    init_data: str,
    bot_token: str,
    *,
    max_age_seconds: int = DEFAULT_MAX_AGE_SECONDS,
    now: float | None = None,
) -> TelegramUser | InitDataRejected:
    """
    Verify a signed initData string and return the embedded Telegram user.

    Args:
        init_data: Raw ``Telegram.WebApp.initData`` string.
        bot_token: Bot token the payload was signed with.
        max_age_seconds: Freshness window for ``auth_date``; a payload exactly
            this old is still accepted.
        now: Current Unix time in seconds, defaults to ``time.time()``.

    Returns:
        ``TelegramUser`` on success, ``InitDataRejected`` otherwise.
    """
    if not init_data:
        return InitDataRejected(RejectionReason.EMPTY)

    params = parse_init_data(init_data)

    received_hash = params.pop("hash", None)
    if not received_hash:
        return InitDataRejected(RejectionReason.MISSING_HASH)

    user_json = params.get("user")
    if user_json is None:
        return InitDataRejected(RejectionReason.MISSING_USER)

    auth_date_str = params.get("auth_date")
    if auth_date_str is None:
        return InitDataRejected(RejectionReason.MISSING_AUTH_DATE)
    if not (
        auth_date_str.isascii()
        and auth_date_str.isdigit()
        and len(auth_date_str) <= _MAX_AUTH_DATE_DIGITS
    ):
        return InitDataRejected(RejectionReason.MALFORMED_AUTH_DATE)

    current_time = int(time.time() if now is None else now)
    if current_time - int(auth_date_str) > max_age_seconds:
        return InitDataRejected(RejectionReason.EXPIRED)

    expected_hash = compute_init_data_hash(build_data_check_string(params), bot_token)
    if not _constant_time_equals(expected_hash, received_hash):
        return InitDataRejected(RejectionReason.SIGNATURE_MISMATCH)

    try:
        return TelegramUser.model_validate_json(user_json)
    except ValidationError:
        return InitDataRejected(RejectionReason.MALFORMED_USER)


def parse_init_data(init_data: str) -> dict[str, str]:
    """
    Split initData into a key -> decoded value mapping.

    Segments without ``=`` map to an empty value. Keys are kept verbatim since
    Telegram never encodes them; a repeated key keeps its last value.
    """
    params: dict[str, str] = {}
    for segment in init_data.split("&"):
        if not segment:
            continue
        key, _, value = segment.partition("=")
        params[key] = unquote_plus(value)
    return params


def build_data_check_string(params: dict[str, str]) -> str:
    """Return sorted ``key=value`` lines joined by newlines (``hash`` excluded)."""
    return "\n".join(f"{key}={value}" for key, value in sorted(params.items()) if key != "hash")


def compute_init_data_hash(data_check_string: str, bot_token: str) -> str:
    """Return the lowercase hex signature Telegram attaches for this data_check_string."""
    secret_key = hmac.new(
        key=_WEB_APP_DATA_KEY,
        msg=bot_token.encode("utf-8"),
        digestmod=hashlib.sha256,
    ).digest()
    return hmac.new(
        key=secret_key,
        msg=data_check_string.encode("utf-8"),
        digestmod=hashlib.sha256,
    ).hexdigest()


def _constant_time_equals(expected: str, received: str) -> bool:
    # Length is public (always 64 hex chars), only the contents are compared in constant time.
    if len(expected) != len(received):
        return False
    return hmac.compare_digest(expected.encode("utf-8"), received.encode("utf-8"))


__all__ = [
    "DEFAULT_MAX_AGE_SECONDS",
    "InitDataRejected",
    "RejectionReason",
    "TelegramUser",
    "build_data_check_string",
    "compute_init_data_hash",
    "parse_init_data",
    "verify_init_data",
]
