"""Shared helpers for tests."""

from __future__ import annotations

import hashlib
import hmac
import json
import time
from typing import Dict, Optional, Sequence, Tuple
from urllib.parse import quote

from sqlalchemy.ext.asyncio import AsyncSession

from smena.models.team import Team, TeamMember, TeamRole

TEST_BOT_TOKEN = "999999:TEST_TOKEN"

DEFAULT_TELEGRAM_USER: Dict[str, object] = {
    "id": 123456,
    "first_name": "John",
    "last_name": "Doe",
    "username": "john_doe",
}


def sign_fields(fields: Dict[str, str], bot_token: str = TEST_BOT_TOKEN) -> str:
    """Return the hex signature Telegram would attach to ``fields``."""

    data_check_string = "\n".join(f"{k}={v}" for k, v in sorted(fields.items()))
    secret_key = hmac.new(
        key="WebAppData".encode(),
        msg=bot_token.encode(),
        digestmod=hashlib.sha256,
    ).digest()
    return hmac.new(
        key=secret_key,
        msg=data_check_string.encode(),
        digestmod=hashlib.sha256,
    ).hexdigest()


def encode_fields(fields: Dict[str, str]) -> str:
    """Percent-encode ``fields`` the way Telegram.WebApp.initData does."""

    return "&".join(f"{key}={quote(value, safe='')}" for key, value in fields.items())


def generate_init_data(
    bot_token: str = TEST_BOT_TOKEN,
    overrides: Optional[Dict[str, str]] = None,
    *,
    user: Optional[Dict[str, object]] = None,
    auth_date: Optional[int] = None,
) -> str:
    """Create signed initData payload resembling Telegram WebApp data."""

    payload = {
        "query_id": "test-query",
        "user": json.dumps(user or DEFAULT_TELEGRAM_USER, separators=(",", ":")),
        "auth_date": str(int(time.time()) if auth_date is None else auth_date),
    }
    if overrides:
        payload.update(overrides)

    payload["hash"] = sign_fields(payload, bot_token)
    return encode_fields(payload)


def auth_header(init_data: str, scheme: str = "tma") -> Dict[str, str]:
    return {"Authorization": f"{scheme} {init_data}"}


async def add_team(
    session: AsyncSession,
    *,
    name: str,
    invite_code: str,
    members: Sequence[Tuple[int, TeamRole]] = (),
) -> Team:
    """Insert a team together with ``(user_id, role)`` memberships."""

    team = Team(name=name, invite_code=invite_code)
    session.add(team)
    await session.flush()
    for user_id, role in members:
        session.add(TeamMember(user_id=user_id, team_id=team.id, role=role))
    await session.flush()
    return team
