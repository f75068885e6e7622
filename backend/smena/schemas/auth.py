"""
Pydantic schemas for authentication endpoints.
"""

from __future__ import annotations

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from smena.schemas.common import CamelModel


class InitDataRequest(BaseModel):
    """Request body for POST /api/auth/init."""

    init_data: str = Field(
        ...,
        min_length=1,
        validation_alias=AliasChoices("initData", "init_data"),
        description="initData string from Telegram WebApp.initData",
    )

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "initData": (
                    "query_id=xxx&user=%7B%22id%22%3A123...%7D"
                    "&auth_date=1234567890&hash=abc123..."
                )
            }
        }
    )


class UserDto(CamelModel):
    id: int
    telegram_id: int
    first_name: str
    last_name: str | None
    username: str | None


class TeamDto(CamelModel):
    id: int
    name: str
    role: str


class AuthPayload(CamelModel):
    """Response data for POST /api/auth/init."""

    user: UserDto
    teams: list[TeamDto]
