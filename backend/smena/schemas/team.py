"""Team response schemas."""

from __future__ import annotations

from smena.schemas.common import CamelModel


class TeamResponse(CamelModel):
    id: int
    name: str
    invite_code: str
    role: str
    member_count: int
