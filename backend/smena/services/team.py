"""Read-side team queries for the current user."""

from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncSession

from smena.models.user import User
from smena.repositories.team import TeamMemberRepository, TeamMembership


class TeamService:
    def __init__(self, session: AsyncSession) -> None:
        self._members = TeamMemberRepository(session)

    async def list_user_teams(self, user: User) -> list[TeamMembership]:
        return await self._members.list_for_user(user.id)


__all__ = ["TeamService"]
