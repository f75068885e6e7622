"""Read access to team memberships."""

from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy import func, select

from smena.models.team import Team, TeamMember, TeamRole
from smena.repositories.base import BaseRepository


@dataclass(frozen=True, slots=True)
class TeamMembership:
    """Team as seen by one of its members."""

    team: Team
    role: TeamRole
    member_count: int


class TeamMemberRepository(BaseRepository[TeamMember]):
    """Queries over the team_members association table."""

    async def list_for_user(self, user_id: int) -> list[TeamMembership]:
        member_counts = (
            select(TeamMember.team_id, func.count(TeamMember.id).label("member_count"))
            .group_by(TeamMember.team_id)
            .subquery()
        )
        stmt = (
            select(Team, TeamMember.role, member_counts.c.member_count)
            .join(TeamMember, TeamMember.team_id == Team.id)
            .join(member_counts, member_counts.c.team_id == Team.id)
            .where(TeamMember.user_id == user_id)
            .order_by(TeamMember.joined_at, Team.id)
        )
        result = await self.session.execute(stmt)
        return [
            TeamMembership(team=team, role=role, member_count=int(count))
            for team, role, count in result.all()
        ]


__all__ = ["TeamMemberRepository", "TeamMembership"]
