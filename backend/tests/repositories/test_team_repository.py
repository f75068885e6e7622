from __future__ import annotations

import pytest
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from smena.models.team import TeamMember, TeamRole
from smena.repositories.team import TeamMemberRepository
from smena.repositories.user import UserRepository
from tests.helpers import add_team


@pytest.mark.asyncio
async def test_list_for_user_returns_roles_and_member_counts(db_session: AsyncSession) -> None:
    users = UserRepository(db_session)
    coach = await users.create(telegram_id=1, first_name="Coach")
    player = await users.create(telegram_id=2, first_name="Player")
    await add_team(
        db_session,
        name="Red Wings",
        invite_code="RED00001",
        members=[(coach.id, TeamRole.COACH), (player.id, TeamRole.PLAYER)],
    )
    await add_team(
        db_session,
        name="Blue Line",
        invite_code="BLUE0001",
        members=[(player.id, TeamRole.ADMIN)],
    )
    members = TeamMemberRepository(db_session)

    coach_teams = await members.list_for_user(coach.id)
    player_teams = await members.list_for_user(player.id)

    assert [(m.team.name, m.role, m.member_count) for m in coach_teams] == [
        ("Red Wings", TeamRole.COACH, 2)
    ]
    assert {(m.team.name, m.role, m.member_count) for m in player_teams} == {
        ("Red Wings", TeamRole.PLAYER, 2),
        ("Blue Line", TeamRole.ADMIN, 1),
    }


@pytest.mark.asyncio
async def test_list_for_user_without_memberships_is_empty(db_session: AsyncSession) -> None:
    user = await UserRepository(db_session).create(telegram_id=1, first_name="Solo")

    assert await TeamMemberRepository(db_session).list_for_user(user.id) == []


@pytest.mark.asyncio
async def test_membership_is_unique_per_user_and_team(db_session: AsyncSession) -> None:
    user = await UserRepository(db_session).create(telegram_id=1, first_name="Twice")
    team = await add_team(
        db_session,
        name="Red Wings",
        invite_code="RED00001",
        members=[(user.id, TeamRole.PLAYER)],
    )

    db_session.add(TeamMember(user_id=user.id, team_id=team.id, role=TeamRole.COACH))
    with pytest.raises(IntegrityError):
        await db_session.flush()
