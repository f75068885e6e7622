"""Team listing for the authenticated user."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from smena.api.dependencies import get_current_user, get_team_service
from smena.models.user import User
from smena.schemas.common import DataResponse
from smena.schemas.team import TeamResponse
from smena.services.team import TeamService

router = APIRouter(prefix="/teams", tags=["teams"])


@router.get("", response_model=DataResponse[list[TeamResponse]])
async def list_teams(
    current_user: User = Depends(get_current_user),  # noqa: B008
    team_service: TeamService = Depends(get_team_service),  # noqa: B008
) -> DataResponse[list[TeamResponse]]:
    """Return every team the current user belongs to, with their role."""

    memberships = await team_service.list_user_teams(current_user)
    return DataResponse[list[TeamResponse]](
        data=[
            TeamResponse(
                id=membership.team.id,
                name=membership.team.name,
                invite_code=membership.team.invite_code,
                role=membership.role.value,
                member_count=membership.member_count,
            )
            for membership in memberships
        ]
    )


__all__ = ["router"]
