"""
Authentication API endpoints.

``POST /api/auth/init`` is the only way a local user comes into existence;
protected routes authenticate every request with ``Authorization: tma <initData>``
and expect this call to have happened first.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, status

from smena.api.dependencies import get_auth_service
from smena.schemas.auth import AuthPayload, InitDataRequest, TeamDto, UserDto
from smena.schemas.common import DataResponse
from smena.services.auth import AuthService

router = APIRouter(prefix="/auth", tags=["authentication"])


@router.post(
    "/init",
    response_model=DataResponse[AuthPayload],
    status_code=status.HTTP_200_OK,
)
async def init_user(
    request: InitDataRequest,
    auth_service: AuthService = Depends(get_auth_service),  # noqa: B008
) -> DataResponse[AuthPayload]:
    """
    Validate Telegram Mini App initData and register or refresh the user.

    **Errors:**
    - 401 INVALID_INIT_DATA: signature mismatch, stale or malformed initData
    - 422 VALIDATION_ERROR: request body is missing initData
    """
    result = await auth_service.init_user(request.init_data)
    return DataResponse[AuthPayload](
        data=AuthPayload(
            user=UserDto.model_validate(result.user),
            teams=[
                TeamDto(id=membership.team.id, name=membership.team.name, role=membership.role.value)
                for membership in result.teams
            ],
        )
    )


__all__ = ["router"]
