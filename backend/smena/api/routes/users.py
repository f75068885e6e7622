"""Current user endpoint."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from smena.api.dependencies import get_current_user
from smena.models.user import User
from smena.schemas.auth import UserDto
from smena.schemas.common import DataResponse

router = APIRouter(prefix="/users", tags=["users"])


@router.get("/me", response_model=DataResponse[UserDto])
async def get_me(
    current_user: User = Depends(get_current_user),  # noqa: B008
) -> DataResponse[UserDto]:
    return DataResponse[UserDto](data=UserDto.model_validate(current_user))


__all__ = ["router"]
