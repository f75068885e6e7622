"""Health check endpoint."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Literal

from fastapi import APIRouter, Depends, Response, status
from pydantic import BaseModel, Field
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from smena.core.db import get_session
from smena.core.version import APP_VERSION

logger = logging.getLogger(__name__)

router = APIRouter()


class HealthResponse(BaseModel):
    """Schema returned by the /health endpoint."""

    status: Literal["healthy", "unhealthy"]
    timestamp: datetime
    checks: dict[str, str]
    version: str = Field(default=APP_VERSION)


@router.get(
    "/health",
    response_model=HealthResponse,
    status_code=status.HTTP_200_OK,
    summary="Health check",
)
async def health(
    response: Response,
    session: AsyncSession = Depends(get_session),  # noqa: B008
) -> HealthResponse:
    """Return the current application health snapshot; 503 when the database is unreachable."""

    try:
        await session.execute(text("SELECT 1"))
        database = "ok"
    except SQLAlchemyError:
        logger.exception("Database health probe failed")
        database = "unavailable"

    healthy = database == "ok"
    if not healthy:
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE

    return HealthResponse(
        status="healthy" if healthy else "unhealthy",
        timestamp=datetime.now(tz=timezone.utc),
        checks={"database": database},
        version=APP_VERSION,
    )
