"""Router aggregations for public API endpoints."""

from fastapi import APIRouter

from smena.api.routes import auth, health, teams, users
from smena.core.config import settings

# Health router (no prefix, no authentication)
root_router = APIRouter()
root_router.include_router(health.router, tags=["health"])

# API routers; everything except /auth/init sits behind TelegramAuthMiddleware
api_router = APIRouter(prefix=settings.api_v1_prefix)
api_router.include_router(auth.router)
api_router.include_router(users.router)
api_router.include_router(teams.router)

__all__ = ["api_router", "root_router"]
