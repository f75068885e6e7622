"""FastAPI application factory and entrypoint."""

from __future__ import annotations

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from smena.api.routes import api_router, root_router
from smena.core.auth import TelegramAuthenticator
from smena.core.config import settings
from smena.core.db import dispose_engine, session_factory
from smena.core.errors import register_exception_handlers
from smena.core.logging import configure_logging
from smena.core.metrics import setup_metrics
from smena.core.middleware import (
    AccessLogMiddleware,
    RequestIDMiddleware,
    TelegramAuthMiddleware,
)
from smena.core.version import APP_VERSION
from smena.services.auth import build_authenticator, make_user_lookup

ALLOWED_METHODS = ["GET", "POST", "PATCH", "PUT", "DELETE", "OPTIONS"]
ALLOWED_HEADERS = ["Authorization", "Content-Type", "Accept", "X-Requested-With", "X-Request-ID"]

configure_logging(settings.log_level)


def create_app(*, authenticator: TelegramAuthenticator | None = None) -> FastAPI:
    """Build and configure the FastAPI application."""

    if authenticator is None:
        authenticator = build_authenticator(settings, make_user_lookup(session_factory))

    application = FastAPI(
        title=settings.project_name,
        debug=settings.debug,
        version=APP_VERSION,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
    )

    register_exception_handlers(application)

    # Added innermost first: the last middleware added wraps all the others.
    application.add_middleware(
        TelegramAuthMiddleware,
        authenticator=authenticator,
        protected_prefix=settings.api_v1_prefix,
        public_paths=(f"{settings.api_v1_prefix}/auth/init",),
    )
    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=ALLOWED_METHODS,
        allow_headers=ALLOWED_HEADERS,
        max_age=86400,
    )
    setup_metrics(application)
    application.add_middleware(AccessLogMiddleware)
    application.add_middleware(RequestIDMiddleware)

    application.include_router(root_router)
    application.include_router(api_router)

    @application.on_event("shutdown")
    async def _dispose_database() -> None:
        await dispose_engine()

    return application


app = create_app()

__all__ = ["app", "create_app"]
