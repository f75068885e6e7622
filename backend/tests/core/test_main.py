"""Tests for the application factory."""

from __future__ import annotations

from smena.core.middleware import TelegramAuthMiddleware
from smena.main import app, create_app


def test_app_metadata() -> None:
    assert app.title == "Smena Hockey Backend"
    assert app.version


def test_app_has_routers() -> None:
    routes = {getattr(route, "path", None) for route in app.routes}
    assert {"/health", "/metrics", "/api/auth/init", "/api/users/me", "/api/teams"} <= routes


def test_app_installs_telegram_auth_middleware() -> None:
    middleware = [entry for entry in app.user_middleware if entry.cls is TelegramAuthMiddleware]

    assert len(middleware) == 1
    assert middleware[0].kwargs["protected_prefix"] == "/api"
    assert middleware[0].kwargs["public_paths"] == ("/api/auth/init",)


def test_create_app_returns_independent_instances() -> None:
    first = create_app()
    second = create_app()

    assert first is not second
    assert len(first.exception_handlers) > 0
