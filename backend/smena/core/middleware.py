"""Custom FastAPI middlewares for request context, access logging and authentication."""

from __future__ import annotations

import logging
import time
from collections.abc import Iterable
from uuid import uuid4

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.types import ASGIApp

from smena.core.auth import AuthenticatedUser, AuthFailure, TelegramAuthenticator
from smena.core.errors import auth_failure_response
from smena.core.logging import bind_request_id, reset_request_id
from smena.core.metrics import AUTH_FAILURES


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Attach a stable request_id to each request for correlation."""

    header_name = "X-Request-ID"

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        request_id = request.headers.get(self.header_name) or uuid4().hex

        request.state.request_id = request_id
        token = bind_request_id(request_id)

        try:
            response = await call_next(request)
        finally:
            reset_request_id(token)

        response.headers[self.header_name] = request_id
        return response


class AccessLogMiddleware(BaseHTTPMiddleware):
    """Emit structured access logs enriched with request metadata."""

    def __init__(self, app: ASGIApp, logger_name: str = "smena.access") -> None:
        super().__init__(app)
        self.logger = logging.getLogger(logger_name)

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        start = time.perf_counter()

        try:
            response = await call_next(request)
        except Exception:
            self._log(request, 500, (time.perf_counter() - start) * 1000)
            raise

        self._log(request, response.status_code, (time.perf_counter() - start) * 1000)
        return response

    def _log(self, request: Request, status_code: int, duration_ms: float) -> None:
        auth = getattr(request.state, "auth", None)
        user_id = auth.user.id if isinstance(auth, AuthenticatedUser) else None

        self.logger.info(
            "access",
            extra={
                "event": "access",
                "http_method": request.method,
                "http_path": request.url.path,
                "status_code": status_code,
                "duration_ms": round(duration_ms, 2),
                "client_ip": request.client.host if request.client else None,
                "user_agent": request.headers.get("user-agent"),
                "user_id": user_id,
            },
        )


class TelegramAuthMiddleware(BaseHTTPMiddleware):
    """
    Require Telegram Mini App credentials on every path under ``protected_prefix``.

    On success the ``AuthenticatedUser`` is stored in ``request.state.auth``.
    On failure the request is answered with 401 before any handler runs.
    CORS preflight requests and ``public_paths`` pass through untouched.
    """

    def __init__(
        self,
        app: ASGIApp,
        authenticator: TelegramAuthenticator,
        protected_prefix: str = "/api",
        public_paths: Iterable[str] = ("/api/auth/init",),
    ) -> None:
        super().__init__(app)
        self.authenticator = authenticator
        self.protected_prefix = protected_prefix.rstrip("/")
        self.public_paths = frozenset(path.rstrip("/") for path in public_paths)
        self.logger = logging.getLogger("smena.auth")

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        if not self._requires_auth(request):
            return await call_next(request)

        result = await self.authenticator.authenticate(request.headers.get("Authorization"))
        if isinstance(result, AuthFailure):
            self._log_failure(request, result)
            return auth_failure_response(result, scheme=self.authenticator.scheme)

        request.state.auth = result
        return await call_next(request)

    def _requires_auth(self, request: Request) -> bool:
        if request.method == "OPTIONS":
            return False
        path = request.url.path.rstrip("/")
        if path in self.public_paths:
            return False
        return path == self.protected_prefix or path.startswith(self.protected_prefix + "/")

    def _log_failure(self, request: Request, failure: AuthFailure) -> None:
        AUTH_FAILURES.labels(cause=failure.cause.value).inc()
        self.logger.warning(
            "Authentication rejected: %s",
            failure.cause.value,
            extra={
                "event": "auth_failed",
                "auth_cause": failure.cause.value,
                "auth_reason": failure.rejection.value if failure.rejection else None,
                "telegram_id": failure.telegram_id,
                "http_path": request.url.path,
            },
        )


__all__ = [
    "AccessLogMiddleware",
    "RequestIDMiddleware",
    "TelegramAuthMiddleware",
]
