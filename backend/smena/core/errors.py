"""
Public error contract of the Smena API.

Every non-2xx response carries ``{"error": {"code", "message", "details"?}}``.
Authentication failures are rendered by ``auth_failure_response`` so that the
cause of a rejection never reaches the client.
"""

from __future__ import annotations

import logging
from enum import StrEnum
from http import HTTPStatus
from typing import Awaitable, Callable, Mapping, cast

from fastapi import FastAPI, Request, Response, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from smena.core.auth import AuthFailure, AuthFailureKind

ExceptionHandlerCallable = Callable[[Request, Exception], Awaitable[Response]]

logger = logging.getLogger("smena.errors")

MISSING_CREDENTIALS_MESSAGE = "Missing or invalid Authorization header"
INVALID_CREDENTIALS_MESSAGE = "Invalid Telegram credentials"


class ErrorCode(StrEnum):
    INVALID_INIT_DATA = "INVALID_INIT_DATA"
    UNAUTHORIZED = "UNAUTHORIZED"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    NOT_FOUND = "NOT_FOUND"
    METHOD_NOT_ALLOWED = "METHOD_NOT_ALLOWED"
    INTERNAL_ERROR = "INTERNAL_ERROR"


_STATUS_CODES: dict[int, ErrorCode] = {
    status.HTTP_401_UNAUTHORIZED: ErrorCode.UNAUTHORIZED,
    status.HTTP_404_NOT_FOUND: ErrorCode.NOT_FOUND,
    status.HTTP_405_METHOD_NOT_ALLOWED: ErrorCode.METHOD_NOT_ALLOWED,
}


class ApplicationError(Exception):
    """Error raised by services and rendered with its own status and code."""

    def __init__(
        self,
        code: ErrorCode | str,
        message: str,
        *,
        status_code: int = status.HTTP_400_BAD_REQUEST,
        headers: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(message)
        self.code = str(code)
        self.message = message
        self.status_code = status_code
        self.headers = dict(headers or {})


class UnauthorizedError(ApplicationError):
    """401 carrying a ``WWW-Authenticate`` challenge when a scheme is given."""

    def __init__(
        self,
        message: str,
        *,
        code: ErrorCode | str = ErrorCode.UNAUTHORIZED,
        scheme: str | None = None,
    ) -> None:
        super().__init__(
            code,
            message,
            status_code=status.HTTP_401_UNAUTHORIZED,
            headers={"WWW-Authenticate": scheme} if scheme else None,
        )


def register_exception_handlers(app: FastAPI) -> None:
    """Attach the global exception handlers to the FastAPI app."""

    handlers: list[tuple[type[Exception], object]] = [
        (ApplicationError, application_error_handler),
        (RequestValidationError, request_validation_exception_handler),
        (StarletteHTTPException, http_exception_handler),
        (Exception, unexpected_exception_handler),
    ]
    for exc_class, handler in handlers:
        app.add_exception_handler(exc_class, cast(ExceptionHandlerCallable, handler))


async def application_error_handler(request: Request, exc: ApplicationError) -> JSONResponse:
    return error_response(
        status_code=exc.status_code,
        code=exc.code,
        message=exc.message,
        headers=exc.headers,
    )


async def request_validation_exception_handler(
    request: Request,
    exc: RequestValidationError,
) -> JSONResponse:
    details: dict[str, str] = {}
    for error in exc.errors():
        location = [str(part) for part in error.get("loc") or () if part != "body"]
        field = ".".join(location) or "_schema"
        message = error.get("msg", "Invalid value")
        details[field] = f"{details[field]}; {message}" if field in details else message

    return error_response(
        status_code=HTTPStatus.UNPROCESSABLE_ENTITY,
        code=ErrorCode.VALIDATION_ERROR,
        message="Request validation failed",
        details=details or None,
    )


async def http_exception_handler(
    request: Request,
    exc: StarletteHTTPException,
) -> JSONResponse:
    # Routing errors (unknown path, wrong method) raised by Starlette itself.
    return error_response(
        status_code=exc.status_code,
        code=_STATUS_CODES.get(exc.status_code, ErrorCode.INTERNAL_ERROR),
        message=str(exc.detail or HTTPStatus(exc.status_code).phrase),
        headers=exc.headers,
    )


async def unexpected_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(
        "Unhandled exception during request",
        exc_info=(exc.__class__, exc, exc.__traceback__),
    )
    return error_response(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        code=ErrorCode.INTERNAL_ERROR,
        message="An unexpected error occurred",
    )


def auth_failure_response(failure: AuthFailure, *, scheme: str) -> JSONResponse:
    """
    Render an authentication failure as a 401 response.

    Only the NoCredentials/InvalidCredentials split reaches the client: a bad
    signature, a stale payload and an unknown user all produce the same body.
    """
    if failure.kind is AuthFailureKind.NO_CREDENTIALS:
        message = MISSING_CREDENTIALS_MESSAGE
    else:
        message = INVALID_CREDENTIALS_MESSAGE

    return error_response(
        status_code=status.HTTP_401_UNAUTHORIZED,
        code=ErrorCode.UNAUTHORIZED,
        message=message,
        headers={"WWW-Authenticate": scheme},
    )


def error_response(
    *,
    status_code: int,
    code: ErrorCode | str,
    message: str,
    details: object | None = None,
    headers: Mapping[str, str] | None = None,
) -> JSONResponse:
    """Return a JSONResponse in the public error envelope."""
    error: dict[str, object] = {"code": str(code), "message": message}
    if details is not None:
        error["details"] = details
    return JSONResponse(
        content=jsonable_encoder({"error": error}),
        status_code=status_code,
        headers=dict(headers) if headers else None,
    )


__all__ = [
    "ApplicationError",
    "ErrorCode",
    "UnauthorizedError",
    "auth_failure_response",
    "error_response",
    "register_exception_handlers",
]
