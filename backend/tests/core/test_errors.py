from __future__ import annotations

import json
from typing import AsyncIterator, cast

import pytest
import pytest_asyncio
from fastapi import FastAPI
from fastapi.routing import APIRouter
from httpx import ASGITransport, AsyncClient
from pydantic import BaseModel, Field
from starlette.types import ASGIApp

from smena.core.auth import AuthFailure, AuthFailureCause, AuthFailureKind
from smena.core.errors import (
    ErrorCode,
    UnauthorizedError,
    auth_failure_response,
    register_exception_handlers,
)
from smena.core.telegram import RejectionReason


class EchoPayload(BaseModel):
    text: str = Field(min_length=1)


def _build_test_router() -> APIRouter:
    router = APIRouter()

    @router.get("/unauthorized")
    async def raise_unauthorized() -> None:
        raise UnauthorizedError(
            "Invalid or expired initData",
            code=ErrorCode.INVALID_INIT_DATA,
            scheme="tma",
        )

    @router.post("/echo")
    async def echo(payload: EchoPayload) -> EchoPayload:
        return payload

    @router.get("/crash")
    async def raise_generic_exc() -> None:
        raise RuntimeError("boom")

    return router


@pytest.fixture(scope="module")
def error_test_app() -> FastAPI:
    app = FastAPI()
    register_exception_handlers(app)
    app.include_router(_build_test_router())
    return app


@pytest_asyncio.fixture
async def error_test_client(error_test_app: FastAPI) -> AsyncIterator[AsyncClient]:
    # FastAPI implements the ASGI callable interface but type stubs disagree.
    transport = ASGITransport(
        app=cast(ASGIApp, error_test_app),  # type: ignore[arg-type]
        raise_app_exceptions=False,
    )
    client = AsyncClient(transport=transport, base_url="http://testserver")
    try:
        yield client
    finally:
        await client.aclose()


@pytest.mark.asyncio
async def test_unauthorized_error_sets_challenge_header(error_test_client: AsyncClient) -> None:
    response = await error_test_client.get("/unauthorized")

    assert response.status_code == 401
    assert response.headers["WWW-Authenticate"] == "tma"
    assert response.json() == {
        "error": {"code": "INVALID_INIT_DATA", "message": "Invalid or expired initData"}
    }


@pytest.mark.asyncio
async def test_validation_error_handler_formats_details(error_test_client: AsyncClient) -> None:
    response = await error_test_client.post("/echo", json={"text": ""})

    assert response.status_code == 422
    payload = response.json()["error"]
    assert payload["code"] == str(ErrorCode.VALIDATION_ERROR)
    assert "text" in payload["details"]


@pytest.mark.asyncio
async def test_unknown_route_returns_not_found_code(error_test_client: AsyncClient) -> None:
    response = await error_test_client.get("/missing")

    assert response.status_code == 404
    assert response.json()["error"]["code"] == str(ErrorCode.NOT_FOUND)


@pytest.mark.asyncio
async def test_wrong_method_returns_method_not_allowed_code(
    error_test_client: AsyncClient,
) -> None:
    response = await error_test_client.get("/echo")

    assert response.status_code == 405
    assert response.json()["error"]["code"] == str(ErrorCode.METHOD_NOT_ALLOWED)
    assert "allow" in response.headers


@pytest.mark.asyncio
async def test_unhandled_exception_masked_as_internal_error(
    error_test_client: AsyncClient,
) -> None:
    response = await error_test_client.get("/crash")

    assert response.status_code == 500
    payload = response.json()["error"]
    assert payload["code"] == str(ErrorCode.INTERNAL_ERROR)
    assert "boom" not in payload["message"]


def test_auth_failure_response_hides_failure_cause() -> None:
    verification = AuthFailure(
        kind=AuthFailureKind.INVALID_CREDENTIALS,
        cause=AuthFailureCause.VERIFICATION_FAILED,
        rejection=RejectionReason.EXPIRED,
    )
    unknown_user = AuthFailure(
        kind=AuthFailureKind.INVALID_CREDENTIALS,
        cause=AuthFailureCause.UNKNOWN_USER,
        telegram_id=99,
    )

    first = auth_failure_response(verification, scheme="tma")
    second = auth_failure_response(unknown_user, scheme="tma")

    assert first.status_code == second.status_code == 401
    assert first.body == second.body
    assert first.headers["WWW-Authenticate"] == "tma"
    assert json.loads(first.body)["error"]["message"] == "Invalid Telegram credentials"


def test_auth_failure_response_for_missing_credentials() -> None:
    missing = AuthFailure(
        kind=AuthFailureKind.NO_CREDENTIALS,
        cause=AuthFailureCause.MISSING_CREDENTIALS,
    )

    response = auth_failure_response(missing, scheme="twa")

    assert response.status_code == 401
    assert response.headers["WWW-Authenticate"] == "twa"
    assert json.loads(response.body) == {
        "error": {"code": "UNAUTHORIZED", "message": "Missing or invalid Authorization header"}
    }
