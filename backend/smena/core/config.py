"""
Configuration module for the Smena backend.

The Settings object centralizes environment-driven configuration with strict
typing and validation rules so that the rest of the codebase can rely on a
single source of truth.
"""

from __future__ import annotations

import json
from functools import lru_cache
from typing import Literal, cast

from pydantic import (
    AnyHttpUrl,
    Field,
    SecretStr,
    ValidationInfo,
    computed_field,
    field_validator,
)
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=(".env", "../.env"),
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    project_name: str = Field(default="Smena Hockey Backend", alias="PROJECT_NAME")
    environment: Literal["local", "test", "staging", "production"] = Field(
        default="local",
        alias="APP_ENV",
    )
    debug: bool = Field(default=False, alias="DEBUG")
    api_v1_prefix: str = Field(default="/api", alias="API_V1_PREFIX")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    database_url: str = Field(alias="DATABASE_URL")

    telegram_bot_token: SecretStr = Field(alias="TELEGRAM_BOT_TOKEN")
    telegram_auth_scheme: str = Field(
        default="tma",
        alias="TELEGRAM_AUTH_SCHEME",
        description="Authorization scheme token preceding initData (`Authorization: tma <initData>`).",
    )
    telegram_init_data_max_age_seconds: int = Field(
        default=300,
        alias="TELEGRAM_INIT_DATA_MAX_AGE_SECONDS",
        description="Maximum accepted age of initData auth_date in seconds.",
    )

    production_app_origin: AnyHttpUrl | None = Field(
        default=None,
        alias="PRODUCTION_APP_ORIGIN",
    )
    raw_backend_cors_origins: str | None = Field(
        default=None,
        alias="BACKEND_CORS_ORIGINS",
        description="Comma-separated list or JSON array of localhost origins (http://localhost:PORT).",
    )

    @field_validator("database_url", mode="before")
    @classmethod
    def _strip_string(cls, value: str | None, info: ValidationInfo) -> str:
        if value is None:
            field = (info.field_name or "value").upper()
            raise ValueError(f"{field} must be provided.")
        trimmed = value.strip()
        if not trimmed:
            field = (info.field_name or "value").upper()
            raise ValueError(f"{field} must not be empty.")
        return trimmed

    @field_validator("telegram_bot_token", mode="after")
    @classmethod
    def _validate_secret(cls, secret: SecretStr, info: ValidationInfo) -> SecretStr:
        if not secret.get_secret_value().strip():
            field = (info.field_name or "value").upper()
            raise ValueError(f"{field} must not be empty.")
        return secret

    @field_validator("telegram_auth_scheme")
    @classmethod
    def _validate_auth_scheme(cls, value: str) -> str:
        candidate = value.strip()
        if not candidate or any(ch.isspace() for ch in candidate):
            raise ValueError("TELEGRAM_AUTH_SCHEME must be a single non-empty token.")
        return candidate

    @field_validator("telegram_init_data_max_age_seconds")
    @classmethod
    def _validate_init_data_age(cls, value: int) -> int:
        if value <= 0:
            raise ValueError("TELEGRAM_INIT_DATA_MAX_AGE_SECONDS must be a positive integer.")
        return value

    @field_validator("api_v1_prefix")
    @classmethod
    def _validate_api_prefix(cls, value: str) -> str:
        normalized = "/" + value.strip().strip("/")
        if normalized == "/":
            raise ValueError("API_V1_PREFIX must not be the site root.")
        return normalized

    _LOCAL_CORS_ENVIRONMENTS = frozenset({"local", "test"})

    @computed_field(return_type=list[str])
    def backend_cors_origins(self) -> list[str]:
        """
        Return validated localhost origins for local/test development.

        Production/staging environments ignore BACKEND_CORS_ORIGINS entirely.
        """
        if self.environment not in self._LOCAL_CORS_ENVIRONMENTS:
            return []

        parsed = self._parse_backend_cors_origins(self.raw_backend_cors_origins)
        return [self._validate_localhost_origin(origin) for origin in parsed]

    @staticmethod
    def _parse_backend_cors_origins(value: str | None) -> list[str]:
        if value is None:
            return []
        normalized = value.strip()
        if not normalized:
            return []
        if normalized.startswith("["):
            try:
                parsed = json.loads(normalized)
                if isinstance(parsed, list):
                    return [
                        str(origin).strip().rstrip("/") for origin in parsed if str(origin).strip()
                    ]
            except json.JSONDecodeError:
                pass
        return [origin.strip().rstrip("/") for origin in normalized.split(",") if origin.strip()]

    @staticmethod
    def _validate_localhost_origin(origin: str) -> str:
        normalized = origin.strip().rstrip("/")
        if not normalized.startswith(("http://localhost", "http://127.0.0.1")):
            raise ValueError(
                "BACKEND_CORS_ORIGINS only accepts http://localhost:* origins and is honored "
                "only when APP_ENV is 'local' or 'test'. Configure PRODUCTION_APP_ORIGIN for "
                "deployed domains."
            )
        return normalized

    @property
    def cors_origins(self) -> list[str]:
        """
        Compile the effective list of CORS origins.

        Always includes the Telegram WebApp origin and the production app origin.
        """
        origins = {"https://web.telegram.org", "https://webapp.telegram.org"}
        cors_base = cast(list[str], self.backend_cors_origins)
        origins.update(cors_base)

        if self.production_app_origin:
            origins.add(str(self.production_app_origin).rstrip("/"))

        return sorted(origins)


@lru_cache
def get_settings() -> Settings:
    """Return a cached Settings instance so configuration is evaluated once."""
    return Settings()  # type: ignore[call-arg]


settings = get_settings()
