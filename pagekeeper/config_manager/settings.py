"""Pydantic models and helper utilities for configuration values."""
from __future__ import annotations

import logging
from typing import Optional

from pydantic import AliasChoices, Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .constants import (
    DEFAULT_CLIENT_URL,
    DEFAULT_DATABASE_URL,
    DEFAULT_GRAPHQL_PATH,
    DEFAULT_INTEGRATION_TIMEOUT,
    DEFAULT_NOTION_VERSION,
    DEFAULT_SESSION_TTL_HOURS,
)

_LOG_LEVELS = {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}


class PageKeeperSettings(BaseSettings):
    """Typed representation of the application configuration."""

    model_config = SettingsConfigDict(env_prefix="PAGEKEEPER_", extra="ignore")

    database_url: SecretStr = Field(
        default=SecretStr(DEFAULT_DATABASE_URL),
        validation_alias=AliasChoices("DATABASE_URL", "PAGEKEEPER_DATABASE_URL"),
    )
    client_url: str = Field(
        default=DEFAULT_CLIENT_URL,
        validation_alias=AliasChoices("CLIENT_URL", "PAGEKEEPER_CLIENT_URL"),
    )
    graphql_path: str = DEFAULT_GRAPHQL_PATH
    cors_origins: Optional[str] = None
    log_level: str = "INFO"
    debug: bool = False
    pocket_consumer_key: Optional[SecretStr] = Field(
        default=None,
        validation_alias=AliasChoices("POCKET_CONSUMER_KEY", "PAGEKEEPER_POCKET_CONSUMER_KEY"),
    )
    integration_timeout_seconds: float = DEFAULT_INTEGRATION_TIMEOUT
    notion_version: str = DEFAULT_NOTION_VERSION
    session_ttl_hours: int = DEFAULT_SESSION_TTL_HOURS

    @field_validator("client_url")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")

    @field_validator("log_level")
    @classmethod
    def _normalise_log_level(cls, value: str) -> str:
        candidate = (value or "").strip().upper()
        return candidate if candidate in _LOG_LEVELS else "INFO"

    @property
    def log_level_value(self) -> int:
        if self.debug:
            return logging.DEBUG
        return logging.getLevelName(self.log_level)


__all__ = ["PageKeeperSettings"]
