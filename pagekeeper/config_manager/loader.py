"""Configuration loading utilities."""
from __future__ import annotations

from functools import lru_cache
from typing import Any, Dict

from pydantic import SecretStr, ValidationError

from pagekeeper import logging_manager

from .constants import SENSITIVE_CONFIG_KEYS
from .settings import PageKeeperSettings

logger = logging_manager.get_logger().getChild("config")


@lru_cache
def get_settings() -> PageKeeperSettings:
    """Return the process-wide settings, reading the environment once."""

    try:
        return PageKeeperSettings()
    except ValidationError as exc:
        logger.warning(
            "Invalid environment configuration detected; using defaults.",
            extra={"event": "config.env.validation_error", "error": str(exc)},
        )
        return PageKeeperSettings.model_construct()


def reload_settings() -> PageKeeperSettings:
    """Drop the cached settings and read the environment again."""

    get_settings.cache_clear()
    return get_settings()


def describe_settings(settings: PageKeeperSettings | None = None) -> Dict[str, Any]:
    """Return the settings as a dictionary with secrets masked."""

    settings = settings or get_settings()
    payload: Dict[str, Any] = {}
    for key, value in settings.model_dump().items():
        if key in SENSITIVE_CONFIG_KEYS and value is not None:
            payload[key] = "***"
        elif isinstance(value, SecretStr):
            payload[key] = "***"
        else:
            payload[key] = value
    return payload
