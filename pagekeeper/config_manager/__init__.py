"""High-level configuration management for pagekeeper."""
from __future__ import annotations

from .constants import (
    DEFAULT_CLIENT_URL,
    DEFAULT_DATABASE_URL,
    DEFAULT_GRAPHQL_PATH,
    SENSITIVE_CONFIG_KEYS,
)
from .loader import describe_settings, get_settings, reload_settings
from .settings import PageKeeperSettings


def get_database_url() -> str:
    """Return the configured SQLAlchemy database URL."""

    return get_settings().database_url.get_secret_value()


def get_client_url() -> str:
    """Return the public URL of the reader client used in saved-page links."""

    return get_settings().client_url


__all__ = [
    "DEFAULT_CLIENT_URL",
    "DEFAULT_DATABASE_URL",
    "DEFAULT_GRAPHQL_PATH",
    "PageKeeperSettings",
    "SENSITIVE_CONFIG_KEYS",
    "describe_settings",
    "get_client_url",
    "get_database_url",
    "get_settings",
    "reload_settings",
]
