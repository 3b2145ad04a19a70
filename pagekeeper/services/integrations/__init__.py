"""Third-party integration clients."""

from __future__ import annotations

from typing import Optional

import requests

from ..records import IntegrationEntry
from .base import IntegrationClient, RetrievedItem, RetrievedResult, RetrieveRequest
from .notion import NotionClient
from .pocket import PocketClient
from .readwise import ReadwiseClient

SUPPORTED_INTEGRATIONS = ("READWISE", "POCKET", "NOTION")


def get_integration_client(
    name: str,
    token: str,
    integration: Optional[IntegrationEntry] = None,
    *,
    session: Optional[requests.Session] = None,
) -> IntegrationClient:
    """Return the client for ``name`` (case-insensitive)."""

    key = (name or "").strip().lower()
    if key == "readwise":
        return ReadwiseClient(token, session=session)
    if key == "pocket":
        return PocketClient(token, session=session)
    if key == "notion":
        return NotionClient(token, integration, session=session)
    raise ValueError(f"Integration client not found: {name}")


__all__ = [
    "IntegrationClient",
    "NotionClient",
    "PocketClient",
    "ReadwiseClient",
    "RetrieveRequest",
    "RetrievedItem",
    "RetrievedResult",
    "SUPPORTED_INTEGRATIONS",
    "get_integration_client",
]
