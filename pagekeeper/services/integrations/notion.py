"""Notion export client."""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence

import requests

from ... import config_manager as cfg
from ..errors import IntegrationError
from ..records import IntegrationEntry, LibraryItemEntry
from .base import IntegrationClient

NOTION_API_URL = "https://api.notion.com/v1"
# Notion caps rich text content at 2000 characters per block.
MAX_TEXT_LENGTH = 2000


class NotionClient(IntegrationClient):
    """Create one Notion database page per exported library item."""

    name = "NOTION"
    api_url = NOTION_API_URL

    def __init__(
        self,
        token: Optional[str] = None,
        integration: Optional[IntegrationEntry] = None,
        *,
        session: Optional[requests.Session] = None,
        timeout_seconds: Optional[float] = None,
    ) -> None:
        super().__init__(token, session=session, timeout_seconds=timeout_seconds)
        self._integration = integration

    @property
    def parent_database_id(self) -> Optional[str]:
        if self._integration is None:
            return None
        return self._integration.settings.get("parentDatabaseId") or None

    def _headers(self, token: str) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {token}",
            "Notion-Version": cfg.get_settings().notion_version,
            "Content-Type": "application/json",
        }

    def access_token(self, token: Optional[str] = None) -> Optional[str]:
        candidate = token or self._token
        if not candidate:
            return None
        try:
            self._request("GET", "/users/me", headers=self._headers(candidate))
        except IntegrationError as exc:
            if exc.status_code is not None:
                return None
            raise
        return candidate

    def export(self, items: Sequence[LibraryItemEntry]) -> bool:
        if not self._token:
            raise IntegrationError("Notion token is missing")
        database_id = self.parent_database_id
        if not database_id:
            raise IntegrationError("Notion parent database is not configured")

        for item in items:
            self._request(
                "POST",
                "/pages",
                json=self.page_payload(database_id, item),
                headers=self._headers(self._token),
            )
        self._logger.info(
            "Exported pages to Notion",
            extra={
                "event": "integrations.notion.export",
                "attributes": {"items": len(items), "database_id": database_id},
            },
        )
        return True

    @staticmethod
    def _text(content: str) -> List[Dict[str, Any]]:
        return [{"type": "text", "text": {"content": content[:MAX_TEXT_LENGTH]}}]

    @classmethod
    def page_payload(cls, database_id: str, item: LibraryItemEntry) -> Dict[str, Any]:
        properties: Dict[str, Any] = {
            "Title": {"title": cls._text(item.title)},
            "URL": {"url": item.original_url},
            "Tags": {"multi_select": [{"name": label.name} for label in item.labels]},
        }
        if item.author:
            properties["Author"] = {"rich_text": cls._text(item.author)}
        if item.saved_at is not None:
            properties["Saved At"] = {"date": {"start": item.saved_at.isoformat()}}

        children: List[Dict[str, Any]] = []
        for highlight in item.highlights:
            if not highlight.quote:
                continue
            children.append(
                {
                    "object": "block",
                    "type": "quote",
                    "quote": {"rich_text": cls._text(highlight.quote)},
                }
            )
            if highlight.annotation:
                children.append(
                    {
                        "object": "block",
                        "type": "paragraph",
                        "paragraph": {"rich_text": cls._text(highlight.annotation)},
                    }
                )

        payload: Dict[str, Any] = {
            "parent": {"database_id": database_id},
            "properties": properties,
        }
        if children:
            payload["children"] = children
        return payload


__all__ = ["NotionClient", "NOTION_API_URL"]
