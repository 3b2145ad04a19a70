"""Readwise export client."""

from __future__ import annotations

from typing import Any, Dict, Optional, Sequence

from ..errors import IntegrationError
from ..records import HighlightEntry, LibraryItemEntry
from .base import IntegrationClient

READWISE_API_URL = "https://readwise.io/api/v2"
READWISE_SOURCE_TYPE = "pagekeeper"
# Readwise rejects highlight text longer than this.
MAX_HIGHLIGHT_LENGTH = 8191


class ReadwiseClient(IntegrationClient):
    """Push highlights to Readwise using an access token."""

    name = "READWISE"
    api_url = READWISE_API_URL

    def access_token(self, token: Optional[str] = None) -> Optional[str]:
        candidate = token or self._token
        if not candidate:
            return None
        try:
            self._request(
                "GET",
                "/auth",
                headers={"Authorization": f"Token {candidate}"},
                expected=(204,),
            )
        except IntegrationError as exc:
            if exc.status_code is not None:
                return None
            raise
        return candidate

    def export(self, items: Sequence[LibraryItemEntry]) -> bool:
        if not self._token:
            raise IntegrationError("Readwise token is missing")
        highlights = [
            self.highlight_payload(item, highlight)
            for item in items
            for highlight in item.highlights
            if highlight.quote
        ]
        if not highlights:
            return True

        self._request(
            "POST",
            "/highlights",
            json={"highlights": highlights},
            headers={
                "Authorization": f"Token {self._token}",
                "Content-Type": "application/json",
            },
            expected=(200,),
        )
        self._logger.info(
            "Exported highlights to Readwise",
            extra={
                "event": "integrations.readwise.export",
                "attributes": {"items": len(items), "highlights": len(highlights)},
            },
        )
        return True

    @staticmethod
    def highlight_payload(item: LibraryItemEntry, highlight: HighlightEntry) -> Dict[str, Any]:
        location = None
        if highlight.highlight_position_percent is not None:
            location = int(highlight.highlight_position_percent)
        payload: Dict[str, Any] = {
            "text": (highlight.quote or "")[:MAX_HIGHLIGHT_LENGTH],
            "title": item.title,
            "author": item.author or None,
            "highlight_url": item.original_url,
            "highlighted_at": (
                highlight.created_at.isoformat() if highlight.created_at else None
            ),
            "category": "articles",
            "image_url": None,
            "location_type": "order",
            "note": highlight.annotation or None,
            "source_type": READWISE_SOURCE_TYPE,
            "source_url": item.original_url,
        }
        if location is not None:
            payload["location"] = location
        return payload


__all__ = ["ReadwiseClient", "READWISE_API_URL"]
