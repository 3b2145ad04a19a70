"""Pocket import client."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional
from urllib.parse import urlencode

from ... import config_manager as cfg
from ..errors import IntegrationError
from .base import IntegrationClient, RetrievedItem, RetrievedResult, RetrieveRequest

POCKET_API_URL = "https://getpocket.com/v3"
POCKET_AUTHORIZE_URL = "https://getpocket.com/auth/authorize"
_JSON_HEADERS = {
    "Content-Type": "application/json; charset=UTF-8",
    "X-Accept": "application/json",
}
# Pocket's /get state filter, keyed by our import_item_state values.
_POCKET_STATES = {
    "UNREAD": "unread",
    "UNARCHIVED": "unread",
    "ARCHIVED": "archive",
    "ALL": "all",
}


class PocketClient(IntegrationClient):
    """Import saved articles from Pocket through its OAuth flow."""

    name = "POCKET"
    api_url = POCKET_API_URL

    @property
    def consumer_key(self) -> str:
        secret = cfg.get_settings().pocket_consumer_key
        if secret is None or not secret.get_secret_value():
            raise IntegrationError("Pocket consumer key is not configured")
        return secret.get_secret_value()

    def request_token(self, redirect_uri: str) -> str:
        response = self._request(
            "POST",
            "/oauth/request",
            json={"consumer_key": self.consumer_key, "redirect_uri": redirect_uri},
            headers=_JSON_HEADERS,
        )
        code = self._json(response).get("code")
        if not code:
            raise IntegrationError("Pocket did not return a request token")
        return code

    def auth(self, state: str) -> str:
        redirect_uri = f"{cfg.get_client_url()}/settings/integrations?state={state}"
        code = self.request_token(redirect_uri)
        return f"{POCKET_AUTHORIZE_URL}?{urlencode({'request_token': code, 'redirect_uri': redirect_uri})}"

    def access_token(self, token: Optional[str] = None) -> Optional[str]:
        """Exchange an authorized request token for a Pocket access token."""

        code = token or self._token
        if not code:
            return None
        try:
            response = self._request(
                "POST",
                "/oauth/authorize",
                json={"consumer_key": self.consumer_key, "code": code},
                headers=_JSON_HEADERS,
            )
        except IntegrationError as exc:
            if exc.status_code is not None:
                return None
            raise
        return self._json(response).get("access_token") or None

    def retrieve(self, request: RetrieveRequest) -> RetrievedResult:
        if not self._token:
            raise IntegrationError("Pocket access token is missing")

        payload: Dict[str, Any] = {
            "consumer_key": self.consumer_key,
            "access_token": self._token,
            "state": _POCKET_STATES.get((request.state or "ALL").upper(), "all"),
            "detailType": "complete",
            "sort": "oldest",
            "count": request.count,
            "offset": request.offset,
        }
        if request.since is not None:
            payload["since"] = int(request.since.timestamp())

        response = self._request("POST", "/get", json=payload, headers=_JSON_HEADERS)
        data = self._json(response)
        entries = data.get("list") or {}
        # An empty result comes back as a list rather than an object.
        if isinstance(entries, list):
            entries = {}
        items: List[RetrievedItem] = []
        for entry in entries.values():
            item = self._to_item(entry)
            if item is not None:
                items.append(item)

        since_value = data.get("since")
        since = (
            datetime.fromtimestamp(int(since_value), tz=timezone.utc)
            if since_value
            else request.since
        )
        self._logger.info(
            "Retrieved Pocket items",
            extra={
                "event": "integrations.pocket.retrieve",
                "attributes": {"count": len(items), "offset": request.offset},
            },
        )
        return RetrievedResult(
            items=items,
            has_more=len(entries) >= request.count,
            since=since,
        )

    @staticmethod
    def _to_item(entry: Mapping[str, Any]) -> Optional[RetrievedItem]:
        url = entry.get("given_url") or entry.get("resolved_url")
        if not url:
            return None
        # Pocket status: 0 unread, 1 archived, 2 deleted.
        status = str(entry.get("status", "0"))
        if status == "2":
            return None
        tags = entry.get("tags") or {}
        labels = sorted(tags.keys()) if isinstance(tags, Mapping) else []
        return RetrievedItem(
            url=url,
            title=entry.get("given_title") or entry.get("resolved_title") or None,
            labels=labels,
            state="ARCHIVED" if status == "1" else "SUCCEEDED",
        )


__all__ = ["PocketClient", "POCKET_API_URL"]
