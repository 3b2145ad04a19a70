"""Tests for the Readwise, Pocket and Notion HTTP clients."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import pytest
import requests

from pagekeeper.config_manager import reload_settings
from pagekeeper.services.errors import IntegrationError
from pagekeeper.services.integrations import (
    NotionClient,
    PocketClient,
    ReadwiseClient,
    RetrieveRequest,
    get_integration_client,
)
from pagekeeper.services.records import HighlightEntry, IntegrationEntry, LabelEntry, LibraryItemEntry

pytestmark = pytest.mark.integrations

SAVED_AT = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


class _FakeResponse:
    def __init__(self, status_code: int = 200, payload: Any = None, text: str = ""):
        self.status_code = status_code
        self._payload = payload
        self.text = text

    def json(self) -> Any:
        if self._payload is None:
            raise ValueError("no json")
        return self._payload


class _FakeSession:
    def __init__(self, *responses: Any):
        self._responses = list(responses)
        self.calls: List[Dict[str, Any]] = []
        self.closed = False

    def request(self, method: str, url: str, **kwargs: Any) -> _FakeResponse:
        self.calls.append({"method": method, "url": url, **kwargs})
        response = self._responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response

    def close(self) -> None:
        self.closed = True


def _label(name: str) -> LabelEntry:
    return LabelEntry(
        id=f"label-{name}",
        name=name,
        color="#000000",
        description=None,
        position=1,
        internal=False,
        created_at=None,
        updated_at=None,
    )


def _highlight(quote: Optional[str], annotation: Optional[str] = None) -> HighlightEntry:
    return HighlightEntry(
        id="h-1",
        library_item_id="item-1",
        short_id="abcdefgh",
        quote=quote,
        prefix=None,
        suffix=None,
        patch=None,
        annotation=annotation,
        color=None,
        highlight_position_percent=42.7,
        created_at=SAVED_AT,
        updated_at=SAVED_AT,
    )


def _item(highlights: Optional[List[HighlightEntry]] = None) -> LibraryItemEntry:
    return LibraryItemEntry(
        id="item-1",
        original_url="https://example.com/a",
        slug="a",
        title="An article",
        author="Ada",
        description=None,
        site_name=None,
        readable_content="",
        word_count=None,
        state="SUCCEEDED",
        source="api",
        client_request_id=None,
        saved_at=SAVED_AT,
        archived_at=None,
        created_at=SAVED_AT,
        updated_at=SAVED_AT,
        labels=[_label("News")],
        highlights=highlights or [],
    )


def _integration(settings: Dict[str, Any]) -> IntegrationEntry:
    return IntegrationEntry(
        id="int-1",
        name="NOTION",
        type="EXPORT",
        token="secret",
        enabled=True,
        synced_at=None,
        settings=settings,
        import_item_state=None,
        created_at=None,
        updated_at=None,
    )


@pytest.mark.parametrize(
    ("name", "expected"),
    [("readwise", ReadwiseClient), ("POCKET", PocketClient), ("Notion", NotionClient)],
)
def test_get_integration_client_is_case_insensitive(name, expected):
    client = get_integration_client(name, "token", session=_FakeSession())

    assert isinstance(client, expected)


def test_get_integration_client_rejects_unknown_names():
    with pytest.raises(ValueError, match="Integration client not found: instapaper"):
        get_integration_client("instapaper", "token")


def test_readwise_access_token_checks_auth_endpoint():
    session = _FakeSession(_FakeResponse(204), _FakeResponse(401, text="nope"))
    client = ReadwiseClient(session=session)

    assert client.access_token("good") == "good"
    assert client.access_token("bad") is None
    assert session.calls[0]["url"] == "https://readwise.io/api/v2/auth"
    assert session.calls[0]["headers"]["Authorization"] == "Token good"


def test_readwise_transport_errors_raise_integration_error():
    session = _FakeSession(requests.ConnectionError("down"))
    client = ReadwiseClient(session=session)

    with pytest.raises(IntegrationError) as excinfo:
        client.access_token("good")
    assert excinfo.value.status_code is None


def test_readwise_export_posts_highlights():
    session = _FakeSession(_FakeResponse(200, payload=[]))
    client = ReadwiseClient("secret", session=session)

    item = _item([_highlight("A quote", "my note"), _highlight(None)])
    assert client.export([item]) is True

    (call,) = session.calls
    assert call["method"] == "POST"
    assert call["url"] == "https://readwise.io/api/v2/highlights"
    (payload,) = call["json"]["highlights"]
    assert payload["text"] == "A quote"
    assert payload["note"] == "my note"
    assert payload["title"] == "An article"
    assert payload["location"] == 42
    assert payload["highlighted_at"] == SAVED_AT.isoformat()


def test_readwise_export_without_highlights_skips_request():
    session = _FakeSession()

    assert ReadwiseClient("secret", session=session).export([_item()]) is True
    assert session.calls == []


def test_readwise_export_failure_is_logged(caplog):
    session = _FakeSession(_FakeResponse(500, text="boom"))
    client = ReadwiseClient("secret", session=session)

    pagekeeper_logger = logging.getLogger("pagekeeper")
    orig_propagate = pagekeeper_logger.propagate
    pagekeeper_logger.propagate = True
    caplog.set_level(logging.INFO, logger="pagekeeper.integrations.readwise")
    try:
        with pytest.raises(IntegrationError) as excinfo:
            client.export([_item([_highlight("quote")])])
    finally:
        pagekeeper_logger.propagate = orig_propagate

    assert excinfo.value.status_code == 500
    record = next(
        record
        for record in caplog.records
        if getattr(record, "event", "") == "integrations.readwise.error_response"
    )
    assert record.attributes["status_code"] == 500


def test_pocket_requires_consumer_key():
    client = PocketClient("token", session=_FakeSession())

    with pytest.raises(IntegrationError, match="consumer key"):
        client.access_token("code")


@pytest.fixture
def pocket_key(monkeypatch):
    monkeypatch.setenv("POCKET_CONSUMER_KEY", "consumer")
    reload_settings()


def test_pocket_auth_builds_authorize_url(pocket_key):
    session = _FakeSession(_FakeResponse(200, payload={"code": "req-token"}))
    client = PocketClient(session=session)

    url = client.auth("xyz")

    assert url.startswith("https://getpocket.com/auth/authorize?request_token=req-token")
    assert "state%3Dxyz" in url
    assert session.calls[0]["json"]["consumer_key"] == "consumer"


def test_pocket_access_token_exchange(pocket_key):
    session = _FakeSession(
        _FakeResponse(200, payload={"access_token": "access", "username": "u"}),
        _FakeResponse(403, text="denied"),
    )
    client = PocketClient(session=session)

    assert client.access_token("code") == "access"
    assert client.access_token("code") is None
    assert session.calls[0]["url"] == "https://getpocket.com/v3/oauth/authorize"


def test_pocket_retrieve_maps_items(pocket_key):
    payload = {
        "list": {
            "1": {"given_url": "https://example.com/1", "given_title": "One", "status": "0",
                  "tags": {"tech": {}, "ai": {}}},
            "2": {"resolved_url": "https://example.com/2", "resolved_title": "Two", "status": "1"},
            "3": {"given_url": "https://example.com/3", "status": "2"},
            "4": {"status": "0"},
        },
        "since": 1714564800,
    }
    session = _FakeSession(_FakeResponse(200, payload=payload))
    client = PocketClient("access", session=session)

    result = client.retrieve(RetrieveRequest(since=SAVED_AT, count=4, state="ARCHIVED"))

    assert [item.url for item in result.items] == ["https://example.com/1", "https://example.com/2"]
    assert result.items[0].labels == ["ai", "tech"]
    assert result.items[1].state == "ARCHIVED"
    assert result.items[1].title == "Two"
    assert result.has_more is True
    assert result.since == datetime.fromtimestamp(1714564800, tz=timezone.utc)
    sent = session.calls[0]["json"]
    assert sent["state"] == "archive"
    assert sent["since"] == int(SAVED_AT.timestamp())
    assert sent["access_token"] == "access"


def test_pocket_retrieve_handles_empty_list(pocket_key):
    session = _FakeSession(_FakeResponse(200, payload={"list": [], "since": None}))

    result = PocketClient("access", session=session).retrieve(RetrieveRequest())

    assert result.items == []
    assert result.has_more is False


def test_pocket_does_not_export():
    with pytest.raises(IntegrationError):
        PocketClient("access", session=_FakeSession()).export([_item()])


def test_notion_access_token_and_export():
    session = _FakeSession(
        _FakeResponse(200, payload={"object": "user"}),
        _FakeResponse(200, payload={"object": "page"}),
    )
    client = NotionClient("secret", _integration({"parentDatabaseId": "db-1"}), session=session)

    assert client.access_token() == "secret"
    assert client.export([_item([_highlight("Quoted", "Thoughts")])]) is True

    call = session.calls[1]
    assert call["url"] == "https://api.notion.com/v1/pages"
    assert call["headers"]["Notion-Version"] == "2022-06-28"
    body = call["json"]
    assert body["parent"] == {"database_id": "db-1"}
    assert body["properties"]["Tags"] == {"multi_select": [{"name": "News"}]}
    assert [child["type"] for child in body["children"]] == ["quote", "paragraph"]


def test_notion_export_requires_database():
    client = NotionClient("secret", _integration({}), session=_FakeSession())

    with pytest.raises(IntegrationError, match="parent database"):
        client.export([_item()])


def test_client_closes_only_owned_sessions():
    session = _FakeSession()
    with ReadwiseClient("secret", session=session):
        pass

    assert session.closed is False
