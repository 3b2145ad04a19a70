"""Tests for the savePage HTTP client."""

from __future__ import annotations

import asyncio
from typing import Any, Dict, List

import pytest
import requests

from pagekeeper.client import PageKeeperClient, SaveArticleError, SaveErrorKind

pytestmark = pytest.mark.client


class _FakeResponse:
    def __init__(self, payload: Any = None, *, status_code: int = 200, text: str = ""):
        self.status_code = status_code
        self._payload = payload
        self.text = text

    def json(self) -> Any:
        if isinstance(self._payload, Exception):
            raise self._payload
        return self._payload


class _FakeSession:
    def __init__(self, response: Any):
        self._response = response
        self.calls: List[Dict[str, Any]] = []
        self.closed = False

    def post(self, url: str, json: Dict[str, Any], headers: Dict[str, str], timeout: float):
        self.calls.append({"url": url, "json": json, "headers": headers, "timeout": timeout})
        if isinstance(self._response, Exception):
            raise self._response
        return self._response

    def close(self) -> None:
        self.closed = True


def _success(url: str = "https://reader.example/me/slug") -> _FakeResponse:
    return _FakeResponse(
        {"data": {"savePage": {"__typename": "SaveSuccess", "url": url, "clientRequestId": "r"}}}
    )


def _save_error(*codes: str) -> _FakeResponse:
    return _FakeResponse(
        {"data": {"savePage": {"__typename": "SaveError", "errorCodes": list(codes), "message": None}}}
    )


def test_save_page_sends_mutation_and_returns_url():
    session = _FakeSession(_success())
    client = PageKeeperClient("https://api.example/", "tok", session=session, timeout=5)

    result = client.save_page("https://example.com", "<p>hi</p>", title="Hi", request_id="req-1")

    assert result.url == "https://reader.example/me/slug"
    assert result.request_id == "req-1"
    (call,) = session.calls
    assert call["url"] == "https://api.example/api/graphql"
    assert call["timeout"] == 5
    assert call["headers"]["authorization"] == "Bearer tok"
    assert call["headers"]["x-correlation-id"] == "req-1"
    assert call["json"]["variables"]["input"] == {
        "url": "https://example.com",
        "source": "ios-page",
        "clientRequestId": "req-1",
        "originalContent": "<p>hi</p>",
        "title": "Hi",
    }


def test_save_page_generates_request_ids():
    session = _FakeSession(_success())

    result = PageKeeperClient("https://api.example", "tok", session=session).save_page("u", "h")

    assert result.request_id
    assert session.calls[0]["json"]["variables"]["input"]["clientRequestId"] == result.request_id
    assert "title" not in session.calls[0]["json"]["variables"]["input"]


def test_unauthorized_error_code_maps_to_unauthorized():
    client = PageKeeperClient("https://api.example", "tok", session=_FakeSession(_save_error("UNAUTHORIZED")))

    with pytest.raises(SaveArticleError) as excinfo:
        client.save_page("https://example.com", "")

    assert excinfo.value.kind is SaveErrorKind.UNAUTHORIZED


def test_other_error_codes_map_to_unknown_with_code():
    client = PageKeeperClient("https://api.example", "tok", session=_FakeSession(_save_error("BAD_REQUEST")))

    with pytest.raises(SaveArticleError) as excinfo:
        client.save_page("https://example.com", "")

    assert excinfo.value.kind is SaveErrorKind.UNKNOWN
    assert excinfo.value.description == "BAD_REQUEST"


def test_graphql_errors_map_to_unknown_with_message():
    response = _FakeResponse({"data": None, "errors": [{"message": "Syntax Error"}]})
    client = PageKeeperClient("https://api.example", "tok", session=_FakeSession(response))

    with pytest.raises(SaveArticleError) as excinfo:
        client.save_page("https://example.com", "")

    assert excinfo.value.kind is SaveErrorKind.UNKNOWN
    assert excinfo.value.description == "Syntax Error"


@pytest.mark.parametrize(
    "failure",
    [requests.ConnectionError("refused"), requests.Timeout("slow")],
)
def test_transport_failures_map_to_network(failure):
    client = PageKeeperClient("https://api.example", "tok", session=_FakeSession(failure))

    with pytest.raises(SaveArticleError) as excinfo:
        client.save_page("https://example.com", "")

    assert excinfo.value.kind is SaveErrorKind.NETWORK


@pytest.mark.parametrize(
    "response",
    [
        _FakeResponse(None, status_code=500, text="boom"),
        _FakeResponse(ValueError("not json")),
        _FakeResponse(["not", "a", "mapping"]),
        _FakeResponse({"data": {}}),
    ],
)
def test_unexpected_responses_map_to_unknown(response):
    client = PageKeeperClient("https://api.example", "tok", session=_FakeSession(response))

    with pytest.raises(SaveArticleError) as excinfo:
        client.save_page("https://example.com", "")

    assert excinfo.value.kind is SaveErrorKind.UNKNOWN


def test_asave_page_runs_in_thread():
    session = _FakeSession(_success("https://reader.example/me/async"))
    client = PageKeeperClient("https://api.example", "tok", session=session)

    result = asyncio.run(client.asave_page("https://example.com", "<p>x</p>", request_id="a-1"))

    assert result.url == "https://reader.example/me/async"
    assert result.request_id == "a-1"


def test_client_requires_base_url_and_keeps_borrowed_sessions_open():
    with pytest.raises(ValueError):
        PageKeeperClient("", "tok")

    session = _FakeSession(_success())
    with PageKeeperClient("https://api.example", "tok", session=session):
        pass
    assert session.closed is False
