"""End-to-end tests for the GraphQL endpoint."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import pytest

from pagekeeper.services import (
    HighlightService,
    IntegrationService,
    LibraryItemService,
    ServiceError,
)
from pagekeeper.webapi.dependencies import get_integration_service, get_save_page_service

pytestmark = pytest.mark.webapi

LABELS_QUERY = """
query {
  labels {
    __typename
    ... on LabelsSuccess { labels { id name color position } }
    ... on LabelsError { errorCodes }
  }
}
"""

CREATE_LABEL = """
mutation ($input: CreateLabelInput!) {
  createLabel(input: $input) {
    __typename
    ... on CreateLabelSuccess { label { id name color description position } }
    ... on CreateLabelError { errorCodes }
  }
}
"""

UPDATE_LABEL = """
mutation ($input: UpdateLabelInput!) {
  updateLabel(input: $input) {
    __typename
    ... on UpdateLabelSuccess { label { id name color } }
    ... on UpdateLabelError { errorCodes }
  }
}
"""

DELETE_LABEL = """
mutation ($id: ID!) {
  deleteLabel(id: $id) {
    __typename
    ... on DeleteLabelSuccess { label { id name } }
    ... on DeleteLabelError { errorCodes }
  }
}
"""

MOVE_LABEL = """
mutation ($input: MoveLabelInput!) {
  moveLabel(input: $input) {
    __typename
    ... on MoveLabelSuccess { label { id position } }
    ... on MoveLabelError { errorCodes }
  }
}
"""

SET_LABELS = """
mutation ($input: SetLabelsInput!) {
  setLabels(input: $input) {
    __typename
    ... on SetLabelsSuccess { labels { id name } }
    ... on SetLabelsError { errorCodes }
  }
}
"""

SET_LABELS_FOR_HIGHLIGHT = """
mutation ($input: SetLabelsForHighlightInput!) {
  setLabelsForHighlight(input: $input) {
    __typename
    ... on SetLabelsSuccess { labels { id name } }
    ... on SetLabelsError { errorCodes }
  }
}
"""

SAVE_PAGE = """
mutation ($input: SavePageInput!) {
  savePage(input: $input) {
    __typename
    ... on SaveSuccess { url clientRequestId }
    ... on SaveError { errorCodes message }
  }
}
"""

INTEGRATIONS_QUERY = """
query {
  integrations {
    __typename
    ... on IntegrationsSuccess { integrations { id name type token enabled importItemState } }
    ... on IntegrationsError { errorCodes }
  }
}
"""

SET_INTEGRATION = """
mutation ($input: SetIntegrationInput!) {
  setIntegration(input: $input) {
    __typename
    ... on SetIntegrationSuccess { integration { id name type token settings } }
    ... on SetIntegrationError { errorCodes }
  }
}
"""

DELETE_INTEGRATION = """
mutation ($id: ID!) {
  deleteIntegration(id: $id) {
    __typename
    ... on DeleteIntegrationSuccess { integration { id name } }
    ... on DeleteIntegrationError { errorCodes }
  }
}
"""

IMPORT_FROM_INTEGRATION = """
mutation ($id: ID!) {
  importFromIntegration(integrationId: $id) {
    __typename
    ... on ImportFromIntegrationSuccess { count }
    ... on ImportFromIntegrationError { errorCodes }
  }
}
"""

EXPORT_TO_INTEGRATION = """
mutation ($id: ID!) {
  exportToIntegration(integrationId: $id) {
    __typename
    ... on ExportToIntegrationSuccess { exported }
    ... on ExportToIntegrationError { errorCodes }
  }
}
"""


def _create_label(graphql, headers, name: str, **extra: Any) -> Dict[str, Any]:
    result = graphql(CREATE_LABEL, {"input": {"name": name, **extra}}, headers)["createLabel"]
    assert result["__typename"] == "CreateLabelSuccess", result
    return result["label"]


def _label_names(graphql, headers) -> List[str]:
    return [label["name"] for label in graphql(LABELS_QUERY, headers=headers)["labels"]["labels"]]


class _StubClient:
    def __init__(self, *, valid: bool = True) -> None:
        self._valid = valid

    def access_token(self, token: Optional[str] = None) -> Optional[str]:
        return token if self._valid else None

    def retrieve(self, request):
        from pagekeeper.services.integrations import RetrievedItem, RetrievedResult

        return RetrievedResult(items=[RetrievedItem(url="https://example.com/imported")])

    def export(self, items) -> bool:
        return True

    def close(self) -> None:
        pass


@pytest.fixture
def integrations_override(api_client):
    state = {"valid": True}
    service = IntegrationService(
        client_factory=lambda *args, **kwargs: _StubClient(valid=state["valid"])
    )
    api_client.app.dependency_overrides[get_integration_service] = lambda: service
    return state


@pytest.mark.parametrize(
    ("query", "variables", "field"),
    [
        (LABELS_QUERY, None, "labels"),
        (INTEGRATIONS_QUERY, None, "integrations"),
        (CREATE_LABEL, {"input": {"name": "x"}}, "createLabel"),
        (DELETE_LABEL, {"id": "x"}, "deleteLabel"),
        (UPDATE_LABEL, {"input": {"labelId": "x"}}, "updateLabel"),
        (MOVE_LABEL, {"input": {"labelId": "x"}}, "moveLabel"),
        (SET_LABELS, {"input": {"pageId": "p", "labelIds": []}}, "setLabels"),
        (SET_LABELS_FOR_HIGHLIGHT, {"input": {"highlightId": "h", "labelIds": []}}, "setLabelsForHighlight"),
        (SET_INTEGRATION, {"input": {"name": "READWISE", "token": "t"}}, "setIntegration"),
        (DELETE_INTEGRATION, {"id": "x"}, "deleteIntegration"),
        (IMPORT_FROM_INTEGRATION, {"id": "x"}, "importFromIntegration"),
        (EXPORT_TO_INTEGRATION, {"id": "x"}, "exportToIntegration"),
    ],
)
def test_operations_require_authentication(graphql, query, variables, field):
    result = graphql(query, variables, {"Authorization": "Bearer not-a-session"})[field]

    assert result["__typename"].endswith("Error")
    assert result["errorCodes"] == ["UNAUTHORIZED"]


def test_save_page_requires_authentication(graphql):
    variables = {
        "input": {
            "url": "https://example.com",
            "source": "ios-page",
            "clientRequestId": "req-1",
            "originalContent": "<p>x</p>",
        }
    }

    result = graphql(SAVE_PAGE, variables)["savePage"]

    assert result == {
        "__typename": "SaveError",
        "errorCodes": ["UNAUTHORIZED"],
        "message": "Authentication required",
    }


def test_label_crud_over_graphql(graphql, auth_headers):
    science = _create_label(graphql, auth_headers, "Science", color="#ABCDEF", description="d")
    assert science["color"] == "#abcdef"
    assert science["position"] == 1

    duplicate = graphql(CREATE_LABEL, {"input": {"name": "SCIENCE"}}, auth_headers)["createLabel"]
    assert duplicate == {"__typename": "CreateLabelError", "errorCodes": ["LABEL_ALREADY_EXISTS"]}

    invalid = graphql(CREATE_LABEL, {"input": {"name": "   "}}, auth_headers)["createLabel"]
    assert invalid["errorCodes"] == ["BAD_REQUEST"]

    updated = graphql(
        UPDATE_LABEL, {"input": {"labelId": science["id"], "name": "Physics"}}, auth_headers
    )["updateLabel"]
    assert updated["label"]["name"] == "Physics"

    missing = graphql(UPDATE_LABEL, {"input": {"labelId": "missing", "name": "x"}}, auth_headers)
    assert missing["updateLabel"]["errorCodes"] == ["NOT_FOUND"]

    deleted = graphql(DELETE_LABEL, {"id": science["id"]}, auth_headers)["deleteLabel"]
    assert deleted["label"] == {"id": science["id"], "name": "Physics"}
    again = graphql(DELETE_LABEL, {"id": science["id"]}, auth_headers)["deleteLabel"]
    assert again["errorCodes"] == ["NOT_FOUND"]
    assert _label_names(graphql, auth_headers) == []


def test_move_label_over_graphql(graphql, auth_headers):
    a, b, c = (_create_label(graphql, auth_headers, name) for name in ("A", "B", "C"))

    moved = graphql(
        MOVE_LABEL, {"input": {"labelId": a["id"], "afterLabelId": c["id"]}}, auth_headers
    )["moveLabel"]
    assert moved["label"]["position"] == 3
    assert _label_names(graphql, auth_headers) == ["B", "C", "A"]

    # An empty afterLabelId moves the label to the top.
    top = graphql(MOVE_LABEL, {"input": {"labelId": c["id"], "afterLabelId": ""}}, auth_headers)
    assert top["moveLabel"]["label"]["position"] == 1
    assert _label_names(graphql, auth_headers) == ["C", "B", "A"]

    missing = graphql(
        MOVE_LABEL, {"input": {"labelId": b["id"], "afterLabelId": "missing"}}, auth_headers
    )
    assert missing["moveLabel"]["errorCodes"] == ["NOT_FOUND"]


def test_set_labels_over_graphql(graphql, auth_headers, session_payload):
    user_id = session_payload["user"]["id"]
    item = LibraryItemService().create_library_item(user_id, original_url="https://example.com/a")
    highlight = HighlightService().create_highlight(item.id, user_id, quote="q")
    a = _create_label(graphql, auth_headers, "A")
    b = _create_label(graphql, auth_headers, "B")

    result = graphql(
        SET_LABELS, {"input": {"pageId": item.id, "labelIds": [b["id"], a["id"]]}}, auth_headers
    )["setLabels"]
    assert [label["name"] for label in result["labels"]] == ["B", "A"]

    for_highlight = graphql(
        SET_LABELS_FOR_HIGHLIGHT,
        {"input": {"highlightId": highlight.id, "labelIds": [a["id"]]}},
        auth_headers,
    )["setLabelsForHighlight"]
    assert [label["name"] for label in for_highlight["labels"]] == ["A"]

    missing = graphql(
        SET_LABELS, {"input": {"pageId": "missing", "labelIds": [a["id"]]}}, auth_headers
    )["setLabels"]
    assert missing["errorCodes"] == ["NOT_FOUND"]


def test_save_page_over_graphql(graphql, auth_headers, session_payload):
    variables = {
        "input": {
            "url": "https://example.com/story",
            "source": "ios-page",
            "clientRequestId": "req-42",
            "originalContent": "<title>Story Time</title><p>Once upon a time.</p>",
            "labels": ["Stories"],
        }
    }

    result = graphql(SAVE_PAGE, variables, auth_headers)["savePage"]

    assert result["__typename"] == "SaveSuccess"
    assert result["clientRequestId"] == "req-42"
    assert result["url"].startswith("https://reader.example/api/story-time-")
    assert _label_names(graphql, auth_headers) == ["Stories"]

    items = LibraryItemService().search_library_items(session_payload["user"]["id"])
    assert [item.source for item in items] == ["ios-page"]


def test_save_page_reports_bad_urls(graphql, auth_headers):
    variables = {
        "input": {
            "url": "not a url",
            "source": "ios-page",
            "clientRequestId": "req-1",
            "originalContent": "",
        }
    }

    result = graphql(SAVE_PAGE, variables, auth_headers)["savePage"]

    assert result["__typename"] == "SaveError"
    assert result["errorCodes"] == ["BAD_REQUEST"]


def test_save_page_maps_unexpected_service_errors_to_unknown(api_client, graphql, auth_headers):
    class _Broken(ServiceError):
        code = "SOMETHING_ELSE"

    class _FailingSavePageService:
        def save_page(self, *args, **kwargs):
            raise _Broken("storage offline")

    api_client.app.dependency_overrides[get_save_page_service] = lambda: _FailingSavePageService()
    variables = {
        "input": {
            "url": "https://example.com",
            "source": "ios-page",
            "clientRequestId": "req-1",
            "originalContent": "",
        }
    }

    result = graphql(SAVE_PAGE, variables, auth_headers)["savePage"]

    assert result == {"__typename": "SaveError", "errorCodes": ["UNKNOWN"], "message": "storage offline"}


def test_integrations_over_graphql(graphql, auth_headers, integrations_override):
    saved = graphql(
        SET_INTEGRATION,
        {"input": {"name": "readwise", "token": "tok", "settings": {"a": 1}}},
        auth_headers,
    )["setIntegration"]
    assert saved["__typename"] == "SetIntegrationSuccess"
    assert saved["integration"]["name"] == "READWISE"
    assert saved["integration"]["type"] == "EXPORT"
    assert saved["integration"]["settings"] == {"a": 1}
    readwise_id = saved["integration"]["id"]

    pocket = graphql(
        SET_INTEGRATION,
        {"input": {"name": "POCKET", "token": "code", "type": "IMPORT", "importItemState": "ALL"}},
        auth_headers,
    )["setIntegration"]
    pocket_id = pocket["integration"]["id"]

    listed = graphql(INTEGRATIONS_QUERY, headers=auth_headers)["integrations"]["integrations"]
    assert {entry["name"] for entry in listed} == {"READWISE", "POCKET"}

    imported = graphql(IMPORT_FROM_INTEGRATION, {"id": pocket_id}, auth_headers)
    assert imported["importFromIntegration"] == {"__typename": "ImportFromIntegrationSuccess", "count": 1}

    exported = graphql(EXPORT_TO_INTEGRATION, {"id": readwise_id}, auth_headers)
    assert exported["exportToIntegration"]["exported"] is True

    wrong_direction = graphql(EXPORT_TO_INTEGRATION, {"id": pocket_id}, auth_headers)
    assert wrong_direction["exportToIntegration"]["errorCodes"] == ["BAD_REQUEST"]

    deleted = graphql(DELETE_INTEGRATION, {"id": readwise_id}, auth_headers)["deleteIntegration"]
    assert deleted["integration"]["name"] == "READWISE"
    missing = graphql(DELETE_INTEGRATION, {"id": readwise_id}, auth_headers)["deleteIntegration"]
    assert missing["errorCodes"] == ["NOT_FOUND"]


def test_set_integration_reports_invalid_tokens(graphql, auth_headers, integrations_override):
    integrations_override["valid"] = False

    result = graphql(
        SET_INTEGRATION, {"input": {"name": "notion", "token": "nope"}}, auth_headers
    )["setIntegration"]

    assert result == {"__typename": "SetIntegrationError", "errorCodes": ["INVALID_TOKEN"]}


def test_access_token_query_parameter_authenticates(api_client, session_payload):
    response = api_client.post(
        f"/api/graphql?access_token={session_payload['token']}",
        json={"query": LABELS_QUERY},
    )

    assert response.json()["data"]["labels"]["__typename"] == "LabelsSuccess"


@pytest.fixture
def pagekeeper_records(caplog):
    pagekeeper_logger = logging.getLogger("pagekeeper")
    orig_propagate = pagekeeper_logger.propagate
    pagekeeper_logger.propagate = True
    caplog.set_level(logging.INFO, logger="pagekeeper.services.labels")
    try:
        yield caplog
    finally:
        pagekeeper_logger.propagate = orig_propagate


def _label_created_records(caplog) -> List[logging.LogRecord]:
    return [record for record in caplog.records if getattr(record, "event", "") == "labels.create"]


def test_requests_tag_service_logs_with_correlation_id(
    graphql, auth_headers, session_payload, pagekeeper_records
):
    graphql(
        CREATE_LABEL,
        {"input": {"name": "Tagged"}},
        headers={**auth_headers, "x-correlation-id": "corr-123"},
    )
    graphql(CREATE_LABEL, {"input": {"name": "Untagged"}}, headers=auth_headers)

    tagged, untagged = _label_created_records(pagekeeper_records)
    assert tagged.correlation_id == "corr-123"
    assert tagged.user_id == session_payload["user"]["id"]
    assert untagged.correlation_id not in (None, "", "corr-123")
