from __future__ import annotations

from typing import Any, Dict, Iterator, Optional

import pytest
from fastapi.testclient import TestClient

from pagekeeper.webapi.application import create_app


@pytest.fixture
def api_client() -> Iterator[TestClient]:
    app = create_app()
    with TestClient(app) as client:
        yield client
    app.dependency_overrides.clear()


@pytest.fixture
def session_payload(api_client: TestClient) -> Dict[str, Any]:
    response = api_client.post(
        "/api/auth/register",
        json={"email": "api@example.com", "password": "secret-pass", "name": "Api"},
    )
    assert response.status_code == 201
    return response.json()


@pytest.fixture
def auth_headers(session_payload: Dict[str, Any]) -> Dict[str, str]:
    return {"Authorization": f"Bearer {session_payload['token']}"}


@pytest.fixture
def graphql(api_client: TestClient):
    def _execute(
        query: str,
        variables: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> Dict[str, Any]:
        response = api_client.post(
            "/api/graphql",
            json={"query": query, "variables": variables or {}},
            headers=headers or {},
        )
        assert response.status_code == 200, response.text
        payload = response.json()
        assert "errors" not in payload, payload
        return payload["data"]

    return _execute
