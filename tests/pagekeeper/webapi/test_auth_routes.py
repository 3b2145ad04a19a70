from __future__ import annotations

import pytest

pytestmark = pytest.mark.webapi


def test_healthcheck(api_client):
    assert api_client.get("/_health").json() == {"status": "ok"}


def test_register_returns_session(session_payload):
    assert session_payload["user"]["email"] == "api@example.com"
    assert session_payload["user"]["username"] == "api"
    assert session_payload["token"]


def test_register_conflicts_and_validation(api_client, session_payload):
    duplicate = api_client.post(
        "/api/auth/register", json={"email": "api@example.com", "password": "another-pass"}
    )
    assert duplicate.status_code == 409

    short = api_client.post("/api/auth/register", json={"email": "x@example.com", "password": "short"})
    assert short.status_code == 422


def test_login_session_and_logout(api_client, session_payload):
    rejected = api_client.post("/api/auth/login", json={"login": "api", "password": "wrong-pass"})
    assert rejected.status_code == 401

    response = api_client.post("/api/auth/login", json={"login": "API", "password": "secret-pass"})
    assert response.status_code == 200
    token = response.json()["token"]
    headers = {"Authorization": f"Bearer {token}"}

    status = api_client.get("/api/auth/session", headers=headers)
    assert status.status_code == 200
    assert status.json()["user"]["id"] == session_payload["user"]["id"]

    assert api_client.post("/api/auth/logout", headers=headers).status_code == 204
    assert api_client.get("/api/auth/session", headers=headers).status_code == 401
    assert api_client.get("/api/auth/session").status_code == 401
