from __future__ import annotations

from fastapi.testclient import TestClient

from tests.conftest import auth_headers, register


def _create_key(client: TestClient, token: str, name: str = "ci", **extra):
    return client.post("/api/api-keys", json={"name": name, **extra}, headers=auth_headers(token))


def test_secret_is_shown_once_and_authenticates(client: TestClient) -> None:
    token = register(client, "alice@example.com")

    created = _create_key(client, token, expires_in_days=30, permissions={"read": True})
    assert created.status_code == 201
    body = created.json()
    secret = body["key"]
    assert secret.startswith("cv_") and len(secret) == 35
    assert body["prefix"] == secret[:11]
    assert body["expires_at"] is not None

    listed = client.get("/api/api-keys", headers=auth_headers(token)).json()
    assert len(listed) == 1
    assert "key" not in listed[0]
    assert listed[0]["permissions"] == {"read": True}

    # Both header styles are accepted
    response = client.post("/api/variables", json={"key": "cfg", "data": 1}, headers={"X-API-Key": secret})
    assert response.status_code == 201
    response = client.get("/api/variables", headers=auth_headers(secret))
    assert response.json()["total"] == 1

    listed = client.get("/api/api-keys", headers=auth_headers(token)).json()
    assert listed[0]["last_used_at"] is not None


def test_revoked_key_is_rejected(client: TestClient) -> None:
    token = register(client, "alice@example.com")
    body = _create_key(client, token).json()

    response = client.post(f"/api/api-keys/{body['id']}/revoke", headers=auth_headers(token))
    assert response.status_code == 204

    response = client.get("/api/profile", headers={"X-API-Key": body["key"]})
    assert response.status_code == 401
    assert response.json()["error"] == "authentication_error"


def test_unknown_key_is_rejected(client: TestClient) -> None:
    response = client.get("/api/profile", headers={"X-API-Key": "cv_" + "a" * 32})
    assert response.status_code == 401


def test_api_key_quota(client: TestClient) -> None:
    token = register(client, "alice@example.com")
    first = _create_key(client, token, "one").json()
    assert _create_key(client, token, "two").status_code == 201

    response = _create_key(client, token, "three")
    assert response.status_code == 402
    assert response.json()["detail"] == "Maximum 2 API keys allowed"

    client.post(f"/api/api-keys/{first['id']}/revoke", headers=auth_headers(token))
    assert _create_key(client, token, "three").status_code == 201


def test_delete_key(client: TestClient) -> None:
    alice = register(client, "alice@example.com")
    bob = register(client, "bob@example.com")
    key_id = _create_key(client, alice).json()["id"]

    assert client.delete(f"/api/api-keys/{key_id}", headers=auth_headers(bob)).status_code == 404
    assert client.delete(f"/api/api-keys/{key_id}", headers=auth_headers(alice)).status_code == 204
    assert client.get("/api/api-keys", headers=auth_headers(alice)).json() == []


def test_blank_key_name_is_rejected(client: TestClient) -> None:
    token = register(client, "alice@example.com")
    response = _create_key(client, token, "   ")
    assert response.status_code == 400
