from __future__ import annotations

from fastapi.testclient import TestClient

from cloud_variables.utils.auth import CredentialIssuer
from tests.conftest import PASSWORD, TEST_SECRET, auth_headers, login, register


def test_health(client: TestClient) -> None:
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_register_returns_user_and_token(client: TestClient) -> None:
    response = client.post("/auth/register", json={"email": "Alice@Example.com", "password": PASSWORD})

    assert response.status_code == 201
    body = response.json()
    assert body["user"]["email"] == "alice@example.com"
    assert body["user"]["role"] == "user"
    assert body["token_type"] == "bearer"
    assert "password_hash" not in body["user"]

    profile = client.get("/api/profile", headers=auth_headers(body["token"]))
    assert profile.status_code == 200
    assert profile.json()["tier_name"] == "free"
    assert profile.json()["variable_count"] == 0


def test_duplicate_registration_conflicts(client: TestClient) -> None:
    register(client, "alice@example.com")
    response = client.post("/auth/register", json={"email": "alice@example.com", "password": PASSWORD})

    assert response.status_code == 409
    assert response.json()["error"] == "conflict"


def test_weak_password_is_rejected(client: TestClient) -> None:
    response = client.post("/auth/register", json={"email": "alice@example.com", "password": "password"})

    assert response.status_code == 400
    assert response.json() == {
        "error": "validation_error",
        "detail": "Password must contain at least one number",
    }


def test_invalid_payload_is_a_400_with_field_errors(client: TestClient) -> None:
    response = client.post("/auth/register", json={"email": "not-an-email", "password": PASSWORD})

    assert response.status_code == 400
    body = response.json()
    assert body["error"] == "validation_error"
    assert body["errors"][0]["loc"] == ["body", "email"]


def test_login(client: TestClient) -> None:
    register(client, "alice@example.com")

    token = login(client, "alice@example.com")
    assert client.get("/api/profile", headers=auth_headers(token)).status_code == 200

    response = client.post("/auth/login", json={"email": "alice@example.com", "password": "wrongpass1"})
    assert response.status_code == 401
    assert response.json()["error"] == "authentication_error"


def test_missing_and_malformed_credentials(client: TestClient) -> None:
    assert client.get("/api/profile").status_code == 401

    response = client.get("/api/profile", headers={"Authorization": "Token abc"})
    assert response.status_code == 401

    response = client.get("/api/profile", headers=auth_headers("garbage"))
    assert response.status_code == 401
    assert response.json()["error"] == "token_invalid"


def test_expired_and_foreign_tokens_are_rejected(client: TestClient) -> None:
    register(client, "alice@example.com")
    profile = client.get("/api/profile", headers=auth_headers(login(client, "alice@example.com"))).json()
    user = profile["user"]

    expired = CredentialIssuer(TEST_SECRET, bcrypt_rounds=4).issue_token(
        user["id"], user["email"], user["role"], user["tier_id"], ttl_hours=-1
    )
    response = client.get("/api/profile", headers=auth_headers(expired))
    assert response.status_code == 401
    assert response.json()["error"] == "token_expired"

    forged = CredentialIssuer("some-other-secret-that-is-long-enough-too", bcrypt_rounds=4).issue_token(
        user["id"], user["email"], "admin", user["tier_id"]
    )
    response = client.get("/api/profile", headers=auth_headers(forged))
    assert response.status_code == 401
    assert response.json()["error"] == "token_signature_mismatch"


def test_change_password(client: TestClient) -> None:
    token = register(client, "alice@example.com")

    response = client.put(
        "/api/profile/password",
        json={"current_password": "wrongpass1", "new_password": "newpassword1"},
        headers=auth_headers(token),
    )
    assert response.status_code == 401

    response = client.put(
        "/api/profile/password",
        json={"current_password": PASSWORD, "new_password": "newpassword1"},
        headers=auth_headers(token),
    )
    assert response.status_code == 204
    login(client, "alice@example.com", "newpassword1")


def test_usage_report(client: TestClient) -> None:
    token = register(client, "alice@example.com")
    client.post("/api/variables", json={"key": "cfg", "data": {"v": 1}}, headers=auth_headers(token))

    response = client.get("/api/usage", headers=auth_headers(token))

    assert response.status_code == 200
    body = response.json()
    assert body["tier_name"] == "free"
    assert body["requests_count"] == 1
    assert body["variables_created"] == 1
    assert body["variable_count"] == 1
    assert body["limits"]["max_variables"] == 10
    assert body["requests_remaining"] == 999
