from __future__ import annotations

from fastapi import FastAPI
from fastapi.testclient import TestClient

from cloud_variables.models import User
from tests.conftest import auth_headers, login, register


def _user_id(client: TestClient, token: str) -> int:
    return client.get("/api/profile", headers=auth_headers(token)).json()["user"]["id"]


def _tier_id(client: TestClient, admin: str, name: str) -> int:
    tiers = client.get("/admin/tiers", headers=auth_headers(admin)).json()
    return next(t["id"] for t in tiers if t["name"] == name)


def test_admin_routes_require_admin_role(client: TestClient) -> None:
    token = register(client, "alice@example.com")

    response = client.get("/admin/users", headers=auth_headers(token))
    assert response.status_code == 403
    assert response.json()["error"] == "authorization_error"
    assert client.get("/admin/users").status_code == 401


def test_demoted_admin_loses_access_before_token_expiry(client: TestClient, app: FastAPI, admin_token: str) -> None:
    db = app.state.session_factory()
    try:
        db.query(User).filter(User.email == "admin@example.com").update({User.role: "user"})
        db.commit()
    finally:
        db.close()

    assert client.get("/admin/users", headers=auth_headers(admin_token)).status_code == 403


def test_list_and_search_users(client: TestClient, admin_token: str) -> None:
    register(client, "alice@example.com")
    register(client, "bob@example.com")

    body = client.get("/admin/users", headers=auth_headers(admin_token)).json()
    assert body["total"] == 3

    body = client.get("/admin/users", params={"search": "ALICE"}, headers=auth_headers(admin_token)).json()
    assert [u["email"] for u in body["users"]] == ["alice@example.com"]


def test_promote_user(client: TestClient, admin_token: str) -> None:
    token = register(client, "alice@example.com")
    user_id = _user_id(client, token)
    pro_id = _tier_id(client, admin_token, "pro")

    response = client.post(
        f"/admin/users/{user_id}/promote",
        json={"tier_id": pro_id, "reason": "annual plan"},
        headers=auth_headers(admin_token),
    )
    assert response.status_code == 201
    assert response.json()["to_tier_id"] == pro_id
    assert response.json()["reason"] == "annual plan"

    history = client.get(f"/admin/users/{user_id}/promotions", headers=auth_headers(admin_token)).json()
    assert len(history) == 1

    profile = client.get("/api/profile", headers=auth_headers(login(client, "alice@example.com"))).json()
    assert profile["tier_name"] == "pro"

    response = client.post(
        f"/admin/users/{user_id}/promote", json={"tier_id": pro_id}, headers=auth_headers(admin_token)
    )
    assert response.status_code == 400


def test_disable_user_blocks_login(client: TestClient, admin_token: str) -> None:
    token = register(client, "alice@example.com")
    user_id = _user_id(client, token)

    response = client.patch(
        f"/admin/users/{user_id}", json={"is_active": False, "email_verified": True},
        headers=auth_headers(admin_token),
    )
    assert response.status_code == 200
    assert response.json()["is_active"] is False
    assert response.json()["email_verified"] is True

    response = client.post("/auth/login", json={"email": "alice@example.com", "password": "password123"})
    assert response.status_code == 401


def test_admin_cannot_delete_self(client: TestClient, admin_token: str) -> None:
    admin_id = _user_id(client, admin_token)
    response = client.delete(f"/admin/users/{admin_id}", headers=auth_headers(admin_token))
    assert response.status_code == 400


def test_delete_user_removes_variables_and_blobs(client: TestClient, app: FastAPI, admin_token: str) -> None:
    token = register(client, "alice@example.com")
    user_id = _user_id(client, token)
    client.post("/api/variables", json={"key": "cfg", "data": {"v": 1}}, headers=auth_headers(token))
    assert app.state.blob_store.exists(f"{user_id}/cfg.json")

    response = client.delete(f"/admin/users/{user_id}", headers=auth_headers(admin_token))

    assert response.status_code == 204
    assert not app.state.blob_store.exists(f"{user_id}/cfg.json")
    assert client.delete(f"/admin/users/{user_id}", headers=auth_headers(admin_token)).status_code == 404


def test_tier_crud(client: TestClient, admin_token: str) -> None:
    headers = auth_headers(admin_token)
    payload = {
        "name": "team",
        "max_variables": 100,
        "max_variable_size_mb": 5,
        "max_requests_per_day": 10000,
        "max_api_keys": 5,
        "price_monthly": 499,
    }

    created = client.post("/admin/tiers", json=payload, headers=headers)
    assert created.status_code == 201
    tier_id = created.json()["id"]
    assert client.post("/admin/tiers", json=payload, headers=headers).status_code == 409

    updated = client.patch(f"/admin/tiers/{tier_id}", json={"max_api_keys": 8}, headers=headers)
    assert updated.json()["max_api_keys"] == 8
    assert updated.json()["max_variables"] == 100

    assert client.get(f"/admin/tiers/{tier_id}", headers=headers).json()["name"] == "team"
    assert client.delete(f"/admin/tiers/{tier_id}", headers=headers).status_code == 204
    assert client.get(f"/admin/tiers/{tier_id}", headers=headers).status_code == 404

    response = client.post("/admin/tiers", json={**payload, "max_variables": -1}, headers=headers)
    assert response.status_code == 400


def test_deleting_tier_in_use_conflicts(client: TestClient, admin_token: str) -> None:
    free_id = _tier_id(client, admin_token, "free")
    response = client.delete(f"/admin/tiers/{free_id}", headers=auth_headers(admin_token))
    assert response.status_code == 409


def test_reconcile_reports_and_removes_orphans(client: TestClient, app: FastAPI, admin_token: str) -> None:
    token = register(client, "alice@example.com")
    user_id = _user_id(client, token)
    client.post("/api/variables", json={"key": "cfg", "data": 1}, headers=auth_headers(token))
    app.state.blob_store.store(user_id, "orphan", {"left": "behind"})

    report = client.post("/admin/maintenance/reconcile", headers=auth_headers(admin_token)).json()
    assert report["dry_run"] is True
    assert report["orphaned"] == [f"{user_id}/orphan.json"]
    assert app.state.blob_store.exists(f"{user_id}/orphan.json")

    report = client.post(
        "/admin/maintenance/reconcile", params={"dry_run": "false"}, headers=auth_headers(admin_token)
    ).json()
    assert report["deleted"] == [f"{user_id}/orphan.json"]
    assert app.state.blob_store.exists(f"{user_id}/cfg.json")
