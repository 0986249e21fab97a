"""Shared fixtures: an isolated app per test (in-memory SQLite, in-memory blobs, cheap bcrypt)."""

from __future__ import annotations

from typing import Dict, Iterator, Tuple

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from cloud_variables.core.config import Settings
from cloud_variables.db.base import Base
from cloud_variables.db.session import create_db_engine, create_session_factory
from cloud_variables.main import create_app
from cloud_variables.models import Tier, User
from cloud_variables.services.tier_service import TierService
from cloud_variables.services.user_service import UserService
from cloud_variables.storage.memory import InMemoryBlobStore
from cloud_variables.utils.auth import CredentialIssuer, TokenClaims

TEST_SECRET = "test-signing-secret-that-is-long-enough-for-hs256"
PASSWORD = "password123"


@pytest.fixture(autouse=True)
def _isolate_runtime_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Clear local runtime env that can leak into tests on developer machines."""
    for key in (
        "DATABASE_URL",
        "JWT_SECRET",
        "STORAGE_BACKEND",
        "STORAGE_PATH",
        "RUN_MIGRATIONS",
        "DEFAULT_TIER_NAME",
    ):
        monkeypatch.delenv(key, raising=False)


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        database_url="sqlite://",
        jwt_secret=TEST_SECRET,
        storage_backend="memory",
        storage_path=str(tmp_path / "variables"),
        bcrypt_rounds=4,
        log_level="WARNING",
    )


@pytest.fixture
def issuer() -> CredentialIssuer:
    return CredentialIssuer(TEST_SECRET, bcrypt_rounds=4)


@pytest.fixture
def db_session() -> Iterator[Session]:
    engine = create_db_engine("sqlite://")
    Base.metadata.create_all(bind=engine)
    session = create_session_factory(engine)()
    TierService(session).seed_default_tiers()
    try:
        yield session
    finally:
        session.close()
        engine.dispose()


@pytest.fixture
def tiers(db_session: Session) -> TierService:
    return TierService(db_session)


@pytest.fixture
def users(db_session: Session, issuer: CredentialIssuer, tiers: TierService) -> UserService:
    return UserService(db_session, issuer, tiers)


@pytest.fixture
def blob_store() -> InMemoryBlobStore:
    return InMemoryBlobStore()


@pytest.fixture
def make_tenant(users: UserService, issuer: CredentialIssuer):
    """Register a user and return (user, verified claims)."""

    def _make(email: str) -> Tuple[User, TokenClaims]:
        user, token = users.register(email, PASSWORD)
        return user, issuer.verify_token(token)

    return _make


@pytest.fixture
def app(settings: Settings) -> FastAPI:
    return create_app(settings)


@pytest.fixture
def client(app: FastAPI) -> Iterator[TestClient]:
    with TestClient(app) as test_client:
        yield test_client


def auth_headers(token: str) -> Dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


def register(client: TestClient, email: str, password: str = PASSWORD) -> str:
    response = client.post("/auth/register", json={"email": email, "password": password})
    assert response.status_code == 201, response.text
    return response.json()["token"]


def login(client: TestClient, email: str, password: str = PASSWORD) -> str:
    response = client.post("/auth/login", json={"email": email, "password": password})
    assert response.status_code == 200, response.text
    return response.json()["token"]


def make_admin(client: TestClient, app: FastAPI, email: str = "admin@example.com") -> str:
    """Register, grant admin directly in the database, and return a token carrying the admin role."""
    register(client, email)
    db = app.state.session_factory()
    try:
        user = db.query(User).filter(User.email == email).one()
        user.role = "admin"
        db.commit()
    finally:
        db.close()
    return login(client, email)


def set_user_tier(app: FastAPI, email: str, **limits) -> int:
    """Move a user onto a fresh paid tier with the given limits; returns the tier id."""
    db = app.state.session_factory()
    try:
        values = {
            "max_variables": 10,
            "max_variable_size_mb": 1,
            "max_requests_per_day": 1000,
            "max_api_keys": 2,
        }
        values.update(limits)
        tier = Tier(name=f"custom-{email}", price_monthly=100, **values)
        db.add(tier)
        db.flush()
        user = db.query(User).filter(User.email == email).one()
        user.tier_id = tier.id
        db.commit()
        return tier.id
    finally:
        db.close()


@pytest.fixture
def admin_token(client: TestClient, app: FastAPI) -> str:
    return make_admin(client, app)
