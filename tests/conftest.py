"""Shared test fixtures: in-memory SQLite database, isolated app and test client."""

import pytest
from fastapi.testclient import TestClient

from multitenant.config import Settings
from multitenant.database import Database
from multitenant.main import create_app

TEST_PASSWORD = "testpass123"


@pytest.fixture
def settings():
    return Settings(
        DATABASE_URL="sqlite://",
        ENVIRONMENT="test",
        JWT_SECRET="test-secret",
        BCRYPT_ROUNDS=4,
        RATE_LIMIT_ENABLED=False,
        LOG_LEVEL="WARNING",
    )


@pytest.fixture
def database(settings):
    db = Database(settings.DATABASE_URL)
    db.create_all()
    yield db
    db.drop_all()
    db.dispose()


@pytest.fixture
def db_session(database):
    with database.session() as session:
        yield session


@pytest.fixture
def app(settings, database):
    return create_app(settings, database)


@pytest.fixture
def client(app):
    # Context manager so the lifespan runs
    with TestClient(app) as test_client:
        yield test_client


def bearer(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def register_tenant(client):
    """Helper: register a tenant + admin and return the response body plus headers."""

    def _register(subdomain: str = "acme", email: str = None, password: str = TEST_PASSWORD):
        resp = client.post("/api/auth/register", json={
            "email": email or f"admin@{subdomain}.com",
            "password": password,
            "firstName": "Ada",
            "lastName": "Admin",
            "tenantName": f"{subdomain.title()} Corp",
            "subdomain": subdomain,
        })
        assert resp.status_code == 201, resp.text
        data = resp.json()
        data["headers"] = bearer(data["token"])
        return data

    return _register


@pytest.fixture
def login(client):
    """Helper: POST /api/auth/login and return the raw response."""

    def _login(subdomain: str, email: str, password: str = TEST_PASSWORD):
        return client.post("/api/auth/login", json={
            "email": email,
            "password": password,
            "subdomain": subdomain,
        })

    return _login


@pytest.fixture
def create_user(client, login):
    """Helper: admin creates a user; returns (user body, headers for that user)."""

    def _create(admin_headers: dict, subdomain: str, email: str, role: str = "USER"):
        resp = client.post("/api/users", headers=admin_headers, json={
            "email": email,
            "password": TEST_PASSWORD,
            "firstName": "Test",
            "lastName": role.title(),
            "role": role,
        })
        assert resp.status_code == 201, resp.text
        user = resp.json()["user"]

        resp = login(subdomain, email)
        assert resp.status_code == 200, resp.text
        return user, bearer(resp.json()["token"])

    return _create
