"""Tests for registration, login, me, refresh and the authorization pipeline."""

from datetime import timedelta

from conftest import TEST_PASSWORD, bearer

from multitenant.models import Tenant, User
from multitenant.services import auth_service


def test_register_creates_tenant_and_admin(client, register_tenant):
    data = register_tenant("acme")

    assert data["message"] == "Tenant and admin user created successfully"
    assert data["user"]["email"] == "admin@acme.com"
    assert data["user"]["role"] == "ADMIN"
    assert data["user"]["tenantId"] == data["tenant"]["id"]
    assert data["tenant"]["subdomain"] == "acme"
    assert "passwordHash" not in data["user"]
    assert "password" not in data["user"]

    resp = client.get("/api/auth/me", headers=data["headers"])
    assert resp.status_code == 200


def test_register_normalizes_case(client):
    resp = client.post("/api/auth/register", json={
        "email": "Boss@Initech.COM",
        "password": TEST_PASSWORD,
        "firstName": "Bill",
        "lastName": "Lumbergh",
        "tenantName": "Initech",
        "subdomain": "InitECH",
    })

    assert resp.status_code == 201
    assert resp.json()["tenant"]["subdomain"] == "initech"
    assert resp.json()["user"]["email"] == "boss@initech.com"


def test_register_duplicate_subdomain_is_case_insensitive(client, register_tenant):
    register_tenant("acme")

    resp = client.post("/api/auth/register", json={
        "email": "other@acme.com",
        "password": TEST_PASSWORD,
        "firstName": "Other",
        "lastName": "Person",
        "tenantName": "Other Acme",
        "subdomain": "ACME",
    })

    assert resp.status_code == 409
    assert resp.json()["code"] == "SUBDOMAIN_EXISTS"


def test_register_validation_error(client):
    resp = client.post("/api/auth/register", json={
        "email": "not-an-email",
        "password": "short",
        "firstName": "A",
        "lastName": "Person",
        "tenantName": "Bad",
        "subdomain": "bad_sub",
    })

    assert resp.status_code == 400
    body = resp.json()
    assert body["code"] == "VALIDATION_ERROR"
    assert body["error"] == "Validation failed"
    fields = {detail["field"] for detail in body["details"]}
    assert {"email", "password", "firstName", "subdomain"} <= fields


def test_login_success_updates_last_login(client, register_tenant, login):
    register_tenant("acme")

    resp = login("acme", "admin@acme.com")

    assert resp.status_code == 200
    data = resp.json()
    assert data["message"] == "Login successful"
    assert data["user"]["lastLoginAt"] is not None
    assert data["tenant"]["subdomain"] == "acme"
    assert data["token"].count(".") == 2


def test_login_subdomain_is_case_insensitive(register_tenant, login):
    register_tenant("acme")

    assert login("ACME", "ADMIN@acme.com").status_code == 200


def test_wrong_password_and_unknown_email_are_indistinguishable(register_tenant, login):
    register_tenant("acme")

    wrong_password = login("acme", "admin@acme.com", password="wrongpassword")
    unknown_email = login("acme", "nobody@acme.com")

    assert wrong_password.status_code == unknown_email.status_code == 401
    assert wrong_password.json() == unknown_email.json()
    assert wrong_password.json()["code"] == "INVALID_CREDENTIALS"


def test_login_is_scoped_to_tenant(register_tenant, login):
    register_tenant("acme")
    register_tenant("globex")

    resp = login("globex", "admin@acme.com")

    assert resp.status_code == 401


def test_login_unknown_tenant(login):
    resp = login("nowhere", "admin@nowhere.com")

    assert resp.status_code == 404
    assert resp.json()["code"] == "TENANT_NOT_FOUND"


def test_inactive_tenant_blocks_login_and_existing_tokens(client, register_tenant, login):
    acme = register_tenant("acme")
    globex = register_tenant("globex")

    resp = client.delete(f"/api/tenants/{acme['tenant']['id']}", headers=globex["headers"])
    assert resp.status_code == 200

    resp = login("acme", "admin@acme.com")
    assert resp.status_code == 403
    assert resp.json()["code"] == "TENANT_INACTIVE"

    resp = client.get("/api/auth/me", headers=acme["headers"])
    assert resp.status_code == 403
    assert resp.json()["code"] == "TENANT_INACTIVE"


def test_me_returns_principal(client, register_tenant):
    data = register_tenant("acme")

    resp = client.get("/api/auth/me", headers=data["headers"])

    assert resp.status_code == 200
    assert resp.json()["user"]["id"] == data["user"]["id"]
    assert resp.json()["tenant"]["id"] == data["tenant"]["id"]


def test_missing_token(client):
    resp = client.get("/api/auth/me")

    assert resp.status_code == 401
    assert resp.json()["code"] == "TOKEN_MISSING"
    assert resp.headers["WWW-Authenticate"] == "Bearer"


def test_non_bearer_scheme_counts_as_missing(client):
    resp = client.get("/api/auth/me", headers={"Authorization": "Basic dXNlcjpwYXNz"})

    assert resp.status_code == 401
    assert resp.json()["code"] == "TOKEN_MISSING"


def test_malformed_token(client):
    resp = client.get("/api/auth/me", headers=bearer("garbage"))

    assert resp.status_code == 401
    assert resp.json()["code"] == "TOKEN_INVALID"


def test_expired_token(client, app, register_tenant):
    data = register_tenant("acme")
    token = app.state.tokens.issue(
        data["user"]["id"], data["tenant"]["id"], "ADMIN", expires_delta=timedelta(seconds=-5)
    )

    resp = client.get("/api/auth/me", headers=bearer(token))

    assert resp.status_code == 401
    assert resp.json()["code"] == "TOKEN_EXPIRED"


def test_token_with_foreign_tenant_claim_is_invalid(client, app, register_tenant):
    acme = register_tenant("acme")
    globex = register_tenant("globex")
    forged = app.state.tokens.issue(acme["user"]["id"], globex["tenant"]["id"], "ADMIN")

    resp = client.get("/api/users", headers=bearer(forged))

    assert resp.status_code == 401
    assert resp.json()["code"] == "TOKEN_INVALID"


def test_role_comes_from_stored_user_not_token(client, app, register_tenant, create_user):
    acme = register_tenant("acme")
    viewer, _ = create_user(acme["headers"], "acme", "viewer@acme.com", role="VIEWER")
    escalated = app.state.tokens.issue(viewer["id"], acme["tenant"]["id"], "ADMIN")

    resp = client.get("/api/users", headers=bearer(escalated))

    assert resp.status_code == 403
    assert resp.json()["current"] == "VIEWER"


def test_refresh_issues_working_token(client, register_tenant):
    data = register_tenant("acme")

    resp = client.post("/api/auth/refresh", headers=data["headers"])

    assert resp.status_code == 200
    assert resp.json()["message"] == "Token refreshed successfully"
    me = client.get("/api/auth/me", headers=bearer(resp.json()["token"]))
    assert me.status_code == 200


def test_deactivated_user_cannot_login_and_token_stops_working(client, register_tenant, create_user, login):
    acme = register_tenant("acme")
    user, user_headers = create_user(acme["headers"], "acme", "worker@acme.com")

    resp = client.delete(f"/api/users/{user['id']}", headers=acme["headers"])
    assert resp.status_code == 200

    resp = login("acme", "worker@acme.com")
    assert resp.status_code == 401
    assert resp.json()["code"] == "INVALID_CREDENTIALS"

    resp = client.get("/api/auth/me", headers=user_headers)
    assert resp.status_code == 401
    assert resp.json()["code"] == "USER_NOT_FOUND"


def test_register_race_rolls_back_both_rows(client, database, register_tenant, monkeypatch):
    register_tenant("acme")
    # A concurrent registration that passed the pre-check before "acme" existed
    monkeypatch.setattr(auth_service, "find_by_subdomain", lambda db, subdomain: None)

    resp = client.post("/api/auth/register", json={
        "email": "late@acme.com",
        "password": TEST_PASSWORD,
        "firstName": "Late",
        "lastName": "Comer",
        "tenantName": "Acme Again",
        "subdomain": "acme",
    })

    assert resp.status_code == 409
    assert resp.json()["code"] == "SUBDOMAIN_EXISTS"
    with database.session() as db:
        assert db.query(Tenant).count() == 1
        assert db.query(User).count() == 1
        assert db.query(User).filter(User.email == "late@acme.com").first() is None
