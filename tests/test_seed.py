"""Tests for demo data seeding."""

import pytest

from multitenant.core.exceptions import ConflictError
from multitenant.core.security import PasswordHasher, TokenService
from multitenant.models import Project, Tenant, User
from multitenant.seed import DEMO_DOMAIN, seed


def test_seed_creates_demo_tenant_once(db_session):
    passwords = PasswordHasher(rounds=4)
    tokens = TokenService("seed-secret")

    admin = seed(db_session, passwords, tokens)
    again = seed(db_session, passwords, tokens)

    assert admin is not None
    assert admin.is_admin
    assert again is None

    tenant = db_session.query(Tenant).filter(Tenant.subdomain == "demo").one()
    assert tenant.domain == DEMO_DOMAIN
    assert db_session.query(Tenant).count() == 1
    assert {user.email for user in db_session.query(User).all()} == {"admin@demo.com", "user@demo.com"}
    assert db_session.query(Project).filter(Project.tenant_id == tenant.id).count() == 3


def test_seed_writes_nothing_when_demo_domain_is_taken(db_session):
    db_session.add(Tenant(name="Squatter", subdomain="squatter", domain=DEMO_DOMAIN))
    db_session.commit()

    with pytest.raises(ConflictError) as exc_info:
        seed(db_session, PasswordHasher(rounds=4), TokenService("seed-secret"))

    assert exc_info.value.code == "DOMAIN_EXISTS"
    assert db_session.query(Tenant).filter(Tenant.subdomain == "demo").first() is None
    assert db_session.query(User).count() == 0


def test_seeded_admin_can_log_in(client, database, app, login):
    with database.session() as db:
        seed(db, app.state.passwords, app.state.tokens)

    resp = login("demo", "admin@demo.com", password="admin123456")

    assert resp.status_code == 200
    assert resp.json()["user"]["role"] == "ADMIN"
