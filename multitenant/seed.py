"""
Demo data seeding.

Creates a "demo" tenant with an admin, a regular user and a few projects,
going through the same services the API uses. Safe to run repeatedly: if
the demo tenant exists nothing is written.

Usage:
    python -m multitenant.seed
    multitenant-seed
"""
from typing import Optional

from sqlalchemy.orm import Session

from multitenant.config import Settings, get_settings
from multitenant.core.context import Principal
from multitenant.core.exceptions import ConflictError
from multitenant.core.security import PasswordHasher, TokenService
from multitenant.database import Database, commit_or_raise
from multitenant.models.user import UserRole
from multitenant.schemas.auth import RegisterRequest
from multitenant.schemas.project import ProjectCreate
from multitenant.schemas.user import UserCreate
from multitenant.services import auth_service, project_service, user_service
from multitenant.services.tenant_resolver import find_by_domain, find_by_subdomain
from multitenant.utils.logging import get_logger, setup_logging

logger = get_logger(__name__)

DEMO_SUBDOMAIN = "demo"
DEMO_DOMAIN = "demo.example.com"

DEMO_ADMIN = {
    "email": "admin@demo.com",
    "password": "admin123456",
    "first_name": "Admin",
    "last_name": "User",
}

DEMO_USER = {
    "email": "user@demo.com",
    "password": "user123456",
    "first_name": "Regular",
    "last_name": "User",
}

DEMO_PROJECTS = (
    ("Website Redesign", "Complete redesign of the company website"),
    ("Mobile App", "Native mobile application for iOS and Android"),
    ("API Integration", "Integration with third-party APIs"),
)


def seed(db: Session, passwords: PasswordHasher, tokens: TokenService) -> Optional[Principal]:
    """
    Seed demo data.

    Returns the admin principal, or None when the demo tenant already exists.
    """
    if find_by_subdomain(db, DEMO_SUBDOMAIN) is not None:
        logger.info("Demo tenant already exists, skipping seed")
        return None
    if find_by_domain(db, DEMO_DOMAIN) is not None:
        # Checked before anything is written so a failed seed can be rerun
        raise ConflictError(f"Domain {DEMO_DOMAIN} already belongs to another tenant", code="DOMAIN_EXISTS")

    registration = RegisterRequest(
        tenant_name="Demo Company",
        subdomain=DEMO_SUBDOMAIN,
        **DEMO_ADMIN,
    )
    result = auth_service.register(db, registration, passwords, tokens)

    result.tenant.domain = DEMO_DOMAIN
    commit_or_raise(db, context="seed tenant domain")

    admin = Principal(user=result.user, tenant=result.tenant)
    user_service.create_user(db, admin, UserCreate(role=UserRole.USER, **DEMO_USER), passwords)

    for name, description in DEMO_PROJECTS:
        project_service.create_project(db, admin, ProjectCreate(name=name, description=description))

    logger.info(f"Seeded demo tenant {result.tenant.id} ({DEMO_SUBDOMAIN})")
    return admin


def main(settings: Optional[Settings] = None) -> None:
    settings = settings or get_settings()
    setup_logging(log_level=settings.LOG_LEVEL)

    database = Database(
        settings.DATABASE_URL,
        echo=settings.DEBUG,
        connect_timeout=settings.DATABASE_CONNECT_TIMEOUT,
    )
    database.create_all()

    passwords = PasswordHasher(rounds=settings.BCRYPT_ROUNDS)
    tokens = TokenService(settings.JWT_SECRET, settings.JWT_ALGORITHM, settings.JWT_EXPIRE_MINUTES)

    try:
        with database.session() as db:
            admin = seed(db, passwords, tokens)
    finally:
        database.dispose()

    # Console output, not logs: passwords never go through logging
    if admin is not None:
        print("Demo credentials (subdomain: demo):")
        print(f"  Admin: {DEMO_ADMIN['email']} / {DEMO_ADMIN['password']}")
        print(f"  User:  {DEMO_USER['email']} / {DEMO_USER['password']}")


if __name__ == "__main__":
    main()
