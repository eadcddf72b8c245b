"""
Authentication Service

Registration, login and token refresh. All functions take the session,
password hasher and token service explicitly.

SECURITY: Once the tenant is resolved, every login failure produces the
same InvalidCredentialsError so callers cannot probe which emails exist.
Tenant-not-found and tenant-inactive stay distinct; subdomains are public.
"""
from typing import NamedTuple

from sqlalchemy.orm import Session

from multitenant.core.context import Principal
from multitenant.core.exceptions import ConflictError, InvalidCredentialsError
from multitenant.core.security import PasswordHasher, TokenService
from multitenant.database import commit_or_raise
from multitenant.models.base import new_id, utcnow
from multitenant.models.tenant import Tenant
from multitenant.models.user import User, UserRole
from multitenant.schemas.auth import LoginRequest, RegisterRequest
from multitenant.services.repository import UserRepository
from multitenant.services.tenant_resolver import (
    find_by_subdomain,
    normalize_subdomain,
    resolve_by_subdomain,
)
from multitenant.utils.logging import get_logger, log_security_event

logger = get_logger(__name__)


class AuthResult(NamedTuple):
    user: User
    tenant: Tenant
    token: str


def issue_token(tokens: TokenService, user: User) -> str:
    return tokens.issue(user.id, user.tenant_id, UserRole(user.role).value)


def register(
    db: Session,
    registration: RegisterRequest,
    passwords: PasswordHasher,
    tokens: TokenService,
) -> AuthResult:
    """
    Create a tenant and its first admin as one unit of work.

    Both rows are staged in the same session and committed once; if the
    commit fails (including a concurrent registration grabbing the same
    subdomain) nothing is persisted.
    """
    subdomain = normalize_subdomain(registration.subdomain)

    # Fast path for the common case; the unique constraint still decides races
    if find_by_subdomain(db, subdomain) is not None:
        raise ConflictError("Subdomain already exists", code="SUBDOMAIN_EXISTS")

    password_hash = passwords.hash(registration.password)

    # id assigned up front so the admin row can reference it before flush
    tenant = Tenant(id=new_id(), name=registration.tenant_name, subdomain=subdomain)
    db.add(tenant)

    admin = _build_admin(db, tenant, registration, password_hash)

    commit_or_raise(db, context="registration")
    db.refresh(tenant)
    db.refresh(admin)

    logger.info(f"Tenant registered: {tenant.id} ({tenant.subdomain}) admin={admin.id}")

    return AuthResult(user=admin, tenant=tenant, token=issue_token(tokens, admin))


def _build_admin(db: Session, tenant: Tenant, registration: RegisterRequest, password_hash: str) -> User:
    users = UserRepository(db, tenant.id)
    return users.add(
        email=registration.email.lower(),
        password_hash=password_hash,
        first_name=registration.first_name,
        last_name=registration.last_name,
        role=UserRole.ADMIN,
        is_active=True,
    )


def login(
    db: Session,
    credentials: LoginRequest,
    passwords: PasswordHasher,
    tokens: TokenService,
) -> AuthResult:
    """
    Authenticate against one tenant and issue a token.

    Process:
    1. Resolve tenant by subdomain (404 / 403 if missing or inactive)
    2. Find the user by email inside that tenant
    3. Verify password
    4. Stamp last_login_at and issue the token
    """
    tenant = resolve_by_subdomain(db, credentials.subdomain)

    user = UserRepository(db, tenant.id).get_by_email(credentials.email)

    if user is None:
        # Burn a hash check anyway so response timing does not reveal the miss
        passwords.dummy_verify()
        log_security_event(
            "failed_login",
            {"reason": "user_not_found", "email": credentials.email, "tenant_id": tenant.id},
            logger,
        )
        raise InvalidCredentialsError()

    if not passwords.verify(credentials.password, user.password_hash):
        log_security_event(
            "failed_login",
            {"reason": "invalid_password", "user_id": user.id, "tenant_id": tenant.id},
            logger,
        )
        raise InvalidCredentialsError()

    if not user.is_active:
        log_security_event(
            "failed_login",
            {"reason": "user_inactive", "user_id": user.id, "tenant_id": tenant.id},
            logger,
        )
        raise InvalidCredentialsError()

    user.last_login_at = utcnow()
    commit_or_raise(db, context="login")

    logger.info(f"Successful login: user={user.id}, tenant={tenant.id}")

    return AuthResult(user=user, tenant=tenant, token=issue_token(tokens, user))


def refresh(principal: Principal, tokens: TokenService) -> str:
    """Issue a fresh token for an already authenticated principal."""
    return issue_token(tokens, principal.user)
