"""
Authorization Pipeline

Every protected request goes through the same sequence:

    bearer token -> verify -> load active user -> load active tenant -> Principal

and, per route, a role gate from core/permissions.py. Any step can end
the request with a typed denial. The pipeline only reads; last_login_at
is written by the login operation alone.
"""
from typing import Optional

from sqlalchemy.orm import Session

from multitenant.core.context import Principal
from multitenant.core.exceptions import (
    InactiveUserError,
    TenantInactiveError,
    TokenInvalidError,
    TokenMissingError,
)
from multitenant.core.security import TokenService
from multitenant.models.tenant import Tenant
from multitenant.models.user import User
from multitenant.utils.logging import get_logger, log_security_event

logger = get_logger(__name__)


def extract_bearer_token(authorization: Optional[str]) -> str:
    """Pull the token out of an 'Authorization: Bearer <token>' header."""
    if not authorization:
        raise TokenMissingError()

    scheme, _, token = authorization.strip().partition(" ")
    token = token.strip()
    if scheme.lower() != "bearer" or not token:
        raise TokenMissingError()
    return token


def authenticate(db: Session, tokens: TokenService, authorization: Optional[str]) -> Principal:
    """
    Run the pipeline up to the Authenticated state.

    Raises:
        TokenMissingError, TokenInvalidError, TokenExpiredError: token problems
        InactiveUserError: user missing or deactivated
        TenantInactiveError: the user's tenant is deactivated
    """
    token = extract_bearer_token(authorization)
    claims = tokens.verify(token)

    user = db.query(User).filter(User.id == claims.user_id).first()
    if user is None or not user.is_active:
        log_security_event(
            "auth_denied",
            {"reason": "user_not_found_or_inactive", "user_id": claims.user_id},
            logger,
        )
        raise InactiveUserError()

    # tenant_id is immutable on users, so a mismatch means a forged or
    # mis-issued token
    if user.tenant_id != claims.tenant_id:
        log_security_event(
            "tenant_isolation_violation",
            {"user_id": user.id, "token_tenant": claims.tenant_id, "user_tenant": user.tenant_id},
            logger,
        )
        raise TokenInvalidError()

    tenant = db.query(Tenant).filter(Tenant.id == user.tenant_id).first()
    if tenant is None or not tenant.is_active:
        log_security_event(
            "auth_denied",
            {"reason": "tenant_inactive", "tenant_id": user.tenant_id, "user_id": user.id},
            logger,
        )
        raise TenantInactiveError()

    return Principal(user=user, tenant=tenant)
