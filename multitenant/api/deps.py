"""
API Dependencies

Reusable FastAPI dependencies for authentication and authorization.
These are used across all API endpoints to ensure consistent security.

PATTERN: get_principal runs the authorization pipeline once per request;
require(operation) stacks the role gate on top of it. Route handlers get
the resulting Principal as a parameter and hand it to the services.
"""
from typing import Callable, Optional

from fastapi import Depends, Query, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from multitenant.core.authorization import authenticate
from multitenant.core.context import Principal
from multitenant.core.permissions import Operation, authorize, is_allowed
from multitenant.core.security import PasswordHasher, TokenService
from multitenant.database import get_db
from multitenant.schemas.common import ListParams
from multitenant.utils.logging import get_logger, log_security_event

logger = get_logger(__name__)

# HTTP Bearer token scheme. auto_error is off so a missing header ends up
# as our TOKEN_MISSING error instead of FastAPI's generic 403.
security = HTTPBearer(auto_error=False)


def get_token_service(request: Request) -> TokenService:
    return request.app.state.tokens


def get_password_hasher(request: Request) -> PasswordHasher:
    return request.app.state.passwords


def get_principal(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db),
    tokens: TokenService = Depends(get_token_service),
) -> Principal:
    """
    Get the authenticated principal.

    This dependency:
    1. Validates the bearer token
    2. Loads the user and checks it is active
    3. Loads the user's tenant and checks it is active

    The ids are copied onto request.state for log context only; nothing
    reads them back for scoping.
    """
    authorization = f"{credentials.scheme} {credentials.credentials}" if credentials else None
    principal = authenticate(db, tokens, authorization)

    request.state.user_id = principal.user_id
    request.state.tenant_id = principal.tenant_id
    return principal


def require(operation: Operation) -> Callable[..., Principal]:
    """
    Dependency factory for the role gate.

    Usage:
        principal: Principal = Depends(require(Operation.PROJECTS_CREATE))
    """

    def dependency(request: Request, principal: Principal = Depends(get_principal)) -> Principal:
        if not is_allowed(principal, operation):
            log_security_event(
                "permission_denied",
                {
                    "user_id": principal.user_id,
                    "tenant_id": principal.tenant_id,
                    "role": principal.role.value,
                    "operation": operation.value,
                    "path": request.url.path,
                },
                logger,
            )
        authorize(principal, operation)
        return principal

    return dependency


def list_params(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    search: Optional[str] = Query(None, max_length=100),
    is_active: Optional[bool] = Query(None, alias="isActive"),
) -> ListParams:
    """Shared query parameters for list endpoints."""
    return ListParams(page=page, limit=limit, search=search, is_active=is_active)
