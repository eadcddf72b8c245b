"""
Authentication Endpoints

Registration (tenant + first admin), login scoped to a tenant subdomain,
current-principal lookup and token refresh.
"""
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from multitenant.api.deps import get_password_hasher, get_principal, get_token_service
from multitenant.core.context import Principal
from multitenant.core.security import PasswordHasher, TokenService
from multitenant.database import get_db
from multitenant.schemas.auth import (
    AuthResponse,
    LoginRequest,
    MeResponse,
    RegisterRequest,
    TokenResponse,
)
from multitenant.schemas.tenant import TenantSummary
from multitenant.schemas.user import UserResponse
from multitenant.services import auth_service


router = APIRouter(prefix="/auth", tags=["authentication"])


def _auth_response(message: str, result: auth_service.AuthResult) -> AuthResponse:
    return AuthResponse(
        message=message,
        user=UserResponse.model_validate(result.user),
        tenant=TenantSummary.model_validate(result.tenant),
        token=result.token,
    )


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
def register(
    registration: RegisterRequest,
    db: Session = Depends(get_db),
    passwords: PasswordHasher = Depends(get_password_hasher),
    tokens: TokenService = Depends(get_token_service),
):
    """
    Register a new tenant together with its first admin user.

    Public endpoint. The subdomain must be unused (case-insensitive);
    tenant and admin are created atomically.
    """
    result = auth_service.register(db, registration, passwords, tokens)
    return _auth_response("Tenant and admin user created successfully", result)


@router.post("/login", response_model=AuthResponse)
def login(
    credentials: LoginRequest,
    db: Session = Depends(get_db),
    passwords: PasswordHasher = Depends(get_password_hasher),
    tokens: TokenService = Depends(get_token_service),
):
    """
    Authenticate user and return JWT token.

    SECURITY: Login is scoped to the tenant named by the subdomain. Unknown
    email, wrong password and deactivated account all return the same 401.
    """
    result = auth_service.login(db, credentials, passwords, tokens)
    return _auth_response("Login successful", result)


@router.get("/me", response_model=MeResponse)
def me(principal: Principal = Depends(get_principal)):
    """Current user and tenant."""
    return MeResponse(
        user=UserResponse.model_validate(principal.user),
        tenant=TenantSummary.model_validate(principal.tenant),
    )


@router.post("/refresh", response_model=TokenResponse)
def refresh(
    principal: Principal = Depends(get_principal),
    tokens: TokenService = Depends(get_token_service),
):
    return TokenResponse(
        message="Token refreshed successfully",
        token=auth_service.refresh(principal, tokens),
    )
