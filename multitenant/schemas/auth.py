"""
Authentication Schemas

Request/response models for authentication endpoints.
"""
from pydantic import EmailStr, Field, field_validator

from multitenant.schemas.common import APIModel, normalize_lower
from multitenant.schemas.tenant import SUBDOMAIN_PATTERN, TenantSummary
from multitenant.schemas.user import UserResponse


class RegisterRequest(APIModel):
    """Creates a tenant together with its first admin."""
    email: EmailStr
    password: str = Field(..., min_length=8, max_length=128)
    first_name: str = Field(..., min_length=2, max_length=100)
    last_name: str = Field(..., min_length=2, max_length=100)
    tenant_name: str = Field(..., min_length=2, max_length=100)
    subdomain: str = Field(..., min_length=3, max_length=50, pattern=SUBDOMAIN_PATTERN)

    model_config = {
        "json_schema_extra": {
            "example": {
                "email": "admin@acme.com",
                "password": "securepassword123",
                "firstName": "Jane",
                "lastName": "Doe",
                "tenantName": "Acme Corp",
                "subdomain": "acme",
            }
        }
    }

    @field_validator("email", "subdomain", mode="before")
    @classmethod
    def lowercase_fields(cls, value):
        return normalize_lower(value)


class LoginRequest(APIModel):
    """Login request body; the subdomain picks the tenant."""
    email: EmailStr
    password: str = Field(..., min_length=1)
    subdomain: str = Field(..., min_length=1, max_length=50)

    @field_validator("email", "subdomain", mode="before")
    @classmethod
    def lowercase_fields(cls, value):
        return normalize_lower(value)


class AuthResponse(APIModel):
    message: str
    user: UserResponse
    tenant: TenantSummary
    token: str


class MeResponse(APIModel):
    user: UserResponse
    tenant: TenantSummary


class TokenResponse(APIModel):
    message: str
    token: str
