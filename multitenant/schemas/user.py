"""
User Schemas

Request/response models for user operations.
The password hash never appears in any response model.
"""
from datetime import datetime
from typing import List, Optional

from pydantic import EmailStr, Field, field_validator

from multitenant.models.user import UserRole
from multitenant.schemas.common import APIModel, Pagination, normalize_lower


class UserCreate(APIModel):
    """Schema for creating a new user inside the caller's tenant."""
    email: EmailStr
    password: str = Field(..., min_length=8, max_length=128)
    first_name: str = Field(..., min_length=2, max_length=100)
    last_name: str = Field(..., min_length=2, max_length=100)
    role: UserRole = UserRole.USER

    @field_validator("email", mode="before")
    @classmethod
    def lowercase_email(cls, value):
        return normalize_lower(value)


class UserUpdate(APIModel):
    """Schema for updating a user. All fields optional."""
    email: Optional[EmailStr] = None
    first_name: Optional[str] = Field(None, min_length=2, max_length=100)
    last_name: Optional[str] = Field(None, min_length=2, max_length=100)
    role: Optional[UserRole] = None
    is_active: Optional[bool] = None

    @field_validator("email", mode="before")
    @classmethod
    def lowercase_email(cls, value):
        return normalize_lower(value)


class UserResponse(APIModel):
    """User response schema (excludes sensitive data)."""
    id: str
    email: str
    first_name: str
    last_name: str
    role: UserRole
    is_active: bool
    tenant_id: str
    last_login_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime


class UserEnvelope(APIModel):
    user: UserResponse


class UserMutationResponse(APIModel):
    message: str
    user: UserResponse


class UserListResponse(APIModel):
    """Paginated list of users."""
    users: List[UserResponse]
    pagination: Pagination
