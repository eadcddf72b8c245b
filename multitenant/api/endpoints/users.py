"""
User Management Endpoints

CRUD operations for users within a tenant.
All operations are scoped to the principal's tenant.

RBAC:
- List users: Admin only
- Get user: Admin, or self
- Create user: Admin only
- Update user: Admin, or self (names and email only)
- Delete user: Admin only, never self (soft delete)
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from multitenant.api.deps import get_password_hasher, list_params, require
from multitenant.core.context import Principal
from multitenant.core.permissions import Operation
from multitenant.core.security import PasswordHasher
from multitenant.database import get_db
from multitenant.models.user import UserRole
from multitenant.schemas.common import ListParams, MessageResponse, Pagination
from multitenant.schemas.user import (
    UserCreate,
    UserEnvelope,
    UserListResponse,
    UserMutationResponse,
    UserResponse,
    UserUpdate,
)
from multitenant.services import user_service

router = APIRouter(prefix="/users", tags=["users"])


@router.get("", response_model=UserListResponse)
def list_users(
    params: ListParams = Depends(list_params),
    role: Optional[UserRole] = Query(None),
    principal: Principal = Depends(require(Operation.USERS_LIST)),
    db: Session = Depends(get_db),
):
    """
    List users in the current tenant.

    Supports search over first name, last name and email, plus role and
    isActive filters.
    """
    page = user_service.list_users(db, principal, params, role=role)
    return UserListResponse(
        users=[UserResponse.model_validate(user) for user in page.items],
        pagination=Pagination.build(page),
    )


@router.post("", response_model=UserMutationResponse, status_code=status.HTTP_201_CREATED)
def create_user(
    user_data: UserCreate,
    principal: Principal = Depends(require(Operation.USERS_CREATE)),
    db: Session = Depends(get_db),
    passwords: PasswordHasher = Depends(get_password_hasher),
):
    user = user_service.create_user(db, principal, user_data, passwords)
    return UserMutationResponse(
        message="User created successfully",
        user=UserResponse.model_validate(user),
    )


@router.get("/{user_id}", response_model=UserEnvelope)
def get_user(
    user_id: str,
    principal: Principal = Depends(require(Operation.USERS_READ)),
    db: Session = Depends(get_db),
):
    user = user_service.get_user(db, principal, user_id)
    return UserEnvelope(user=UserResponse.model_validate(user))


@router.put("/{user_id}", response_model=UserMutationResponse)
def update_user(
    user_id: str,
    user_data: UserUpdate,
    principal: Principal = Depends(require(Operation.USERS_UPDATE)),
    db: Session = Depends(get_db),
):
    """
    Update user information.

    Role and isActive are ignored unless the caller is an admin.
    """
    user = user_service.update_user(db, principal, user_id, user_data)
    return UserMutationResponse(
        message="User updated successfully",
        user=UserResponse.model_validate(user),
    )


@router.delete("/{user_id}", response_model=MessageResponse)
def delete_user(
    user_id: str,
    principal: Principal = Depends(require(Operation.USERS_DELETE)),
    db: Session = Depends(get_db),
):
    user_service.delete_user(db, principal, user_id)
    return MessageResponse(message="User deleted successfully")
