"""
User Service

CRUD for users inside the principal's tenant. Every lookup goes through
UserRepository, so ids of other tenants resolve to 404.

Rules on top of the role gate:
- Users can read and update themselves; admins can read and update anyone
- Non-admins cannot change role or active state, even their own
- Nobody deactivates or deletes their own account
"""
from typing import Optional

from sqlalchemy.orm import Session

from multitenant.core.context import Principal
from multitenant.core.exceptions import (
    ConflictError,
    InvalidInputError,
    PermissionDenied,
    UserNotFoundError,
)
from multitenant.core.permissions import can_access_user
from multitenant.core.security import PasswordHasher
from multitenant.database import commit_or_raise
from multitenant.models.user import User, UserRole
from multitenant.schemas.common import ListParams
from multitenant.schemas.user import UserCreate, UserUpdate
from multitenant.services.repository import Page, UserRepository
from multitenant.utils.logging import get_logger

logger = get_logger(__name__)

ADMIN_ONLY_FIELDS = ("role", "is_active")


def list_users(db: Session, principal: Principal, params: ListParams, role: Optional[UserRole] = None) -> Page:
    page = UserRepository.for_principal(db, principal).list(params, role=role)
    logger.debug(f"Listed {len(page.items)} users for tenant {principal.tenant_id}")
    return page


def create_user(db: Session, principal: Principal, data: UserCreate, passwords: PasswordHasher) -> User:
    """Create a user in the principal's tenant. Admin only (policy table)."""
    users = UserRepository.for_principal(db, principal)

    if users.get_by_email(data.email) is not None:
        raise ConflictError("User already exists in this tenant", code="EMAIL_EXISTS")

    user = users.add(
        email=data.email.lower(),
        password_hash=passwords.hash(data.password),
        first_name=data.first_name,
        last_name=data.last_name,
        role=data.role,
        is_active=True,
    )
    commit_or_raise(db, context="create user")
    db.refresh(user)

    logger.info(f"User created: {user.id} by {principal.user_id}")
    return user


def get_user(db: Session, principal: Principal, user_id: str) -> User:
    if not can_access_user(principal, user_id):
        raise PermissionDenied()

    user = UserRepository.for_principal(db, principal).get(user_id)
    if user is None:
        raise UserNotFoundError()
    return user


def update_user(db: Session, principal: Principal, user_id: str, data: UserUpdate) -> User:
    """
    Update user information.

    Permissions:
    - Admin: Can update any user in tenant
    - User/Viewer: Can update their own names and email only
    """
    if not can_access_user(principal, user_id):
        raise PermissionDenied()

    users = UserRepository.for_principal(db, principal)
    user = users.get(user_id)
    if user is None:
        raise UserNotFoundError()

    changes = data.model_dump(exclude_unset=True)

    if not principal.is_admin:
        for field in ADMIN_ONLY_FIELDS:
            changes.pop(field, None)

    # Explicit nulls on required columns mean "leave as is"
    changes = {field: value for field, value in changes.items() if value is not None}

    if user.id == principal.user_id and changes.get("is_active") is False:
        raise InvalidInputError("Cannot deactivate your own account", code="CANNOT_DEACTIVATE_SELF")

    if "email" in changes:
        changes["email"] = changes["email"].lower()
        if changes["email"] != user.email:
            existing = users.get_by_email(changes["email"])
            if existing is not None and existing.id != user.id:
                raise ConflictError("Email already exists in this tenant", code="EMAIL_EXISTS")

    users.update(user, changes)
    commit_or_raise(db, context="update user")
    db.refresh(user)

    logger.info(f"User updated: {user.id} by {principal.user_id}")
    return user


def delete_user(db: Session, principal: Principal, user_id: str) -> None:
    """
    Soft delete a user by setting is_active to false.

    The user's existing tokens stop working on their next request because
    the authorization pipeline requires an active user.
    """
    if user_id == principal.user_id:
        raise InvalidInputError("Cannot delete your own account", code="CANNOT_DELETE_SELF")

    users = UserRepository.for_principal(db, principal)
    user = users.get(user_id)
    if user is None:
        raise UserNotFoundError()

    users.update(user, {"is_active": False})
    commit_or_raise(db, context="delete user")

    logger.info(f"User deactivated: {user_id} by {principal.user_id}")
