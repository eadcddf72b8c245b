"""
Permission System (RBAC)

Roles are not ranked. Every operation declares the exact set of roles
allowed to perform it, in one table, and the authorization pipeline
consults that table for every protected route.

Ownership rules (self vs. others, own tenant vs. other tenants) sit on
top of the role check and live in the can_* helpers below.

Known limitation: TENANTS_DELETE checks only the ADMIN role, so the admin
of any tenant can deactivate every other tenant (never their own). There
is no platform-level role to reserve it for.
"""
import enum
from typing import Dict, FrozenSet, Optional

from multitenant.core.context import Principal
from multitenant.core.exceptions import PermissionDenied
from multitenant.models.user import UserRole


class Operation(str, enum.Enum):
    TENANTS_LIST = "tenants:list"
    TENANTS_READ = "tenants:read"
    TENANTS_UPDATE = "tenants:update"
    TENANTS_DELETE = "tenants:delete"

    USERS_LIST = "users:list"
    USERS_CREATE = "users:create"
    USERS_READ = "users:read"
    USERS_UPDATE = "users:update"
    USERS_DELETE = "users:delete"

    PROJECTS_LIST = "projects:list"
    PROJECTS_CREATE = "projects:create"
    PROJECTS_READ = "projects:read"
    PROJECTS_UPDATE = "projects:update"
    PROJECTS_DELETE = "projects:delete"


ALL_ROLES: FrozenSet[UserRole] = frozenset(UserRole)
ADMIN_ONLY: FrozenSet[UserRole] = frozenset({UserRole.ADMIN})
WRITERS: FrozenSet[UserRole] = frozenset({UserRole.ADMIN, UserRole.USER})

POLICY: Dict[Operation, FrozenSet[UserRole]] = {
    # GET /api/tenants is open to every authenticated user; there is no
    # super-admin role to restrict it to.
    Operation.TENANTS_LIST: ALL_ROLES,
    Operation.TENANTS_READ: ALL_ROLES,
    Operation.TENANTS_UPDATE: ADMIN_ONLY,
    Operation.TENANTS_DELETE: ADMIN_ONLY,  # any tenant's admin, see module docstring

    Operation.USERS_LIST: ADMIN_ONLY,
    Operation.USERS_CREATE: ADMIN_ONLY,
    Operation.USERS_READ: ALL_ROLES,
    Operation.USERS_UPDATE: ALL_ROLES,
    Operation.USERS_DELETE: ADMIN_ONLY,

    Operation.PROJECTS_LIST: ALL_ROLES,
    Operation.PROJECTS_CREATE: WRITERS,
    Operation.PROJECTS_READ: ALL_ROLES,
    Operation.PROJECTS_UPDATE: WRITERS,
    Operation.PROJECTS_DELETE: ADMIN_ONLY,
}


def allowed_roles(operation: Operation) -> FrozenSet[UserRole]:
    # Unknown operations allow nobody
    return POLICY.get(operation, frozenset())


def is_allowed(principal: Principal, operation: Operation) -> bool:
    return principal.role in allowed_roles(operation)


def authorize(principal: Principal, operation: Operation) -> None:
    """
    Role gate for an operation.

    Raises PermissionDenied if the principal's role is not in the
    operation's allow-set.
    """
    if not is_allowed(principal, operation):
        raise PermissionDenied(
            extra={
                "required": sorted(role.value for role in allowed_roles(operation)),
                "current": principal.role.value,
            }
        )


def can_access_user(principal: Principal, target_user_id: str) -> bool:
    """
    Check if principal can read or update the target user.

    Rules:
    - Admins can access anyone in their tenant
    - Users can access themselves
    - No cross-tenant access (enforced by the scoped repository)
    """
    return principal.is_admin or principal.user_id == target_user_id


def can_modify_project(principal: Principal, project_owner_id: Optional[str]) -> bool:
    """Owner or admin; viewers are already stopped by the role gate."""
    if principal.is_admin:
        return True
    return principal.user_id == project_owner_id


def can_access_tenant(principal: Principal, tenant_id: str) -> bool:
    """A principal only ever sees the tenant it belongs to."""
    return principal.tenant_id == tenant_id
