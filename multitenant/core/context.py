"""Authenticated identity passed explicitly into every service call."""
from multitenant.models.tenant import Tenant
from multitenant.models.user import User, UserRole


class Principal:
    """
    Resolved identity for one request: the user, their tenant and role.

    Built only by the authorization pipeline after every check passed.
    The tenant_id exposed here is the single source of truth for query
    scoping; client-supplied tenant ids are never consulted.
    """

    __slots__ = ("user", "tenant")

    def __init__(self, user: User, tenant: Tenant) -> None:
        self.user = user
        self.tenant = tenant

    @property
    def user_id(self) -> str:
        return self.user.id

    @property
    def tenant_id(self) -> str:
        return self.tenant.id

    @property
    def role(self) -> UserRole:
        return UserRole(self.user.role)

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    def __repr__(self) -> str:
        return f"<Principal user={self.user_id} tenant={self.tenant_id} role={self.role.value}>"
