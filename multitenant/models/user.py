"""
User Model

Users belong to a tenant and have role-based access control.

IMPORTANT: tenant_id is the critical field for data isolation.
Every query MUST filter by tenant_id to prevent cross-tenant data leaks;
see services/repository.py.
"""
import enum

from sqlalchemy import Boolean, Column, DateTime, Enum as SQLEnum, ForeignKey, Index, String, UniqueConstraint
from sqlalchemy.orm import relationship

from multitenant.database import Base
from multitenant.models.base import new_id, utcnow


class UserRole(str, enum.Enum):
    """
    User roles for RBAC.

    ADMIN: Full CRUD inside the tenant, including user management and deletes
    USER: Can create projects and update their own
    VIEWER: Read-only access to tenant resources

    Roles are not ranked; each operation lists the roles it allows
    (see core/permissions.py).
    """
    ADMIN = "ADMIN"
    USER = "USER"
    VIEWER = "VIEWER"


class User(Base):
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=new_id)

    # Owning tenant, set once at creation
    tenant_id = Column(
        String(36),
        ForeignKey("tenants.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    # Stored lowercase; unique per tenant only
    email = Column(String(255), nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)

    role = Column(
        SQLEnum(UserRole, name="user_role"),
        default=UserRole.USER,
        nullable=False,
        index=True
    )

    # Soft delete flag
    is_active = Column(Boolean, default=True, nullable=False, index=True)

    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)
    last_login_at = Column(DateTime, nullable=True)

    tenant = relationship("Tenant", back_populates="users")
    projects = relationship("Project", back_populates="user", cascade="all, delete-orphan", passive_deletes=True)

    __table_args__ = (
        # Same email may exist under different tenants as distinct accounts
        UniqueConstraint("email", "tenant_id", name="uq_users_email_tenant"),
        Index("idx_user_tenant_active", "tenant_id", "is_active"),
        Index("idx_user_tenant_role", "tenant_id", "role"),
    )

    def __repr__(self):
        return f"<User {self.email} (tenant={self.tenant_id})>"
