"""
Tenant Model

The tenant is the primary isolation boundary in our multi-tenant architecture.
Each tenant represents a separate organization whose users and projects are
partitioned from every other tenant.

We use a shared database and shared schema with a tenant_id column on every
tenant-owned table.
"""
from sqlalchemy import Boolean, Column, DateTime, Index, String, UniqueConstraint
from sqlalchemy.orm import relationship

from multitenant.database import Base
from multitenant.models.base import new_id, utcnow


class Tenant(Base):
    __tablename__ = "tenants"

    # UUIDs avoid enumeration of tenant ids
    id = Column(String(36), primary_key=True, default=new_id)

    name = Column(String(100), nullable=False)

    # Public login routing key, always stored lowercase
    subdomain = Column(String(50), nullable=False)

    # Optional custom domain, lowercase, unique when present
    domain = Column(String(255), nullable=True)

    # Soft delete flag; tenants are never removed through the API
    is_active = Column(Boolean, default=True, nullable=False, index=True)

    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    users = relationship("User", back_populates="tenant", cascade="all, delete-orphan", passive_deletes=True)
    projects = relationship("Project", back_populates="tenant", cascade="all, delete-orphan", passive_deletes=True)

    __table_args__ = (
        UniqueConstraint("subdomain", name="uq_tenants_subdomain"),
        UniqueConstraint("domain", name="uq_tenants_domain"),
        Index("idx_tenant_active_subdomain", "is_active", "subdomain"),
    )

    def __repr__(self):
        return f"<Tenant {self.subdomain}>"
