"""
Project Model

Projects are tenant-scoped resources. They belong to a tenant and record
the user who created them.
"""
from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Index, String, Text
from sqlalchemy.orm import relationship

from multitenant.database import Base
from multitenant.models.base import new_id, utcnow


class Project(Base):
    __tablename__ = "projects"

    id = Column(String(36), primary_key=True, default=new_id)

    # CRITICAL: Tenant foreign key for isolation
    tenant_id = Column(
        String(36),
        ForeignKey("tenants.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    # Creator; always a user of the same tenant
    user_id = Column(
        String(36),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    name = Column(String(100), nullable=False)
    description = Column(Text, nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)

    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    tenant = relationship("Tenant", back_populates="projects")
    user = relationship("User", back_populates="projects")

    __table_args__ = (
        # Default list ordering within a tenant
        Index("idx_project_tenant_created", "tenant_id", "created_at"),
        Index("idx_project_tenant_name", "tenant_id", "name"),
    )

    def __repr__(self):
        return f"<Project {self.name} (tenant={self.tenant_id})>"
