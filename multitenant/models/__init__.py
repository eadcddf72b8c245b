"""
Database Models

Every user and project row carries a tenant_id for multi-tenant isolation.
"""
from multitenant.models.tenant import Tenant
from multitenant.models.user import User, UserRole
from multitenant.models.project import Project

__all__ = ["Tenant", "User", "UserRole", "Project"]
