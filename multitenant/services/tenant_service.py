"""
Tenant Service

Tenant lifecycle: listing, public creation, self-view, admin update and
soft delete. All functions accept an injected Session.

delete_tenant is not limited to the caller's tenant: any admin may
deactivate another tenant (see core/permissions.py).
"""
from typing import Dict, List, NamedTuple, Optional, Tuple

from sqlalchemy import func
from sqlalchemy.orm import Session

from multitenant.core.context import Principal
from multitenant.core.exceptions import (
    ConflictError,
    InvalidInputError,
    PermissionDenied,
    TenantNotFoundError,
)
from multitenant.core.permissions import can_access_tenant
from multitenant.database import commit_or_raise
from multitenant.models.project import Project
from multitenant.models.tenant import Tenant
from multitenant.models.user import User
from multitenant.schemas.common import ListParams
from multitenant.schemas.tenant import TenantCreate, TenantUpdate
from multitenant.services.repository import Page, apply_search, paginate
from multitenant.services.tenant_resolver import find_by_domain, find_by_subdomain, get_by_id
from multitenant.utils.logging import get_logger

logger = get_logger(__name__)


class TenantCounts(NamedTuple):
    users: int
    projects: int


def count_members(db: Session, tenant_ids: List[str]) -> Dict[str, TenantCounts]:
    """User and project counts per tenant, two grouped queries."""
    if not tenant_ids:
        return {}

    user_counts = dict(
        db.query(User.tenant_id, func.count(User.id))
        .filter(User.tenant_id.in_(tenant_ids))
        .group_by(User.tenant_id)
        .all()
    )
    project_counts = dict(
        db.query(Project.tenant_id, func.count(Project.id))
        .filter(Project.tenant_id.in_(tenant_ids))
        .group_by(Project.tenant_id)
        .all()
    )
    return {
        tenant_id: TenantCounts(user_counts.get(tenant_id, 0), project_counts.get(tenant_id, 0))
        for tenant_id in tenant_ids
    }


def list_tenants(db: Session, principal: Principal, params: ListParams) -> Tuple[Page, Dict[str, TenantCounts]]:
    """
    List tenants with basic info and member counts.

    Any authenticated user may call this; no super-admin role exists to
    restrict it further.
    """
    query = db.query(Tenant)
    query = apply_search(query, [Tenant.name, Tenant.subdomain], params.search_term)
    if params.is_active is not None:
        query = query.filter(Tenant.is_active == params.is_active)

    page = paginate(query, params, [Tenant.created_at.desc(), Tenant.id.desc()])
    counts = count_members(db, [tenant.id for tenant in page.items])

    logger.debug(f"Listed {len(page.items)} tenants for user {principal.user_id}")
    return page, counts


def _ensure_domain_free(db: Session, domain: Optional[str], current: Optional[Tenant] = None) -> None:
    if not domain:
        return
    owner = find_by_domain(db, domain)
    if owner is not None and (current is None or owner.id != current.id):
        raise ConflictError("Domain already exists", code="DOMAIN_EXISTS")


def create_tenant(db: Session, data: TenantCreate) -> Tenant:
    """
    Create a tenant without users.

    Public endpoint; registration (auth_service.register) is the path
    that also creates the first admin.
    """
    if find_by_subdomain(db, data.subdomain) is not None:
        raise ConflictError("Subdomain already exists", code="SUBDOMAIN_EXISTS")
    _ensure_domain_free(db, data.domain)

    tenant = Tenant(name=data.name, subdomain=data.subdomain, domain=data.domain)
    db.add(tenant)
    commit_or_raise(db, context="create tenant")
    db.refresh(tenant)

    logger.info(f"Tenant created: {tenant.id} ({tenant.subdomain})")
    return tenant


def get_tenant(db: Session, principal: Principal, tenant_id: str) -> Tuple[Tenant, TenantCounts]:
    """Users can only view their own tenant."""
    if not can_access_tenant(principal, tenant_id):
        raise PermissionDenied()

    tenant = get_by_id(db, tenant_id)
    if tenant is None:
        raise TenantNotFoundError()
    return tenant, count_members(db, [tenant.id])[tenant.id]


def update_tenant(db: Session, principal: Principal, tenant_id: str, data: TenantUpdate) -> Tenant:
    """Admins can update their own tenant only."""
    if not can_access_tenant(principal, tenant_id):
        raise PermissionDenied()

    tenant = get_by_id(db, tenant_id)
    if tenant is None:
        raise TenantNotFoundError()

    changes = data.model_dump(exclude_unset=True)
    # Null clears the optional domain; for required columns it means "unchanged"
    changes = {
        field: value for field, value in changes.items()
        if value is not None or field == "domain"
    }
    if changes.get("domain") and changes["domain"] != tenant.domain:
        _ensure_domain_free(db, changes["domain"], current=tenant)

    for field in ("name", "domain", "is_active"):
        if field in changes:
            setattr(tenant, field, changes[field])

    commit_or_raise(db, context="update tenant")
    db.refresh(tenant)

    logger.info(f"Tenant updated: {tenant.id} by {principal.user_id}")
    return tenant


def delete_tenant(db: Session, principal: Principal, tenant_id: str) -> None:
    """
    Soft delete a tenant by setting is_active to false.

    An admin cannot delete the tenant they belong to.
    """
    if principal.tenant_id == tenant_id:
        raise InvalidInputError("Cannot delete your own tenant", code="CANNOT_DELETE_OWN_TENANT")

    tenant = get_by_id(db, tenant_id)
    if tenant is None:
        raise TenantNotFoundError()

    tenant.is_active = False
    commit_or_raise(db, context="delete tenant")

    logger.info(f"Tenant deactivated: {tenant_id} by {principal.user_id}")
