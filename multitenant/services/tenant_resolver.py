"""
Tenant Resolver

Looks tenants up by subdomain (login path) or id, and separates
"never existed" from "deactivated". Subdomains are public, so the two
cases get distinct errors.
"""
from typing import Optional

from sqlalchemy.orm import Session

from multitenant.core.exceptions import TenantInactiveError, TenantNotFoundError
from multitenant.models.tenant import Tenant


def normalize_subdomain(subdomain: str) -> str:
    """Subdomains are compared and stored lowercase."""
    return (subdomain or "").strip().lower()


def find_by_subdomain(db: Session, subdomain: str) -> Optional[Tenant]:
    """Case-insensitive lookup, ignoring activation state."""
    normalized = normalize_subdomain(subdomain)
    if not normalized:
        return None
    return db.query(Tenant).filter(Tenant.subdomain == normalized).first()


def resolve_by_subdomain(db: Session, subdomain: str) -> Tenant:
    """
    Resolve an active tenant by subdomain.

    Raises:
        TenantNotFoundError: no tenant with that subdomain
        TenantInactiveError: the tenant exists but is deactivated
    """
    tenant = find_by_subdomain(db, subdomain)
    if tenant is None:
        raise TenantNotFoundError()
    if not tenant.is_active:
        raise TenantInactiveError()
    return tenant


def get_by_id(db: Session, tenant_id: str) -> Optional[Tenant]:
    return db.query(Tenant).filter(Tenant.id == tenant_id).first()


def find_by_domain(db: Session, domain: str) -> Optional[Tenant]:
    return db.query(Tenant).filter(Tenant.domain == domain.strip().lower()).first()
