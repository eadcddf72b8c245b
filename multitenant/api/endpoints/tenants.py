"""
Tenant Management Endpoints

RBAC:
- List tenants: All authenticated users
- Create tenant: Public (no users are created)
- Get tenant: All roles, own tenant only
- Update tenant: Admin, own tenant only
- Delete tenant: Admin, never the caller's own tenant (soft delete)
"""
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from multitenant.api.deps import list_params, require
from multitenant.core.context import Principal
from multitenant.core.permissions import Operation
from multitenant.database import get_db
from multitenant.models.tenant import Tenant
from multitenant.schemas.common import ListParams, MessageResponse, Pagination
from multitenant.schemas.tenant import (
    TenantCreate,
    TenantDetail,
    TenantEnvelope,
    TenantListResponse,
    TenantMutationResponse,
    TenantResponse,
    TenantUpdate,
)
from multitenant.services import tenant_service
from multitenant.services.tenant_service import TenantCounts

router = APIRouter(prefix="/tenants", tags=["tenants"])


def _detail(tenant: Tenant, counts: TenantCounts) -> TenantDetail:
    base = TenantResponse.model_validate(tenant).model_dump()
    return TenantDetail(**base, user_count=counts.users, project_count=counts.projects)


@router.get("", response_model=TenantListResponse)
def list_tenants(
    params: ListParams = Depends(list_params),
    principal: Principal = Depends(require(Operation.TENANTS_LIST)),
    db: Session = Depends(get_db),
):
    """
    List tenants with user and project counts.

    Supports search over name and subdomain and the isActive filter.
    """
    page, counts = tenant_service.list_tenants(db, principal, params)
    return TenantListResponse(
        tenants=[_detail(tenant, counts[tenant.id]) for tenant in page.items],
        pagination=Pagination.build(page),
    )


@router.post("", response_model=TenantMutationResponse, status_code=status.HTTP_201_CREATED)
def create_tenant(tenant_data: TenantCreate, db: Session = Depends(get_db)):
    tenant = tenant_service.create_tenant(db, tenant_data)
    return TenantMutationResponse(
        message="Tenant created successfully",
        tenant=TenantResponse.model_validate(tenant),
    )


@router.get("/{tenant_id}", response_model=TenantEnvelope)
def get_tenant(
    tenant_id: str,
    principal: Principal = Depends(require(Operation.TENANTS_READ)),
    db: Session = Depends(get_db),
):
    tenant, counts = tenant_service.get_tenant(db, principal, tenant_id)
    return TenantEnvelope(tenant=_detail(tenant, counts))


@router.put("/{tenant_id}", response_model=TenantMutationResponse)
def update_tenant(
    tenant_id: str,
    tenant_data: TenantUpdate,
    principal: Principal = Depends(require(Operation.TENANTS_UPDATE)),
    db: Session = Depends(get_db),
):
    tenant = tenant_service.update_tenant(db, principal, tenant_id, tenant_data)
    return TenantMutationResponse(
        message="Tenant updated successfully",
        tenant=TenantResponse.model_validate(tenant),
    )


@router.delete("/{tenant_id}", response_model=MessageResponse)
def delete_tenant(
    tenant_id: str,
    principal: Principal = Depends(require(Operation.TENANTS_DELETE)),
    db: Session = Depends(get_db),
):
    """Soft delete: the tenant is deactivated, its rows stay."""
    tenant_service.delete_tenant(db, principal, tenant_id)
    return MessageResponse(message="Tenant deleted successfully")
