"""
Tenant Schemas

Request/response models for tenant operations.
"""
import re
from datetime import datetime
from typing import List, Optional

from pydantic import Field, field_validator

from multitenant.schemas.common import APIModel, Pagination, normalize_lower

SUBDOMAIN_PATTERN = r"^[a-z0-9-]+$"
_DOMAIN_RE = re.compile(r"^(?=.{1,253}$)([a-z0-9](?:[a-z0-9-]{0,61}[a-z0-9])?\.)+[a-z]{2,63}$")


def validate_domain(value: Optional[str]) -> Optional[str]:
    if value is None:
        return value
    if not _DOMAIN_RE.match(value):
        raise ValueError("must be a valid domain")
    return value


class TenantCreate(APIModel):
    name: str = Field(..., min_length=2, max_length=100)
    subdomain: str = Field(..., min_length=3, max_length=50, pattern=SUBDOMAIN_PATTERN)
    domain: Optional[str] = None

    @field_validator("subdomain", "domain", mode="before")
    @classmethod
    def lowercase_fields(cls, value):
        return normalize_lower(value)

    @field_validator("domain")
    @classmethod
    def check_domain(cls, value):
        return validate_domain(value)


class TenantUpdate(APIModel):
    """Schema for updating a tenant. All fields optional."""
    name: Optional[str] = Field(None, min_length=2, max_length=100)
    domain: Optional[str] = None
    is_active: Optional[bool] = None

    @field_validator("domain", mode="before")
    @classmethod
    def lowercase_domain(cls, value):
        return normalize_lower(value)

    @field_validator("domain")
    @classmethod
    def check_domain(cls, value):
        return validate_domain(value)


class TenantSummary(APIModel):
    id: str
    name: str
    subdomain: str


class TenantResponse(TenantSummary):
    domain: Optional[str] = None
    is_active: bool
    created_at: datetime
    updated_at: datetime


class TenantDetail(TenantResponse):
    user_count: int = 0
    project_count: int = 0


class TenantEnvelope(APIModel):
    tenant: TenantDetail


class TenantMutationResponse(APIModel):
    message: str
    tenant: TenantResponse


class TenantListResponse(APIModel):
    tenants: List[TenantDetail]
    pagination: Pagination
