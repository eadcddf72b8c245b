"""
Project Schemas

Request/response models for project operations.
"""
from datetime import datetime
from typing import List, Optional

from pydantic import Field

from multitenant.schemas.common import APIModel, Pagination


class ProjectCreate(APIModel):
    """Schema for creating a project. Owner and tenant come from the token."""
    name: str = Field(..., min_length=2, max_length=100)
    description: Optional[str] = Field(None, max_length=500)


class ProjectUpdate(APIModel):
    """Schema for updating a project. All fields optional."""
    name: Optional[str] = Field(None, min_length=2, max_length=100)
    description: Optional[str] = Field(None, max_length=500)
    is_active: Optional[bool] = None


class ProjectOwner(APIModel):
    id: str
    first_name: str
    last_name: str
    email: str


class ProjectResponse(APIModel):
    id: str
    name: str
    description: Optional[str] = None
    is_active: bool
    tenant_id: str
    user_id: str
    created_at: datetime
    updated_at: datetime
    user: Optional[ProjectOwner] = None


class ProjectEnvelope(APIModel):
    project: ProjectResponse


class ProjectMutationResponse(APIModel):
    message: str
    project: ProjectResponse


class ProjectListResponse(APIModel):
    """Paginated list of projects."""
    projects: List[ProjectResponse]
    pagination: Pagination
