"""
Project Management Endpoints

CRUD operations for projects within a tenant.

RBAC:
- List/view projects: All authenticated users
- Create project: Admin or User
- Update project: Admin, or the project's creator
- Delete project: Admin only (hard delete)
"""
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from multitenant.api.deps import list_params, require
from multitenant.core.context import Principal
from multitenant.core.permissions import Operation
from multitenant.database import get_db
from multitenant.schemas.common import ListParams, MessageResponse, Pagination
from multitenant.schemas.project import (
    ProjectCreate,
    ProjectEnvelope,
    ProjectListResponse,
    ProjectMutationResponse,
    ProjectResponse,
    ProjectUpdate,
)
from multitenant.services import project_service

router = APIRouter(prefix="/projects", tags=["projects"])


@router.get("", response_model=ProjectListResponse)
def list_projects(
    params: ListParams = Depends(list_params),
    principal: Principal = Depends(require(Operation.PROJECTS_LIST)),
    db: Session = Depends(get_db),
):
    """
    List projects in current tenant.

    Supports search over name and description and the isActive filter.
    Each project embeds its creator.
    """
    page = project_service.list_projects(db, principal, params)
    return ProjectListResponse(
        projects=[ProjectResponse.model_validate(project) for project in page.items],
        pagination=Pagination.build(page),
    )


@router.get("/{project_id}", response_model=ProjectEnvelope)
def get_project(
    project_id: str,
    principal: Principal = Depends(require(Operation.PROJECTS_READ)),
    db: Session = Depends(get_db),
):
    project = project_service.get_project(db, principal, project_id)
    return ProjectEnvelope(project=ProjectResponse.model_validate(project))


@router.post("", response_model=ProjectMutationResponse, status_code=status.HTTP_201_CREATED)
def create_project(
    project_data: ProjectCreate,
    principal: Principal = Depends(require(Operation.PROJECTS_CREATE)),
    db: Session = Depends(get_db),
):
    """
    Create a new project.

    The caller becomes the project's creator; tenantId and userId in the
    body are ignored.
    """
    project = project_service.create_project(db, principal, project_data)
    return ProjectMutationResponse(
        message="Project created successfully",
        project=ProjectResponse.model_validate(project),
    )


@router.put("/{project_id}", response_model=ProjectMutationResponse)
def update_project(
    project_id: str,
    project_data: ProjectUpdate,
    principal: Principal = Depends(require(Operation.PROJECTS_UPDATE)),
    db: Session = Depends(get_db),
):
    project = project_service.update_project(db, principal, project_id, project_data)
    return ProjectMutationResponse(
        message="Project updated successfully",
        project=ProjectResponse.model_validate(project),
    )


@router.delete("/{project_id}", response_model=MessageResponse)
def delete_project(
    project_id: str,
    principal: Principal = Depends(require(Operation.PROJECTS_DELETE)),
    db: Session = Depends(get_db),
):
    project_service.delete_project(db, principal, project_id)
    return MessageResponse(message="Project deleted successfully")
