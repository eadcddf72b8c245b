"""
Project Service

CRUD for projects inside the principal's tenant.

RBAC (see core/permissions.py):
- List/view projects: All authenticated users
- Create project: Admin or User
- Update project: Admin, or the user who created it
- Delete project: Admin only (hard delete)
"""
from sqlalchemy.orm import Session, joinedload

from multitenant.core.context import Principal
from multitenant.core.exceptions import PermissionDenied, ProjectNotFoundError
from multitenant.core.permissions import can_modify_project
from multitenant.database import commit_or_raise
from multitenant.models.project import Project
from multitenant.schemas.common import ListParams
from multitenant.schemas.project import ProjectCreate, ProjectUpdate
from multitenant.services.repository import Page, ProjectRepository
from multitenant.utils.logging import get_logger

logger = get_logger(__name__)


class _ProjectWithOwner(ProjectRepository):
    """Eager-loads the creator so responses can embed it without extra queries."""

    def query(self):
        return super().query().options(joinedload(Project.user))


def list_projects(db: Session, principal: Principal, params: ListParams) -> Page:
    page = _ProjectWithOwner.for_principal(db, principal).list(params)
    logger.debug(f"Listed {len(page.items)} projects for tenant {principal.tenant_id}")
    return page


def get_project(db: Session, principal: Principal, project_id: str) -> Project:
    project = _ProjectWithOwner.for_principal(db, principal).get(project_id)
    if project is None:
        raise ProjectNotFoundError()
    return project


def create_project(db: Session, principal: Principal, data: ProjectCreate) -> Project:
    """Tenant and creator come from the principal, never from the body."""
    projects = ProjectRepository.for_principal(db, principal)
    project = projects.add(
        user_id=principal.user_id,
        name=data.name,
        description=data.description,
        is_active=True,
    )
    commit_or_raise(db, context="create project")
    db.refresh(project)

    logger.info(f"Project created: {project.id} by {principal.user_id}")
    return project


def update_project(db: Session, principal: Principal, project_id: str, data: ProjectUpdate) -> Project:
    projects = ProjectRepository.for_principal(db, principal)
    project = projects.get(project_id)
    if project is None:
        raise ProjectNotFoundError()

    if not can_modify_project(principal, project.user_id):
        raise PermissionDenied()

    changes = data.model_dump(exclude_unset=True)
    if changes.get("name") is None:
        changes.pop("name", None)
    if changes.get("is_active") is None:
        changes.pop("is_active", None)

    projects.update(project, changes)
    commit_or_raise(db, context="update project")
    db.refresh(project)

    logger.info(f"Project updated: {project.id} by {principal.user_id}")
    return project


def delete_project(db: Session, principal: Principal, project_id: str) -> None:
    """Hard delete; projects have no soft-delete path."""
    projects = ProjectRepository.for_principal(db, principal)
    project = projects.get(project_id)
    if project is None:
        raise ProjectNotFoundError()

    projects.delete(project)
    commit_or_raise(db, context="delete project")

    logger.info(f"Project deleted: {project_id} by {principal.user_id}")
