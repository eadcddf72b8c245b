"""
Tenant-Scoped Repository Access

All reads and writes of tenant-owned rows (users, projects) go through a
repository bound to one tenant: the authenticated Principal's, or on the
login path the tenant resolved from the subdomain. The tenant filter is
applied inside query(), so there is no code path that can list, fetch,
update or delete a row of another tenant, whatever ids or tenant fields
the client sends.

A row of another tenant is indistinguishable from a missing row: both
come back as None and surface as 404.
"""
import math
from dataclasses import dataclass
from typing import Any, Dict, Generic, List, Optional, Sequence, TypeVar

from sqlalchemy import or_
from sqlalchemy.orm import Query, Session

from multitenant.core.context import Principal
from multitenant.core.exceptions import TenantIsolationError
from multitenant.models.project import Project
from multitenant.models.user import User
from multitenant.schemas.common import ListParams

ModelT = TypeVar("ModelT")


@dataclass
class Page(Generic[ModelT]):
    items: List[ModelT]
    page: int
    limit: int
    total: int

    @property
    def pages(self) -> int:
        return math.ceil(self.total / self.limit)


def escape_like(term: str) -> str:
    """Escape LIKE wildcards so user input is matched literally."""
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def apply_search(query: Query, columns: Sequence[Any], term: Optional[str]) -> Query:
    """Case-insensitive substring match across any of the given columns."""
    if not term or not columns:
        return query
    pattern = f"%{escape_like(term)}%"
    return query.filter(or_(*[column.ilike(pattern, escape="\\") for column in columns]))


def paginate(query: Query, params: ListParams, order_by: Sequence[Any]) -> Page:
    """Count and fetch one page with the same predicate."""
    total = query.order_by(None).count()
    items = (
        query.order_by(*order_by)
        .offset(params.offset)
        .limit(params.limit)
        .all()
    )
    return Page(items=items, page=params.page, limit=params.limit, total=total)


class TenantScopedRepository(Generic[ModelT]):
    """
    Base repository for models carrying a tenant_id column.

    Subclasses set `model`, `search_fields` and the attributes callers may
    never write through update().
    """

    model: Any = None
    search_fields: Sequence[str] = ()
    protected_fields = frozenset({"id", "tenant_id", "created_at", "updated_at"})

    def __init__(self, db: Session, tenant_id: str):
        if not tenant_id:
            raise ValueError("a repository must be bound to a tenant")
        self.db = db
        self.tenant_id = tenant_id

    @classmethod
    def for_principal(cls, db: Session, principal: Principal):
        """Bind to the tenant of an authenticated principal."""
        return cls(db, principal.tenant_id)

    def query(self) -> Query:
        """Base query; every other method builds on this."""
        return self.db.query(self.model).filter(self.model.tenant_id == self.tenant_id)

    def get(self, entity_id: str) -> Optional[ModelT]:
        return self.query().filter(self.model.id == entity_id).first()

    def list(self, params: ListParams, **filters: Any) -> Page:
        """
        List rows of the bound tenant.

        Supports free-text search over search_fields, the is_active flag,
        exact-match filters (None values are skipped) and pagination,
        newest first.
        """
        query = self.query()

        columns = [getattr(self.model, name) for name in self.search_fields]
        query = apply_search(query, columns, params.search_term)

        if params.is_active is not None:
            query = query.filter(self.model.is_active == params.is_active)

        for field, value in filters.items():
            if value is not None:
                query = query.filter(getattr(self.model, field) == value)

        return paginate(query, params, [self.model.created_at.desc(), self.model.id.desc()])

    def add(self, **fields: Any) -> ModelT:
        """Stage a new row stamped with the bound tenant. Caller commits."""
        fields.pop("tenant_id", None)
        entity = self.model(tenant_id=self.tenant_id, **fields)
        self.db.add(entity)
        return entity

    def update(self, entity: ModelT, changes: Dict[str, Any]) -> ModelT:
        """Apply changes in place, skipping protected fields. Caller commits."""
        self._check_owned(entity)
        for field, value in changes.items():
            if field in self.protected_fields:
                continue
            setattr(entity, field, value)
        return entity

    def delete(self, entity: ModelT) -> None:
        """Stage a hard delete. Caller commits."""
        self._check_owned(entity)
        self.db.delete(entity)

    def _check_owned(self, entity: ModelT) -> None:
        if entity.tenant_id != self.tenant_id:
            raise TenantIsolationError(
                f"{self.model.__name__} {entity.id} is outside the bound tenant"
            )


class UserRepository(TenantScopedRepository[User]):
    model = User
    search_fields = ("first_name", "last_name", "email")
    protected_fields = TenantScopedRepository.protected_fields | {"password_hash", "last_login_at"}

    def get_by_email(self, email: str) -> Optional[User]:
        return self.query().filter(User.email == email.lower()).first()


class ProjectRepository(TenantScopedRepository[Project]):
    model = Project
    search_fields = ("name", "description")
    protected_fields = TenantScopedRepository.protected_fields | {"user_id"}
