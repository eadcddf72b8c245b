"""
Common Schemas

Shared base model, pagination and message envelopes.
JSON keys are camelCase on the wire; Python attributes stay snake_case.
"""
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


def normalize_lower(value):
    """Strip and lowercase before validation so 'ACME' and 'acme' collide."""
    if isinstance(value, str):
        return value.strip().lower()
    return value


class APIModel(BaseModel):
    """Base for all request/response schemas."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class ListParams(BaseModel):
    """Query parameters shared by every list endpoint."""

    page: int = Field(1, ge=1)
    limit: int = Field(10, ge=1, le=100)
    search: Optional[str] = None
    is_active: Optional[bool] = None

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit

    @property
    def search_term(self) -> Optional[str]:
        term = (self.search or "").strip()
        return term or None


class Pagination(APIModel):
    page: int
    limit: int
    total: int
    pages: int

    @classmethod
    def build(cls, page) -> "Pagination":
        """From a repository Page."""
        return cls(page=page.page, limit=page.limit, total=page.total, pages=page.pages)


class MessageResponse(APIModel):
    message: str
