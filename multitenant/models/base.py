"""Shared column helpers for all models."""
import uuid
from datetime import datetime, timezone


def utcnow() -> datetime:
    # Naive UTC; both SQLite and the UTC-pinned PostgreSQL sessions store it as-is
    return datetime.now(timezone.utc).replace(tzinfo=None)


def new_id() -> str:
    return str(uuid.uuid4())
