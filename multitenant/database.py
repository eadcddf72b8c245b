"""
Database Configuration and Session Management

This module handles SQLAlchemy setup with connection pooling.

The engine and session factory live on a Database handle that the
application entry point constructs at startup and disposes at shutdown.
Nothing here is a module-level singleton; request handlers get their
session through the get_db dependency.
"""
import logging
from contextlib import contextmanager
from typing import Iterator, Optional

from fastapi import Request
from sqlalchemy import create_engine, event, text
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from multitenant.core.exceptions import (
    ConflictError,
    DatastoreError,
    InvalidInputError,
)

logger = logging.getLogger(__name__)

# Base class for all models
Base = declarative_base()


class Database:
    """
    Owns one engine and its session factory.

    SQLite URLs (used by tests and local tinkering) get a shared
    StaticPool connection for in-memory databases and foreign key
    enforcement switched on; everything else gets a QueuePool.
    """

    def __init__(
        self,
        url: str,
        pool_size: int = 20,
        max_overflow: int = 40,
        echo: bool = False,
        connect_timeout: int = 10,
    ):
        self.url = url
        self.is_sqlite = url.startswith("sqlite")

        engine_kwargs = {"echo": echo}
        if self.is_sqlite:
            engine_kwargs["connect_args"] = {"check_same_thread": False}
            if url in ("sqlite://", "sqlite:///:memory:"):
                engine_kwargs["poolclass"] = StaticPool
        else:
            engine_kwargs.update(
                pool_size=pool_size,
                max_overflow=max_overflow,
                pool_pre_ping=True,  # Verify connections before using (handles stale connections)
            )
            if url.startswith("postgresql"):
                # Seconds; an unreachable server must not hang the caller
                engine_kwargs["connect_args"] = {"connect_timeout": connect_timeout}

        self.engine = create_engine(url, **engine_kwargs)
        event.listen(self.engine, "connect", self._on_connect)

        # expire_on_commit=False: the principal's user/tenant rows stay
        # readable after a commit inside the same request.
        self.SessionLocal = sessionmaker(
            autocommit=False,
            autoflush=False,
            bind=self.engine,
            expire_on_commit=False,
        )

    def _on_connect(self, dbapi_connection, connection_record):
        """Set connection-level configuration on new connections."""
        cursor = dbapi_connection.cursor()
        if self.is_sqlite:
            # Needed for ON DELETE CASCADE and FK violations on SQLite
            cursor.execute("PRAGMA foreign_keys=ON")
        elif self.url.startswith("postgresql"):
            cursor.execute("SET TIME ZONE 'UTC'")
        cursor.close()
        logger.debug("New database connection established")

    @contextmanager
    def session(self) -> Iterator[Session]:
        """Session scope for code running outside a request (seeding, scripts)."""
        db = self.SessionLocal()
        try:
            yield db
        finally:
            db.close()

    def create_all(self) -> None:
        """
        Create tables for all registered models.

        Production deployments should manage the schema with migrations.
        """
        # Import models so they register on Base.metadata
        import multitenant.models  # noqa: F401

        Base.metadata.create_all(bind=self.engine)

    def drop_all(self) -> None:
        import multitenant.models  # noqa: F401

        Base.metadata.drop_all(bind=self.engine)

    def ping(self) -> bool:
        """Run SELECT 1; used by the health check."""
        try:
            with self.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            return True
        except SQLAlchemyError as exc:
            logger.error(f"Database health check failed: {exc}")
            return False

    def dispose(self) -> None:
        self.engine.dispose()


def get_db(request: Request) -> Iterator[Session]:
    """
    Dependency function that provides a database session.

    The session is bound to the Database handle created by the
    application and is closed after the request completes.
    """
    database: Database = request.app.state.database
    db = database.SessionLocal()
    try:
        yield db
    finally:
        db.close()


# ============================================================================
# INTEGRITY ERROR TRANSLATION
# ============================================================================

# SQLite names the columns, PostgreSQL names the constraint.
_UNIQUE_CODES = (
    (("tenants.subdomain", "uq_tenants_subdomain"), "SUBDOMAIN_EXISTS", "Subdomain already exists"),
    (("tenants.domain", "uq_tenants_domain"), "DOMAIN_EXISTS", "Domain already exists"),
    (("users.email", "uq_users_email_tenant"), "EMAIL_EXISTS", "Email already exists in this tenant"),
)


def _is_unique_violation(message: str) -> bool:
    return "unique" in message or "duplicate key" in message


def _is_foreign_key_violation(message: str) -> bool:
    return "foreign key" in message


def translate_integrity_error(exc: IntegrityError) -> Exception:
    """
    Map a datastore constraint violation onto the API error taxonomy.

    Works off the driver message: "UNIQUE constraint failed:
    tenants.subdomain" on SQLite, "... unique constraint
    \"uq_tenants_subdomain\"" on PostgreSQL.
    """
    message = str(getattr(exc, "orig", exc)).lower()

    if _is_unique_violation(message):
        for markers, code, text_ in _UNIQUE_CODES:
            if any(marker in message for marker in markers):
                return ConflictError(text_, code=code)
        return ConflictError()

    if _is_foreign_key_violation(message):
        return InvalidInputError("Foreign key constraint violation", code="FOREIGN_KEY_ERROR")

    return DatastoreError()


def commit_or_raise(db: Session, context: Optional[str] = None) -> None:
    """
    Commit the session, translating persistence failures.

    On any failure the session is rolled back, so a multi-row unit of
    work (tenant + first admin) is never partially applied.
    """
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        logger.info(f"Integrity violation during {context or 'commit'}: {exc.orig}")
        raise translate_integrity_error(exc) from exc
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error(f"Database error during {context or 'commit'}: {exc}", exc_info=True)
        raise DatastoreError() from exc
