"""
Main FastAPI Application

Entry point for the multitenant CRUD API.
Configures middleware, routes, error handlers, and startup/shutdown events.

create_app() builds an application around an explicit Settings object and
an optional Database handle; tests pass their own, production uses the
module-level `app` built from the environment.
"""
import time
import traceback
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from multitenant import __version__
from multitenant.api.endpoints import auth, projects, tenants, users
from multitenant.config import DEFAULT_JWT_SECRET, Settings, get_settings
from multitenant.core.exceptions import APIError, TenantIsolationError
from multitenant.core.security import PasswordHasher, TokenService
from multitenant.database import Database
from multitenant.middleware.rate_limit import RateLimitMiddleware
from multitenant.utils.logging import get_logger, setup_logging

logger = get_logger(__name__)


def _request_context(request: Request) -> dict:
    return {
        "path": request.url.path,
        "method": request.method,
        "tenant_id": getattr(request.state, "tenant_id", None),
        "user_id": getattr(request.state, "user_id", None),
    }


def _validation_details(exc: RequestValidationError) -> list:
    details = []
    for error in exc.errors():
        # Drop the location prefix ("body", "query", ...) from the field path
        location = [str(part) for part in error.get("loc", ())]
        if location and location[0] in ("body", "query", "path", "header"):
            location = location[1:]
        details.append({"field": ".".join(location), "message": error.get("msg", "Invalid value")})
    return details


def create_app(settings: Optional[Settings] = None, database: Optional[Database] = None) -> FastAPI:
    """
    Build the application.

    Args:
        settings: Configuration; defaults to the cached environment settings
        database: Pre-built Database handle; when omitted one is created
            from settings at startup and disposed at shutdown
    """
    settings = settings or get_settings()

    setup_logging(log_level=settings.LOG_LEVEL, json_format=settings.is_production)

    if settings.is_production and settings.JWT_SECRET == DEFAULT_JWT_SECRET:
        raise RuntimeError("JWT_SECRET must be set in production")

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """
        Application lifespan manager.

        Handles startup and shutdown events.
        """
        logger.info(f"Starting application in {settings.ENVIRONMENT} mode")

        owns_database = database is None
        db_handle = database or Database(
            settings.DATABASE_URL,
            pool_size=settings.DATABASE_POOL_SIZE,
            max_overflow=settings.DATABASE_MAX_OVERFLOW,
            echo=settings.DEBUG,
            connect_timeout=settings.DATABASE_CONNECT_TIMEOUT,
        )
        app.state.database = db_handle

        # Initialize database tables (dev only - manage the schema with migrations in production)
        if settings.is_development:
            logger.warning("Initializing database tables (dev mode)")
            db_handle.create_all()

        logger.info("Application startup complete")

        yield

        logger.info("Shutting down application")
        if owns_database:
            db_handle.dispose()
        logger.info("Application shutdown complete")

    app = FastAPI(
        title="Multitenant SaaS API",
        description="Multitenant CRUD backend with tenant isolation, RBAC, and rate limiting",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.tokens = TokenService(
        settings.JWT_SECRET,
        algorithm=settings.JWT_ALGORITHM,
        expire_minutes=settings.JWT_EXPIRE_MINUTES,
    )
    app.state.passwords = PasswordHasher(rounds=settings.BCRYPT_ROUNDS)
    if database is not None:
        app.state.database = database

    # ========================================================================
    # MIDDLEWARE CONFIGURATION
    # ========================================================================

    # Starlette runs the last added middleware first: rate limiting sees the
    # request before timing, and CORS wraps everything.
    app.add_middleware(RateLimitMiddleware, settings=settings)

    @app.middleware("http")
    async def add_process_time_header(request: Request, call_next):
        """Add X-Process-Time header to track request duration."""
        start_time = time.time()
        response = await call_next(request)
        response.headers["X-Process-Time"] = str(time.time() - start_time)
        return response

    # SECURITY: In production, CORS_ORIGINS must list the real frontends
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if settings.is_development else settings.cors_origins,
        allow_credentials=not settings.is_development,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # ========================================================================
    # EXCEPTION HANDLERS
    # ========================================================================

    @app.exception_handler(APIError)
    async def api_error_handler(request: Request, exc: APIError):
        if isinstance(exc, TenantIsolationError):
            # CRITICAL: should never happen; the scoped repository filters first
            logger.error(f"TENANT ISOLATION VIOLATION: {exc.message}", extra=_request_context(request))
        return JSONResponse(
            status_code=exc.status_code,
            content=exc.to_dict(),
            headers=exc.headers or None,
        )

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={
                "error": "Validation failed",
                "code": "VALIDATION_ERROR",
                "details": _validation_details(exc),
            },
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        if exc.status_code == status.HTTP_404_NOT_FOUND:
            return JSONResponse(
                status_code=exc.status_code,
                content={"error": "Route not found", "code": "ROUTE_NOT_FOUND", "path": request.url.path},
            )
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": str(exc.detail), "code": "HTTP_ERROR"},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        """
        Catch-all exception handler.

        SECURITY: Don't expose internal errors outside development.
        Log full details but return generic error to client.
        """
        logger.error(
            f"Unhandled exception: {type(exc).__name__}: {exc}",
            exc_info=True,
            extra=_request_context(request),
        )

        content = {"error": "Internal server error", "code": "INTERNAL_ERROR"}
        if settings.is_development:
            content["message"] = str(exc)
            content["stack"] = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
        return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=content)

    # ========================================================================
    # ROUTES
    # ========================================================================

    # Sync: the database ping blocks, so FastAPI runs it in the threadpool
    @app.get("/health", tags=["health"])
    def health_check(request: Request):
        """
        Health check endpoint for load balancers.

        Reports DEGRADED (still 200) when the database does not answer.
        """
        database_ok = request.app.state.database.ping()
        return {
            "status": "OK" if database_ok else "DEGRADED",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "environment": settings.ENVIRONMENT,
            "database": "connected" if database_ok else "disconnected",
        }

    @app.get("/", tags=["root"])
    async def root():
        """Root endpoint with API information."""
        return {
            "message": "Multitenant SaaS API",
            "version": __version__,
            "docs": "/docs",
            "health": "/health",
        }

    # All API routes live under /api
    app.include_router(auth.router, prefix="/api")
    app.include_router(tenants.router, prefix="/api")
    app.include_router(users.router, prefix="/api")
    app.include_router(projects.router, prefix="/api")

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()

    logger.info("=" * 80)
    logger.info("Multitenant SaaS API")
    logger.info("=" * 80)
    logger.info(f"Environment: {settings.ENVIRONMENT}")
    logger.info(f"Debug: {settings.DEBUG}")
    logger.info(f"Database: {settings.DATABASE_URL.split('@')[1] if '@' in settings.DATABASE_URL else 'configured'}")
    logger.info("=" * 80)

    uvicorn.run(
        "multitenant.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG,
        log_level=settings.LOG_LEVEL.lower(),
    )
