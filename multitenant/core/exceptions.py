"""
Custom Exceptions

Centralized exception definitions for better error handling.
Every error carries a stable machine-readable code next to the
human-readable message; the handlers in main.py render both as
{"error": ..., "code": ...}.
"""
from typing import Any, Dict, Optional

from fastapi import HTTPException, status


class APIError(HTTPException):
    """Base class for all errors surfaced to API clients."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    code = "INTERNAL_ERROR"
    message = "Internal server error"

    def __init__(
        self,
        message: Optional[str] = None,
        code: Optional[str] = None,
        extra: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
    ):
        self.code = code or type(self).code
        self.message = message or type(self).message
        self.extra = extra or {}
        super().__init__(
            status_code=type(self).status_code,
            detail=self.message,
            headers=headers,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.message, "code": self.code, **self.extra}


# ----------------------------------------------------------------------------
# 400
# ----------------------------------------------------------------------------

class InvalidInputError(APIError):
    """Raised when input validation fails or an operation is not allowed on its target."""

    status_code = status.HTTP_400_BAD_REQUEST
    code = "VALIDATION_ERROR"
    message = "Validation failed"


# ----------------------------------------------------------------------------
# 401
# ----------------------------------------------------------------------------

class AuthenticationError(APIError):
    """Raised when authentication fails."""

    status_code = status.HTTP_401_UNAUTHORIZED
    code = "AUTH_ERROR"
    message = "Could not validate credentials"

    def __init__(self, message: Optional[str] = None, code: Optional[str] = None):
        super().__init__(message, code, headers={"WWW-Authenticate": "Bearer"})


class TokenMissingError(AuthenticationError):
    code = "TOKEN_MISSING"
    message = "Access token required"


class TokenInvalidError(AuthenticationError):
    code = "TOKEN_INVALID"
    message = "Invalid token"


class TokenExpiredError(AuthenticationError):
    code = "TOKEN_EXPIRED"
    message = "Token expired"


class InactiveUserError(AuthenticationError):
    code = "USER_NOT_FOUND"
    message = "Invalid token - user not found or inactive"


class InvalidCredentialsError(AuthenticationError):
    """
    Raised for every login failure past tenant resolution.

    Unknown email, wrong password and deactivated account must be
    indistinguishable to the caller.
    """

    code = "INVALID_CREDENTIALS"
    message = "Invalid credentials"


# ----------------------------------------------------------------------------
# 403
# ----------------------------------------------------------------------------

class PermissionDenied(APIError):
    """Authenticated, but role or ownership does not allow the operation."""

    status_code = status.HTTP_403_FORBIDDEN
    code = "INSUFFICIENT_PERMISSIONS"
    message = "Insufficient permissions"


class TenantInactiveError(APIError):
    status_code = status.HTTP_403_FORBIDDEN
    code = "TENANT_INACTIVE"
    message = "Tenant is inactive"


class TenantIsolationError(PermissionDenied):
    """
    Raised when a row of another tenant reaches a tenant-bound code path.

    This is a CRITICAL security error and is logged at error level.
    """

    code = "TENANT_ISOLATION_VIOLATION"
    message = "Tenant isolation violation"


# ----------------------------------------------------------------------------
# 404
# ----------------------------------------------------------------------------

class NotFoundError(APIError):
    """Entity absent, or present but owned by another tenant."""

    status_code = status.HTTP_404_NOT_FOUND
    code = "RECORD_NOT_FOUND"
    message = "Record not found"


class TenantNotFoundError(NotFoundError):
    code = "TENANT_NOT_FOUND"
    message = "Tenant not found"


class UserNotFoundError(NotFoundError):
    code = "USER_NOT_FOUND"
    message = "User not found"


class ProjectNotFoundError(NotFoundError):
    code = "PROJECT_NOT_FOUND"
    message = "Project not found"


# ----------------------------------------------------------------------------
# 409 / 429 / 500
# ----------------------------------------------------------------------------

class ConflictError(APIError):
    """Raised when a uniqueness constraint would be violated."""

    status_code = status.HTTP_409_CONFLICT
    code = "DUPLICATE_ENTRY"
    message = "Unique constraint violation"


class RateLimitExceeded(APIError):
    """Raised when rate limit is exceeded."""

    status_code = status.HTTP_429_TOO_MANY_REQUESTS
    code = "RATE_LIMIT_EXCEEDED"
    message = "Too many requests, please try again later."

    def __init__(self, retry_after: int = 60):
        super().__init__(
            extra={"retryAfter": retry_after},
            headers={"Retry-After": str(retry_after)},
        )


class DatastoreError(APIError):
    """Unexpected persistence failure. Details stay in the logs."""

    code = "DATABASE_ERROR"
    message = "Database error"
