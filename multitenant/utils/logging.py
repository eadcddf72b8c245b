"""
Logging Configuration

One root handler, configured once per process by setup_logging():
JSON lines in production, a human-readable format everywhere else.

Security events (failed logins, denials, cross-tenant tokens, rate limit
hits) go through log_security_event(), which tags the record so it can
be filtered out of the stream, and strips anything password-like.
"""
import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Optional

# Record attributes copied into JSON output when present
_CONTEXT_FIELDS = (
    "tenant_id",
    "user_id",
    "path",
    "method",
    "event_type",
    "security_event",
    "reason",
    "operation",
    "client_ip",
)

# Third-party loggers that are too chatty at INFO
_QUIET_LOGGERS = {
    "uvicorn.access": logging.WARNING,
    "sqlalchemy.engine": logging.WARNING,
    "passlib": logging.ERROR,
}

SECURITY_LOGGER = "multitenant.security"


class JSONFormatter(logging.Formatter):
    """Render each record as a single JSON object."""

    def format(self, record: logging.LogRecord) -> str:
        log_data: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "location": f"{record.module}.{record.funcName}:{record.lineno}",
        }
        log_data.update(
            (field, getattr(record, field))
            for field in _CONTEXT_FIELDS
            if getattr(record, field, None) is not None
        )
        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=str)


def setup_logging(log_level: str = "INFO", json_format: bool = False) -> None:
    """
    Configure application logging.

    Replaces any handlers already on the root logger, so calling it again
    (one app per test) does not duplicate output.
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))
    root_logger.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    if json_format:
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        ))
    root_logger.addHandler(handler)

    for name, level in _QUIET_LOGGERS.items():
        logging.getLogger(name).setLevel(level)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


def log_security_event(
    event_type: str,
    details: Dict[str, Any],
    logger: Optional[logging.Logger] = None,
) -> None:
    """
    Log security-related events at WARNING.

    Event types:
    - failed_login: Failed authentication attempt
    - auth_denied: Request rejected by the authorization pipeline
    - permission_denied: Authenticated but not allowed
    - tenant_isolation_violation: Token tenant does not match the user's tenant
    - rate_limit_exceeded: Rate limit hit

    Keys mentioning passwords are dropped before logging.
    """
    safe_details = {
        key: value for key, value in details.items()
        if "password" not in key.lower()
    }
    summary = " ".join(f"{key}={value}" for key, value in sorted(safe_details.items()))

    (logger or logging.getLogger(SECURITY_LOGGER)).warning(
        f"SECURITY EVENT: {event_type} {summary}".rstrip(),
        extra={"security_event": True, "event_type": event_type, **safe_details},
    )
