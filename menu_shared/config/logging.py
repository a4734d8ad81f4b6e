"""
Structured logging.

Loggers returned by ``get_logger`` take keyword arguments as context:

    logger = get_logger(__name__)
    logger.info("Order created", order_id=12, restaurant_id=3)

Production writes one JSON object per line; other environments get a
colored one-line format. Both include the request id of the current
request (see menu_shared.infrastructure.correlation).
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any

from menu_shared.config.settings import settings

NO_REQUEST = "-"

# Loggers of dependencies that are too chatty at INFO
QUIET_LOGGERS = {
    "uvicorn.access": logging.WARNING,
    "httpx": logging.WARNING,
    "httpcore": logging.WARNING,
    "PIL": logging.WARNING,
    "sqlalchemy.engine": logging.WARNING,
}


class StructuredLogger(logging.Logger):
    """Logger whose level methods accept ``**context`` next to the message."""

    def _log(
        self,
        level: int,
        msg: object,
        args: Any,
        exc_info: Any = None,
        extra: dict[str, Any] | None = None,
        stack_info: bool = False,
        stacklevel: int = 1,
        **context: Any,
    ) -> None:
        extra = dict(extra or {})
        extra["context"] = context
        super()._log(
            level,
            msg,
            args,
            exc_info=exc_info,
            extra=extra,
            stack_info=stack_info,
            stacklevel=stacklevel + 1,
        )


logging.setLoggerClass(StructuredLogger)


def _context_of(record: logging.LogRecord) -> dict[str, Any]:
    return getattr(record, "context", None) or {}


def _request_id_of(record: logging.LogRecord) -> str | None:
    request_id = getattr(record, "request_id", NO_REQUEST)
    return None if request_id == NO_REQUEST else request_id


class JsonLogFormatter(logging.Formatter):
    """One JSON document per record, for log aggregation."""

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "time": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        request_id = _request_id_of(record)
        if request_id:
            entry["request_id"] = request_id
        context = _context_of(record)
        if context:
            entry["context"] = context
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        if settings.debug:
            entry["source"] = f"{record.pathname}:{record.lineno}"
        return json.dumps(entry, default=str, ensure_ascii=False)


class ConsoleLogFormatter(logging.Formatter):
    """Colored single-line output for development and tests."""

    LEVEL_COLORS = {
        logging.DEBUG: "\033[36m",
        logging.INFO: "\033[32m",
        logging.WARNING: "\033[33m",
        logging.ERROR: "\033[31m",
        logging.CRITICAL: "\033[1;31m",
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        color = self.LEVEL_COLORS.get(record.levelno, "")
        clock = datetime.fromtimestamp(record.created).strftime("%H:%M:%S")
        parts = [f"{clock} {color}{record.levelname:<8}{self.RESET}"]

        request_id = _request_id_of(record)
        if request_id:
            parts.append(f"<{request_id[:8]}>")
        parts.append(f"{record.name} - {record.getMessage()}")

        context = _context_of(record)
        if context:
            parts.append(" ".join(f"{key}={value!r}" for key, value in context.items()))

        line = " ".join(parts)
        if record.exc_info:
            line = f"{line}\n{self.formatException(record.exc_info)}"
        return line


def setup_logging() -> None:
    """Install the stdout handler on the root logger. Safe to call more than once."""
    from menu_shared.infrastructure.correlation import CorrelationIdFilter

    level = logging.DEBUG if settings.debug else logging.INFO
    formatter = JsonLogFormatter() if settings.is_production else ConsoleLogFormatter()

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)
    handler.addFilter(CorrelationIdFilter())

    root = logging.getLogger()
    root.handlers[:] = [handler]
    root.setLevel(level)

    for name, quiet_level in QUIET_LOGGERS.items():
        logging.getLogger(name).setLevel(quiet_level)


def get_logger(name: str) -> StructuredLogger:
    return logging.getLogger(name)  # type: ignore[return-value]


def mask_email(email: str | None) -> str:
    """Keep the domain and two characters of the local part: ma***@example.com."""
    if not email or "@" not in email:
        return "<invalid-email>" if email else "<no-email>"
    local, _, domain = email.partition("@")
    return f"{local[:2] if len(local) > 2 else local[:1]}***@{domain}"


def mask_token(token: str | None) -> str:
    if not token:
        return "<no-token>"
    return token if len(token) <= 8 else token[:8] + "..."


api_logger = get_logger("menu_api")
auth_logger = get_logger("menu_api.auth")
order_logger = get_logger("menu_api.orders")
qr_logger = get_logger("menu_api.qr")

# Separate channel so authentication events can be routed on their own
security_audit_logger = get_logger("security.audit")


def audit_auth_event(
    event_type: str,
    user_id: int | None = None,
    email: str | None = None,
    success: bool = True,
    reason: str | None = None,
    ip_address: str | None = None,
    **extra: Any,
) -> None:
    """
    Record an authentication event on the ``security.audit`` logger.

    ``event_type`` is one of LOGIN, LOGIN_FAILED, TOKEN_REFRESH, LOGOUT,
    LOGOUT_ALL, PASSWORD_RESET_REQUESTED, PASSWORD_RESET, PASSWORD_CHANGE.
    Failures are logged at WARNING, everything else at INFO. Emails are
    masked before they reach the log.
    """
    security_audit_logger.log(
        logging.INFO if success else logging.WARNING,
        f"AUTH_AUDIT: {event_type}",
        event_type=event_type,
        user_id=user_id,
        email=mask_email(email) if email else None,
        success=success,
        reason=reason,
        ip_address=ip_address,
        **extra,
    )
