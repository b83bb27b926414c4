"""Logging utilities for taskguard.

This module provides:
- Logging configuration from GuardConfig, with the audit side-channel
  drained by a background queue listener
- Safe, bounded previews of values for log lines
- Secret redaction
- Structured (JSON) output carrying request_id / user_id
- A logger adapter that binds the calling principal
"""

from __future__ import annotations

import atexit
import json
import logging
import queue
import re
from logging.handlers import QueueHandler, QueueListener
from typing import Any, Optional

from .config import GuardConfig, LogLevel
from .models import Principal


# Patterns for detecting secrets that must never reach the log
SECRET_PATTERNS = [
    r'(?i)(?:password|passwd|pwd|secret|token|api[_-]?key|auth[_-]?token)\s*[:=]\s*["\']?([^"\'\s]+)',
    r'(?i)(?:bearer|basic)\s+([a-zA-Z0-9+/=._-]+)',
    r'(?i)(?:sk-|pk-)[a-zA-Z0-9]{16,}',
]

_RESERVED_ATTRS = frozenset(
    {
        "name", "msg", "args", "created", "filename", "funcName",
        "levelname", "levelno", "lineno", "module", "msecs",
        "message", "pathname", "process", "processName", "relativeCreated",
        "thread", "threadName", "taskName", "exc_info", "exc_text", "stack_info",
        "request_id", "user_id",
    }
)


def safe_preview(value: Any, limit: int = 240) -> str:
    """Create a single-line, length-bounded preview of a value for logging.

    Args:
        value: The value to preview (any type)
        limit: Maximum length of the preview (default: 240)

    Returns:
        A truncated string representation; ``""`` for None.
    """
    if value is None:
        return ""

    if isinstance(value, str):
        s = value
    elif isinstance(value, (dict, list)):
        try:
            s = json.dumps(value, default=str, ensure_ascii=False)
        except (TypeError, ValueError):
            s = str(value)
    else:
        s = str(value)

    s = " ".join(s.split())

    if len(s) > limit:
        return s[: limit - 1] + "…"

    return s


def redact_secrets(text: str, replacement: str = "[REDACTED]") -> str:
    """Replace credential-looking substrings in ``text``.

    Non-string input is returned unchanged.
    """
    if not isinstance(text, str):
        return text

    result = text
    for pattern in SECRET_PATTERNS:
        result = re.sub(pattern, replacement, result, flags=re.IGNORECASE | re.DOTALL)

    return result


def safe_log_value(value: Any, limit: int = 240, redact: bool = True) -> str:
    """Combine :func:`safe_preview` and :func:`redact_secrets`."""
    preview = safe_preview(value, limit=limit)
    if redact:
        preview = redact_secrets(preview)
    return preview


class AuditFormatter(logging.Formatter):
    """Formatter emitting JSON (or plain text) with request and caller context.

    ``request_id`` and ``user_id`` are lifted from the record when present;
    any other ``extra`` fields are added as bounded, redacted values.
    """

    def __init__(
        self,
        include_context: bool = True,
        json_format: bool = True,
        redact_secrets: bool = True,
        *args: Any,
        **kwargs: Any,
    ):
        super().__init__(*args, **kwargs)
        self.include_context = include_context
        self.json_format = json_format
        self.redact_secrets = redact_secrets

    def format(self, record: logging.LogRecord) -> str:
        request_id = getattr(record, "request_id", None)
        user_id = getattr(record, "user_id", None)

        log_data: dict[str, Any] = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        if self.include_context:
            if request_id:
                log_data["request_id"] = str(request_id)
            if user_id:
                log_data["user_id"] = str(user_id)

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        for key, value in record.__dict__.items():
            if key not in _RESERVED_ATTRS:
                log_data[key] = safe_log_value(value, redact=self.redact_secrets)

        if self.redact_secrets:
            log_data["message"] = redact_secrets(log_data["message"])

        if self.json_format:
            return json.dumps(log_data, default=str, ensure_ascii=False)

        parts = [
            f"[{log_data['timestamp']}]",
            f"{log_data['level']}",
            f"{log_data['logger']}",
        ]
        if "user_id" in log_data:
            parts.append(f"user_id={log_data['user_id']}")
        if "request_id" in log_data:
            parts.append(f"request_id={log_data['request_id']}")
        parts.append(f": {log_data['message']}")
        return " ".join(parts)


class PrincipalLoggerAdapter(logging.LoggerAdapter):
    """Logger adapter that adds request_id and user_id to every record.

    Usage:
        logger = get_guard_logger(__name__, request_id=req_id)
        logger.info("Task updated", principal=principal)
    """

    def __init__(
        self,
        logger: logging.Logger,
        user_id: Optional[str] = None,
        request_id: Optional[str] = None,
    ):
        super().__init__(logger, {})
        self.user_id = user_id
        self.request_id = request_id

    def process(self, msg: str, kwargs: dict[str, Any]) -> tuple[str, dict[str, Any]]:
        user_id = kwargs.pop("user_id", self.user_id)
        request_id = kwargs.pop("request_id", self.request_id)

        principal = kwargs.pop("principal", None)
        if isinstance(principal, Principal):
            user_id = user_id or principal.id

        extra = dict(kwargs.get("extra") or {})
        if user_id:
            extra["user_id"] = user_id
        if request_id:
            extra["request_id"] = request_id
        kwargs["extra"] = extra

        return msg, kwargs


def setup_logging(
    config: Optional[GuardConfig] = None,
    json_format: bool = True,
    redact_secrets: bool = True,
    service_name: Optional[str] = None,
) -> None:
    """Configure the root logger for a service embedding taskguard.

    The audit side-channel logger (``config.audit.logger_name``) gets a
    ``QueueHandler`` and stops propagating; a ``QueueListener`` thread feeds
    its records to the console handler. Call :func:`shutdown_logging` to
    flush it (also registered with ``atexit``).

    Args:
        config: GuardConfig instance (if None, loads from environment)
        json_format: Whether to use JSON format (default: True)
        redact_secrets: Whether to redact secrets (default: True)
        service_name: Optional service logger to align with the root level
    """
    if config is None:
        from .config import load_config_from_env
        config = load_config_from_env()

    level_map = {
        LogLevel.DEBUG: logging.DEBUG,
        LogLevel.INFO: logging.INFO,
        LogLevel.WARNING: logging.WARNING,
        LogLevel.ERROR: logging.ERROR,
        LogLevel.CRITICAL: logging.CRITICAL,
    }
    log_level = level_map.get(config.log_level, logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(log_level)
    console_handler.setFormatter(
        AuditFormatter(
            include_context=True,
            json_format=json_format,
            redact_secrets=redact_secrets,
        )
    )
    root_logger.addHandler(console_handler)

    # The audit side-channel follows the configured level too
    audit_logger = logging.getLogger(config.audit.logger_name)
    audit_logger.setLevel(log_level)
    _route_through_queue(audit_logger, console_handler)

    name = service_name or config.service_name
    if name:
        logging.getLogger(name).setLevel(log_level)


_audit_listener: Optional[QueueListener] = None


def _route_through_queue(audit_logger: logging.Logger, handler: logging.Handler) -> None:
    """Hand audit records to a background listener so emitting never waits on handler I/O."""
    global _audit_listener
    shutdown_logging()

    for existing in audit_logger.handlers[:]:
        if isinstance(existing, QueueHandler):
            audit_logger.removeHandler(existing)

    records: queue.SimpleQueue = queue.SimpleQueue()
    audit_logger.addHandler(QueueHandler(records))
    audit_logger.propagate = False

    _audit_listener = QueueListener(records, handler, respect_handler_level=True)
    _audit_listener.start()


def shutdown_logging() -> None:
    """Flush and stop the audit side-channel listener started by :func:`setup_logging`."""
    global _audit_listener
    if _audit_listener is not None:
        _audit_listener.stop()
        _audit_listener = None


atexit.register(shutdown_logging)


def get_guard_logger(
    name: str,
    user_id: Optional[str] = None,
    request_id: Optional[str] = None,
) -> PrincipalLoggerAdapter:
    """Get a logger adapter bound to a caller and/or request.

    Example:
        logger = get_guard_logger(__name__, request_id="req-42")
        logger.info("Listing tasks", principal=principal)
    """
    logger = logging.getLogger(name)
    return PrincipalLoggerAdapter(logger, user_id=user_id, request_id=request_id)


__all__ = [
    "safe_preview",
    "redact_secrets",
    "safe_log_value",
    "AuditFormatter",
    "PrincipalLoggerAdapter",
    "setup_logging",
    "shutdown_logging",
    "get_guard_logger",
]
