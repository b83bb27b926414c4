"""Unified exception hierarchy for taskguard.

All errors raised by the authorization core inherit from TaskGuardError.
This module provides:
- Base exception hierarchy with stable error codes
- ErrorRegistry for protocol mapping
- HTTP status mapping for the consuming web layer

Usage:
    from taskguard.exceptions import (
        ForbiddenError,
        NotFoundError,
        get_http_status_code,
    )

    try:
        await service.update_task(principal, task_id, payload)
    except TaskGuardError as e:
        return JSONResponse({"code": e.code, "message": e.message}, get_http_status_code(e))
"""

from __future__ import annotations

import logging
from typing import Any, Callable, TypeVar, cast

__all__ = [
    # Base hierarchy
    "TaskGuardError",
    "UnauthenticatedError",
    "ForbiddenError",
    "NotFoundError",
    "ConfigurationError",
    "StorageError",
    # Registry
    "ErrorRegistry",
    "error_registry",
    "register_error",
    # HTTP helpers
    "get_http_status_code",
]

logger = logging.getLogger(__name__)


# ---- Exception Hierarchy ----------------------------------------------------


class TaskGuardError(Exception):
    """Base exception for taskguard.

    Attributes:
        code: Stable error code string for protocol mapping (e.g. "PERMISSION_DENIED").
        message: Human-readable error description.
        details: Additional context as keyword arguments.
    """

    code: str = "INTERNAL_ERROR"
    message: str = "An internal error occurred"

    def __init__(self, message: str | None = None, code: str | None = None, **kwargs: Any) -> None:
        self.message = message or self.message
        self.code = code or self.code
        self.details = kwargs
        super().__init__(self.message)


class UnauthenticatedError(TaskGuardError):
    """No principal present where one is required."""

    code: str = "UNAUTHENTICATED"
    message: str = "Authentication required"


class ForbiddenError(TaskGuardError):
    """Principal present but not allowed to perform the operation.

    The message stays generic; the failing rule is never exposed.
    """

    code: str = "PERMISSION_DENIED"
    message: str = "Not allowed"


class NotFoundError(TaskGuardError):
    """Referenced task or organization does not exist."""

    code: str = "NOT_FOUND"
    message: str = "Resource not found"


class ConfigurationError(TaskGuardError):
    """Invalid role/permission tables or operation metadata."""

    code: str = "CONFIGURATION_ERROR"


class StorageError(TaskGuardError):
    """Storage collaborator failure."""

    code: str = "STORAGE_ERROR"


# ---- Error Registry for Protocol Mapping ------------------------------------

_E = TypeVar("_E", bound=type[TaskGuardError])


class ErrorRegistry:
    """Registry for mapping internal errors to external protocol codes."""

    def __init__(self) -> None:
        self._errors: dict[str, type[TaskGuardError]] = {}

    def register(self, code: str, error_cls: type[TaskGuardError]) -> None:
        self._errors[code] = error_cls

    def get(self, code: str) -> type[TaskGuardError] | None:
        return self._errors.get(code)

    def all(self) -> dict[str, type[TaskGuardError]]:
        return dict(self._errors)


error_registry = ErrorRegistry()


def register_error(code: str) -> Callable[[_E], _E]:
    """Decorator to register a custom error type.

    Usage:
        @register_error("QUOTA_EXCEEDED")
        class QuotaExceededError(TaskGuardError):
            code = "QUOTA_EXCEEDED"
    """

    def decorator(cls: _E) -> _E:
        error_registry.register(code, cls)
        return cls

    return cast(Callable[[_E], _E], decorator)


# Register base errors
error_registry.register("INTERNAL_ERROR", TaskGuardError)
error_registry.register("UNAUTHENTICATED", UnauthenticatedError)
error_registry.register("PERMISSION_DENIED", ForbiddenError)
error_registry.register("NOT_FOUND", NotFoundError)
error_registry.register("CONFIGURATION_ERROR", ConfigurationError)
error_registry.register("STORAGE_ERROR", StorageError)


# ---- HTTP Mapping -----------------------------------------------------------

_HTTP_STATUS = {
    "UNAUTHENTICATED": 401,
    "PERMISSION_DENIED": 403,
    "NOT_FOUND": 404,
    "CONFIGURATION_ERROR": 500,
    "STORAGE_ERROR": 503,
}


def get_http_status_code(error: TaskGuardError) -> int:
    """Map a TaskGuardError to the HTTP status the web layer should return.

    Unknown codes map to 500.
    """
    status = _HTTP_STATUS.get(error.code)
    if status is None:
        logger.debug("No HTTP mapping for error code %s, using 500", error.code)
        return 500
    return status
