"""Static operation metadata: which permissions each operation requires.

Handlers declare their requirements with :func:`require_permissions`;
the HTTP layer reads them back with :func:`required_permissions_for` and
hands them to ``AuthorizationGuard.authorize``. Operations with no
declared permissions are not guarded and not audited.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, TypeVar

from ..exceptions import ConfigurationError
from .constants import Permission

_F = TypeVar("_F", bound=Callable[..., Any])

REQUIRED_PERMISSIONS_ATTR = "__required_permissions__"


@dataclass(frozen=True)
class Operation:
    """An endpoint and the permissions it requires (AND semantics)."""

    name: str
    method: str
    path: str
    permissions: frozenset[Permission] = field(default_factory=frozenset)

    @property
    def action(self) -> str:
        """Audit action string, ``"<METHOD> <path>"``."""
        return f"{self.method} {self.path}"


def require_permissions(*permissions: Permission) -> Callable[[_F], _F]:
    """Attach required permissions to a handler.

    Usage::

        @require_permissions(Permission.TASK_UPDATE)
        async def update(principal, task_id, payload): ...
    """

    def decorator(func: _F) -> _F:
        setattr(func, REQUIRED_PERMISSIONS_ATTR, frozenset(permissions))
        return func

    return decorator


def required_permissions_for(handler: Callable[..., Any]) -> frozenset[Permission]:
    """Permissions declared on ``handler``; empty when undecorated."""
    return getattr(handler, REQUIRED_PERMISSIONS_ATTR, frozenset())


OPERATIONS: dict[str, Operation] = {
    op.name: op
    for op in (
        Operation("tasks.list", "GET", "/tasks", frozenset({Permission.TASK_READ})),
        Operation("tasks.create", "POST", "/tasks", frozenset({Permission.TASK_CREATE})),
        Operation("tasks.update", "PUT", "/tasks/{id}", frozenset({Permission.TASK_UPDATE})),
        Operation("tasks.delete", "DELETE", "/tasks/{id}", frozenset({Permission.TASK_DELETE})),
        Operation("audit.list", "GET", "/audit-log", frozenset({Permission.AUDIT_READ})),
    )
}


def get_operation(name: str) -> Operation:
    """Look up an operation by name.

    Raises:
        ConfigurationError: If no such operation is declared.
    """
    try:
        return OPERATIONS[name]
    except KeyError:
        raise ConfigurationError(f"Unknown operation: {name}", operation=name) from None


__all__ = [
    "OPERATIONS",
    "Operation",
    "REQUIRED_PERMISSIONS_ATTR",
    "get_operation",
    "require_permissions",
    "required_permissions_for",
]
