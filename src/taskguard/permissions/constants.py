"""Role and permission constants for taskguard.

Provides:
- ``Role`` — the closed set of privilege levels a principal can hold.
- ``Permission`` — capability tags in ``resource:action`` format.
- ``READ_ONLY_ROLE`` — the role categorically barred from task mutation.
"""

from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """Privilege level assigned to a principal.

    Inheritance (see :data:`ROLE_HIERARCHY`): ``Owner`` → ``Admin`` → ``Viewer``.
    """

    OWNER = "Owner"
    ADMIN = "Admin"
    VIEWER = "Viewer"


class Permission(str, Enum):
    """Canonical permission tags.

    Format: ``{resource}:{action}``
    """

    # ── Tasks ───────────────────────────────────────────
    TASK_CREATE = "task:create"
    TASK_READ = "task:read"
    TASK_UPDATE = "task:update"
    TASK_DELETE = "task:delete"

    # ── Audit ───────────────────────────────────────────
    AUDIT_READ = "audit:read"

    # ── Administration ──────────────────────────────────
    USER_MANAGE = "user:manage"
    ORGANIZATION_MANAGE = "organization:manage"

    @property
    def resource(self) -> str:
        return self.value.split(":", 1)[0]

    @property
    def action(self) -> str:
        return self.value.split(":", 1)[1]


READ_ONLY_ROLE = Role.VIEWER


__all__ = [
    "READ_ONLY_ROLE",
    "Permission",
    "Role",
]
