"""Authorization decisions for taskguard.

This package provides the two decision points an HTTP layer calls:
1. **AuthorizationGuard** — coarse role-permission check for every guarded
   operation, always audited.
2. **TaskAccessPolicy** — organization-scope and role check for mutating a
   specific task, always audited.

Usage::

    from taskguard.security import AuthorizationGuard, TaskAccessPolicy

    guard = AuthorizationGuard(audit_log)
    if not guard.authorize(principal, {Permission.TASK_READ}, "GET /tasks"):
        ...

    decision = await policy.can_mutate(principal, task_id, Permission.TASK_UPDATE)
"""

from __future__ import annotations

from .guard import AccessDecision, AuthorizationGuard
from .task_policy import MUTATING_ACTIONS, TaskAccessPolicy

__all__ = [
    "AccessDecision",
    "AuthorizationGuard",
    "MUTATING_ACTIONS",
    "TaskAccessPolicy",
]
