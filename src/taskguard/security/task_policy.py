"""Task-level access policy for update and delete.

Holding ``task:update`` or ``task:delete`` is necessary but not sufficient
to mutate a particular task. The task's organization must also lie within
the caller's organization scope, and the read-only role is refused
outright regardless of what the permission table says.
"""

from __future__ import annotations

import logging

from ..audit import AuditLog
from ..exceptions import ForbiddenError, NotFoundError
from ..models import Principal, Task
from ..organizations import OrganizationScope
from ..permissions.constants import READ_ONLY_ROLE, Permission
from ..storage import TaskStore
from .guard import AccessDecision

logger = logging.getLogger(__name__)

MUTATING_ACTIONS = frozenset({Permission.TASK_UPDATE, Permission.TASK_DELETE})

REASON_ALLOWED = "allowed"
REASON_OUT_OF_SCOPE = "out_of_scope"
REASON_READ_ONLY_ROLE = "read_only_role"


class TaskAccessPolicy:
    """Ownership/scope check for mutating a single task.

    Steps, in order:
        1. Load the task (``NotFoundError`` if absent, nothing recorded).
        2. Resolve the caller's organization scope.
        3. Check the task's organization is in scope.
        4. Check the caller's role is not the read-only role.
        5. Record one audit entry for ``task:<id>`` with the outcome.
    """

    def __init__(self, task_store: TaskStore, scope: OrganizationScope, audit_log: AuditLog) -> None:
        self._tasks = task_store
        self._scope = scope
        self._audit = audit_log

    async def can_mutate(self, principal: Principal, task_id: str, action: Permission) -> AccessDecision:
        decision, _ = await self._evaluate(principal, task_id, action)
        return decision

    async def ensure_can_mutate(self, principal: Principal, task_id: str, action: Permission) -> Task:
        """Return the task if the caller may mutate it.

        Raises:
            NotFoundError: No task with ``task_id``.
            ForbiddenError: Out of scope or read-only role.
        """
        decision, task = await self._evaluate(principal, task_id, action)
        if decision.denied:
            raise ForbiddenError(f"Not allowed to {action.action} this task")
        return task

    async def _evaluate(self, principal: Principal, task_id: str, action: Permission) -> tuple[AccessDecision, Task]:
        if action not in MUTATING_ACTIONS:
            raise ValueError(f"Invalid mutating action: {action}. Must be one of {sorted(a.value for a in MUTATING_ACTIONS)}")

        task = await self._tasks.find_task_by_id(task_id)
        if task is None:
            raise NotFoundError("Task not found", task_id=task_id)

        scoped_ids = await self._scope.scoped_organization_ids(principal.organization_id)
        within_scope = task.organization_id in scoped_ids
        role_allowed = principal.role != READ_ONLY_ROLE

        if not within_scope:
            decision = AccessDecision(allowed=False, reason=REASON_OUT_OF_SCOPE)
        elif not role_allowed:
            decision = AccessDecision(allowed=False, reason=REASON_READ_ONLY_ROLE)
        else:
            decision = AccessDecision(allowed=True, reason=REASON_ALLOWED)

        try:
            self._audit.record(
                user_id=principal.id,
                action=action.value,
                resource=task.resource,
                allowed=decision.allowed,
            )
        except Exception as e:
            logger.error("Audit write failed for %s on %s: %s", principal.id, task.resource, e)

        if decision.denied:
            logger.info(
                "Denied %s on %s for %s (%s)",
                action.value,
                task.resource,
                principal.id,
                decision.reason,
            )
        return decision, task


__all__ = [
    "MUTATING_ACTIONS",
    "TaskAccessPolicy",
]
