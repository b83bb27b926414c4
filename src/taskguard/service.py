"""Guarded task and audit operations.

``TaskService`` is what an HTTP controller calls. Every method first runs
the coarse permission check for its operation, then applies the
organization scope (list), ownership assignment (create), or the task
access policy (update/delete).
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from .audit import AuditEntry, AuditLog
from .exceptions import StorageError, UnauthenticatedError
from .models import Principal, Task, TaskCategory, TaskCreate, TaskStatus, TaskUpdate
from .organizations import OrganizationScope
from .permissions.constants import Permission
from .permissions.operations import get_operation
from .security.guard import AuthorizationGuard
from .security.task_policy import TaskAccessPolicy
from .storage import TaskStore

logger = logging.getLogger(__name__)

SORT_FIELDS = ("order", "title", "status")


class TaskService:
    def __init__(
        self,
        *,
        guard: AuthorizationGuard,
        policy: TaskAccessPolicy,
        scope: OrganizationScope,
        task_store: TaskStore,
        audit_log: AuditLog,
    ) -> None:
        self._guard = guard
        self._policy = policy
        self._scope = scope
        self._tasks = task_store
        self._audit = audit_log

    def _ensure(self, principal: Optional[Principal], operation_name: str) -> Principal:
        operation = get_operation(operation_name)
        caller = self._guard.ensure(principal, operation.permissions, operation.action)
        if caller is None:
            raise UnauthenticatedError(action=operation.action)
        return caller

    async def list_tasks(
        self,
        principal: Optional[Principal],
        *,
        category: Optional[TaskCategory] = None,
        status: Optional[TaskStatus] = None,
        search: Optional[str] = None,
        sort: str = "order",
    ) -> list[Task]:
        """Tasks in the caller's organization scope, filtered and sorted ascending."""
        caller = self._ensure(principal, "tasks.list")
        if sort not in SORT_FIELDS:
            raise ValueError(f"Invalid sort field: {sort}. Must be one of {list(SORT_FIELDS)}")

        org_ids = await self._scope.scoped_organization_ids(caller.organization_id)
        if not org_ids:
            return []

        tasks = await self._tasks.find_tasks(org_ids)
        if category is not None:
            tasks = [t for t in tasks if t.category == category]
        if status is not None:
            tasks = [t for t in tasks if t.status == status]
        if search:
            tasks = [t for t in tasks if search in t.title]

        return sorted(tasks, key=lambda t: _sort_key(t, sort))

    async def create_task(self, principal: Optional[Principal], payload: TaskCreate) -> Task:
        """Create a task in the caller's own organization."""
        caller = self._ensure(principal, "tasks.create")
        task = Task(
            **payload.model_dump(),
            organization_id=caller.organization_id,
            created_by_id=caller.id,
        )
        saved = await self._tasks.persist(task)
        try:
            self._audit.record(
                user_id=caller.id,
                action=Permission.TASK_CREATE.value,
                resource=saved.resource,
                allowed=True,
            )
        except Exception as e:
            logger.error("Audit write failed for %s on %s: %s", caller.id, saved.resource, e)
        return saved

    async def update_task(self, principal: Optional[Principal], task_id: str, payload: TaskUpdate) -> Task:
        caller = self._ensure(principal, "tasks.update")
        task = await self._policy.ensure_can_mutate(caller, task_id, Permission.TASK_UPDATE)

        changes = {key: value for key, value in payload.model_dump().items() if value is not None}
        updated = task.model_copy(update=changes)
        return await self._tasks.persist(updated)

    async def delete_task(self, principal: Optional[Principal], task_id: str) -> dict[str, Any]:
        caller = self._ensure(principal, "tasks.delete")
        task = await self._policy.ensure_can_mutate(caller, task_id, Permission.TASK_DELETE)
        try:
            await self._tasks.delete(task)
        except StorageError:
            logger.exception("Failed to delete %s", task.resource)
            raise
        return {"deleted": True}

    def list_audit_entries(self, principal: Optional[Principal]) -> list[AuditEntry]:
        """Audit entries, newest first. Requires ``audit:read``."""
        self._ensure(principal, "audit.list")
        return self._audit.list()


def _sort_key(task: Task, field: str) -> Any:
    value = getattr(task, field)
    return value.value if isinstance(value, TaskStatus) else value


__all__ = [
    "SORT_FIELDS",
    "TaskService",
]
