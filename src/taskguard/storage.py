"""Storage collaborator interfaces and in-memory implementations.

The authorization core never owns persisted state. It reads organizations
and tasks through the protocols below. The in-memory stores back the test
suite and local demos; production deployments supply their own.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Iterable, Optional, Protocol, runtime_checkable

from .exceptions import StorageError
from .models import Organization, Principal, Task, TaskCategory, TaskStatus
from .permissions.constants import Role

logger = logging.getLogger(__name__)


@runtime_checkable
class TaskStore(Protocol):
    """Storage collaborator for tasks."""

    async def find_task_by_id(self, task_id: str) -> Optional[Task]: ...

    async def find_tasks(self, organization_ids: Iterable[str]) -> list[Task]: ...

    async def persist(self, task: Task) -> Task: ...

    async def delete(self, task: Task) -> None: ...


class InMemoryOrganizationStore:
    """Dict-backed organization store.

    Organizations are kept flat; ``children`` is derived from ``parent_id``
    at lookup time, in insertion order.
    """

    def __init__(self) -> None:
        self._orgs: dict[str, Organization] = {}
        self._lock = asyncio.Lock()

    async def add(self, organization: Organization) -> Organization:
        if organization.parent_id is not None and organization.parent_id not in self._orgs:
            raise StorageError(
                f"Parent organization {organization.parent_id} does not exist",
                organization_id=organization.id,
            )
        async with self._lock:
            self._orgs[organization.id] = organization.model_copy(update={"children": []})
        return organization

    async def find_organization_with_relations(self, organization_id: str) -> Optional[Organization]:
        org = self._orgs.get(organization_id)
        if org is None:
            return None
        children = [child for child in self._orgs.values() if child.parent_id == org.id]
        return org.model_copy(update={"children": children})


class InMemoryTaskStore:
    """Dict-backed task store. Returned tasks are copies."""

    def __init__(self) -> None:
        self._tasks: dict[str, Task] = {}
        self._lock = asyncio.Lock()

    async def find_task_by_id(self, task_id: str) -> Optional[Task]:
        task = self._tasks.get(task_id)
        return task.model_copy() if task is not None else None

    async def find_tasks(self, organization_ids: Iterable[str]) -> list[Task]:
        wanted = set(organization_ids)
        return [task.model_copy() for task in self._tasks.values() if task.organization_id in wanted]

    async def persist(self, task: Task) -> Task:
        async with self._lock:
            self._tasks[task.id] = task.model_copy()
        return task

    async def delete(self, task: Task) -> None:
        async with self._lock:
            if self._tasks.pop(task.id, None) is None:
                raise StorageError(f"Task {task.id} does not exist", task_id=task.id)

    def __len__(self) -> int:
        return len(self._tasks)


# ── Demo fixture ─────────────────────────────────────────────────


@dataclass(frozen=True)
class DemoData:
    """Organizations, principals and tasks created by :func:`seed_demo`."""

    acme: Organization
    acme_subsidiary: Organization
    globex: Organization
    owner: Principal
    admin: Principal
    viewer: Principal
    subsidiary_viewer: Principal
    globex_admin: Principal
    tasks: tuple[Task, ...]


async def seed_demo(org_store: InMemoryOrganizationStore, task_store: InMemoryTaskStore) -> DemoData:
    """Populate the stores with a small two-tenant fixture.

    Acme Corp has one child (Acme Subsidiary); Globex Corp is unrelated.
    """
    acme = await org_store.add(Organization(name="Acme Corp"))
    subsidiary = await org_store.add(Organization(name="Acme Subsidiary", parent_id=acme.id))
    globex = await org_store.add(Organization(name="Globex Corp"))

    owner = Principal(id="owner@acme.com", role=Role.OWNER, organization_id=acme.id)
    admin = Principal(id="admin@acme.com", role=Role.ADMIN, organization_id=acme.id)
    viewer = Principal(id="viewer@acme.com", role=Role.VIEWER, organization_id=acme.id)
    subsidiary_viewer = Principal(id="viewer@sub.acme.com", role=Role.VIEWER, organization_id=subsidiary.id)
    globex_admin = Principal(id="admin@globex.com", role=Role.ADMIN, organization_id=globex.id)

    tasks = (
        Task(title="Quarterly planning", category=TaskCategory.WORK, status=TaskStatus.TODO,
             order=0, organization_id=acme.id, created_by_id=owner.id),
        Task(title="Review contracts", category=TaskCategory.WORK, status=TaskStatus.IN_PROGRESS,
             order=1, organization_id=acme.id, created_by_id=admin.id),
        Task(title="Onboard new hire", category=TaskCategory.PERSONAL, status=TaskStatus.TODO,
             order=0, organization_id=subsidiary.id, created_by_id=admin.id),
        Task(title="Globex launch", category=TaskCategory.WORK, status=TaskStatus.DONE,
             order=0, organization_id=globex.id, created_by_id=globex_admin.id),
    )
    for task in tasks:
        await task_store.persist(task)

    logger.info("Seeded demo data: %d organizations, %d tasks", 3, len(tasks))
    return DemoData(
        acme=acme,
        acme_subsidiary=subsidiary,
        globex=globex,
        owner=owner,
        admin=admin,
        viewer=viewer,
        subsidiary_viewer=subsidiary_viewer,
        globex_admin=globex_admin,
        tasks=tasks,
    )


__all__ = [
    "DemoData",
    "InMemoryOrganizationStore",
    "InMemoryTaskStore",
    "TaskStore",
    "seed_demo",
]
