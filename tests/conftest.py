"""Shared fixtures: in-memory stores wired into the authorization core."""

from __future__ import annotations

import pytest
import pytest_asyncio

from taskguard import (
    AuditConfig,
    AuditLog,
    AuthorizationGuard,
    InMemoryOrganizationStore,
    InMemoryTaskStore,
    OrganizationScope,
    TaskAccessPolicy,
    TaskService,
    seed_demo,
)


@pytest.fixture
def audit_log() -> AuditLog:
    return AuditLog(AuditConfig(echo_enabled=False))


@pytest.fixture
def org_store() -> InMemoryOrganizationStore:
    return InMemoryOrganizationStore()


@pytest.fixture
def task_store() -> InMemoryTaskStore:
    return InMemoryTaskStore()


@pytest.fixture
def scope(org_store: InMemoryOrganizationStore) -> OrganizationScope:
    return OrganizationScope(org_store)


@pytest.fixture
def guard(audit_log: AuditLog) -> AuthorizationGuard:
    return AuthorizationGuard(audit_log)


@pytest.fixture
def policy(task_store, scope, audit_log) -> TaskAccessPolicy:
    return TaskAccessPolicy(task_store, scope, audit_log)


@pytest.fixture
def service(guard, policy, scope, task_store, audit_log) -> TaskService:
    return TaskService(
        guard=guard,
        policy=policy,
        scope=scope,
        task_store=task_store,
        audit_log=audit_log,
    )


@pytest_asyncio.fixture
async def demo(org_store, task_store):
    return await seed_demo(org_store, task_store)
