"""Tests for taskguard.security: AuthorizationGuard and TaskAccessPolicy."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest
import pytest_asyncio

from taskguard import (
    AccessDecision,
    AuditLog,
    AuthorizationGuard,
    ForbiddenError,
    NotFoundError,
    Organization,
    Permission,
    Principal,
    Role,
    Task,
    UnauthenticatedError,
    get_operation,
)


def _principal(role: Role, *, id: str = "user-1", org: str = "org-a") -> Principal:
    return Principal(id=id, role=role, organization_id=org)


class TestAccessDecision:
    def test_denied_property(self):
        assert AccessDecision(allowed=True).denied is False
        assert AccessDecision(allowed=False, reason="out_of_scope").denied is True


class TestAuthorizationGuard:
    """AuthorizationGuard.authorize tests."""

    def test_empty_requirement_allows_without_audit(self, guard, audit_log):
        assert guard.authorize(_principal(Role.VIEWER), set(), "GET /health") is True
        assert guard.authorize(None, (), "GET /health") is True
        assert audit_log.list() == []

    def test_anonymous_denied_and_audited(self, guard, audit_log):
        assert guard.authorize(None, {Permission.TASK_READ}, "GET /tasks") is False
        entries = audit_log.list()
        assert len(entries) == 1
        assert entries[0].user_id == "anonymous"
        assert entries[0].allowed is False
        assert entries[0].resource == "rbac"
        assert entries[0].action == "GET /tasks"

    def test_owner_allowed(self, guard, audit_log):
        owner = _principal(Role.OWNER, id="owner-1")
        assert guard.authorize(owner, {Permission.USER_MANAGE}, "GET /users") is True
        entry = audit_log.list()[0]
        assert (entry.user_id, entry.action, entry.resource, entry.allowed) == (
            "owner-1",
            "GET /users",
            "rbac",
            True,
        )

    def test_admin_denied_owner_permission(self, guard, audit_log):
        admin = _principal(Role.ADMIN, id="admin-1")
        assert guard.authorize(admin, {Permission.USER_MANAGE}, "GET /users") is False
        assert audit_log.list()[0].allowed is False

    def test_viewer_read_only(self, guard):
        viewer = _principal(Role.VIEWER)
        assert guard.authorize(viewer, {Permission.TASK_READ}, "GET /tasks") is True
        assert guard.authorize(viewer, {Permission.TASK_CREATE}, "POST /tasks") is False
        assert guard.authorize(viewer, {Permission.AUDIT_READ}, "GET /audit-log") is False

    def test_all_permissions_required(self, guard):
        admin = _principal(Role.ADMIN)
        assert guard.authorize(admin, {Permission.TASK_READ, Permission.TASK_UPDATE}, "PUT /tasks/1") is True
        assert guard.authorize(admin, {Permission.TASK_READ, Permission.ORGANIZATION_MANAGE}, "PUT /orgs/1") is False

    def test_one_entry_per_decision(self, guard, audit_log):
        admin = _principal(Role.ADMIN)
        for _ in range(3):
            guard.authorize(admin, {Permission.TASK_READ}, "GET /tasks")
        guard.authorize(None, {Permission.TASK_READ}, "GET /tasks")
        assert len(audit_log) == 4

    def test_foreign_role_denied(self, guard, audit_log):
        stranger = Principal(id="x", role="Intern", organization_id="org-a")  # type: ignore[arg-type]
        assert guard.authorize(stranger, {Permission.TASK_READ}, "GET /tasks") is False
        assert audit_log.list()[0].allowed is False

    def test_audit_failure_does_not_change_decision(self):
        audit = MagicMock(spec=AuditLog)
        audit.anonymous_user_id = "anonymous"
        audit.record.side_effect = RuntimeError("sink down")
        guard = AuthorizationGuard(audit)
        assert guard.authorize(_principal(Role.ADMIN), {Permission.TASK_READ}, "GET /tasks") is True
        assert guard.authorize(_principal(Role.VIEWER), {Permission.TASK_DELETE}, "DELETE /tasks/1") is False
        assert audit.record.call_count == 2

    def test_authorize_operation(self, guard, audit_log):
        assert guard.authorize_operation(_principal(Role.ADMIN), get_operation("tasks.create")) is True
        assert audit_log.list()[0].action == "POST /tasks"


class TestGuardEnsure:
    """AuthorizationGuard.ensure raises the right error."""

    def test_returns_principal(self, guard):
        admin = _principal(Role.ADMIN)
        assert guard.ensure(admin, {Permission.TASK_READ}, "GET /tasks") is admin

    def test_unauthenticated(self, guard, audit_log):
        with pytest.raises(UnauthenticatedError):
            guard.ensure(None, {Permission.TASK_READ}, "GET /tasks")
        assert audit_log.list()[0].user_id == "anonymous"

    def test_forbidden_message_is_generic(self, guard):
        with pytest.raises(ForbiddenError) as exc_info:
            guard.ensure(_principal(Role.VIEWER), {Permission.AUDIT_READ}, "GET /audit-log")
        assert exc_info.value.message == "Not allowed"
        assert "audit" not in str(exc_info.value)


@pytest_asyncio.fixture
async def tenants(org_store, task_store):
    """Org A with child B, unrelated org C, one task in each of B and C."""
    await org_store.add(Organization(id="A", name="Org A"))
    await org_store.add(Organization(id="B", name="Org B", parent_id="A"))
    await org_store.add(Organization(id="C", name="Org C"))
    t1 = await task_store.persist(Task(id="t1", title="In child", organization_id="B", created_by_id="someone"))
    t2 = await task_store.persist(Task(id="t2", title="Unrelated", organization_id="C", created_by_id="someone"))
    return t1, t2


class TestTaskAccessPolicy:
    """TaskAccessPolicy.can_mutate tests."""

    @pytest.mark.asyncio
    async def test_admin_in_child_scope_allowed(self, policy, audit_log, tenants):
        admin = _principal(Role.ADMIN, id="u", org="A")
        decision = await policy.can_mutate(admin, "t1", Permission.TASK_UPDATE)
        assert decision.allowed is True
        entry = audit_log.list()[0]
        assert (entry.user_id, entry.action, entry.resource, entry.allowed) == ("u", "task:update", "task:t1", True)

    @pytest.mark.asyncio
    async def test_admin_out_of_scope_denied(self, policy, audit_log, tenants):
        admin = _principal(Role.ADMIN, id="u", org="A")
        decision = await policy.can_mutate(admin, "t2", Permission.TASK_UPDATE)
        assert decision.allowed is False
        assert decision.reason == "out_of_scope"
        entries = audit_log.list()
        assert len(entries) == 1
        assert entries[0].allowed is False
        assert entries[0].resource == "task:t2"

    @pytest.mark.asyncio
    async def test_viewer_denied_in_scope(self, policy, tenants):
        viewer = _principal(Role.VIEWER, org="A")
        decision = await policy.can_mutate(viewer, "t1", Permission.TASK_DELETE)
        assert decision.allowed is False
        assert decision.reason == "read_only_role"

    @pytest.mark.asyncio
    async def test_owner_out_of_scope_denied(self, policy, tenants):
        owner = _principal(Role.OWNER, org="B")
        assert (await policy.can_mutate(owner, "t2", Permission.TASK_DELETE)).denied

    @pytest.mark.asyncio
    async def test_missing_caller_org_denies_everything(self, policy, tenants):
        admin = _principal(Role.ADMIN, org="ghost")
        assert (await policy.can_mutate(admin, "t1", Permission.TASK_UPDATE)).denied

    @pytest.mark.asyncio
    async def test_missing_task_not_found_without_audit(self, policy, audit_log, tenants):
        admin = _principal(Role.ADMIN, org="A")
        with pytest.raises(NotFoundError, match="Task not found"):
            await policy.can_mutate(admin, "nope", Permission.TASK_UPDATE)
        assert audit_log.list() == []

    @pytest.mark.asyncio
    async def test_non_mutating_action_rejected(self, policy, tenants):
        with pytest.raises(ValueError, match="Invalid mutating action"):
            await policy.can_mutate(_principal(Role.ADMIN, org="A"), "t1", Permission.TASK_READ)

    @pytest.mark.asyncio
    async def test_delete_action_recorded(self, policy, audit_log, tenants):
        await policy.can_mutate(_principal(Role.ADMIN, org="A"), "t1", Permission.TASK_DELETE)
        assert audit_log.list()[0].action == "task:delete"

    @pytest.mark.asyncio
    async def test_ensure_can_mutate(self, policy, tenants):
        admin = _principal(Role.ADMIN, org="A")
        task = await policy.ensure_can_mutate(admin, "t1", Permission.TASK_UPDATE)
        assert task.id == "t1"
        with pytest.raises(ForbiddenError):
            await policy.ensure_can_mutate(admin, "t2", Permission.TASK_UPDATE)
