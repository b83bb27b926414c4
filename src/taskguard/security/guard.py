"""Authorization guard: coarse role-permission decisions with audit.

Provides:
- ``AccessDecision`` — allow/deny result with an internal reason code.
- ``AuthorizationGuard`` — per-request decision function that always
  records its decision in the :class:`~taskguard.audit.AuditLog`.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, Optional

from ..audit import RBAC_RESOURCE, AuditLog
from ..exceptions import ForbiddenError, UnauthenticatedError
from ..models import Principal
from ..permissions.constants import Permission
from ..permissions.inheritance import PermissionCatalog, default_catalog
from ..permissions.operations import Operation

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AccessDecision:
    """Result of an access check.

    ``reason`` is for logs and tests only; it is never surfaced to callers
    of the public API.
    """

    allowed: bool
    reason: str = ""

    @property
    def denied(self) -> bool:
        return not self.allowed


class AuthorizationGuard:
    """Decides whether a principal holds every permission an operation needs.

    Decision rules:
        1. No required permissions → allowed, nothing recorded.
        2. No principal → denied (recorded as the anonymous user).
        3. Otherwise allowed iff the role holds ALL required permissions.

    Whenever at least one permission is required, exactly one audit entry
    is recorded with ``resource="rbac"``, whether allowed or not. A failing
    audit sink is logged and does not change the decision.
    """

    def __init__(
        self,
        audit_log: AuditLog,
        catalog: PermissionCatalog | None = None,
    ) -> None:
        self._audit = audit_log
        self._catalog = catalog or default_catalog

    @property
    def catalog(self) -> PermissionCatalog:
        return self._catalog

    def authorize(
        self,
        principal: Optional[Principal],
        required_permissions: Iterable[Permission],
        action: str,
    ) -> bool:
        required = frozenset(required_permissions)
        if not required:
            return True

        allowed = principal is not None and self._catalog.has_all_permissions(principal.role, required)
        user_id = principal.id if principal is not None else self._audit.anonymous_user_id

        try:
            self._audit.record(
                user_id=user_id,
                action=action,
                resource=RBAC_RESOURCE,
                allowed=allowed,
            )
        except Exception as e:
            logger.error("Audit write failed for %s (%s): %s", user_id, action, e)

        if not allowed:
            logger.debug(
                "Denied %s for %s, required=%s",
                action,
                user_id,
                sorted(p.value for p in required),
            )
        return allowed

    def authorize_operation(self, principal: Optional[Principal], operation: Operation) -> bool:
        return self.authorize(principal, operation.permissions, operation.action)

    def ensure(
        self,
        principal: Optional[Principal],
        required_permissions: Iterable[Permission],
        action: str,
    ) -> Optional[Principal]:
        """Like :meth:`authorize`, but raise on denial.

        Raises:
            UnauthenticatedError: Permissions are required and no principal is present.
            ForbiddenError: The principal lacks a required permission.
        """
        required = frozenset(required_permissions)
        if self.authorize(principal, required, action):
            return principal
        if principal is None:
            raise UnauthenticatedError(action=action)
        raise ForbiddenError(action=action)


__all__ = [
    "AccessDecision",
    "AuthorizationGuard",
]
