"""Role permission tables, role inheritance, and the permission catalog.

Provides:
- ``ROLE_PERMISSIONS`` — role → base permissions (own grants only).
- ``ROLE_HIERARCHY`` — role → parent role.
- ``PermissionCatalog`` — resolves transitive permission sets.
- ``base_permissions()``, ``resolved_permissions()``, ``has_permission()`` —
  shortcuts over the default catalog.
"""

from __future__ import annotations

import logging
from typing import Iterable, Mapping, Optional

from ..exceptions import ConfigurationError
from .constants import Permission, Role

logger = logging.getLogger(__name__)

# ── Base Permissions ────────────────────────────────────
# A role's own grants. Inherited grants are resolved through ROLE_HIERARCHY.

ROLE_PERMISSIONS: dict[Role, frozenset[Permission]] = {
    Role.VIEWER: frozenset({Permission.TASK_READ}),
    Role.ADMIN: frozenset(
        {
            Permission.TASK_CREATE,
            Permission.TASK_UPDATE,
            Permission.TASK_DELETE,
            Permission.AUDIT_READ,
        }
    ),
    Role.OWNER: frozenset(
        {
            Permission.USER_MANAGE,
            Permission.ORGANIZATION_MANAGE,
        }
    ),
}

# ── Role Inheritance ────────────────────────────────────
# Child role → parent role whose permissions it inherits.

ROLE_HIERARCHY: dict[Role, Optional[Role]] = {
    Role.OWNER: Role.ADMIN,
    Role.ADMIN: Role.VIEWER,
    Role.VIEWER: None,
}


class PermissionCatalog:
    """Resolves the permission set for a role, following inheritance.

    The tables are copied on construction and never mutated afterwards, so
    a catalog can be shared across concurrent requests.

    Unknown role values (anything that is not a :class:`Role` key in the
    table) degrade to an empty permission set. Denial is always safe.

    Example::

        catalog = PermissionCatalog()
        catalog.has_permission(Role.ADMIN, Permission.TASK_READ)      # True (inherited)
        catalog.has_permission(Role.ADMIN, Permission.USER_MANAGE)    # False
        catalog.resolved_permissions("Intern")                        # frozenset()
    """

    __slots__ = ("_role_permissions", "_hierarchy")

    def __init__(
        self,
        role_permissions: Mapping[Role, Iterable[Permission]] | None = None,
        hierarchy: Mapping[Role, Optional[Role]] | None = None,
    ) -> None:
        source = ROLE_PERMISSIONS if role_permissions is None else role_permissions
        self._role_permissions: dict[Role, frozenset[Permission]] = {
            role: frozenset(perms) for role, perms in source.items()
        }
        self._hierarchy: dict[Role, Optional[Role]] = dict(ROLE_HIERARCHY if hierarchy is None else hierarchy)
        self.validate()

    def validate(self) -> None:
        """Check the hierarchy is acyclic and only references known roles.

        Raises:
            ConfigurationError: On a cycle or an unknown parent role.
        """
        for role, parent in self._hierarchy.items():
            if parent is not None and parent not in self._role_permissions:
                raise ConfigurationError(
                    f"Role {role} inherits from {parent}, which has no permission entry",
                    role=str(role),
                    parent=str(parent),
                )

        for role in self._hierarchy:
            seen: set[Role] = set()
            current: Optional[Role] = role
            while current is not None:
                if current in seen:
                    raise ConfigurationError(
                        f"Role hierarchy contains a cycle through {current}",
                        role=str(current),
                    )
                seen.add(current)
                current = self._hierarchy.get(current)

    def _coerce(self, role: object) -> Optional[Role]:
        """Map a raw role value onto a known :class:`Role`, or None."""
        if not isinstance(role, Role):
            try:
                role = Role(role)
            except (TypeError, ValueError):
                return None
        return role if role in self._role_permissions else None

    def base_permissions(self, role: Role | str) -> frozenset[Permission]:
        """Return the role's own grants, excluding inherited ones."""
        known = self._coerce(role)
        if known is None:
            logger.warning("Unknown role %r, treating as having no permissions", role)
            return frozenset()
        return self._role_permissions[known]

    def role_chain(self, role: Role | str) -> tuple[Role, ...]:
        """Return ``role`` followed by its ancestors, nearest first.

        Unknown roles produce an empty chain. The walk stops at the first
        repeated role, so it terminates even on a hand-built cyclic table.
        """
        current = self._coerce(role)
        chain: list[Role] = []
        while current is not None and current not in chain:
            chain.append(current)
            current = self._hierarchy.get(current)
        return tuple(chain)

    def resolved_permissions(self, role: Role | str) -> frozenset[Permission]:
        """Return base permissions of ``role`` plus those of every ancestor."""
        chain = self.role_chain(role)
        if not chain:
            logger.warning("Unknown role %r, treating as having no permissions", role)
            return frozenset()

        resolved: set[Permission] = set()
        for ancestor in chain:
            resolved.update(self._role_permissions.get(ancestor, frozenset()))
        return frozenset(resolved)

    def has_permission(self, role: Role | str, permission: Permission) -> bool:
        return permission in self.resolved_permissions(role)

    def has_all_permissions(self, role: Role | str, permissions: Iterable[Permission]) -> bool:
        """AND semantics: every permission must be held. Vacuously true for none."""
        resolved = self.resolved_permissions(role)
        return all(permission in resolved for permission in permissions)

    def all_permissions(self) -> frozenset[Permission]:
        """Union of every role's base permissions."""
        union: set[Permission] = set()
        for perms in self._role_permissions.values():
            union.update(perms)
        return frozenset(union)

    @property
    def roles(self) -> tuple[Role, ...]:
        return tuple(self._role_permissions)

    def parent_of(self, role: Role) -> Optional[Role]:
        return self._hierarchy.get(role)

    def __repr__(self) -> str:
        return f"PermissionCatalog(roles={[str(r.value) for r in self._role_permissions]!r})"


default_catalog = PermissionCatalog()


def base_permissions(role: Role | str) -> frozenset[Permission]:
    return default_catalog.base_permissions(role)


def resolved_permissions(role: Role | str) -> frozenset[Permission]:
    return default_catalog.resolved_permissions(role)


def has_permission(role: Role | str, permission: Permission) -> bool:
    return default_catalog.has_permission(role, permission)


__all__ = [
    "ROLE_HIERARCHY",
    "ROLE_PERMISSIONS",
    "PermissionCatalog",
    "base_permissions",
    "default_catalog",
    "has_permission",
    "resolved_permissions",
]
