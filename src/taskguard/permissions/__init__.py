"""Canonical role/permission registry for taskguard.

Defines:
- Role, Permission: closed enumerations
- ROLE_PERMISSIONS: role → base permission set
- ROLE_HIERARCHY: role → parent role
- PermissionCatalog: resolve inherited permissions
- OPERATIONS: operation → required permissions
"""

from .constants import READ_ONLY_ROLE, Permission, Role
from .inheritance import (
    ROLE_HIERARCHY,
    ROLE_PERMISSIONS,
    PermissionCatalog,
    base_permissions,
    default_catalog,
    has_permission,
    resolved_permissions,
)
from .operations import (
    OPERATIONS,
    Operation,
    get_operation,
    require_permissions,
    required_permissions_for,
)

__all__ = [
    "OPERATIONS",
    "READ_ONLY_ROLE",
    "ROLE_HIERARCHY",
    "ROLE_PERMISSIONS",
    "Operation",
    "Permission",
    "PermissionCatalog",
    "Role",
    "base_permissions",
    "default_catalog",
    "get_operation",
    "has_permission",
    "require_permissions",
    "required_permissions_for",
    "resolved_permissions",
]
