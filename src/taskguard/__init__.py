from .config import AuditConfig, GuardConfig, LogLevel, load_config_from_env
from .permissions import (
    OPERATIONS,
    READ_ONLY_ROLE,
    ROLE_HIERARCHY,
    ROLE_PERMISSIONS,
    Operation,
    Permission,
    PermissionCatalog,
    Role,
    base_permissions,
    default_catalog,
    get_operation,
    has_permission,
    require_permissions,
    required_permissions_for,
    resolved_permissions,
)
from .models import (
    Organization,
    Principal,
    Task,
    TaskCategory,
    TaskCreate,
    TaskStatus,
    TaskUpdate,
)
from .exceptions import (
    ConfigurationError,
    ForbiddenError,
    NotFoundError,
    StorageError,
    TaskGuardError,
    UnauthenticatedError,
    get_http_status_code,
)
from .logging import (
    safe_preview,
    redact_secrets,
    safe_log_value,
    AuditFormatter,
    PrincipalLoggerAdapter,
    setup_logging,
    shutdown_logging,
    get_guard_logger,
)
from .audit import AuditEntry, AuditLog
from .organizations import OrganizationScope, OrganizationStore
from .storage import InMemoryOrganizationStore, InMemoryTaskStore, TaskStore, seed_demo
from .security import AccessDecision, AuthorizationGuard, TaskAccessPolicy
from .service import TaskService

__all__ = [
    'AuditConfig',
    'GuardConfig',
    'LogLevel',
    'load_config_from_env',
    'OPERATIONS',
    'READ_ONLY_ROLE',
    'ROLE_HIERARCHY',
    'ROLE_PERMISSIONS',
    'Operation',
    'Permission',
    'PermissionCatalog',
    'Role',
    'base_permissions',
    'default_catalog',
    'get_operation',
    'has_permission',
    'require_permissions',
    'required_permissions_for',
    'resolved_permissions',
    'Organization',
    'Principal',
    'Task',
    'TaskCategory',
    'TaskCreate',
    'TaskStatus',
    'TaskUpdate',
    'ConfigurationError',
    'ForbiddenError',
    'NotFoundError',
    'StorageError',
    'TaskGuardError',
    'UnauthenticatedError',
    'get_http_status_code',
    'safe_preview',
    'redact_secrets',
    'safe_log_value',
    'AuditFormatter',
    'PrincipalLoggerAdapter',
    'setup_logging',
    'shutdown_logging',
    'get_guard_logger',
    'AuditEntry',
    'AuditLog',
    'OrganizationScope',
    'OrganizationStore',
    'InMemoryOrganizationStore',
    'InMemoryTaskStore',
    'TaskStore',
    'seed_demo',
    'AccessDecision',
    'AuthorizationGuard',
    'TaskAccessPolicy',
    'TaskService',
]
