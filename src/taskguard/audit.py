"""Append-only, in-memory audit log of access decisions.

Every authorization decision produces exactly one :class:`AuditEntry`.
Entries are kept newest-first for the lifetime of the process and are
also echoed to a logger (the audit side-channel) for operational
visibility.

There is no persistence, rotation or pagination. Those belong in a
subclass or a replacement sink exposing the same ``record``/``list`` pair.
"""

from __future__ import annotations

import logging
import threading
from datetime import datetime, timezone
from uuid import uuid4

from pydantic import BaseModel, Field

from .config import AuditConfig

logger = logging.getLogger(__name__)

RBAC_RESOURCE = "rbac"


class AuditEntry(BaseModel):
    """Immutable record of one authorization decision."""

    model_config = {"frozen": True}

    id: str = Field(default_factory=lambda: uuid4().hex)
    user_id: str
    action: str
    resource: str
    allowed: bool
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def timestamp_iso(self) -> str:
        return self.timestamp.isoformat()


class AuditLog:
    """Process-wide audit sink, injected into every component that records.

    ``record`` is safe under concurrent callers: insertion happens under a
    single lock. Order reflects completion order of ``record`` calls.

    The echo runs synchronously on whatever handlers sit on
    ``AuditConfig.logger_name``. :func:`taskguard.logging.setup_logging`
    puts a ``QueueHandler`` there so ``record`` never waits on handler I/O.
    Applications that configure logging themselves should do the same.
    """

    def __init__(self, config: AuditConfig | None = None) -> None:
        self._config = config or AuditConfig()
        self._entries: list[AuditEntry] = []
        self._lock = threading.Lock()
        self._echo = logging.getLogger(self._config.logger_name)

    @property
    def anonymous_user_id(self) -> str:
        return self._config.anonymous_user_id

    def record(self, *, user_id: str, action: str, resource: str, allowed: bool) -> AuditEntry:
        """Create an entry, insert it at the front, and echo it.

        Returns:
            The stored entry.
        """
        entry = AuditEntry(user_id=user_id, action=action, resource=resource, allowed=allowed)
        with self._lock:
            self._entries.insert(0, entry)

        if self._config.echo_enabled:
            self._emit(entry)
        return entry

    def _emit(self, entry: AuditEntry) -> None:
        # Side-channel only; a broken handler must not lose the decision.
        try:
            self._echo.log(
                logging.INFO if entry.allowed else logging.WARNING,
                "[AUDIT] %s %s on %s: %s",
                entry.user_id,
                entry.action,
                entry.resource,
                "allowed" if entry.allowed else "denied",
                extra={
                    "audit_id": entry.id,
                    "user_id": entry.user_id,
                    "allowed": entry.allowed,
                    "audit_timestamp": entry.timestamp_iso,
                },
            )
        except Exception as e:
            logger.error("Failed to echo audit entry %s: %s", entry.id, e)

    def list(self) -> list[AuditEntry]:
        """Snapshot of all entries, newest first."""
        with self._lock:
            return list(self._entries)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


__all__ = [
    "RBAC_RESOURCE",
    "AuditEntry",
    "AuditLog",
]
