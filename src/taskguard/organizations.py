"""Organization scope resolution.

A principal may act within its own organization and that organization's
direct children. The storage collaborator returns an organization together
with its parent and children in one lookup; no further traversal is done.
"""

from __future__ import annotations

import logging
from typing import Optional, Protocol, runtime_checkable

from .models import Organization

logger = logging.getLogger(__name__)


@runtime_checkable
class OrganizationStore(Protocol):
    """Storage collaborator for organizations."""

    async def find_organization_with_relations(self, organization_id: str) -> Optional[Organization]:
        """Return the organization with ``parent_id`` and ``children`` loaded, or None."""
        ...


class OrganizationScope:
    """Resolves the organization ids a principal may operate over.

    An organization that cannot be found yields an empty scope rather than
    an error. Callers treat an empty scope as "nothing is reachable".
    """

    def __init__(self, store: OrganizationStore) -> None:
        self._store = store

    async def scoped_organization_ids(self, root_organization_id: str) -> list[str]:
        """Return ``[root] + descendant ids``, or ``[]`` if root is unknown.

        Order is root first, then children in store order.
        """
        org = await self._store.find_organization_with_relations(root_organization_id)
        if org is None:
            logger.debug("Organization %s not found, scope is empty", root_organization_id)
            return []
        return [org.id, *self._descendant_ids(org)]

    def _descendant_ids(self, org: Organization) -> list[str]:
        """Ids reachable below ``org``.

        Only direct children are included. Subclasses may override this to
        flatten deeper trees.
        """
        return org.child_ids

    async def is_in_scope(self, root_organization_id: str, organization_id: str) -> bool:
        return organization_id in await self.scoped_organization_ids(root_organization_id)


__all__ = [
    "OrganizationScope",
    "OrganizationStore",
]
