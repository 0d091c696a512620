"""
In-memory grant store.

Readers never lock: every query reads the current immutable snapshot. Writers
serialize on a lock, build a new snapshot and publish it with a single
reference assignment, so a concurrent reader observes either the state before
or after a mutation and never a half-applied grant.
"""

from __future__ import annotations

import logging
import threading
from collections import deque
from dataclasses import dataclass, field, replace
from typing import Dict, FrozenSet, List, Optional, Set, Tuple

from brickgate.errors import StoreUnavailableError
from brickgate.models import Grant, PrivilegeType, SecurableKind

from .base import GrantStore, build_grant

logger = logging.getLogger(__name__)

GrantKey = Tuple[str, SecurableKind, str, PrivilegeType]


@dataclass(frozen=True)
class _Snapshot:
    """Immutable view of the store contents."""

    grants: FrozenSet[GrantKey] = frozenset()
    admins: FrozenSet[str] = frozenset()
    # group -> direct members
    members: Dict[str, FrozenSet[str]] = field(default_factory=dict)


class InMemoryGrantStore(GrantStore):
    """
    Thread-safe grant store backed by copy-on-write snapshots.

    Usage:
        store = InMemoryGrantStore()
        store.add_grant("alice", SecurableKind.CATALOG, "sales", PrivilegeType.CREATE_SCHEMA)
        store.has_privilege("alice", SecurableKind.CATALOG, "sales", PrivilegeType.CREATE_SCHEMA)
    """

    def __init__(self, admins: Optional[List[str]] = None) -> None:
        self._lock = threading.Lock()
        self._snapshot = _Snapshot(admins=frozenset(admins or []))
        self._available = True

    # -------------------------------------------------------------------------
    # Availability
    # -------------------------------------------------------------------------

    def set_available(self, available: bool) -> None:
        """Simulate an outage of the backing store (both reads and writes fail)."""
        self._available = available
        logger.warning(f"Grant store marked {'available' if available else 'unavailable'}")

    def _read(self) -> _Snapshot:
        if not self._available:
            raise StoreUnavailableError("grant store is unavailable")
        return self._snapshot

    def _publish(self, snapshot: _Snapshot) -> None:
        # Single reference assignment: the atomic step readers synchronize on
        self._snapshot = snapshot

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def has_privilege(
        self,
        principal: str,
        kind: SecurableKind,
        securable_id: str,
        privilege: PrivilegeType,
    ) -> bool:
        snapshot = self._read()
        if principal in snapshot.admins:
            return True

        kind = SecurableKind(kind)
        privilege = PrivilegeType(privilege)
        if (principal, kind, securable_id, privilege) in snapshot.grants:
            return True

        for group in self._resolve_groups(snapshot, principal):
            if (group, kind, securable_id, privilege) in snapshot.grants:
                logger.debug(f"{principal} holds {privilege.value} on {kind.value}:{securable_id} via group {group}")
                return True
        return False

    def is_admin(self, principal: str) -> bool:
        return principal in self._read().admins

    def list_grants(
        self,
        principal: Optional[str] = None,
        kind: Optional[SecurableKind] = None,
        securable_id: Optional[str] = None,
    ) -> List[Grant]:
        snapshot = self._read()
        result = []
        for p, k, sid, priv in snapshot.grants:
            if principal is not None and p != principal:
                continue
            if kind is not None and k != kind:
                continue
            if securable_id is not None and sid != securable_id:
                continue
            result.append(Grant(principal=p, kind=k, securable_id=sid, privilege=priv))
        return sorted(result, key=lambda g: (g.principal, g.kind.value, g.securable_id, g.privilege.value))

    def groups_for(self, principal: str) -> Set[str]:
        return self._resolve_groups(self._read(), principal)

    @staticmethod
    def _resolve_groups(snapshot: _Snapshot, principal: str) -> Set[str]:
        """Transitive closure of group membership; cycles terminate."""
        if not snapshot.members:
            return set()
        visited: Set[str] = set()
        queue = deque([principal])
        while queue:
            current = queue.popleft()
            for group, members in snapshot.members.items():
                if current in members and group not in visited:
                    visited.add(group)
                    queue.append(group)
        visited.discard(principal)
        return visited

    # -------------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------------

    def add_grant(
        self,
        principal: str,
        kind: SecurableKind,
        securable_id: str,
        privilege: PrivilegeType,
    ) -> bool:
        grant = build_grant(principal, kind, securable_id, privilege)
        with self._lock:
            snapshot = self._read()
            if grant.key in snapshot.grants:
                logger.debug(f"Grant already present: {grant}")
                return False
            self._publish(replace(snapshot, grants=snapshot.grants | {grant.key}))
        logger.info(f"Granted {grant}")
        return True

    def remove_grant(
        self,
        principal: str,
        kind: SecurableKind,
        securable_id: str,
        privilege: PrivilegeType,
    ) -> bool:
        key = (principal, SecurableKind(kind), securable_id, PrivilegeType(privilege))
        with self._lock:
            snapshot = self._read()
            if key not in snapshot.grants:
                logger.debug(f"Grant not present, nothing to revoke: {key}")
                return False
            self._publish(replace(snapshot, grants=snapshot.grants - {key}))
        logger.info(f"Revoked {key[3].value} on {key[1].value}:{securable_id} from {principal}")
        return True

    def set_admin(self, principal: str, is_admin: bool = True) -> None:
        with self._lock:
            snapshot = self._read()
            admins = snapshot.admins | {principal} if is_admin else snapshot.admins - {principal}
            self._publish(replace(snapshot, admins=frozenset(admins)))
        logger.info(f"Set admin={is_admin} for {principal}")

    def add_member(self, group: str, member: str) -> bool:
        if group == member:
            raise ValueError(f"Group '{group}' cannot be a member of itself")
        with self._lock:
            snapshot = self._read()
            current = snapshot.members.get(group, frozenset())
            if member in current:
                return False
            members = dict(snapshot.members)
            members[group] = current | {member}
            self._publish(replace(snapshot, members=members))
        logger.info(f"Added {member} to group {group}")
        return True

    def remove_member(self, group: str, member: str) -> bool:
        with self._lock:
            snapshot = self._read()
            current = snapshot.members.get(group, frozenset())
            if member not in current:
                return False
            members = dict(snapshot.members)
            members[group] = current - {member}
            self._publish(replace(snapshot, members=members))
        logger.info(f"Removed {member} from group {group}")
        return True
