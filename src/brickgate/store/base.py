"""
Grant store interface.

The grant store holds (principal, kind, securable id, privilege) facts and a
per-principal admin flag. "Not granted" is always a False return; only
infrastructure failures raise (StoreUnavailableError), so callers can never
confuse "don't know" with "denied".
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Iterable, List, Optional, Set

from pydantic import ValidationError as PydanticValidationError

from brickgate.errors import ValidationError
from brickgate.models import Grant, PrivilegeType, SecurableKind


def build_grant(
    principal: str,
    kind: SecurableKind,
    securable_id: str,
    privilege: PrivilegeType,
) -> Grant:
    """
    Build a validated Grant.

    Raises:
        ValidationError: If the privilege is not valid on the kind, or a field is malformed
    """
    try:
        return Grant(principal=principal, kind=kind, securable_id=securable_id, privilege=privilege)
    except PydanticValidationError as e:
        raise ValidationError(f"Invalid grant {privilege!s} on {kind!s}:{securable_id} to {principal}: {e}") from e


class GrantStore(ABC):
    """
    Base class for grant stores.

    Implementations must allow many concurrent readers and serialize
    mutations so that a single grant change is observed atomically.

    Stores whose securable ids are qualified names rather than durable ids
    set ids_are_full_names; the engine then keys catalog objects by name.
    """

    ids_are_full_names: bool = False

    @abstractmethod
    def has_privilege(
        self,
        principal: str,
        kind: SecurableKind,
        securable_id: str,
        privilege: PrivilegeType,
    ) -> bool:
        """
        Check whether a principal holds a privilege on a securable.

        True if an explicit grant exists for the principal or one of its
        groups, or if the principal is an admin.

        Raises:
            StoreUnavailableError: If the store cannot answer
        """

    @abstractmethod
    def is_admin(self, principal: str) -> bool:
        """Check the admin flag of a principal."""

    @abstractmethod
    def add_grant(
        self,
        principal: str,
        kind: SecurableKind,
        securable_id: str,
        privilege: PrivilegeType,
    ) -> bool:
        """
        Add a grant. Idempotent.

        Returns:
            True if the grant was added, False if it already existed
        """

    @abstractmethod
    def remove_grant(
        self,
        principal: str,
        kind: SecurableKind,
        securable_id: str,
        privilege: PrivilegeType,
    ) -> bool:
        """
        Remove a grant. Idempotent.

        Returns:
            True if the grant was removed, False if it did not exist
        """

    @abstractmethod
    def set_admin(self, principal: str, is_admin: bool = True) -> None:
        """Set the admin flag of a principal."""

    @abstractmethod
    def list_grants(
        self,
        principal: Optional[str] = None,
        kind: Optional[SecurableKind] = None,
        securable_id: Optional[str] = None,
    ) -> List[Grant]:
        """List grants matching all of the given filters."""

    # Group membership is optional; stores without groups resolve nothing.

    def add_member(self, group: str, member: str) -> bool:
        raise NotImplementedError(f"{self.__class__.__name__} does not support group membership")

    def remove_member(self, group: str, member: str) -> bool:
        raise NotImplementedError(f"{self.__class__.__name__} does not support group membership")

    def groups_for(self, principal: str) -> Set[str]:
        """Groups a principal belongs to, transitively."""
        return set()

    def add_grants(self, grants: Iterable[Grant]) -> int:
        """
        Add several grants, one atomic mutation each.

        Returns:
            Number of grants actually added
        """
        added = 0
        for grant in grants:
            if self.add_grant(grant.principal, grant.kind, grant.securable_id, grant.privilege):
                added += 1
        return added
