"""
Grant store backed by Unity Catalog grants via the Databricks SDK.

Securable ids are Unity Catalog full names ('sales', 'sales.orders',
'sales.orders.events'). Views are tracked by Unity Catalog as tables.
Admin flags are kept locally; Unity Catalog has no equivalent.
"""

import logging
import threading
from typing import Dict, Iterable, List, Optional

from databricks.sdk import WorkspaceClient
from databricks.sdk.errors import (
    DeadlineExceeded,
    InternalError,
    NotFound,
    PermissionDenied,
    ResourceDoesNotExist,
    ResourceExhausted,
    TemporarilyUnavailable,
    Unauthenticated,
)
from databricks.sdk.service.catalog import PermissionsChange
from databricks.sdk.service.catalog import Privilege as SDKPrivilege

from brickgate.errors import StoreUnavailableError, ValidationError
from brickgate.models import Grant, PrivilegeType, SecurableKind

from .base import GrantStore, build_grant

logger = logging.getLogger(__name__)

# Unity Catalog securable type for each kind it knows about
UC_SECURABLE_TYPES: Dict[SecurableKind, str] = {
    SecurableKind.CATALOG: "CATALOG",
    SecurableKind.SCHEMA: "SCHEMA",
    SecurableKind.TABLE: "TABLE",
    SecurableKind.VIEW: "TABLE",
    SecurableKind.VOLUME: "VOLUME",
    SecurableKind.STORAGE_CREDENTIAL: "STORAGE_CREDENTIAL",
    SecurableKind.EXTERNAL_LOCATION: "EXTERNAL_LOCATION",
}

# Errors meaning "the store could not answer" rather than "no grant"
_UNAVAILABLE_ERRORS = (
    TemporarilyUnavailable,
    InternalError,
    ResourceExhausted,
    DeadlineExceeded,
    PermissionDenied,
    Unauthenticated,
)


def _get_enum_value(val) -> str:
    """Safely get value from enum or return string as-is."""
    return val.value if hasattr(val, "value") else val


class DatabricksGrantStore(GrantStore):
    """
    Grant store reading and writing Unity Catalog grants.

    The engine performs no retries; transient SDK failures surface as
    StoreUnavailableError for the caller to retry with backoff.
    """

    ids_are_full_names = True

    def __init__(self, client: WorkspaceClient, admins: Optional[Iterable[str]] = None):
        """
        Initialize the store.

        Args:
            client: Databricks workspace client
            admins: Principals flagged as admins
        """
        self.client = client
        self._admins = frozenset(admins or [])
        self._admin_lock = threading.Lock()
        # Serializes check-then-update grant changes made through this store
        self._write_lock = threading.Lock()

    def _uc_type(self, kind: SecurableKind) -> str:
        kind = SecurableKind(kind)
        if kind not in UC_SECURABLE_TYPES:
            raise ValidationError(f"{kind.value} securables are not tracked by Unity Catalog")
        return UC_SECURABLE_TYPES[kind]

    @staticmethod
    def _sdk_privilege(privilege: PrivilegeType) -> SDKPrivilege:
        try:
            return SDKPrivilege(_get_enum_value(privilege))
        except ValueError as e:
            raise ValidationError(f"Privilege {_get_enum_value(privilege)} has no Unity Catalog equivalent") from e

    def has_privilege(
        self,
        principal: str,
        kind: SecurableKind,
        securable_id: str,
        privilege: PrivilegeType,
    ) -> bool:
        if principal in self._admins:
            return True

        securable_type = self._uc_type(kind)
        wanted = _get_enum_value(privilege)
        try:
            grants = self.client.grants.get(
                securable_type=securable_type, full_name=securable_id, principal=principal
            )
        except (ResourceDoesNotExist, NotFound):
            # No securable, no grant
            return False
        except _UNAVAILABLE_ERRORS as e:
            logger.error(f"Grant lookup failed for {principal} on {securable_type} {securable_id}: {e}")
            raise StoreUnavailableError(f"Unity Catalog grants unavailable: {e}", cause=e) from e

        for assignment in grants.privilege_assignments or []:
            if assignment.principal != principal:
                continue
            if wanted in [_get_enum_value(p) for p in assignment.privileges or []]:
                return True
        return False

    def is_admin(self, principal: str) -> bool:
        return principal in self._admins

    def set_admin(self, principal: str, is_admin: bool = True) -> None:
        with self._admin_lock:
            self._admins = self._admins | {principal} if is_admin else self._admins - {principal}
        logger.info(f"Set admin={is_admin} for {principal}")

    def _update(self, grant: Grant, add: bool) -> None:
        sdk_privilege = self._sdk_privilege(grant.privilege)
        if add:
            change = PermissionsChange(principal=grant.principal, add=[sdk_privilege])
        else:
            change = PermissionsChange(principal=grant.principal, remove=[sdk_privilege])
        try:
            self.client.grants.update(
                securable_type=self._uc_type(grant.kind),
                full_name=grant.securable_id,
                changes=[change],
            )
        except _UNAVAILABLE_ERRORS as e:
            logger.error(f"Grant update failed for {grant}: {e}")
            raise StoreUnavailableError(f"Unity Catalog grants unavailable: {e}", cause=e) from e

    def add_grant(
        self,
        principal: str,
        kind: SecurableKind,
        securable_id: str,
        privilege: PrivilegeType,
    ) -> bool:
        grant = build_grant(principal, kind, securable_id, privilege)
        with self._write_lock:
            if grant in self.list_grants(principal, grant.kind, securable_id):
                logger.debug(f"Grant already present: {grant}")
                return False
            self._update(grant, add=True)
        logger.info(f"Granted {grant}")
        return True

    def remove_grant(
        self,
        principal: str,
        kind: SecurableKind,
        securable_id: str,
        privilege: PrivilegeType,
    ) -> bool:
        grant = build_grant(principal, kind, securable_id, privilege)
        with self._write_lock:
            if grant not in self.list_grants(principal, grant.kind, securable_id):
                logger.debug(f"Grant not present, nothing to revoke: {grant}")
                return False
            self._update(grant, add=False)
        logger.info(f"Revoked {grant}")
        return True

    def list_grants(
        self,
        principal: Optional[str] = None,
        kind: Optional[SecurableKind] = None,
        securable_id: Optional[str] = None,
    ) -> List[Grant]:
        if kind is None or securable_id is None:
            raise ValidationError("Unity Catalog grants can only be listed per securable (kind and securable_id)")

        kind = SecurableKind(kind)
        try:
            grants = self.client.grants.get(
                securable_type=self._uc_type(kind), full_name=securable_id, principal=principal
            )
        except (ResourceDoesNotExist, NotFound):
            return []
        except _UNAVAILABLE_ERRORS as e:
            raise StoreUnavailableError(f"Unity Catalog grants unavailable: {e}", cause=e) from e

        result = []
        known = {p.value for p in PrivilegeType}
        for assignment in grants.privilege_assignments or []:
            if principal is not None and assignment.principal != principal:
                continue
            for priv in assignment.privileges or []:
                value = _get_enum_value(priv)
                # Unity Catalog privileges outside our taxonomy are ignored
                if value not in known:
                    continue
                try:
                    result.append(build_grant(assignment.principal, kind, securable_id, PrivilegeType(value)))
                except ValidationError:
                    logger.debug(f"Skipping {value} on {kind.value}: not meaningful to the engine")
        return result
