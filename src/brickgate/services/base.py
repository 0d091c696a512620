"""
Base service class for catalog operations.

Service methods are the enforcement call sites of the engine. Each mutating
method is wrapped by @audited and calls exactly one of the _require_* helpers
below with literal SecurableKind/PrivilegeType members, so the offline
contract verifier can read the enforcement straight from the source.
"""

import logging
from typing import Optional

from brickgate.audit import RequestContext
from brickgate.authz import AuthorizationChecker
from brickgate.errors import NotFoundError
from brickgate.models import CatalogObject, PrivilegeType, SecurableKind, SecurableRef, catalog_sentinel

from .repository import CatalogRepository

logger = logging.getLogger(__name__)


class BaseService:
    """
    Base class for all catalog services.

    Provides:
    - privilege, owner and admin enforcement through the shared checker
    - name resolution for runtime-resolved checks
    - access to the audit logger used by @audited
    """

    def __init__(
        self,
        checker: AuthorizationChecker,
        repository: CatalogRepository,
        default_catalog: Optional[str] = None,
    ):
        """
        Initialize the service.

        Args:
            checker: Authorization checker shared by all services
            repository: Catalog metadata repository
            default_catalog: Catalog the sentinel stands for when a request names none
                (falls back to get_default_catalog())
        """
        self.checker = checker
        self.repository = repository
        self.default_catalog = default_catalog
        self.audit_logger = checker.audit_logger

    def _require_privilege(
        self,
        ctx: RequestContext,
        kind: SecurableKind,
        securable_id: str,
        privilege: PrivilegeType,
        name: Optional[str] = None,
    ) -> None:
        self.checker.require_privilege(ctx, kind, securable_id, privilege, name=name)

    def _require_owner_or_privilege(
        self,
        ctx: RequestContext,
        kind: SecurableKind,
        securable_id: str,
        privilege: PrivilegeType,
        owner: Optional[str],
        name: Optional[str] = None,
    ) -> None:
        self.checker.require_owner_or_privilege(ctx, kind, securable_id, privilege, owner, name=name)

    def _require_admin(self, ctx: RequestContext, target: Optional[SecurableRef] = None) -> None:
        self.checker.require_admin(ctx, target)

    def _catalog_sentinel(self, catalog_name: Optional[str]) -> str:
        return catalog_sentinel(catalog_name, self.default_catalog)

    def _resolve(
        self,
        ctx: RequestContext,
        kind: SecurableKind,
        full_name: str,
        privilege: PrivilegeType,
    ) -> CatalogObject:
        """
        Resolve a qualified name to the object a runtime-resolved check targets.

        Admins see NotFoundError for missing objects. Everyone else is denied
        exactly as if the privilege check had failed.

        Args:
            ctx: Request context of the caller
            kind: Kind of the object looked up
            full_name: Qualified name from the request
            privilege: Privilege the caller will be checked for

        Returns:
            The resolved catalog object
        """
        try:
            return self.repository.get_by_name(kind, full_name)
        except NotFoundError:
            if self.checker.is_admin(ctx.principal):
                raise
        logger.debug(f"Lookup of {SecurableKind(kind).value} {full_name} failed for {ctx.actor}")
        self.checker.deny_unresolved(ctx, kind, full_name, privilege)

    def _owner_of(self, kind: SecurableKind, full_name: str) -> Optional[str]:
        """Owner of an object, or None when it does not exist."""
        try:
            return self.repository.get_by_name(kind, full_name).owner
        except NotFoundError:
            return None
