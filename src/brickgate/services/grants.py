"""
Grant administration service.

Granting and revoking are admin-only: the caller's own grants are never
consulted, so holding MANAGE on an object does not allow granting on it.
"""

import logging
from typing import Any, List, Optional

from brickgate.audit import RequestContext, audited
from brickgate.authz import AuthorizationChecker
from brickgate.models import Grant, PrivilegeType, SecurableKind, SecurableRef
from brickgate.store import build_grant

from .base import BaseService
from .repository import CatalogRepository

logger = logging.getLogger(__name__)


class GrantService(BaseService):
    """Admin-only management of privilege grants."""

    def __init__(self, checker: AuthorizationChecker, repository: CatalogRepository, *args: Any):
        super().__init__(checker, repository, *args)
        self.store = checker.store

    @audited("createGrant")
    def grant(
        self,
        ctx: RequestContext,
        principal: str,
        kind: SecurableKind,
        securable_id: str,
        privilege: PrivilegeType,
        name: Optional[str] = None,
    ) -> bool:
        """
        Grant a privilege on a securable.

        Args:
            ctx: Request context of the administrator
            principal: User or group receiving the privilege
            kind: Securable kind
            securable_id: Catalog name or durable object id
            privilege: Privilege granted
            name: Display name of the securable

        Returns:
            True if the grant was added, False if it already existed

        Raises:
            AccessDeniedError: If the caller is not an admin
            ValidationError: If the privilege is not valid on the kind
        """
        self._require_admin(ctx, SecurableRef(kind=kind, id=securable_id, name=name))
        grant = build_grant(principal, kind, securable_id, privilege)
        return self.store.add_grant(grant.principal, grant.kind, grant.securable_id, grant.privilege)

    @audited("deleteGrant")
    def revoke(
        self,
        ctx: RequestContext,
        principal: str,
        kind: SecurableKind,
        securable_id: str,
        privilege: PrivilegeType,
        name: Optional[str] = None,
    ) -> bool:
        """Revoke a privilege. Returns False if the grant did not exist."""
        self._require_admin(ctx, SecurableRef(kind=kind, id=securable_id, name=name))
        grant = build_grant(principal, kind, securable_id, privilege)
        return self.store.remove_grant(grant.principal, grant.kind, grant.securable_id, grant.privilege)

    def list_grants(
        self,
        ctx: RequestContext,
        principal: Optional[str] = None,
        kind: Optional[SecurableKind] = None,
        securable_id: Optional[str] = None,
    ) -> List[Grant]:
        """List grants; read-only, so neither audited nor privilege-checked."""
        logger.debug(f"{ctx.actor} listing grants")
        return self.store.list_grants(principal=principal, kind=kind, securable_id=securable_id)
