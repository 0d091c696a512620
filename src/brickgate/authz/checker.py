"""
Authorization check routine.

Every enforcement point calls exactly one of the require_* methods with the
exact (kind, id, privilege) it means to check. The checker never walks the
securable hierarchy and never infers privileges from other privileges.

Failure semantics:
- denial: one denial audit record, then AccessDeniedError
- store outage: StoreUnavailableError propagates untouched, nothing audited
- nonsensical privilege/kind pair: ValidationError before the store is asked
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import NoReturn, Optional

from brickgate.audit import AuditLogger, RequestContext
from brickgate.errors import AccessDeniedError, ValidationError
from brickgate.models import (
    Principal,
    PrivilegeType,
    SecurableKind,
    SecurableRef,
    is_valid_privilege_for_kind,
)
from brickgate.store import GrantStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AuthzDecision:
    """Outcome of a pure authorization check."""

    allowed: bool
    reason: str = ""

    @classmethod
    def allow(cls, reason: str = "") -> "AuthzDecision":
        return cls(True, reason)

    @classmethod
    def deny(cls, reason: str) -> "AuthzDecision":
        return cls(False, reason)

    def __bool__(self) -> bool:
        return self.allowed


def _validate(kind: SecurableKind, privilege: PrivilegeType) -> None:
    if not is_valid_privilege_for_kind(kind, privilege):
        kind_value = kind.value if hasattr(kind, "value") else kind
        priv_value = privilege.value if hasattr(privilege, "value") else privilege
        raise ValidationError(f"Privilege {priv_value} is not valid on {kind_value} securables")


class AuthorizationChecker:
    """
    Decides and enforces privilege requirements.

    Usage:
        checker = AuthorizationChecker(store, audit_logger)
        checker.require_privilege(ctx, SecurableKind.CATALOG, "sales", PrivilegeType.CREATE_SCHEMA)
    """

    def __init__(self, store: GrantStore, audit_logger: AuditLogger):
        self.store = store
        self.audit_logger = audit_logger

    def is_admin(self, principal: Principal) -> bool:
        """Admin flag set upstream on the principal, or held in the store."""
        return principal.is_admin or self.store.is_admin(principal.name)

    def check(
        self,
        principal: Principal,
        kind: SecurableKind,
        securable_id: str,
        privilege: PrivilegeType,
    ) -> AuthzDecision:
        """
        Decide without side effects.

        Raises:
            ValidationError: If the privilege is not valid on the kind
            StoreUnavailableError: If the grant store cannot answer
        """
        _validate(kind, privilege)
        kind = SecurableKind(kind)
        privilege = PrivilegeType(privilege)

        if self.is_admin(principal):
            return AuthzDecision.allow("admin")
        if self.store.has_privilege(principal.name, kind, securable_id, privilege):
            logger.debug(f"Allowed {principal.name} {privilege.value} on {kind.value}:{securable_id}")
            return AuthzDecision.allow("granted")
        return AuthzDecision.deny(f"no {privilege.value} grant on {kind.value}:{securable_id}")

    def _deny(
        self,
        ctx: RequestContext,
        ref: Optional[SecurableRef],
        privilege: Optional[PrivilegeType],
        reason: str,
    ) -> NoReturn:
        # Recorded before the error leaves the checker; only the record keeps the real id
        self.audit_logger.log_denial(ctx, ref, privilege, reason)
        raise AccessDeniedError(ctx.actor, ctx.operation, ref.redacted() if ref is not None else None, privilege)

    def require_privilege(
        self,
        ctx: RequestContext,
        kind: SecurableKind,
        securable_id: str,
        privilege: PrivilegeType,
        name: Optional[str] = None,
    ) -> None:
        """
        Require a privilege on an exact securable.

        Args:
            ctx: Request context of the caller
            kind: Kind of the securable checked
            securable_id: Catalog name, catalog sentinel, or resolved object id
            privilege: Privilege required
            name: Display name used in the error message

        Raises:
            AccessDeniedError: If the principal lacks the privilege
            ValidationError: If the privilege is not valid on the kind
            StoreUnavailableError: If the grant store cannot answer
        """
        decision = self.check(ctx.principal, kind, securable_id, privilege)
        ref = SecurableRef(kind=kind, id=securable_id, name=name)
        ctx.set_target(ref)
        if not decision:
            self._deny(ctx, ref, PrivilegeType(privilege), decision.reason)

    def require_owner_or_privilege(
        self,
        ctx: RequestContext,
        kind: SecurableKind,
        securable_id: str,
        privilege: PrivilegeType,
        owner: Optional[str],
        name: Optional[str] = None,
    ) -> None:
        """
        Allow the securable's owner outright, otherwise require the privilege.

        Raises:
            AccessDeniedError: If the caller is not the owner and lacks the privilege
        """
        _validate(kind, privilege)
        if owner and owner == ctx.actor:
            ctx.set_target(SecurableRef(kind=kind, id=securable_id, name=name))
            logger.debug(f"Owner bypass for {ctx.actor} on {SecurableKind(kind).value}:{securable_id}")
            return
        self.require_privilege(ctx, kind, securable_id, privilege, name=name)

    def require_admin(self, ctx: RequestContext, target: Optional[SecurableRef] = None) -> None:
        """
        Require the caller to be an admin. Grants are never consulted.

        Raises:
            AccessDeniedError: If the principal is not an admin
        """
        if target is not None:
            ctx.set_target(target)
        if self.is_admin(ctx.principal):
            return
        self._deny(ctx, target, None, "admin only")

    def deny_unresolved(
        self,
        ctx: RequestContext,
        kind: SecurableKind,
        name: str,
        privilege: PrivilegeType,
    ) -> NoReturn:
        """
        Deny a non-admin whose target could not be looked up.

        The raised error is indistinguishable from a privilege failure so that
        callers cannot probe for object existence; the audit record keeps the
        real reason.
        """
        _validate(kind, privilege)
        ref = SecurableRef(kind=kind, id=name, name=name.split(".")[-1])
        ctx.set_target(ref)
        self._deny(ctx, ref, PrivilegeType(privilege), f"{SecurableKind(kind).value} '{name}' not found")
