"""
Unit tests for GrantService.
"""

import pytest

from brickgate.engine import Engine
from brickgate.errors import AccessDeniedError, ValidationError
from brickgate.models import AuditCategory, AuditOutcome, PrivilegeType, SecurableKind


class TestGrantService:
    """Tests for admin-only grant management."""

    def test_grant_and_revoke(self, engine: Engine) -> None:
        """Admins can add and remove grants; both report whether anything changed."""
        admin = engine.context("bob")
        assert engine.grants.grant(admin, "alice", SecurableKind.CATALOG, "sales", PrivilegeType.CREATE_SCHEMA)
        assert not engine.grants.grant(admin, "alice", SecurableKind.CATALOG, "sales", PrivilegeType.CREATE_SCHEMA)
        assert engine.store.has_privilege("alice", SecurableKind.CATALOG, "sales", PrivilegeType.CREATE_SCHEMA)

        assert engine.grants.revoke(admin, "alice", SecurableKind.CATALOG, "sales", PrivilegeType.CREATE_SCHEMA)
        assert not engine.store.has_privilege("alice", SecurableKind.CATALOG, "sales", PrivilegeType.CREATE_SCHEMA)

    def test_audited(self, engine: Engine) -> None:
        """Each grant change writes one mutation record targeting the securable."""
        engine.grants.grant(engine.context("bob"), "alice", SecurableKind.CATALOG, "sales", PrivilegeType.MODIFY)
        record = engine.audit.query(operation="createGrant")[0]
        assert (record.actor, record.target, record.outcome) == ("bob", "catalog:sales", AuditOutcome.SUCCESS)

    def test_manage_is_not_enough(self, engine: Engine) -> None:
        """Holding MANAGE on a securable does not allow granting on it."""
        engine.store.add_grant("carol", SecurableKind.TABLE, "tbl_0001", PrivilegeType.MANAGE)
        with pytest.raises(AccessDeniedError, match="not permitted to administer table:events"):
            engine.grants.grant(
                engine.context("carol"), "dave", SecurableKind.TABLE, "tbl_0001", PrivilegeType.MODIFY, name="events"
            )
        assert not engine.store.has_privilege("dave", SecurableKind.TABLE, "tbl_0001", PrivilegeType.MODIFY)
        assert len(engine.audit.query(actor="carol", category=AuditCategory.DENIAL)) == 1

    def test_invalid_grant(self, engine: Engine) -> None:
        """Nonsensical privileges are rejected even for admins."""
        with pytest.raises(ValidationError):
            engine.grants.grant(engine.context("bob"), "alice", SecurableKind.TABLE, "tbl_0001", PrivilegeType.CREATE_SCHEMA)

    def test_list_grants_not_audited(self, engine: Engine) -> None:
        """Listing is read-only."""
        engine.grants.grant(engine.context("bob"), "alice", SecurableKind.CATALOG, "sales", PrivilegeType.MODIFY)
        before = len(engine.audit.records())
        grants = engine.grants.list_grants(engine.context("alice"), principal="alice")
        assert [g.privilege for g in grants] == [PrivilegeType.MODIFY]
        assert len(engine.audit.records()) == before
