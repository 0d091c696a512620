"""
End-to-end tests on fully wired engines.

Covers the request path from service call through authorization, catalog
mutation and audit trail, plus contract parity of the shipped services.
"""

import threading
from typing import Dict, List
from unittest.mock import MagicMock

import pytest
from databricks.sdk.service.catalog import Privilege as SDKPrivilege
from databricks.sdk.service.catalog import PrivilegeAssignment

from brickgate.audit import RequestContext
from brickgate.config import EngineSettings
from brickgate.contracts import assert_contract_parity, check_audit_coverage
from brickgate.engine import Engine, build_engine
from brickgate.errors import AccessDeniedError, StoreUnavailableError
from brickgate.models import AuditCategory, AuditOutcome, CatalogObject, PrivilegeType, SecurableKind
from brickgate.store import DatabricksGrantStore


@pytest.fixture
def events(engine: Engine) -> CatalogObject:
    """Table sales.orders.events created by the admin."""
    admin = engine.context("bob")
    engine.catalogs.create_schema(admin, "sales", "orders")
    return engine.catalogs.create_table(admin, "sales", "orders", "events", columns={"id": "BIGINT"})


def records_for(engine: Engine, ctx: RequestContext, category: AuditCategory):
    return engine.audit.query(request_id=ctx.request_id, category=category)


def uc_client(assignments: Dict[str, List[PrivilegeAssignment]]) -> MagicMock:
    """Workspace client whose Unity Catalog grants are keyed by full name."""
    client = MagicMock()
    client.grants.get.side_effect = lambda securable_type, full_name, principal=None: MagicMock(
        privilege_assignments=assignments.get(full_name, [])
    )
    return client


class TestAccessScenarios:
    """The reference scenarios, one request each."""

    def test_denied_without_grant(self, engine: Engine) -> None:
        """alice without grants cannot create a schema in sales."""
        ctx = engine.context("alice")
        with pytest.raises(AccessDeniedError):
            engine.catalogs.create_schema(ctx, "sales", "orders")

        [denial] = records_for(engine, ctx, AuditCategory.DENIAL)
        assert (denial.actor, denial.operation, denial.target, denial.outcome) == (
            "alice", "createSchema", "catalog:sales", AuditOutcome.DENIED
        )
        assert not engine.repository.exists(SecurableKind.SCHEMA, "sales.orders")

    def test_allowed_with_grant(self, engine: Engine) -> None:
        """Once granted CREATE_SCHEMA on sales, the same call succeeds."""
        engine.grants.grant(engine.context("bob"), "alice", SecurableKind.CATALOG, "sales", PrivilegeType.CREATE_SCHEMA)
        ctx = engine.context("alice")
        engine.catalogs.create_schema(ctx, "sales", "orders")

        [mutation] = records_for(engine, ctx, AuditCategory.MUTATION)
        assert (mutation.actor, mutation.operation, mutation.target, mutation.outcome) == (
            "alice", "createSchema", "catalog:sales", AuditOutcome.SUCCESS
        )
        assert records_for(engine, ctx, AuditCategory.DENIAL) == []

    def test_admin_bypass(self, engine: Engine, events: CatalogObject) -> None:
        """bob deletes a table without any explicit grant."""
        assert engine.store.list_grants(principal="bob") == []
        ctx = engine.context("bob")
        engine.catalogs.delete_table(ctx, "sales.orders.events")

        [mutation] = engine.audit.query(request_id=ctx.request_id)
        assert mutation.operation == "deleteTable"
        assert mutation.outcome == AuditOutcome.SUCCESS
        assert mutation.target == f"table:{events.id}"

    def test_denial_cites_resolved_table(self, engine: Engine, events: CatalogObject) -> None:
        """The table itself is checked, not its schema."""
        schema = engine.repository.get_by_name(SecurableKind.SCHEMA, "sales.orders")
        engine.grants.grant(engine.context("bob"), "alice", SecurableKind.SCHEMA, schema.id, PrivilegeType.MODIFY)

        ctx = engine.context("alice")
        with pytest.raises(AccessDeniedError) as exc_info:
            engine.catalogs.update_table(ctx, "sales.orders.events", comment="x")

        message = str(exc_info.value)
        assert "table:events" in message
        assert "schema:orders" not in message
        [denial] = records_for(engine, ctx, AuditCategory.DENIAL)
        assert denial.target == f"table:{events.id}"

    def test_grant_is_admin_only(self, engine: Engine, events: CatalogObject) -> None:
        """carol holds MANAGE on the table and still cannot grant on it."""
        engine.grants.grant(engine.context("bob"), "carol", SecurableKind.TABLE, events.id, PrivilegeType.MANAGE)

        ctx = engine.context("carol")
        with pytest.raises(AccessDeniedError, match="not permitted to administer table:events"):
            engine.grants.grant(ctx, "alice", SecurableKind.TABLE, events.id, PrivilegeType.MODIFY, name="events")
        assert not engine.store.has_privilege("alice", SecurableKind.TABLE, events.id, PrivilegeType.MODIFY)
        assert len(records_for(engine, ctx, AuditCategory.DENIAL)) == 1


class TestFailureModes:
    """Outages and concurrency."""

    def test_outage_never_fails_open(self, engine: Engine, events: CatalogObject) -> None:
        """A store outage propagates and writes no denial record."""
        engine.store.set_available(False)
        ctx = engine.context("alice")
        with pytest.raises(StoreUnavailableError):
            engine.catalogs.update_table(ctx, "sales.orders.events", comment="x")

        assert records_for(engine, ctx, AuditCategory.DENIAL) == []
        [mutation] = records_for(engine, ctx, AuditCategory.MUTATION)
        assert mutation.outcome == AuditOutcome.FAILURE
        engine.store.set_available(True)
        assert engine.repository.get(events.id).comment is None

    def test_grant_visible_to_concurrent_readers(self, engine: Engine) -> None:
        """Readers see a grant either fully applied or not at all."""
        admin = engine.context("bob")
        errors = []
        stop = threading.Event()

        def read() -> None:
            while not stop.is_set():
                try:
                    engine.checker.check(
                        engine.context("alice").principal, SecurableKind.CATALOG, "sales", PrivilegeType.CREATE_SCHEMA
                    )
                except Exception as e:
                    errors.append(e)

        readers = [threading.Thread(target=read) for _ in range(4)]
        for t in readers:
            t.start()
        for _ in range(50):
            engine.grants.grant(admin, "alice", SecurableKind.CATALOG, "sales", PrivilegeType.CREATE_SCHEMA)
            engine.grants.revoke(admin, "alice", SecurableKind.CATALOG, "sales", PrivilegeType.CREATE_SCHEMA)
        stop.set()
        for t in readers:
            t.join()
        assert errors == []


class TestUnityCatalogStore:
    """An engine backed by Unity Catalog grants, addressed by full name."""

    def test_runtime_resolved_check_uses_full_name(self, settings: EngineSettings) -> None:
        """A MODIFY grant on sales.orders.events lets alice update the table."""
        client = uc_client({
            "sales.orders.events": [PrivilegeAssignment(principal="alice", privileges=[SDKPrivilege.MODIFY])],
        })
        engine = build_engine(settings, store=DatabricksGrantStore(client))
        admin = engine.context("bob")
        engine.catalogs.create_schema(admin, "sales", "orders")
        table = engine.catalogs.create_table(admin, "sales", "orders", "events")
        assert table.id == "sales.orders.events"

        ctx = engine.context("alice")
        updated = engine.catalogs.update_table(ctx, "sales.orders.events", comment="clickstream")

        assert updated.comment == "clickstream"
        client.grants.get.assert_called_with(securable_type="TABLE", full_name="sales.orders.events", principal="alice")
        [mutation] = records_for(engine, ctx, AuditCategory.MUTATION)
        assert mutation.target == "table:sales.orders.events"
        assert mutation.outcome == AuditOutcome.SUCCESS

    def test_grant_elsewhere_still_denied(self, settings: EngineSettings) -> None:
        """A grant on the schema does not reach the table."""
        client = uc_client({
            "sales.orders": [PrivilegeAssignment(principal="alice", privileges=[SDKPrivilege.MODIFY])],
        })
        engine = build_engine(settings, store=DatabricksGrantStore(client))
        admin = engine.context("bob")
        engine.catalogs.create_schema(admin, "sales", "orders")
        engine.catalogs.create_table(admin, "sales", "orders", "events")

        with pytest.raises(AccessDeniedError):
            engine.catalogs.update_table(engine.context("alice"), "sales.orders.events", comment="x")
        assert client.grants.get.call_args.kwargs["full_name"] == "sales.orders.events"


class TestShippedServices:
    """Static guarantees of the shipped services."""

    def test_contract_parity(self) -> None:
        """Enforcement matches the declared contracts."""
        assert_contract_parity()

    def test_audit_coverage(self) -> None:
        """Every mutation is audited."""
        assert check_audit_coverage() == []
