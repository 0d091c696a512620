"""
Unit tests for InMemoryGrantStore.

Tests admin bypass, idempotence, default deny, groups, outages and
snapshot isolation under concurrent mutation.
"""

import threading

import pytest

from brickgate.errors import StoreUnavailableError, ValidationError
from brickgate.models import PrivilegeType, SecurableKind
from brickgate.store import InMemoryGrantStore
from tests.fixtures import make_grant

CATALOG = SecurableKind.CATALOG
TABLE = SecurableKind.TABLE


class TestHasPrivilege:
    """Tests for privilege queries."""

    def test_default_deny(self, store: InMemoryGrantStore) -> None:
        """No grant means no privilege."""
        assert not store.has_privilege("alice", CATALOG, "sales", PrivilegeType.CREATE_SCHEMA)

    def test_explicit_grant(self, store: InMemoryGrantStore) -> None:
        """An exact grant is found."""
        store.add_grant("alice", CATALOG, "sales", PrivilegeType.CREATE_SCHEMA)
        assert store.has_privilege("alice", CATALOG, "sales", PrivilegeType.CREATE_SCHEMA)

    def test_grants_are_exact(self, store: InMemoryGrantStore) -> None:
        """A grant on one securable does not apply to another, nor imply other privileges."""
        store.add_grant("alice", CATALOG, "sales", PrivilegeType.MANAGE)
        assert not store.has_privilege("alice", CATALOG, "hr", PrivilegeType.MANAGE)
        assert not store.has_privilege("alice", CATALOG, "sales", PrivilegeType.MODIFY)
        assert not store.has_privilege("bob", CATALOG, "sales", PrivilegeType.MANAGE)

    def test_admin_bypass(self) -> None:
        """Admins hold every privilege without grants."""
        store = InMemoryGrantStore(admins=["bob"])
        assert store.has_privilege("bob", TABLE, "tbl_0001", PrivilegeType.MANAGE)
        assert store.is_admin("bob")
        assert not store.is_admin("alice")

    def test_set_admin(self, store: InMemoryGrantStore) -> None:
        """set_admin toggles the flag."""
        store.set_admin("carol")
        assert store.is_admin("carol")
        store.set_admin("carol", False)
        assert not store.is_admin("carol")


class TestGrantMutations:
    """Tests for add_grant/remove_grant."""

    def test_add_is_idempotent(self, store: InMemoryGrantStore) -> None:
        """Adding twice leaves one grant."""
        assert store.add_grant("alice", CATALOG, "sales", PrivilegeType.CREATE_SCHEMA)
        assert not store.add_grant("alice", CATALOG, "sales", PrivilegeType.CREATE_SCHEMA)
        assert store.list_grants() == [make_grant()]

    def test_remove_is_idempotent(self, store: InMemoryGrantStore) -> None:
        """Removing a missing grant is a no-op."""
        store.add_grant("alice", CATALOG, "sales", PrivilegeType.CREATE_SCHEMA)
        assert store.remove_grant("alice", CATALOG, "sales", PrivilegeType.CREATE_SCHEMA)
        assert not store.remove_grant("alice", CATALOG, "sales", PrivilegeType.CREATE_SCHEMA)
        assert not store.has_privilege("alice", CATALOG, "sales", PrivilegeType.CREATE_SCHEMA)

    def test_invalid_combination(self, store: InMemoryGrantStore) -> None:
        """Nonsensical grants are rejected."""
        with pytest.raises(ValidationError):
            store.add_grant("alice", TABLE, "tbl_0001", PrivilegeType.CREATE_SCHEMA)

    def test_list_grants_filters(self, store: InMemoryGrantStore) -> None:
        """list_grants filters by principal, kind and id."""
        store.add_grants([
            make_grant("alice"),
            make_grant("bob"),
            make_grant("alice", TABLE, "tbl_0001", PrivilegeType.MODIFY),
        ])
        assert len(store.list_grants(principal="alice")) == 2
        assert store.list_grants(kind=TABLE) == [make_grant("alice", TABLE, "tbl_0001", PrivilegeType.MODIFY)]
        assert [g.principal for g in store.list_grants(securable_id="sales")] == ["alice", "bob"]

    def test_add_grants_counts_new(self, store: InMemoryGrantStore) -> None:
        """add_grants reports how many grants were new."""
        assert store.add_grants([make_grant(), make_grant(), make_grant("bob")]) == 2


class TestGroups:
    """Tests for group membership."""

    def test_group_grant_applies_to_member(self, store: InMemoryGrantStore) -> None:
        """Members inherit their group's grants."""
        store.add_member("engineers", "alice")
        store.add_grant("engineers", CATALOG, "sales", PrivilegeType.CREATE_SCHEMA)
        assert store.has_privilege("alice", CATALOG, "sales", PrivilegeType.CREATE_SCHEMA)
        assert not store.has_privilege("bob", CATALOG, "sales", PrivilegeType.CREATE_SCHEMA)

    def test_nested_groups(self, store: InMemoryGrantStore) -> None:
        """Membership is transitive."""
        store.add_member("data", "engineers")
        store.add_member("engineers", "alice")
        store.add_grant("data", CATALOG, "sales", PrivilegeType.MODIFY)
        assert store.groups_for("alice") == {"engineers", "data"}
        assert store.has_privilege("alice", CATALOG, "sales", PrivilegeType.MODIFY)

    def test_cycles_terminate(self, store: InMemoryGrantStore) -> None:
        """Cyclic membership does not loop."""
        store.add_member("a", "b")
        store.add_member("b", "a")
        store.add_member("a", "alice")
        assert store.groups_for("alice") == {"a", "b"}
        assert not store.has_privilege("alice", CATALOG, "sales", PrivilegeType.MODIFY)

    def test_remove_member(self, store: InMemoryGrantStore) -> None:
        """Removed members lose group grants."""
        store.add_member("engineers", "alice")
        store.add_grant("engineers", CATALOG, "sales", PrivilegeType.MODIFY)
        assert store.remove_member("engineers", "alice")
        assert not store.has_privilege("alice", CATALOG, "sales", PrivilegeType.MODIFY)

    def test_self_membership_rejected(self, store: InMemoryGrantStore) -> None:
        """A group cannot contain itself."""
        with pytest.raises(ValueError):
            store.add_member("engineers", "engineers")


class TestAvailability:
    """Tests for outage behavior."""

    def test_outage_raises(self, store: InMemoryGrantStore) -> None:
        """An unavailable store raises instead of answering False."""
        store.set_available(False)
        with pytest.raises(StoreUnavailableError):
            store.has_privilege("alice", CATALOG, "sales", PrivilegeType.MODIFY)
        with pytest.raises(StoreUnavailableError):
            store.add_grant("alice", CATALOG, "sales", PrivilegeType.MODIFY)

    def test_recovery(self, store: InMemoryGrantStore) -> None:
        """Grants survive an outage."""
        store.add_grant("alice", CATALOG, "sales", PrivilegeType.MODIFY)
        store.set_available(False)
        store.set_available(True)
        assert store.has_privilege("alice", CATALOG, "sales", PrivilegeType.MODIFY)

    def test_unavailable_is_retryable(self) -> None:
        """StoreUnavailableError is marked retryable."""
        assert StoreUnavailableError("down").retryable


class TestConcurrency:
    """Tests for snapshot isolation."""

    def test_readers_never_see_partial_state(self, store: InMemoryGrantStore) -> None:
        """Concurrent readers observe every grant of a batch as all-or-nothing per grant."""
        stop = threading.Event()
        errors = []

        def writer() -> None:
            for i in range(200):
                store.add_grant("alice", CATALOG, f"cat{i}", PrivilegeType.MODIFY)
            stop.set()

        def reader() -> None:
            seen = 0
            while not stop.is_set():
                grants = store.list_grants(principal="alice")
                if len(grants) < seen:
                    errors.append(f"grant count went backwards: {seen} -> {len(grants)}")
                seen = len(grants)
                for grant in grants:
                    if not store.has_privilege("alice", CATALOG, grant.securable_id, PrivilegeType.MODIFY):
                        errors.append(f"listed grant not visible: {grant}")

        threads = [threading.Thread(target=reader) for _ in range(4)] + [threading.Thread(target=writer)]
        for t in threads:
            t.start()
        for t in threads:
            t.join(timeout=30)

        assert errors == []
        assert len(store.list_grants()) == 200

    def test_concurrent_writers_are_serialized(self, store: InMemoryGrantStore) -> None:
        """Concurrent identical grants are added exactly once."""
        results = []
        lock = threading.Lock()

        def add() -> None:
            added = store.add_grant("alice", CATALOG, "sales", PrivilegeType.MODIFY)
            with lock:
                results.append(added)

        threads = [threading.Thread(target=add) for _ in range(16)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert results.count(True) == 1
        assert len(store.list_grants()) == 1
