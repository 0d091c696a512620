"""
Factory functions for creating test models.

These factories create brickgate models with sensible defaults for testing.
All factories accept overrides for the fields tests usually vary.
"""

from typing import Any, Dict, List, Optional

from brickgate.audit import RequestContext
from brickgate.models import (
    AuditCategory,
    AuditOutcome,
    AuditRecord,
    AuthzMode,
    CatalogObject,
    ContractEntry,
    Grant,
    Principal,
    PrivilegeType,
    SecurableIdSource,
    SecurableKind,
    SecurableRef,
)


def make_principal(name: str = "alice", is_admin: bool = False) -> Principal:
    """Create a Principal for testing."""
    return Principal(name=name, is_admin=is_admin)


def make_context(name: str = "alice", is_admin: bool = False, operation: Optional[str] = None) -> RequestContext:
    """
    Create a RequestContext for testing.

    Args:
        name: Principal name
        is_admin: Admin flag established upstream
        operation: Pre-bound operation id (normally bound by @audited)

    Returns:
        RequestContext instance
    """
    return RequestContext(principal=make_principal(name, is_admin), operation=operation)


def make_ref(
    kind: SecurableKind = SecurableKind.TABLE,
    securable_id: str = "tbl_0001",
    name: Optional[str] = None,
) -> SecurableRef:
    """Create a SecurableRef for testing."""
    return SecurableRef(kind=kind, id=securable_id, name=name)


def make_grant(
    principal: str = "alice",
    kind: SecurableKind = SecurableKind.CATALOG,
    securable_id: str = "sales",
    privilege: PrivilegeType = PrivilegeType.CREATE_SCHEMA,
) -> Grant:
    """Create a Grant for testing."""
    return Grant(principal=principal, kind=kind, securable_id=securable_id, privilege=privilege)


def make_catalog_object(
    kind: SecurableKind = SecurableKind.CATALOG,
    name: str = "sales",
    catalog_name: Optional[str] = None,
    schema_name: Optional[str] = None,
    owner: Optional[str] = "platform_automation_spn",
    **kwargs: Any,
) -> CatalogObject:
    """
    Create a CatalogObject for testing.

    Args:
        kind: Securable kind
        name: Object name
        catalog_name: Containing catalog (nested kinds)
        schema_name: Containing schema (tables and views)
        owner: Owner principal
        **kwargs: Additional CatalogObject fields

    Returns:
        CatalogObject instance
    """
    return CatalogObject(
        kind=kind,
        name=name,
        catalog_name=catalog_name,
        schema_name=schema_name,
        owner=owner,
        **kwargs,
    )


def make_contract_entry(
    operation_id: str = "updateTable",
    handler: str = "brickgate.services.catalog:CatalogService.update_table",
    mode: AuthzMode = AuthzMode.PRIVILEGE,
    checks: Optional[List[Dict[str, Any]]] = None,
) -> ContractEntry:
    """
    Create a ContractEntry for testing.

    Defaults to a single runtime-resolved MODIFY check on a table; pass
    checks=[] for admin_only entries.
    """
    if checks is None:
        checks = [{
            "securable_type": SecurableKind.TABLE,
            "privilege": PrivilegeType.MODIFY,
            "securable_id_source": SecurableIdSource.RUNTIME_RESOLVED_OBJECT_ID,
        }]
    return ContractEntry(operation_id=operation_id, handler=handler, mode=mode, checks=checks)


def make_audit_record(
    actor: str = "alice",
    operation: str = "createSchema",
    target: Optional[str] = "catalog:sales",
    outcome: AuditOutcome = AuditOutcome.SUCCESS,
    category: AuditCategory = AuditCategory.MUTATION,
) -> AuditRecord:
    """Create an AuditRecord for testing."""
    return AuditRecord(actor=actor, operation=operation, target=target, outcome=outcome, category=category)
