"""
Enum definitions for the brickgate authorization engine.

This module contains the securable kinds, the privilege taxonomy and the
closed vocabularies used by the contract registry and the audit trail.
"""

from enum import Enum
from typing import Dict, FrozenSet, List


class SecurableKind(str, Enum):
    """Identifies the kind of catalog object a privilege is checked against."""
    CATALOG = "catalog"
    SCHEMA = "schema"
    TABLE = "table"
    VIEW = "view"
    VOLUME = "volume"
    STORAGE_CREDENTIAL = "storage_credential"
    EXTERNAL_LOCATION = "external_location"
    COMPUTE_ENDPOINT = "compute_endpoint"


class PrivilegeType(str, Enum):
    """
    Privileges recognized by the engine.

    IMPORTANT:
    - CREATE_* privileges are granted on the parent (catalog or schema) and
      checked before the child exists
    - MODIFY and MANAGE apply to any existing securable (update vs. delete)
    - Privileges are ALWAYS ADDITIVE - absence of a grant means denial
    """
    CREATE_SCHEMA = "CREATE_SCHEMA"
    CREATE_TABLE = "CREATE_TABLE"
    CREATE_VIEW = "CREATE_VIEW"
    CREATE_VOLUME = "CREATE_VOLUME"
    CREATE_STORAGE_CREDENTIAL = "CREATE_STORAGE_CREDENTIAL"
    CREATE_EXTERNAL_LOCATION = "CREATE_EXTERNAL_LOCATION"
    MANAGE_COMPUTE = "MANAGE_COMPUTE"
    MODIFY = "MODIFY"
    MANAGE = "MANAGE"


class AuthzMode(str, Enum):
    """Enforcement mode declared for an API operation."""
    PRIVILEGE = "privilege"
    OWNER_OR_PRIVILEGE = "owner_or_privilege"
    ADMIN_ONLY = "admin_only"


class SecurableIdSource(str, Enum):
    """Where the securable identifier of a privilege check comes from."""
    CATALOG_NAME_PARAM = "catalog_name_param"  # Verbatim from a request field
    CATALOG_SENTINEL = "catalog_sentinel"  # Parent catalog of a not-yet-created object
    RUNTIME_RESOLVED_OBJECT_ID = "runtime_resolved_object_id"  # Looked up before the check

    @property
    def is_catalog_scoped(self) -> bool:
        """True if the id names a catalog rather than the checked object."""
        return self != SecurableIdSource.RUNTIME_RESOLVED_OBJECT_ID


class AuditCategory(str, Enum):
    """Kinds of audit records."""
    MUTATION = "mutation"
    DENIAL = "denial"
    SYSTEM = "system"


class AuditOutcome(str, Enum):
    """Outcome marker carried by every audit record."""
    SUCCESS = "success"
    FAILURE = "failure"
    DENIED = "denied"


# =============================================================================
# SECURABLE HIERARCHY
# =============================================================================

# Conceptual containment only. The engine never walks it: each call site
# supplies the exact (kind, id) pair it means to check.
PARENT_KIND: Dict[SecurableKind, SecurableKind] = {
    SecurableKind.SCHEMA: SecurableKind.CATALOG,
    SecurableKind.TABLE: SecurableKind.SCHEMA,
    SecurableKind.VIEW: SecurableKind.SCHEMA,
    SecurableKind.VOLUME: SecurableKind.CATALOG,
    SecurableKind.STORAGE_CREDENTIAL: SecurableKind.CATALOG,
    SecurableKind.EXTERNAL_LOCATION: SecurableKind.CATALOG,
    SecurableKind.COMPUTE_ENDPOINT: SecurableKind.CATALOG,
}


_GENERIC_PRIVILEGES = frozenset({PrivilegeType.MODIFY, PrivilegeType.MANAGE})

# Privileges each kind recognizes
PRIVILEGES_BY_KIND: Dict[SecurableKind, FrozenSet[PrivilegeType]] = {
    SecurableKind.CATALOG: _GENERIC_PRIVILEGES | {
        PrivilegeType.CREATE_SCHEMA,
        PrivilegeType.CREATE_TABLE,
        PrivilegeType.CREATE_VIEW,
        PrivilegeType.CREATE_VOLUME,
        PrivilegeType.CREATE_STORAGE_CREDENTIAL,
        PrivilegeType.CREATE_EXTERNAL_LOCATION,
        PrivilegeType.MANAGE_COMPUTE,
    },
    SecurableKind.SCHEMA: _GENERIC_PRIVILEGES | {
        PrivilegeType.CREATE_TABLE,
        PrivilegeType.CREATE_VIEW,
    },
    SecurableKind.TABLE: _GENERIC_PRIVILEGES,
    SecurableKind.VIEW: _GENERIC_PRIVILEGES,
    SecurableKind.VOLUME: _GENERIC_PRIVILEGES,
    SecurableKind.STORAGE_CREDENTIAL: _GENERIC_PRIVILEGES,
    SecurableKind.EXTERNAL_LOCATION: _GENERIC_PRIVILEGES,
    SecurableKind.COMPUTE_ENDPOINT: _GENERIC_PRIVILEGES | {PrivilegeType.MANAGE_COMPUTE},
}


def is_valid_privilege_for_kind(kind: SecurableKind, privilege: PrivilegeType) -> bool:
    """
    Check whether a privilege makes sense on a securable kind.

    Used by the checker to reject nonsensical combinations (e.g. CREATE_SCHEMA
    on a table) at call time.

    Args:
        kind: Securable kind being checked
        privilege: Privilege being required

    Returns:
        True if the kind recognizes the privilege
    """
    try:
        kind = SecurableKind(kind)
        privilege = PrivilegeType(privilege)
    except ValueError:
        return False
    return privilege in PRIVILEGES_BY_KIND[kind]


def get_valid_privileges(kind: SecurableKind) -> List[PrivilegeType]:
    """Get the privileges recognized by a kind, in declaration order."""
    allowed = PRIVILEGES_BY_KIND[SecurableKind(kind)]
    return [p for p in PrivilegeType if p in allowed]
