"""
Brickgate models.

This package provides the Pydantic models and enumerations of the engine.

Module organization:
- enums: SecurableKind, PrivilegeType, AuthzMode, SecurableIdSource, audit enums
- base: BaseGovernanceModel and process-level defaults
- securables: SecurableRef, CatalogObject, catalog_sentinel
- principals: Principal
- grants: Grant
- audit: AuditRecord
- contracts: ContractCheck, ContractEntry
"""

# Import base classes and defaults
from .base import (
    DEFAULT_CATALOG,
    DEFAULT_SECURABLE_OWNER,
    BaseGovernanceModel,
    FrozenGovernanceModel,
)

# Import audit records
from .audit import AuditRecord

# Import contract models
from .contracts import ContractCheck, ContractEntry

# Import all enums
from .enums import (
    PARENT_KIND,
    PRIVILEGES_BY_KIND,
    AuditCategory,
    AuditOutcome,
    AuthzMode,
    PrivilegeType,
    SecurableIdSource,
    SecurableKind,
    get_valid_privileges,
    is_valid_privilege_for_kind,
)

# Import grants
from .grants import Grant

# Import principals
from .principals import Principal

# Import securables
from .securables import (
    CatalogObject,
    SecurableRef,
    catalog_sentinel,
    get_default_catalog,
    set_default_catalog,
)

__all__ = [
    # Base
    "DEFAULT_CATALOG",
    "DEFAULT_SECURABLE_OWNER",
    "BaseGovernanceModel",
    "FrozenGovernanceModel",
    # Enums
    "PARENT_KIND",
    "PRIVILEGES_BY_KIND",
    "AuditCategory",
    "AuditOutcome",
    "AuthzMode",
    "PrivilegeType",
    "SecurableIdSource",
    "SecurableKind",
    "get_valid_privileges",
    "is_valid_privilege_for_kind",
    # Securables
    "CatalogObject",
    "SecurableRef",
    "catalog_sentinel",
    "get_default_catalog",
    "set_default_catalog",
    # Principals and grants
    "Principal",
    "Grant",
    # Audit
    "AuditRecord",
    # Contracts
    "ContractCheck",
    "ContractEntry",
]
