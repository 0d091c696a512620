"""
Authorization contract models.

A ContractEntry is the declared, generated description of how one API
operation is expected to be authorized. It is never enforced at runtime;
it is diffed against the enforcement code by the offline verifier.
"""

from __future__ import annotations

from typing import Dict, List, Optional

from pydantic import Field, model_validator

from .base import FrozenGovernanceModel
from .enums import AuthzMode, PrivilegeType, SecurableIdSource, SecurableKind, is_valid_privilege_for_kind


class ContractCheck(FrozenGovernanceModel):
    """One declared privilege check of an operation."""
    securable_type: SecurableKind
    privilege: PrivilegeType
    securable_id_source: SecurableIdSource

    @model_validator(mode="after")
    def validate_combination(self) -> "ContractCheck":
        if not is_valid_privilege_for_kind(self.securable_type, self.privilege):
            raise ValueError(
                f"Privilege {self.privilege.value} is not valid on {self.securable_type.value}"
            )
        if self.securable_id_source.is_catalog_scoped and self.securable_type != SecurableKind.CATALOG:
            raise ValueError(
                f"{self.securable_id_source.value} ids name a catalog; "
                f"{self.securable_type.value} checks must use {SecurableIdSource.RUNTIME_RESOLVED_OBJECT_ID.value}"
            )
        return self

    def describe(self) -> str:
        return f"{self.securable_type.value}/{self.privilege.value}/{self.securable_id_source.value}"


class ContractEntry(FrozenGovernanceModel):
    """
    Declared authorization contract for one API operation.

    Attributes:
        operation_id: API operation id (e.g. 'createSchema')
        mode: Enforcement mode
        checks: Declared privilege checks (empty for admin_only)
        handler: Service method implementing the operation, 'module:Class.method'
        method: HTTP method of the operation
        path: HTTP path of the operation
    """
    operation_id: str = Field(..., pattern=r'^[a-z][A-Za-z0-9]*$')
    mode: AuthzMode
    checks: List[ContractCheck] = Field(default_factory=list)
    handler: str = Field(..., pattern=r'^[\w.]+:\w+\.\w+$')
    method: Optional[str] = None
    path: Optional[str] = None
    summary: Optional[str] = None

    @model_validator(mode="after")
    def validate_checks_for_mode(self) -> "ContractEntry":
        if self.mode == AuthzMode.ADMIN_ONLY and self.checks:
            raise ValueError(f"{self.operation_id}: admin_only operations declare no privilege checks")
        if self.mode in (AuthzMode.PRIVILEGE, AuthzMode.OWNER_OR_PRIVILEGE) and not self.checks:
            raise ValueError(f"{self.operation_id}: {self.mode.value} operations need at least one check")
        return self

    @property
    def handler_module(self) -> str:
        return self.handler.split(":", 1)[0]

    @property
    def handler_class(self) -> str:
        return self.handler.split(":", 1)[1].split(".", 1)[0]

    @property
    def handler_method(self) -> str:
        return self.handler.split(":", 1)[1].split(".", 1)[1]

    def to_records(self) -> List[Dict[str, Optional[str]]]:
        """
        Serialize to the flat exchange format consumed by verification tooling.

        One record per declared check; admin_only operations produce a single
        record with empty securable fields.
        """
        if not self.checks:
            return [{
                "operationID": self.operation_id,
                "mode": self.mode.value,
                "securableType": None,
                "privilege": None,
                "securableIDSource": None,
            }]
        return [
            {
                "operationID": self.operation_id,
                "mode": self.mode.value,
                "securableType": check.securable_type.value,
                "privilege": check.privilege.value,
                "securableIDSource": check.securable_id_source.value,
            }
            for check in self.checks
        ]
