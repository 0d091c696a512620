"""
Grant model.

A Grant is the persisted fact (principal, kind, securable id, privilege).
Grants are additive: the absence of a matching grant means denial.
"""

from __future__ import annotations

from typing import Any, Dict, Tuple

from pydantic import Field, model_validator

from .base import FrozenGovernanceModel
from .enums import PrivilegeType, SecurableKind, is_valid_privilege_for_kind
from .securables import SecurableRef


class Grant(FrozenGovernanceModel):
    """
    A single authorization fact.

    Examples:
        Grant(principal="alice", kind=SecurableKind.CATALOG,
              securable_id="sales", privilege=PrivilegeType.CREATE_SCHEMA)
    """
    principal: str = Field(..., min_length=1)
    kind: SecurableKind
    securable_id: str = Field(..., min_length=1)
    privilege: PrivilegeType

    @model_validator(mode="after")
    def validate_privilege_for_kind(self) -> "Grant":
        """Reject grants no check could ever match (e.g. CREATE_SCHEMA on a table)."""
        if not is_valid_privilege_for_kind(self.kind, self.privilege):
            raise ValueError(
                f"Privilege {self.privilege.value} is not valid on {self.kind.value} securables"
            )
        return self

    @property
    def key(self) -> Tuple[str, SecurableKind, str, PrivilegeType]:
        """Tuple identity of the grant."""
        return (self.principal, self.kind, self.securable_id, self.privilege)

    @property
    def securable(self) -> SecurableRef:
        return SecurableRef(kind=self.kind, id=self.securable_id)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "principal": self.principal,
            "securable_type": self.kind.value,
            "securable_id": self.securable_id,
            "privilege": self.privilege.value,
        }

    def __str__(self) -> str:
        return f"{self.privilege.value} on {self.kind.value}:{self.securable_id} to {self.principal}"
