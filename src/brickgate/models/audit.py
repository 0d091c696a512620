"""
Audit record model.

Audit records are append-only facts: who tried to do what, to which object,
and with what outcome. They never participate in authorization decisions.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from pydantic import Field

from .base import FrozenGovernanceModel
from .enums import AuditCategory, AuditOutcome, PrivilegeType, SecurableKind


class AuditRecord(FrozenGovernanceModel):
    """
    One immutable entry of the audit trail.

    The core fields {actor, operation, target, outcome, timestamp} are what the
    audit sink interface promises; the remaining fields carry the structured
    context needed to reconstruct a denial.
    """
    actor: str
    operation: str
    target: Optional[str] = Field(None, description="'<kind>:<id>' of the securable involved")
    outcome: AuditOutcome
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    category: AuditCategory = AuditCategory.MUTATION
    securable_kind: Optional[SecurableKind] = None
    securable_id: Optional[str] = None
    privilege: Optional[PrivilegeType] = None
    detail: str = ""
    request_id: Optional[str] = None
    record_id: str = Field(default_factory=lambda: uuid.uuid4().hex)

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(mode="json")

    def __str__(self) -> str:
        return f"[{self.category.value}] {self.actor} {self.operation} {self.target or '-'} {self.outcome.value}"
