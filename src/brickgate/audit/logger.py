"""
Audit logger.

Single entry point for writing the audit trail. Two independent obligations:
- mutation records: exactly one per invocation of a state-changing method
- denial records: exactly one per denied authorization check
"""

from __future__ import annotations

import logging
from typing import List, Optional

from brickgate.models import (
    AuditCategory,
    AuditOutcome,
    AuditRecord,
    PrivilegeType,
    SecurableRef,
)

from .context import RequestContext
from .sinks import AuditSink, InMemoryAuditSink

logger = logging.getLogger(__name__)


class AuditLogger:
    """
    Writes structured audit records to an append-only sink.

    Usage:
        audit = AuditLogger(InMemoryAuditSink())
        audit.log_denial(ctx, ref, PrivilegeType.MODIFY, "no grant")
        audit.query(actor="alice", category=AuditCategory.DENIAL)
    """

    def __init__(self, sink: Optional[AuditSink] = None):
        self.sink = sink or InMemoryAuditSink()

    def _append(self, record: AuditRecord) -> AuditRecord:
        self.sink.append(record)
        return record

    def log_mutation(
        self,
        ctx: RequestContext,
        outcome: AuditOutcome,
        detail: str = "",
    ) -> AuditRecord:
        """Record one invocation of a state-changing method."""
        target = ctx.target
        record = AuditRecord(
            actor=ctx.actor,
            operation=ctx.operation or "unknown",
            target=target.key if target else None,
            outcome=outcome,
            category=AuditCategory.MUTATION,
            securable_kind=target.kind if target else None,
            securable_id=target.id if target else None,
            detail=detail,
            request_id=ctx.request_id,
        )
        logger.debug(f"Audit: {record}")
        return self._append(record)

    def log_denial(
        self,
        ctx: RequestContext,
        ref: Optional[SecurableRef],
        privilege: Optional[PrivilegeType],
        reason: str = "",
    ) -> AuditRecord:
        """Record a denied authorization check."""
        record = AuditRecord(
            actor=ctx.actor,
            operation=ctx.operation or "unknown",
            target=ref.key if ref else None,
            outcome=AuditOutcome.DENIED,
            category=AuditCategory.DENIAL,
            securable_kind=ref.kind if ref else None,
            securable_id=ref.id if ref else None,
            privilege=privilege,
            detail=reason,
            request_id=ctx.request_id,
        )
        logger.warning(f"Denied {ctx.actor} {record.operation} on {ref.display if ref else '-'}: {reason}")
        return self._append(record)

    def log_system(
        self,
        actor: str,
        operation: str,
        detail: str = "",
        outcome: AuditOutcome = AuditOutcome.SUCCESS,
        target: Optional[SecurableRef] = None,
    ) -> AuditRecord:
        """Record a system-level event (startup reconciliation and the like)."""
        record = AuditRecord(
            actor=actor,
            operation=operation,
            target=target.key if target else None,
            outcome=outcome,
            category=AuditCategory.SYSTEM,
            securable_kind=target.kind if target else None,
            securable_id=target.id if target else None,
            detail=detail,
        )
        logger.info(f"System audit: {record}")
        return self._append(record)

    def records(self) -> List[AuditRecord]:
        return self.sink.records()

    def query(
        self,
        actor: Optional[str] = None,
        operation: Optional[str] = None,
        category: Optional[AuditCategory] = None,
        outcome: Optional[AuditOutcome] = None,
        target: Optional[str] = None,
        request_id: Optional[str] = None,
    ) -> List[AuditRecord]:
        """Records matching every given filter, in emission order."""
        result = []
        for record in self.sink.records():
            if actor is not None and record.actor != actor:
                continue
            if operation is not None and record.operation != operation:
                continue
            if category is not None and record.category != category:
                continue
            if outcome is not None and record.outcome != outcome:
                continue
            if target is not None and record.target != target:
                continue
            if request_id is not None and record.request_id != request_id:
                continue
            result.append(record)
        return result

    def flush(self) -> None:
        self.sink.flush()

    def close(self) -> None:
        self.sink.close()
