"""
Audit trail for the brickgate authorization engine.

- context: RequestContext threaded through every service call
- sinks: append-only destinations (memory, JSON Lines, async wrapper)
- logger: AuditLogger writing mutation, denial and system records
- decorators: @audited and the mutation naming convention
"""

from .context import RequestContext, system_context
from .decorators import (
    AUDIT_EXCEPTIONS,
    AUDITED_ATTR,
    MUTATION_PREFIXES,
    audited,
    is_mutating_name,
)
from .logger import AuditLogger
from .sinks import AsyncAuditSink, AuditSink, InMemoryAuditSink, JsonlAuditSink

__all__ = [
    "RequestContext",
    "system_context",
    "AUDIT_EXCEPTIONS",
    "AUDITED_ATTR",
    "MUTATION_PREFIXES",
    "audited",
    "is_mutating_name",
    "AuditLogger",
    "AuditSink",
    "AsyncAuditSink",
    "InMemoryAuditSink",
    "JsonlAuditSink",
]
