"""
Request-scoped context handed to every service method.

The context carries the principal established upstream, a request id, and
the operation/target the audit trail attributes the call to. The audited
decorator binds the operation; the checker records the securable it checked.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from typing import Optional, Tuple

from brickgate.models import Principal, SecurableRef


@dataclass
class RequestContext:
    """Per-request state threaded through service calls."""

    principal: Principal
    request_id: str = field(default_factory=lambda: uuid.uuid4().hex)
    operation: Optional[str] = None
    target: Optional[SecurableRef] = None

    @property
    def actor(self) -> str:
        return self.principal.name

    def bind(self, operation: str) -> Tuple[Optional[str], Optional[SecurableRef]]:
        """Bind an operation id, returning the previous binding for restore()."""
        previous = (self.operation, self.target)
        self.operation = operation
        self.target = None
        return previous

    def restore(self, previous: Tuple[Optional[str], Optional[SecurableRef]]) -> None:
        self.operation, self.target = previous

    def set_target(self, ref: SecurableRef) -> None:
        """Record the securable the current operation acts on."""
        self.target = ref


def system_context(name: str = "system") -> RequestContext:
    """Context for calls made by the platform itself (startup, reconciliation)."""
    return RequestContext(principal=Principal(name=name, is_admin=True))
