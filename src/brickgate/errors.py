"""
Exception taxonomy for the brickgate authorization engine.

- AccessDeniedError: expected outcome of a failed authorization (403)
- ValidationError: a call site asked for a nonsensical privilege/kind pair
- StoreUnavailableError: the grant store cannot answer (retryable by caller)
- ContractMismatchError: offline verification found enforcement drift
"""

from typing import TYPE_CHECKING, Any, List, Optional, Sequence

if TYPE_CHECKING:
    from brickgate.contracts.verifier import ContractMismatch
    from brickgate.models.securables import SecurableRef


class BrickgateError(Exception):
    """Base class for all engine errors."""


class AccessDeniedError(BrickgateError):
    """Raised when a principal lacks the privilege required by an operation."""

    status_code = 403

    def __init__(
        self,
        principal: str,
        operation: Optional[str],
        ref: Optional["SecurableRef"] = None,
        privilege: Optional[Any] = None,
        reason: str = "",
    ):
        self.principal = principal
        self.operation = operation
        self.ref = ref
        self.privilege = privilege
        self.reason = reason

        if ref is not None and privilege is not None:
            priv = privilege.value if hasattr(privilege, "value") else privilege
            message = f"Access denied: '{principal}' lacks {priv} on {ref.display}"
        elif ref is not None:
            message = f"Access denied: '{principal}' is not permitted to administer {ref.display}"
        else:
            message = f"Access denied: '{principal}' is not permitted to perform {operation}"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message)


class ValidationError(BrickgateError, ValueError):
    """Raised for malformed privilege/securable combinations requested by a call site."""


class StoreUnavailableError(BrickgateError):
    """Raised when the grant store cannot answer a query or apply a mutation."""

    retryable = True

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        self.cause = cause
        super().__init__(message)


class NotFoundError(BrickgateError):
    """Raised when a catalog object does not exist."""

    status_code = 404

    def __init__(self, kind: Any, name: str):
        self.kind = kind
        self.name = name
        kind_value = kind.value if hasattr(kind, "value") else kind
        super().__init__(f"{kind_value} '{name}' does not exist")


class AlreadyExistsError(BrickgateError):
    """Raised when creating a catalog object whose name is taken."""

    status_code = 409

    def __init__(self, kind: Any, name: str):
        self.kind = kind
        self.name = name
        kind_value = kind.value if hasattr(kind, "value") else kind
        super().__init__(f"{kind_value} '{name}' already exists")


class AuditWriteError(BrickgateError):
    """Raised when audit records could not be delivered to their sink."""

    def __init__(self, message: str, undelivered: Sequence[Any] = ()):
        self.undelivered = list(undelivered)
        super().__init__(f"{message} ({len(self.undelivered)} undelivered records)")


class ContractMismatchError(BrickgateError):
    """Raised by the offline verifier when declared contracts drift from enforcement code."""

    def __init__(self, mismatches: List["ContractMismatch"]):
        self.mismatches = list(mismatches)
        lines = [f"{len(self.mismatches)} authorization contract mismatch(es):"]
        lines.extend(f"  - {m}" for m in self.mismatches)
        super().__init__("\n".join(lines))
