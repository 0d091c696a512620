"""
Mutation auditing by construction.

Every state-changing service method is wrapped by @audited, which emits
exactly one mutation record per invocation whatever the outcome. Methods that
are deliberately audited elsewhere are listed in AUDIT_EXCEPTIONS with the
reason; the static audit rules reject any other undecorated mutating method.
"""

from __future__ import annotations

import functools
import logging
from typing import Any, Callable, Dict, Tuple, TypeVar

from brickgate.errors import AccessDeniedError
from brickgate.models import AuditOutcome

from .context import RequestContext

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Any])

# Method name prefixes that identify a state-changing service method
MUTATION_PREFIXES: Tuple[str, ...] = (
    "create",
    "update",
    "delete",
    "register",
    "bind",
    "unbind",
    "assign",
    "unassign",
    "attach",
    "trigger",
    "execute",
    "reorder",
    "set",
    "grant",
    "revoke",
)

# Explicitly non-decorated mutating methods.
# Key format: "module:Class.method"
AUDIT_EXCEPTIONS: Dict[str, str] = {
    "brickgate.services.catalog:CatalogRegistrationService.attach_all":
        "startup reconciliation path; audited once at system level",
}

AUDITED_ATTR = "__audited_operation__"


def is_mutating_name(name: str) -> bool:
    """Check a method name against the mutation naming convention."""
    return any(name == prefix or name.startswith(prefix + "_") for prefix in MUTATION_PREFIXES)


def audited(operation_id: str) -> Callable[[F], F]:
    """
    Wrap a service method so it emits exactly one mutation audit record.

    The wrapped method must take a RequestContext as its first argument and
    its instance must expose an `audit_logger`. The operation id is bound on
    the context for the duration of the call so denial records raised inside
    are attributed to it.

    Args:
        operation_id: API operation id the method implements (e.g. 'createSchema')

    Example:
        @audited("createSchema")
        def create_schema(self, ctx, catalog_name, name):
            ...
    """

    def decorator(func: F) -> F:
        @functools.wraps(func)
        def wrapper(self: Any, ctx: RequestContext, *args: Any, **kwargs: Any) -> Any:
            if not isinstance(ctx, RequestContext):
                raise TypeError(f"{func.__qualname__} must be called with a RequestContext first")

            method_id = f"{type(self).__name__}.{func.__name__}"
            previous = ctx.bind(operation_id)
            try:
                result = func(self, ctx, *args, **kwargs)
            except AccessDeniedError as e:
                self.audit_logger.log_mutation(ctx, AuditOutcome.DENIED, f"{method_id}: {e}")
                raise
            except Exception as e:
                self.audit_logger.log_mutation(ctx, AuditOutcome.FAILURE, f"{method_id}: {e}")
                raise
            else:
                self.audit_logger.log_mutation(ctx, AuditOutcome.SUCCESS, method_id)
                return result
            finally:
                ctx.restore(previous)

        setattr(wrapper, AUDITED_ATTR, operation_id)
        return wrapper  # type: ignore[return-value]

    return decorator
