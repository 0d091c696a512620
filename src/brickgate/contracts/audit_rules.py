"""
Static "every mutation is audited" rule.

A method is a mutation when it lives on a *Service or *Manager class, its
name follows the mutation naming convention and it takes the request context.
Every such method must carry @audited unless AUDIT_EXCEPTIONS lists it with a
reason. Exceptions that no longer match such a method are reported as stale.
"""

from __future__ import annotations

import ast
import logging
from dataclasses import dataclass
from typing import Dict, Iterator, List, Optional, Tuple

from brickgate.audit import AUDIT_EXCEPTIONS, is_mutating_name

from .inspector import FunctionNode, audited_operation, iter_class_methods, iter_modules, parse_source

logger = logging.getLogger(__name__)

RECEIVER_SUFFIXES = ("Service", "Manager")
CONTEXT_PARAM = "ctx"
CONTEXT_TYPE = "RequestContext"


@dataclass(frozen=True)
class AuditViolation:
    """A mutating method that escapes the audit rule, or a stale exception."""

    method_id: str
    message: str
    lineno: Optional[int] = None

    def __str__(self) -> str:
        where = f" (line {self.lineno})" if self.lineno else ""
        return f"{self.method_id}{where}: {self.message}"


def _takes_context(func: FunctionNode) -> bool:
    params = func.args.posonlyargs + func.args.args
    if len(params) < 2:
        return False
    first = params[1]
    if first.arg == CONTEXT_PARAM:
        return True
    annotation = first.annotation
    if isinstance(annotation, ast.Name):
        return annotation.id == CONTEXT_TYPE
    if isinstance(annotation, ast.Attribute):
        return annotation.attr == CONTEXT_TYPE
    if isinstance(annotation, ast.Constant):
        return annotation.value == CONTEXT_TYPE
    return False


def iter_mutating_methods(package: str) -> Iterator[Tuple[str, FunctionNode]]:
    """Yield ('module:Class.method', node) for every mutating method of a package."""
    for module, path in iter_modules(package):
        for cls, method in iter_class_methods(parse_source(path)):
            if not cls.name.endswith(RECEIVER_SUFFIXES):
                continue
            if not is_mutating_name(method.name) or not _takes_context(method):
                continue
            yield f"{module}:{cls.name}.{method.name}", method


def _in_package(method_id: str, package: str) -> bool:
    module = method_id.split(":", 1)[0]
    return module == package or module.startswith(f"{package}.")


def check_audit_coverage(
    package: str = "brickgate.services",
    exceptions: Optional[Dict[str, str]] = None,
) -> List[AuditViolation]:
    """
    Check that every mutating method of a package is audited.

    Args:
        package: Package (or single module) to scan
        exceptions: Method id -> reason allow-list (defaults to AUDIT_EXCEPTIONS)

    Returns:
        Violations: unaudited mutations, then stale exceptions
    """
    exceptions = AUDIT_EXCEPTIONS if exceptions is None else exceptions
    violations: List[AuditViolation] = []
    used_exceptions = set()

    for method_id, method in iter_mutating_methods(package):
        decorated, _ = audited_operation(method)
        if method_id in exceptions:
            if decorated:
                violations.append(AuditViolation(
                    method_id, "listed in audit exceptions but already @audited", method.lineno
                ))
            else:
                used_exceptions.add(method_id)
            continue
        if not decorated:
            violations.append(AuditViolation(
                method_id, "mutating method is neither @audited nor an audit exception", method.lineno
            ))

    for method_id, reason in sorted(exceptions.items()):
        if not _in_package(method_id, package) or method_id in used_exceptions:
            continue
        if any(v.method_id == method_id for v in violations):
            continue
        violations.append(AuditViolation(method_id, f"stale audit exception ({reason}): no such mutating method"))

    for violation in violations:
        logger.warning(f"Audit rule violation: {violation}")
    return violations
