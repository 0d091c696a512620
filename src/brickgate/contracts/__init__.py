"""
Contract registry and offline verification.

- registry: ContractRegistry generated from api_surface.yaml
- inspector: AST extraction of enforcement evidence from handlers
- verifier: registry vs. enforcement diff (assert_contract_parity)
- audit_rules: every mutating service method is audited
- cli: the brickgate-verify command
"""

from .audit_rules import AuditViolation, check_audit_coverage
from .inspector import HandlerInspection, inspect_handler
from .registry import ContractRegistry, load_registry, parse_surface
from .verifier import (
    ContractMismatch,
    MismatchKind,
    assert_contract_parity,
    verify_entries,
    verify_entry,
    verify_operation_ids,
    verify_registry,
)

__all__ = [
    "AuditViolation",
    "check_audit_coverage",
    "HandlerInspection",
    "inspect_handler",
    "ContractRegistry",
    "load_registry",
    "parse_surface",
    "ContractMismatch",
    "MismatchKind",
    "assert_contract_parity",
    "verify_entries",
    "verify_entry",
    "verify_operation_ids",
    "verify_registry",
]
