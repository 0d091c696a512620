"""
Contract parity verification.

Diffs the declared contract registry against the enforcement evidence
extracted from each handler's source. Runs offline (CI, tests, the
brickgate-verify command); the registry never drives runtime enforcement.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, List, Optional

from brickgate.errors import ContractMismatchError
from brickgate.models import AuthzMode, ContractEntry, SecurableKind

from .inspector import HandlerInspection, inspect_handler, iter_audited_methods
from .registry import ContractRegistry, load_registry

logger = logging.getLogger(__name__)

DEFAULT_SERVICES_PACKAGE = "brickgate.services"


class MismatchKind(str, Enum):
    """Kinds of drift between a contract and its handler."""
    MISSING_HANDLER = "missing_handler"
    MISSING_ENFORCEMENT = "missing_enforcement"
    MODE_DRIFT = "mode_drift"
    CHECK_NOT_ENFORCED = "check_not_enforced"
    UNDECLARED_CHECK = "undeclared_check"
    UNCLASSIFIED_CHECK = "unclassified_check"
    UNRESOLVED_ID_CHECK = "unresolved_id_check"
    LOOKUP_MISSING = "lookup_missing"
    LOOKUP_AFTER_CHECK = "lookup_after_check"
    ADMIN_ONLY_PRIVILEGE_CHECK = "admin_only_privilege_check"
    UNPAIRED_DECISION = "unpaired_decision"
    OPERATION_ID_DRIFT = "operation_id_drift"


@dataclass(frozen=True)
class ContractMismatch:
    """One discrepancy between the registry and the enforcement code."""

    operation_id: str
    handler: str
    kind: MismatchKind
    message: str

    def __str__(self) -> str:
        return f"{self.operation_id} [{self.kind.value}] {self.handler}: {self.message}"


def _mismatch(entry: ContractEntry, kind: MismatchKind, message: str) -> ContractMismatch:
    return ContractMismatch(entry.operation_id, entry.handler, kind, message)


def _verify_audit_binding(entry: ContractEntry, inspection: HandlerInspection) -> List[ContractMismatch]:
    if not inspection.is_audited:
        return [_mismatch(entry, MismatchKind.OPERATION_ID_DRIFT, "handler is not decorated with @audited")]
    if inspection.audited_operation != entry.operation_id:
        return [_mismatch(
            entry,
            MismatchKind.OPERATION_ID_DRIFT,
            f"@audited names '{inspection.audited_operation}', registry names '{entry.operation_id}'",
        )]
    return []


def _verify_admin_only(entry: ContractEntry, inspection: HandlerInspection) -> List[ContractMismatch]:
    mismatches = []
    for call in inspection.enforcement:
        if call.mode != AuthzMode.ADMIN_ONLY:
            mismatches.append(_mismatch(
                entry,
                MismatchKind.ADMIN_ONLY_PRIVILEGE_CHECK,
                f"admin-only handler performs a privilege check: {call.describe()}",
            ))
    if not any(call.mode == AuthzMode.ADMIN_ONLY for call in inspection.enforcement):
        mismatches.append(_mismatch(entry, MismatchKind.MISSING_ENFORCEMENT, "no admin check found"))
    return mismatches


def _verify_privilege_checks(entry: ContractEntry, inspection: HandlerInspection) -> List[ContractMismatch]:
    mismatches = []
    for call in inspection.enforcement:
        if call.mode != entry.mode:
            mismatches.append(_mismatch(
                entry,
                MismatchKind.MODE_DRIFT,
                f"declared {entry.mode.value}, enforced {call.mode.value}: {call.describe()}",
            ))

    actual = [call for call in inspection.enforcement if call.mode != AuthzMode.ADMIN_ONLY]
    classified = []
    for call in actual:
        if None in call.check_key:
            mismatches.append(_mismatch(
                entry,
                MismatchKind.UNCLASSIFIED_CHECK,
                f"check does not use literal kind/privilege or a recognized id source: {call.describe()}",
            ))
        else:
            classified.append(call)

    declared = {(c.securable_type, c.privilege, c.securable_id_source): c for c in entry.checks}
    enforced = {call.check_key: call for call in classified}
    found = ", ".join(call.describe() for call in actual) or "none"

    for key, check in declared.items():
        if key not in enforced:
            mismatches.append(_mismatch(
                entry,
                MismatchKind.CHECK_NOT_ENFORCED,
                f"declared check {check.describe()} not enforced (found: {found})",
            ))
    for key, call in enforced.items():
        if key not in declared:
            mismatches.append(_mismatch(
                entry,
                MismatchKind.UNDECLARED_CHECK,
                f"enforced check {call.describe()} is not declared",
            ))

    for call in classified:
        if call.id_source.is_catalog_scoped:
            if call.securable_type != SecurableKind.CATALOG:
                mismatches.append(_mismatch(
                    entry,
                    MismatchKind.UNRESOLVED_ID_CHECK,
                    f"{call.securable_type.value} checked against a request value, "
                    f"not a resolved object id: {call.describe()}",
                ))
            continue
        line = inspection.lookup_line(call.id_variable or "")
        if line is None:
            mismatches.append(_mismatch(
                entry,
                MismatchKind.LOOKUP_MISSING,
                f"'{call.id_variable}' is not assigned by a lookup before {call.describe()}",
            ))
        elif line > call.lineno:
            mismatches.append(_mismatch(
                entry,
                MismatchKind.LOOKUP_AFTER_CHECK,
                f"lookup of '{call.id_variable}' (line {line}) runs after {call.describe()}",
            ))
    return mismatches


def verify_entry(entry: ContractEntry) -> List[ContractMismatch]:
    """Verify one contract against its handler's source."""
    inspection = inspect_handler(entry.handler)
    if not inspection.found:
        return [_mismatch(entry, MismatchKind.MISSING_HANDLER, inspection.error)]

    mismatches = _verify_audit_binding(entry, inspection)

    if inspection.raw_decisions and not inspection.denial_audits:
        lines = ", ".join(str(n) for n in inspection.raw_decisions)
        mismatches.append(_mismatch(
            entry,
            MismatchKind.UNPAIRED_DECISION,
            f"raw authorization decision (line {lines}) without a denial audit call",
        ))

    if entry.mode == AuthzMode.ADMIN_ONLY:
        return mismatches + _verify_admin_only(entry, inspection)
    if not inspection.enforcement and not inspection.raw_decisions:
        return mismatches + [_mismatch(entry, MismatchKind.MISSING_ENFORCEMENT, "no enforcement call found")]
    return mismatches + _verify_privilege_checks(entry, inspection)


def verify_entries(entries: Iterable[ContractEntry]) -> List[ContractMismatch]:
    mismatches = []
    for entry in entries:
        mismatches.extend(verify_entry(entry))
    return mismatches


def verify_operation_ids(registry: ContractRegistry, package: str = DEFAULT_SERVICES_PACKAGE) -> List[ContractMismatch]:
    """Report @audited operation ids that the registry does not know or maps elsewhere."""
    handlers = registry.by_handler()
    mismatches = []
    for method_id, operation_id in iter_audited_methods(package):
        if method_id in handlers:
            # Covered by the per-entry check
            continue
        if operation_id is None or operation_id not in registry:
            message = f"@audited names unknown operation '{operation_id}'"
        else:
            message = f"operation '{operation_id}' is registered to {registry.get(operation_id).handler}"
        mismatches.append(ContractMismatch(operation_id or "?", method_id, MismatchKind.OPERATION_ID_DRIFT, message))
    return mismatches


def verify_registry(
    registry: Optional[ContractRegistry] = None,
    package: str = DEFAULT_SERVICES_PACKAGE,
) -> List[ContractMismatch]:
    """
    Verify every contract of a registry, plus decorator/registry id drift.

    Args:
        registry: Registry to verify (defaults to the packaged API surface)
        package: Services package scanned for @audited methods

    Returns:
        All mismatches found, empty when enforcement matches the contracts
    """
    registry = registry or load_registry()
    mismatches = verify_entries(registry) + verify_operation_ids(registry, package)
    for mismatch in mismatches:
        logger.warning(f"Contract mismatch: {mismatch}")
    logger.info(f"Verified {len(registry)} contracts: {len(mismatches)} mismatch(es)")
    return mismatches


def assert_contract_parity(
    registry: Optional[ContractRegistry] = None,
    package: str = DEFAULT_SERVICES_PACKAGE,
) -> None:
    """
    Raises:
        ContractMismatchError: If any contract drifted from its enforcement code
    """
    mismatches = verify_registry(registry, package)
    if mismatches:
        raise ContractMismatchError(mismatches)
