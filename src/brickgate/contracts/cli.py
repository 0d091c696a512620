"""
brickgate-verify: offline contract and audit verification.

Usage:
    brickgate-verify
    brickgate-verify --surface path/to/api_surface.yaml --dump-registry build/contracts.json
    brickgate-verify --list
"""

import argparse
import sys
from pathlib import Path
from typing import List, Optional

from brickgate.config import configure_logging

from .audit_rules import check_audit_coverage
from .registry import load_registry
from .verifier import DEFAULT_SERVICES_PACKAGE, verify_registry


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="brickgate-verify",
        description="Verify authorization contracts and audit coverage against the service source",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--surface",
        "-s",
        type=Path,
        help="API surface YAML (uses the packaged api_surface.yaml if not specified)",
    )
    parser.add_argument(
        "--package",
        "-p",
        default=DEFAULT_SERVICES_PACKAGE,
        help=f"Services package to inspect (default: {DEFAULT_SERVICES_PACKAGE})",
    )
    parser.add_argument(
        "--dump-registry",
        type=Path,
        metavar="PATH",
        help="Also write the contract registry records as JSON to PATH",
    )
    parser.add_argument(
        "--list",
        "-l",
        action="store_true",
        help="List the registered contracts and exit",
    )
    parser.add_argument(
        "--skip-audit-rules",
        action="store_true",
        help="Only verify contract parity",
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        help="Logging level (default: WARNING)",
    )
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(args.log_level)

    registry = load_registry(args.surface)

    # List mode
    if args.list:
        print(f"Authorization contracts: {len(registry)}")
        for entry in registry:
            checks = ", ".join(check.describe() for check in entry.checks) or "-"
            print(f"  {entry.operation_id:<28} {entry.mode.value:<20} {checks}")
        if registry.unguarded:
            print(f"Read-only operations: {', '.join(registry.unguarded)}")
        return 0

    if args.dump_registry:
        registry.dump_json(args.dump_registry)
        print(f"Registry written to: {args.dump_registry}")

    mismatches = verify_registry(registry, args.package)
    violations = [] if args.skip_audit_rules else check_audit_coverage(args.package)

    print(f"Contracts verified: {len(registry)}")
    for mismatch in mismatches:
        print(f"  [MISMATCH] {mismatch}")
    for violation in violations:
        print(f"  [AUDIT] {violation}")

    if mismatches or violations:
        print(f"FAILED: {len(mismatches)} contract mismatch(es), {len(violations)} audit violation(s)")
        return 1
    print("OK")
    return 0


if __name__ == "__main__":
    sys.exit(main())
