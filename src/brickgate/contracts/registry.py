"""
Contract registry loader.

The registry is generated from the API surface description: every operation
carrying an x-authz block becomes one ContractEntry. Operations without one
are read-only and are listed separately as unguarded.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional

import yaml

from brickgate.models import ContractEntry

logger = logging.getLogger(__name__)

DEFAULT_SURFACE_PATH = Path(__file__).parent / "api_surface.yaml"

_HTTP_METHODS = ("get", "put", "post", "patch", "delete")


class ContractRegistry:
    """
    Immutable, operation-id keyed collection of authorization contracts.

    Usage:
        registry = load_registry()
        entry = registry.get("createSchema")
        records = registry.to_records()
    """

    def __init__(self, entries: List[ContractEntry], unguarded: Optional[List[str]] = None) -> None:
        self._entries: Dict[str, ContractEntry] = {}
        for entry in entries:
            if entry.operation_id in self._entries:
                raise ValueError(f"Duplicate operation id in contract registry: {entry.operation_id}")
            self._entries[entry.operation_id] = entry
        self.unguarded = sorted(unguarded or [])

    def get(self, operation_id: str) -> ContractEntry:
        if operation_id not in self._entries:
            raise KeyError(f"No contract for operation '{operation_id}'")
        return self._entries[operation_id]

    def operation_ids(self) -> List[str]:
        return sorted(self._entries)

    def entries(self) -> List[ContractEntry]:
        return [self._entries[op] for op in self.operation_ids()]

    def by_handler(self) -> Dict[str, ContractEntry]:
        """Entries keyed by handler ('module:Class.method')."""
        return {entry.handler: entry for entry in self._entries.values()}

    def __contains__(self, operation_id: object) -> bool:
        return operation_id in self._entries

    def __iter__(self) -> Iterator[ContractEntry]:
        return iter(self.entries())

    def __len__(self) -> int:
        return len(self._entries)

    def to_records(self) -> List[Dict[str, Optional[str]]]:
        """Flat exchange records, ordered by operation id."""
        records = []
        for entry in self.entries():
            records.extend(entry.to_records())
        return records

    def dump_json(self, path: str | Path) -> Path:
        """Write the exchange records as a JSON document keyed by operation id."""
        path = Path(path)
        grouped: Dict[str, List[Dict[str, Optional[str]]]] = {}
        for record in self.to_records():
            grouped.setdefault(record["operationID"], []).append(record)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as f:
            json.dump(grouped, f, indent=2, sort_keys=True)
        logger.info(f"Wrote {len(grouped)} contracts to {path}")
        return path


def parse_surface(data: Dict[str, Any]) -> ContractRegistry:
    """
    Build a registry from a parsed API surface document.

    Raises:
        ValueError: If an operation is malformed
    """
    entries: List[ContractEntry] = []
    unguarded: List[str] = []

    for path, operations in (data.get("paths") or {}).items():
        for method, operation in (operations or {}).items():
            if method not in _HTTP_METHODS:
                continue
            operation_id = operation.get("operationId")
            if not operation_id:
                raise ValueError(f"{method.upper()} {path} has no operationId")

            authz = operation.get("x-authz")
            if authz is None:
                logger.debug(f"{operation_id} declares no x-authz; treated as read-only")
                unguarded.append(operation_id)
                continue

            entries.append(ContractEntry.model_validate({
                "operation_id": operation_id,
                "mode": authz.get("mode"),
                "checks": authz.get("checks") or [],
                "handler": operation.get("x-handler"),
                "method": method.upper(),
                "path": path,
                "summary": operation.get("summary"),
            }))

    return ContractRegistry(entries, unguarded)


def load_registry(path: Optional[str | Path] = None) -> ContractRegistry:
    """
    Load the contract registry from an API surface YAML file.

    Args:
        path: API surface file (defaults to the packaged api_surface.yaml)

    Raises:
        FileNotFoundError: If the file doesn't exist
        yaml.YAMLError: If YAML parsing fails
        pydantic.ValidationError: If a contract entry is invalid
    """
    path = Path(path) if path else DEFAULT_SURFACE_PATH
    if not path.exists():
        raise FileNotFoundError(f"API surface file not found: {path}")

    with open(path, "r") as f:
        data = yaml.safe_load(f)

    registry = parse_surface(data or {})
    logger.info(f"Loaded {len(registry)} authorization contracts from {path}")
    return registry
