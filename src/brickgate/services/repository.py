"""
In-memory catalog repository.

Stands in for the metadata store of the catalog collaborator: it hands out
durable ids and resolves qualified names to objects. Authorization never
happens here.
"""

from __future__ import annotations

import logging
import threading
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

from brickgate.errors import AlreadyExistsError, NotFoundError
from brickgate.models import CatalogObject, SecurableKind

logger = logging.getLogger(__name__)

_NameKey = Tuple[SecurableKind, str]


class CatalogRepository:
    """
    Thread-safe registry of catalog objects, keyed by id and by full name.

    With full_name_ids set, every object's id is its qualified name, matching
    grant stores that address securables by name (Unity Catalog).

    Usage:
        repo = CatalogRepository()
        repo.create(CatalogObject(kind=SecurableKind.CATALOG, name="sales"))
        repo.get_by_name(SecurableKind.CATALOG, "sales")
    """

    def __init__(self, full_name_ids: bool = False) -> None:
        self.full_name_ids = full_name_ids
        self._lock = threading.RLock()
        self._by_id: Dict[str, CatalogObject] = {}
        self._by_name: Dict[_NameKey, str] = {}

    def get_by_name(self, kind: SecurableKind, full_name: str) -> CatalogObject:
        """
        Look up an object by qualified name.

        Raises:
            NotFoundError: If no object of that kind has the name
        """
        kind = SecurableKind(kind)
        with self._lock:
            obj_id = self._by_name.get((kind, full_name))
            if obj_id is None:
                raise NotFoundError(kind, full_name)
            return self._by_id[obj_id]

    def get(self, obj_id: str) -> CatalogObject:
        with self._lock:
            if obj_id not in self._by_id:
                raise NotFoundError("object", obj_id)
            return self._by_id[obj_id]

    def exists(self, kind: SecurableKind, full_name: str) -> bool:
        with self._lock:
            return (SecurableKind(kind), full_name) in self._by_name

    def create(self, obj: CatalogObject) -> CatalogObject:
        """
        Store a new object.

        Raises:
            AlreadyExistsError: If an object of the same kind has the same full name,
                or, with full_name_ids, any object already uses the name as its id
        """
        if self.full_name_ids and obj.id != obj.full_name:
            obj = obj.model_copy(update={"id": obj.full_name})
        key = (obj.kind, obj.full_name)
        with self._lock:
            if key in self._by_name or obj.id in self._by_id:
                raise AlreadyExistsError(obj.kind, obj.full_name)
            self._by_id[obj.id] = obj
            self._by_name[key] = obj.id
        logger.info(f"Created {obj.kind.value} {obj.full_name} ({obj.id})")
        return obj

    def update(self, obj_id: str, **changes: Any) -> CatalogObject:
        """Apply field changes to an object, returning the new version."""
        with self._lock:
            current = self.get(obj_id)
            updated = current.model_copy(
                update={**changes, "updated_at": datetime.now(timezone.utc)}
            )
            self._by_id[obj_id] = updated
        logger.info(f"Updated {updated.kind.value} {updated.full_name}: {sorted(changes)}")
        return updated

    def delete(self, obj_id: str) -> CatalogObject:
        with self._lock:
            obj = self.get(obj_id)
            del self._by_id[obj_id]
            del self._by_name[(obj.kind, obj.full_name)]
        logger.info(f"Deleted {obj.kind.value} {obj.full_name}")
        return obj

    def list(self, kind: Optional[SecurableKind] = None, parent_id: Optional[str] = None) -> List[CatalogObject]:
        with self._lock:
            objects = list(self._by_id.values())
        if kind is not None:
            objects = [o for o in objects if o.kind == kind]
        if parent_id is not None:
            objects = [o for o in objects if o.parent_id == parent_id]
        return sorted(objects, key=lambda o: (o.kind.value, o.full_name))
