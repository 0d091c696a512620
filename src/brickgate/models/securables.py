"""
Securable references and catalog object metadata.

A SecurableRef is the (kind, id) pair a privilege check is made against. The
id is either the durable id of an existing object, a catalog name taken from
the request, or a catalog sentinel standing in for the catalog that will
contain an object not yet created.
"""

from __future__ import annotations

import logging
import os
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from pydantic import Field, model_validator
from typing_extensions import Self

from .base import DEFAULT_CATALOG, BaseGovernanceModel, FrozenGovernanceModel
from .enums import PARENT_KIND, SecurableKind

logger = logging.getLogger(__name__)

_default_catalog: Optional[str] = None


def set_default_catalog(name: Optional[str]) -> None:
    """Override the catalog used by catalog_sentinel() when no catalog is given."""
    global _default_catalog
    _default_catalog = name


def get_default_catalog() -> str:
    """
    Get the default sentinel catalog.

    Uses the value set by set_default_catalog(), then BRICKGATE_DEFAULT_CATALOG,
    then 'main'.
    """
    if _default_catalog:
        return _default_catalog
    return os.getenv('BRICKGATE_DEFAULT_CATALOG', DEFAULT_CATALOG)


def catalog_sentinel(catalog_name: Optional[str] = None, default: Optional[str] = None) -> str:
    """
    Sentinel id for the catalog that will contain a not-yet-created object.

    Args:
        catalog_name: Catalog named in the request, if any
        default: Default catalog of the calling engine; get_default_catalog() if None

    Returns:
        The catalog identifier to check CREATE_* privileges against
    """
    return catalog_name or default or get_default_catalog()


class SecurableRef(FrozenGovernanceModel):
    """
    Reference to a securable: the exact (kind, id) pair a check is made against.

    The optional name is only used for display so that error messages cite
    the object the caller asked for instead of an opaque id.
    """
    kind: SecurableKind
    id: str = Field(..., min_length=1)
    name: Optional[str] = Field(None, description="Display name, never used for authorization")

    @property
    def key(self) -> str:
        """Stable key used in audit targets, e.g. 'table:3f2a...'."""
        return f"{self.kind.value}:{self.id}"

    @property
    def display(self) -> str:
        """User-facing form, e.g. 'table:events'."""
        return f"{self.kind.value}:{self.name or self.id}"

    def with_name(self, name: str) -> Self:
        """Return a copy carrying a display name."""
        return self.model_copy(update={"name": name})

    def redacted(self) -> Self:
        """Copy identified by its display name only, safe to hand to callers."""
        return self.model_copy(update={"id": self.name or self.id})

    def __str__(self) -> str:
        return self.key


def _new_id() -> str:
    return uuid.uuid4().hex


class CatalogObject(BaseGovernanceModel):
    """
    Metadata record for an object held by the catalog collaborator.

    Catalogs are keyed by their name (the natural parent key); every other
    object gets a generated durable id that grants are issued against.
    """
    kind: SecurableKind
    name: str = Field(..., pattern=r'^[A-Za-z_][A-Za-z0-9_\-]*$')
    id: str = Field(default_factory=_new_id)
    catalog_name: Optional[str] = None
    schema_name: Optional[str] = None
    parent_id: Optional[str] = None
    owner: Optional[str] = None
    comment: Optional[str] = Field(None, max_length=1024)
    properties: Dict[str, Any] = Field(default_factory=dict)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: Optional[datetime] = None

    @model_validator(mode="before")
    @classmethod
    def catalog_id_is_name(cls, data: Any) -> Any:
        """Catalog ids are their names."""
        if isinstance(data, dict) and data.get("name"):
            kind = data.get("kind")
            if kind in (SecurableKind.CATALOG, SecurableKind.CATALOG.value):
                data = {**data, "id": data["name"]}
        return data

    @property
    def full_name(self) -> str:
        """Qualified name: catalog[.schema].name for nested kinds, bare name otherwise."""
        parts = [p for p in (self.catalog_name, self.schema_name) if p]
        if self.kind == SecurableKind.CATALOG:
            return self.name
        return ".".join(parts + [self.name])

    @property
    def parent_kind(self) -> Optional[SecurableKind]:
        return PARENT_KIND.get(self.kind)

    def ref(self) -> SecurableRef:
        """Reference used for privilege checks against this object."""
        return SecurableRef(kind=self.kind, id=self.id, name=self.name)
