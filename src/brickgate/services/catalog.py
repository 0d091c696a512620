"""
Catalog, schema and table services.

Authorization per operation:
- update_catalog: owner, or MODIFY on the catalog named in the request
- create_schema: CREATE_SCHEMA on the catalog named in the request
- create_table: CREATE_TABLE on the resolved schema
- update_*/delete_*: MODIFY/MANAGE on the resolved object itself
"""

import logging
from typing import Any, Dict, Iterable, List, Optional

from brickgate.audit import RequestContext, audited
from brickgate.errors import ValidationError
from brickgate.models import (
    DEFAULT_SECURABLE_OWNER,
    CatalogObject,
    PrivilegeType,
    SecurableKind,
)

from .base import BaseService

logger = logging.getLogger(__name__)


class CatalogService(BaseService):
    """Mutations on catalogs, schemas, tables and columns."""

    @audited("updateCatalog")
    def update_catalog(
        self,
        ctx: RequestContext,
        catalog_name: str,
        comment: Optional[str] = None,
        owner: Optional[str] = None,
        properties: Optional[Dict[str, Any]] = None,
    ) -> CatalogObject:
        current_owner = self._owner_of(SecurableKind.CATALOG, catalog_name)
        self._require_owner_or_privilege(
            ctx, SecurableKind.CATALOG, catalog_name, PrivilegeType.MODIFY, current_owner
        )
        catalog = self.repository.get_by_name(SecurableKind.CATALOG, catalog_name)
        return self.repository.update(catalog.id, **_changes(comment=comment, owner=owner, properties=properties))

    @audited("createSchema")
    def create_schema(
        self,
        ctx: RequestContext,
        catalog_name: str,
        name: str,
        comment: Optional[str] = None,
    ) -> CatalogObject:
        """
        Create a schema in a catalog.

        The catalog named in the request is checked verbatim; its existence is
        only verified once the caller is known to hold CREATE_SCHEMA.
        """
        self._require_privilege(ctx, SecurableKind.CATALOG, catalog_name, PrivilegeType.CREATE_SCHEMA)
        catalog = self.repository.get_by_name(SecurableKind.CATALOG, catalog_name)
        return self.repository.create(CatalogObject(
            kind=SecurableKind.SCHEMA,
            name=name,
            catalog_name=catalog.name,
            parent_id=catalog.id,
            owner=ctx.actor,
            comment=comment,
        ))

    @audited("updateSchema")
    def update_schema(
        self,
        ctx: RequestContext,
        full_name: str,
        comment: Optional[str] = None,
        owner: Optional[str] = None,
        properties: Optional[Dict[str, Any]] = None,
    ) -> CatalogObject:
        schema = self._resolve(ctx, SecurableKind.SCHEMA, full_name, PrivilegeType.MODIFY)
        self._require_privilege(ctx, SecurableKind.SCHEMA, schema.id, PrivilegeType.MODIFY, name=schema.name)
        return self.repository.update(schema.id, **_changes(comment=comment, owner=owner, properties=properties))

    @audited("deleteSchema")
    def delete_schema(self, ctx: RequestContext, full_name: str, force: bool = False) -> CatalogObject:
        """
        Delete a schema.

        Args:
            ctx: Request context
            full_name: 'catalog.schema'
            force: Also delete the tables and views the schema contains

        Raises:
            ValidationError: If the schema is not empty and force is not set
        """
        schema = self._resolve(ctx, SecurableKind.SCHEMA, full_name, PrivilegeType.MANAGE)
        self._require_privilege(ctx, SecurableKind.SCHEMA, schema.id, PrivilegeType.MANAGE, name=schema.name)

        children = self.repository.list(parent_id=schema.id)
        if children and not force:
            raise ValidationError(f"Schema {full_name} is not empty ({len(children)} objects)")
        for child in children:
            self.repository.delete(child.id)
        return self.repository.delete(schema.id)

    @audited("createTable")
    def create_table(
        self,
        ctx: RequestContext,
        catalog_name: str,
        schema_name: str,
        name: str,
        columns: Optional[Dict[str, str]] = None,
        comment: Optional[str] = None,
    ) -> CatalogObject:
        schema = self._resolve(ctx, SecurableKind.SCHEMA, f"{catalog_name}.{schema_name}", PrivilegeType.CREATE_TABLE)
        self._require_privilege(ctx, SecurableKind.SCHEMA, schema.id, PrivilegeType.CREATE_TABLE, name=schema.name)
        return self.repository.create(CatalogObject(
            kind=SecurableKind.TABLE,
            name=name,
            catalog_name=catalog_name,
            schema_name=schema_name,
            parent_id=schema.id,
            owner=ctx.actor,
            comment=comment,
            properties={"columns": {col: {"type": dtype} for col, dtype in (columns or {}).items()}},
        ))

    @audited("updateTable")
    def update_table(
        self,
        ctx: RequestContext,
        full_name: str,
        comment: Optional[str] = None,
        owner: Optional[str] = None,
        properties: Optional[Dict[str, Any]] = None,
    ) -> CatalogObject:
        table = self._resolve(ctx, SecurableKind.TABLE, full_name, PrivilegeType.MODIFY)
        self._require_privilege(ctx, SecurableKind.TABLE, table.id, PrivilegeType.MODIFY, name=table.name)
        if properties is not None:
            # Column metadata is only changed through update_column
            properties = {**properties, "columns": table.properties.get("columns", {})}
        return self.repository.update(table.id, **_changes(comment=comment, owner=owner, properties=properties))

    @audited("deleteTable")
    def delete_table(self, ctx: RequestContext, full_name: str) -> CatalogObject:
        table = self._resolve(ctx, SecurableKind.TABLE, full_name, PrivilegeType.MANAGE)
        self._require_privilege(ctx, SecurableKind.TABLE, table.id, PrivilegeType.MANAGE, name=table.name)
        return self.repository.delete(table.id)

    @audited("updateColumn")
    def update_column(
        self,
        ctx: RequestContext,
        full_name: str,
        column_name: str,
        data_type: Optional[str] = None,
        comment: Optional[str] = None,
    ) -> CatalogObject:
        """
        Change the type or comment of one column of a table.

        Raises:
            ValidationError: If the table has no such column
        """
        table = self._resolve(ctx, SecurableKind.TABLE, full_name, PrivilegeType.MODIFY)
        self._require_privilege(ctx, SecurableKind.TABLE, table.id, PrivilegeType.MODIFY, name=table.name)

        columns = dict(table.properties.get("columns", {}))
        if column_name not in columns:
            raise ValidationError(f"Table {full_name} has no column '{column_name}'")
        columns[column_name] = {**columns[column_name], **_changes(type=data_type, comment=comment)}
        return self.repository.update(table.id, properties={**table.properties, "columns": columns})


class CatalogRegistrationService(BaseService):
    """
    Startup reconciliation of the catalogs the platform serves.

    Not an API operation: it runs once per process under a system context and
    is audited with a single system record instead of per-object mutations.
    """

    def attach_all(self, ctx: RequestContext, catalog_names: Iterable[str]) -> List[CatalogObject]:
        """
        Register every listed catalog that is not registered yet.

        Returns:
            Catalogs that were created
        """
        self._require_admin(ctx)

        created = []
        for name in catalog_names:
            if self.repository.exists(SecurableKind.CATALOG, name):
                continue
            created.append(self.repository.create(CatalogObject(
                kind=SecurableKind.CATALOG,
                name=name,
                owner=DEFAULT_SECURABLE_OWNER,
            )))

        names = ", ".join(c.name for c in created) or "none"
        self.audit_logger.log_system(ctx.actor, "attachCatalogs", detail=f"attached: {names}")
        logger.info(f"Attached {len(created)} catalogs")
        return created


def _changes(**fields: Any) -> Dict[str, Any]:
    """Keep only the fields a caller actually set."""
    return {k: v for k, v in fields.items() if v is not None}
