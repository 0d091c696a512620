"""View service."""

import logging
from typing import Optional

from brickgate.audit import RequestContext, audited
from brickgate.models import CatalogObject, PrivilegeType, SecurableKind

from .base import BaseService

logger = logging.getLogger(__name__)


class ViewService(BaseService):
    """Mutations on views. Views live in schemas and are checked like tables."""

    @audited("createView")
    def create_view(
        self,
        ctx: RequestContext,
        catalog_name: str,
        schema_name: str,
        name: str,
        definition: str,
        comment: Optional[str] = None,
    ) -> CatalogObject:
        schema = self._resolve(ctx, SecurableKind.SCHEMA, f"{catalog_name}.{schema_name}", PrivilegeType.CREATE_VIEW)
        self._require_privilege(ctx, SecurableKind.SCHEMA, schema.id, PrivilegeType.CREATE_VIEW, name=schema.name)
        return self.repository.create(CatalogObject(
            kind=SecurableKind.VIEW,
            name=name,
            catalog_name=catalog_name,
            schema_name=schema_name,
            parent_id=schema.id,
            owner=ctx.actor,
            comment=comment,
            properties={"definition": definition},
        ))

    @audited("updateView")
    def update_view(
        self,
        ctx: RequestContext,
        full_name: str,
        definition: Optional[str] = None,
        comment: Optional[str] = None,
    ) -> CatalogObject:
        view = self._resolve(ctx, SecurableKind.VIEW, full_name, PrivilegeType.MODIFY)
        self._require_privilege(ctx, SecurableKind.VIEW, view.id, PrivilegeType.MODIFY, name=view.name)

        changes = {}
        if definition is not None:
            changes["properties"] = {**view.properties, "definition": definition}
        if comment is not None:
            changes["comment"] = comment
        return self.repository.update(view.id, **changes)

    @audited("deleteView")
    def delete_view(self, ctx: RequestContext, full_name: str) -> CatalogObject:
        view = self._resolve(ctx, SecurableKind.VIEW, full_name, PrivilegeType.MANAGE)
        self._require_privilege(ctx, SecurableKind.VIEW, view.id, PrivilegeType.MANAGE, name=view.name)
        return self.repository.delete(view.id)
