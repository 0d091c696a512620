"""
Compute endpoint service.

Every compute operation requires MANAGE_COMPUTE: on the catalog sentinel for
creation and for removing a catalog's assignment, on the endpoint itself for
everything else.
"""

import logging
import threading
from typing import Any, Dict, Optional

from brickgate.audit import RequestContext, audited
from brickgate.models import CatalogObject, PrivilegeType, SecurableKind

from .base import BaseService

logger = logging.getLogger(__name__)


class ComputeEndpointService(BaseService):
    """Mutations on compute endpoints and their catalog assignments."""

    def __init__(self, *args: Any, **kwargs: Any):
        super().__init__(*args, **kwargs)
        # catalog name -> assigned endpoint id
        self._assignments: Dict[str, str] = {}
        self._lock = threading.Lock()

    @audited("createComputeEndpoint")
    def create_compute_endpoint(
        self,
        ctx: RequestContext,
        name: str,
        size: str = "small",
        catalog_name: Optional[str] = None,
        comment: Optional[str] = None,
    ) -> CatalogObject:
        self._require_privilege(
            ctx, SecurableKind.CATALOG, self._catalog_sentinel(catalog_name), PrivilegeType.MANAGE_COMPUTE
        )
        catalog = self.repository.get_by_name(SecurableKind.CATALOG, self._catalog_sentinel(catalog_name))
        return self.repository.create(CatalogObject(
            kind=SecurableKind.COMPUTE_ENDPOINT,
            name=name,
            parent_id=catalog.id,
            owner=ctx.actor,
            comment=comment,
            properties={"size": size},
        ))

    @audited("updateComputeEndpoint")
    def update_compute_endpoint(
        self,
        ctx: RequestContext,
        name: str,
        size: Optional[str] = None,
        comment: Optional[str] = None,
    ) -> CatalogObject:
        endpoint = self._resolve(ctx, SecurableKind.COMPUTE_ENDPOINT, name, PrivilegeType.MANAGE_COMPUTE)
        self._require_privilege(
            ctx, SecurableKind.COMPUTE_ENDPOINT, endpoint.id, PrivilegeType.MANAGE_COMPUTE, name=endpoint.name
        )

        changes = {}
        if size is not None:
            changes["properties"] = {**endpoint.properties, "size": size}
        if comment is not None:
            changes["comment"] = comment
        return self.repository.update(endpoint.id, **changes)

    @audited("deleteComputeEndpoint")
    def delete_compute_endpoint(self, ctx: RequestContext, name: str) -> CatalogObject:
        """Delete an endpoint, dropping every catalog assignment that points at it."""
        endpoint = self._resolve(ctx, SecurableKind.COMPUTE_ENDPOINT, name, PrivilegeType.MANAGE_COMPUTE)
        self._require_privilege(
            ctx, SecurableKind.COMPUTE_ENDPOINT, endpoint.id, PrivilegeType.MANAGE_COMPUTE, name=endpoint.name
        )
        with self._lock:
            self._assignments = {c: e for c, e in self._assignments.items() if e != endpoint.id}
        return self.repository.delete(endpoint.id)

    @audited("createComputeAssignment")
    def assign_compute_endpoint(self, ctx: RequestContext, name: str, catalog_name: str) -> CatalogObject:
        """
        Route a catalog's queries to an endpoint, replacing any previous assignment.

        Returns:
            The assigned endpoint
        """
        endpoint = self._resolve(ctx, SecurableKind.COMPUTE_ENDPOINT, name, PrivilegeType.MANAGE_COMPUTE)
        self._require_privilege(
            ctx, SecurableKind.COMPUTE_ENDPOINT, endpoint.id, PrivilegeType.MANAGE_COMPUTE, name=endpoint.name
        )
        catalog = self.repository.get_by_name(SecurableKind.CATALOG, catalog_name)
        with self._lock:
            self._assignments[catalog.name] = endpoint.id
        logger.info(f"Assigned compute endpoint {endpoint.name} to catalog {catalog.name}")
        return endpoint

    @audited("deleteComputeAssignment")
    def unassign_compute_endpoint(self, ctx: RequestContext, catalog_name: Optional[str] = None) -> bool:
        """
        Remove a catalog's endpoint assignment.

        Returns:
            True if an assignment was removed
        """
        self._require_privilege(
            ctx, SecurableKind.CATALOG, self._catalog_sentinel(catalog_name), PrivilegeType.MANAGE_COMPUTE
        )
        with self._lock:
            removed = self._assignments.pop(self._catalog_sentinel(catalog_name), None)
        if removed is None:
            logger.debug(f"No compute endpoint assigned to catalog {self._catalog_sentinel(catalog_name)}")
        return removed is not None

    def assigned_endpoint(self, catalog_name: str) -> Optional[str]:
        """Id of the endpoint assigned to a catalog, if any."""
        with self._lock:
            return self._assignments.get(catalog_name)
