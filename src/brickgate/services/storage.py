"""
Volume, storage credential and external location services.

These objects are created before they have an id of their own, so creation
is checked against the catalog that will contain them: the catalog named in
the request, or the default catalog when the request names none.
"""

import logging
from typing import Dict, Optional

from brickgate.audit import RequestContext, audited
from brickgate.models import CatalogObject, PrivilegeType, SecurableKind

from .base import BaseService

logger = logging.getLogger(__name__)


class VolumeService(BaseService):
    """Mutations on volumes."""

    @audited("createVolume")
    def create_volume(
        self,
        ctx: RequestContext,
        name: str,
        catalog_name: Optional[str] = None,
        storage_location: Optional[str] = None,
        comment: Optional[str] = None,
    ) -> CatalogObject:
        self._require_privilege(
            ctx, SecurableKind.CATALOG, self._catalog_sentinel(catalog_name), PrivilegeType.CREATE_VOLUME
        )
        catalog = self.repository.get_by_name(SecurableKind.CATALOG, self._catalog_sentinel(catalog_name))
        return self.repository.create(CatalogObject(
            kind=SecurableKind.VOLUME,
            name=name,
            catalog_name=catalog.name,
            parent_id=catalog.id,
            owner=ctx.actor,
            comment=comment,
            properties={"storage_location": storage_location} if storage_location else {},
        ))

    @audited("updateVolume")
    def update_volume(self, ctx: RequestContext, full_name: str, comment: str) -> CatalogObject:
        volume = self._resolve(ctx, SecurableKind.VOLUME, full_name, PrivilegeType.MODIFY)
        self._require_privilege(ctx, SecurableKind.VOLUME, volume.id, PrivilegeType.MODIFY, name=volume.name)
        return self.repository.update(volume.id, comment=comment)

    @audited("deleteVolume")
    def delete_volume(self, ctx: RequestContext, full_name: str) -> CatalogObject:
        volume = self._resolve(ctx, SecurableKind.VOLUME, full_name, PrivilegeType.MANAGE)
        self._require_privilege(ctx, SecurableKind.VOLUME, volume.id, PrivilegeType.MANAGE, name=volume.name)
        return self.repository.delete(volume.id)


class StorageCredentialService(BaseService):
    """Mutations on storage credentials (cloud identities used to reach storage)."""

    @audited("createStorageCredential")
    def create_storage_credential(
        self,
        ctx: RequestContext,
        name: str,
        identity: Dict[str, str],
        catalog_name: Optional[str] = None,
        comment: Optional[str] = None,
    ) -> CatalogObject:
        """
        Create a storage credential.

        Args:
            ctx: Request context
            name: Credential name (unique across the metastore)
            identity: Cloud identity, e.g. {'role_arn': ...} or {'access_connector_id': ...}
            catalog_name: Catalog the credential is registered under
            comment: Optional description
        """
        self._require_privilege(
            ctx, SecurableKind.CATALOG, self._catalog_sentinel(catalog_name), PrivilegeType.CREATE_STORAGE_CREDENTIAL
        )
        catalog = self.repository.get_by_name(SecurableKind.CATALOG, self._catalog_sentinel(catalog_name))
        return self.repository.create(CatalogObject(
            kind=SecurableKind.STORAGE_CREDENTIAL,
            name=name,
            parent_id=catalog.id,
            owner=ctx.actor,
            comment=comment,
            properties={"identity": dict(identity)},
        ))

    @audited("updateStorageCredential")
    def update_storage_credential(
        self,
        ctx: RequestContext,
        name: str,
        identity: Optional[Dict[str, str]] = None,
        comment: Optional[str] = None,
    ) -> CatalogObject:
        credential = self._resolve(ctx, SecurableKind.STORAGE_CREDENTIAL, name, PrivilegeType.MODIFY)
        self._require_privilege(
            ctx, SecurableKind.STORAGE_CREDENTIAL, credential.id, PrivilegeType.MODIFY, name=credential.name
        )

        changes = {}
        if identity is not None:
            changes["properties"] = {**credential.properties, "identity": dict(identity)}
        if comment is not None:
            changes["comment"] = comment
        return self.repository.update(credential.id, **changes)

    @audited("deleteStorageCredential")
    def delete_storage_credential(self, ctx: RequestContext, name: str) -> CatalogObject:
        credential = self._resolve(ctx, SecurableKind.STORAGE_CREDENTIAL, name, PrivilegeType.MANAGE)
        self._require_privilege(
            ctx, SecurableKind.STORAGE_CREDENTIAL, credential.id, PrivilegeType.MANAGE, name=credential.name
        )
        return self.repository.delete(credential.id)


class ExternalLocationService(BaseService):
    """Mutations on external locations (storage paths reached through a credential)."""

    @audited("createExternalLocation")
    def create_external_location(
        self,
        ctx: RequestContext,
        name: str,
        url: str,
        credential_name: str,
        catalog_name: Optional[str] = None,
        comment: Optional[str] = None,
    ) -> CatalogObject:
        self._require_privilege(
            ctx, SecurableKind.CATALOG, self._catalog_sentinel(catalog_name), PrivilegeType.CREATE_EXTERNAL_LOCATION
        )
        catalog = self.repository.get_by_name(SecurableKind.CATALOG, self._catalog_sentinel(catalog_name))
        credential = self.repository.get_by_name(SecurableKind.STORAGE_CREDENTIAL, credential_name)
        return self.repository.create(CatalogObject(
            kind=SecurableKind.EXTERNAL_LOCATION,
            name=name,
            parent_id=catalog.id,
            owner=ctx.actor,
            comment=comment,
            properties={"url": url, "credential_id": credential.id},
        ))

    @audited("updateExternalLocation")
    def update_external_location(
        self,
        ctx: RequestContext,
        name: str,
        url: Optional[str] = None,
        comment: Optional[str] = None,
    ) -> CatalogObject:
        location = self._resolve(ctx, SecurableKind.EXTERNAL_LOCATION, name, PrivilegeType.MODIFY)
        self._require_privilege(
            ctx, SecurableKind.EXTERNAL_LOCATION, location.id, PrivilegeType.MODIFY, name=location.name
        )

        changes = {}
        if url is not None:
            changes["properties"] = {**location.properties, "url": url}
        if comment is not None:
            changes["comment"] = comment
        return self.repository.update(location.id, **changes)

    @audited("deleteExternalLocation")
    def delete_external_location(self, ctx: RequestContext, name: str) -> CatalogObject:
        location = self._resolve(ctx, SecurableKind.EXTERNAL_LOCATION, name, PrivilegeType.MANAGE)
        self._require_privilege(
            ctx, SecurableKind.EXTERNAL_LOCATION, location.id, PrivilegeType.MANAGE, name=location.name
        )
        return self.repository.delete(location.id)
