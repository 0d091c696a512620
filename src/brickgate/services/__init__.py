"""
Catalog services: the enforcement call sites of the engine.

Each mutating method is wrapped by @audited and performs its authorization
through BaseService._require_* before touching the repository.
"""

from .base import BaseService
from .catalog import CatalogRegistrationService, CatalogService
from .compute import ComputeEndpointService
from .grants import GrantService
from .repository import CatalogRepository
from .storage import ExternalLocationService, StorageCredentialService, VolumeService
from .views import ViewService

__all__ = [
    "BaseService",
    "CatalogRepository",
    "CatalogService",
    "CatalogRegistrationService",
    "ComputeEndpointService",
    "ExternalLocationService",
    "GrantService",
    "StorageCredentialService",
    "ViewService",
    "VolumeService",
]
