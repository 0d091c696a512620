"""
Engine wiring.

build_engine() assembles the grant store, audit logger, checker, repository
and services into one Engine and runs startup reconciliation.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from brickgate.audit import (
    AsyncAuditSink,
    AuditLogger,
    AuditSink,
    InMemoryAuditSink,
    JsonlAuditSink,
    RequestContext,
    system_context,
)
from brickgate.authz import AuthorizationChecker
from brickgate.config import EngineSettings, load_settings
from brickgate.models import Principal
from brickgate.services import (
    CatalogRegistrationService,
    CatalogRepository,
    CatalogService,
    ComputeEndpointService,
    ExternalLocationService,
    GrantService,
    StorageCredentialService,
    ViewService,
    VolumeService,
)
from brickgate.store import GrantStore, InMemoryGrantStore

logger = logging.getLogger(__name__)


@dataclass
class Engine:
    """A fully wired authorization engine and its services."""

    settings: EngineSettings
    store: GrantStore
    audit: AuditLogger
    checker: AuthorizationChecker
    repository: CatalogRepository
    catalogs: CatalogService
    registration: CatalogRegistrationService
    views: ViewService
    volumes: VolumeService
    storage_credentials: StorageCredentialService
    external_locations: ExternalLocationService
    compute: ComputeEndpointService
    grants: GrantService

    def context(self, principal: str, is_admin: bool = False) -> RequestContext:
        """Request context for a principal authenticated upstream."""
        return RequestContext(principal=Principal(name=principal, is_admin=is_admin))

    def close(self) -> None:
        """Flush and close the audit sink."""
        self.audit.close()


def _build_sink(settings: EngineSettings) -> AuditSink:
    sink: AuditSink
    if settings.audit_log_path:
        sink = JsonlAuditSink(settings.audit_log_path)
    else:
        sink = InMemoryAuditSink()
    if settings.async_audit:
        sink = AsyncAuditSink(sink)
    return sink


def build_engine(
    settings: Optional[EngineSettings] = None,
    store: Optional[GrantStore] = None,
    sink: Optional[AuditSink] = None,
) -> Engine:
    """
    Wire an engine.

    Args:
        settings: Engine settings (loaded from file/environment if not given)
        store: Grant store (in-memory if not given)
        sink: Audit sink (derived from settings if not given)

    Returns:
        Engine with admins bootstrapped and startup catalogs attached. The
        default catalog is carried by the engine's services, so engines built
        in the same process never share it.
    """
    settings = settings or load_settings()

    store = store if store is not None else InMemoryGrantStore()
    for admin in settings.admins:
        store.set_admin(admin)

    audit = AuditLogger(sink if sink is not None else _build_sink(settings))
    checker = AuthorizationChecker(store, audit)
    repository = CatalogRepository(full_name_ids=store.ids_are_full_names)
    services = (checker, repository, settings.default_catalog)

    engine = Engine(
        settings=settings,
        store=store,
        audit=audit,
        checker=checker,
        repository=repository,
        catalogs=CatalogService(*services),
        registration=CatalogRegistrationService(*services),
        views=ViewService(*services),
        volumes=VolumeService(*services),
        storage_credentials=StorageCredentialService(*services),
        external_locations=ExternalLocationService(*services),
        compute=ComputeEndpointService(*services),
        grants=GrantService(*services),
    )
    engine.registration.attach_all(system_context(), settings.startup_catalogs)
    logger.info(f"Engine ready: default catalog {settings.default_catalog}, {len(settings.admins)} admins")
    return engine
