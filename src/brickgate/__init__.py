"""
Brickgate - Securable-scoped privilege authorization for catalog services.

Gates every mutating catalog operation on an explicit (principal, securable,
privilege) grant, audits every mutation and every denial, and keeps the
declared authorization contracts of the API surface provably in sync with
the enforcement code.

Usage:
    from brickgate import build_engine, EngineSettings, SecurableKind, PrivilegeType

    engine = build_engine(EngineSettings(default_catalog="main", admins=["bob"]))
    engine.grants.grant(engine.context("bob"), "alice", SecurableKind.CATALOG, "main",
                        PrivilegeType.CREATE_SCHEMA)
    engine.catalogs.create_schema(engine.context("alice"), "main", "orders")
"""

__version__ = "0.1.0"

from brickgate.audit import AuditLogger, RequestContext
from brickgate.authz import AuthorizationChecker, AuthzDecision
from brickgate.config import EngineSettings, load_settings
from brickgate.engine import Engine, build_engine
from brickgate.errors import (
    AccessDeniedError,
    AlreadyExistsError,
    AuditWriteError,
    BrickgateError,
    ContractMismatchError,
    NotFoundError,
    StoreUnavailableError,
    ValidationError,
)
from brickgate.models import (
    AuthzMode,
    Grant,
    Principal,
    PrivilegeType,
    SecurableIdSource,
    SecurableKind,
    SecurableRef,
)
from brickgate.store import GrantStore, InMemoryGrantStore

__all__ = [
    "__version__",
    "AuditLogger",
    "RequestContext",
    "AuthorizationChecker",
    "AuthzDecision",
    "EngineSettings",
    "load_settings",
    "Engine",
    "build_engine",
    "AccessDeniedError",
    "AlreadyExistsError",
    "AuditWriteError",
    "BrickgateError",
    "ContractMismatchError",
    "NotFoundError",
    "StoreUnavailableError",
    "ValidationError",
    "AuthzMode",
    "Grant",
    "Principal",
    "PrivilegeType",
    "SecurableIdSource",
    "SecurableKind",
    "SecurableRef",
    "GrantStore",
    "InMemoryGrantStore",
]
