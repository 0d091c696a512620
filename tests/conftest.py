"""
Shared pytest fixtures for brickgate tests.

Provides wired engines, stores, audit sinks and environment management.
"""

import os
from typing import Generator

import pytest

from brickgate.audit import AuditLogger, InMemoryAuditSink
from brickgate.authz import AuthorizationChecker
from brickgate.config import EngineSettings
from brickgate.engine import Engine, build_engine
from brickgate.models import set_default_catalog
from brickgate.store import InMemoryGrantStore


@pytest.fixture(autouse=True)
def reset_default_catalog() -> Generator[None, None, None]:
    """Undo set_default_catalog() overrides made by a test."""
    yield
    set_default_catalog(None)


@pytest.fixture
def clean_environment() -> Generator[None, None, None]:
    """
    Fixture that removes BRICKGATE_* variables for the test duration.

    Restores the original values after the test completes.
    """
    original = {k: v for k, v in os.environ.items() if k.startswith("BRICKGATE_")}
    for key in original:
        del os.environ[key]
    yield
    for key in [k for k in os.environ if k.startswith("BRICKGATE_")]:
        del os.environ[key]
    os.environ.update(original)


@pytest.fixture
def store() -> InMemoryGrantStore:
    """Empty in-memory grant store."""
    return InMemoryGrantStore()


@pytest.fixture
def sink() -> InMemoryAuditSink:
    """Empty in-memory audit sink."""
    return InMemoryAuditSink()


@pytest.fixture
def audit_logger(sink: InMemoryAuditSink) -> AuditLogger:
    return AuditLogger(sink)


@pytest.fixture
def checker(store: InMemoryGrantStore, audit_logger: AuditLogger) -> AuthorizationChecker:
    return AuthorizationChecker(store, audit_logger)


@pytest.fixture
def settings() -> EngineSettings:
    """Settings with 'sales' attached next to the default catalog and 'bob' as admin."""
    return EngineSettings(default_catalog="main", catalogs=["sales"], admins=["bob"])


@pytest.fixture
def engine(settings: EngineSettings, store: InMemoryGrantStore, sink: InMemoryAuditSink) -> Generator[Engine, None, None]:
    """Fully wired in-memory engine."""
    wired = build_engine(settings, store=store, sink=sink)
    yield wired
    wired.close()
