"""
Grant stores answering membership queries for the authorization checker.
"""

from .base import GrantStore, build_grant
from .databricks import UC_SECURABLE_TYPES, DatabricksGrantStore
from .memory import InMemoryGrantStore

__all__ = [
    "GrantStore",
    "InMemoryGrantStore",
    "DatabricksGrantStore",
    "UC_SECURABLE_TYPES",
    "build_grant",
]
