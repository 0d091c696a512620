"""
Base classes for brickgate models.

This module contains the shared pydantic configuration used by every model,
plus the process-level defaults read from the environment.
"""

from __future__ import annotations

import logging
import os

from pydantic import BaseModel, ConfigDict

logger = logging.getLogger(__name__)

# Catalog used as sentinel parent for catalog-scoped objects created without
# an explicit catalog (storage credentials, external locations, endpoints)
DEFAULT_CATALOG = os.getenv('BRICKGATE_DEFAULT_CATALOG', 'main')

# Owner recorded for objects registered by the system itself
DEFAULT_SECURABLE_OWNER = os.getenv('BRICKGATE_DEFAULT_OWNER', 'platform_automation_spn')


class BaseGovernanceModel(BaseModel):
    """
    Base model for all engine objects with common configuration.

    This provides standard Pydantic v2 configuration shared by mutable
    metadata models.
    """

    model_config = ConfigDict(
        validate_assignment=True,
        validate_default=True,
        populate_by_name=True,
        use_enum_values=False,  # Keep enums as enum objects
        str_strip_whitespace=True,
    )


class FrozenGovernanceModel(BaseGovernanceModel):
    """Immutable, hashable variant used for facts (grants, audit records, contracts)."""

    model_config = ConfigDict(frozen=True)
