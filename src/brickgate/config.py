"""
Engine configuration.

Settings come from an optional YAML file, then BRICKGATE_* environment
variables, which win:
- BRICKGATE_CONFIG: path of the YAML file
- BRICKGATE_DEFAULT_CATALOG: catalog used by the catalog sentinel
- BRICKGATE_AUDIT_LOG: JSON Lines audit file
- BRICKGATE_ASYNC_AUDIT: write audit records from a background worker
- BRICKGATE_LOG_LEVEL: operational log level
- BRICKGATE_ADMINS / BRICKGATE_CATALOGS: comma-separated names
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from pydantic import BaseModel, Field, field_validator

from brickgate.models import DEFAULT_CATALOG

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

_TRUE_VALUES = {"1", "true", "yes", "on"}


class EngineSettings(BaseModel):
    """
    Settings used to wire an engine.

    Attributes:
        default_catalog: Catalog the sentinel resolves to when a request names none
        catalogs: Catalogs attached at startup (the default catalog is always attached)
        admins: Principals flagged as admins at startup
        audit_log_path: JSON Lines audit file; in-memory audit when unset
        async_audit: Deliver audit records from a background worker
        log_level: Operational log level
    """
    default_catalog: str = Field(default=DEFAULT_CATALOG, min_length=1)
    catalogs: List[str] = Field(default_factory=list)
    admins: List[str] = Field(default_factory=list)
    audit_log_path: Optional[Path] = None
    async_audit: bool = False
    log_level: str = "INFO"

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is a standard logging level name."""
        upper = v.upper()
        if upper not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Unknown log level '{v}'")
        return upper

    @field_validator("catalogs", "admins", mode="before")
    @classmethod
    def split_names(cls, v: Any) -> Any:
        """Accept comma-separated strings as well as lists."""
        if isinstance(v, str):
            return [name.strip() for name in v.split(",") if name.strip()]
        return v

    @property
    def startup_catalogs(self) -> List[str]:
        names = [self.default_catalog]
        names.extend(c for c in self.catalogs if c != self.default_catalog)
        return names


def _env_overrides() -> Dict[str, Any]:
    overrides: Dict[str, Any] = {}
    env_map = {
        "BRICKGATE_DEFAULT_CATALOG": "default_catalog",
        "BRICKGATE_AUDIT_LOG": "audit_log_path",
        "BRICKGATE_LOG_LEVEL": "log_level",
        "BRICKGATE_ADMINS": "admins",
        "BRICKGATE_CATALOGS": "catalogs",
    }
    for var, key in env_map.items():
        value = os.getenv(var)
        if value:
            overrides[key] = value

    async_audit = os.getenv("BRICKGATE_ASYNC_AUDIT")
    if async_audit is not None:
        overrides["async_audit"] = async_audit.strip().lower() in _TRUE_VALUES
    return overrides


def load_settings(path: Optional[str | Path] = None) -> EngineSettings:
    """
    Load engine settings.

    Args:
        path: YAML settings file (falls back to BRICKGATE_CONFIG, then defaults only)

    Raises:
        FileNotFoundError: If an explicitly named file doesn't exist
        yaml.YAMLError: If YAML parsing fails
        pydantic.ValidationError: If a setting is invalid
    """
    path = path or os.getenv("BRICKGATE_CONFIG")
    data: Dict[str, Any] = {}
    if path:
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Settings file not found: {path}")
        with open(path, "r") as f:
            data = yaml.safe_load(f) or {}
        logger.info(f"Loaded settings from {path}")

    data.update(_env_overrides())
    return EngineSettings.model_validate(data)


def configure_logging(level: str = "INFO") -> None:
    """Configure root logging for command line use."""
    logging.basicConfig(level=getattr(logging, level.upper(), logging.INFO), format=LOG_FORMAT)
