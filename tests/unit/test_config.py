"""
Unit tests for engine settings.
"""

import os
from pathlib import Path

import pytest
from pydantic import ValidationError

from brickgate.config import EngineSettings, load_settings


@pytest.mark.usefixtures("clean_environment")
class TestLoadSettings:
    """Tests for load_settings()."""

    def test_defaults(self) -> None:
        """No file and no environment gives defaults."""
        settings = load_settings()
        assert settings.default_catalog == "main"
        assert settings.admins == []
        assert settings.audit_log_path is None
        assert settings.async_audit is False

    def test_yaml_file(self, tmp_path: Path) -> None:
        """Settings are read from YAML."""
        path = tmp_path / "brickgate.yaml"
        path.write_text(
            "default_catalog: analytics\n"
            "catalogs: [sales, hr]\n"
            "admins: [bob]\n"
            "log_level: debug\n"
        )
        settings = load_settings(path)
        assert settings.startup_catalogs == ["analytics", "sales", "hr"]
        assert settings.admins == ["bob"]
        assert settings.log_level == "DEBUG"

    def test_config_variable(self, tmp_path: Path) -> None:
        """BRICKGATE_CONFIG names the file when no path is given."""
        path = tmp_path / "brickgate.yaml"
        path.write_text("default_catalog: analytics\n")
        os.environ["BRICKGATE_CONFIG"] = str(path)
        assert load_settings().default_catalog == "analytics"

    def test_environment_wins(self, tmp_path: Path) -> None:
        """Environment variables override the file."""
        path = tmp_path / "brickgate.yaml"
        path.write_text("default_catalog: analytics\nadmins: [bob]\n")
        os.environ["BRICKGATE_DEFAULT_CATALOG"] = "main"
        os.environ["BRICKGATE_ADMINS"] = "carol, dave"
        os.environ["BRICKGATE_ASYNC_AUDIT"] = "true"
        os.environ["BRICKGATE_AUDIT_LOG"] = str(tmp_path / "audit.jsonl")

        settings = load_settings(path)
        assert settings.default_catalog == "main"
        assert settings.admins == ["carol", "dave"]
        assert settings.async_audit is True
        assert settings.audit_log_path == tmp_path / "audit.jsonl"

    def test_missing_file(self, tmp_path: Path) -> None:
        """An explicitly named file must exist."""
        with pytest.raises(FileNotFoundError):
            load_settings(tmp_path / "missing.yaml")


class TestEngineSettings:
    """Tests for EngineSettings validation."""

    def test_bad_log_level(self) -> None:
        """Unknown log levels are rejected."""
        with pytest.raises(ValidationError):
            EngineSettings(log_level="LOUD")

    def test_default_catalog_listed_once(self) -> None:
        """The default catalog is attached first and only once."""
        settings = EngineSettings(default_catalog="main", catalogs=["sales", "main"])
        assert settings.startup_catalogs == ["main", "sales"]
