"""
Tests for HomeSphere configuration loading.

Tests verify:
- Defaults apply when no env vars are set.
- HOMESPHERE_ prefixed env vars override defaults.
- Validators normalise and reject bad values.

CHANGELOG:
- 2026-10-12: Cover CORS origins (STORY-014)
- 2026-10-10: Initial creation (STORY-012)

TODO:
- None
"""

from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from homesphere.src.config import HomeSphereSettings


class TestDefaults:
    """Settings without any environment."""

    def test_defaults(self) -> None:
        settings = HomeSphereSettings()
        assert settings.data_file == ""
        assert settings.log_level == "INFO"
        assert settings.log_format == "json"
        assert settings.admin_login == "admin"
        assert settings.admin_password == "admin"
        assert settings.default_climate_power_w == 1500.0
        assert settings.default_light_power_w == 20.0
        assert settings.household_id == 1
        assert settings.cors_origins == []


class TestEnvOverrides:
    """Environment variables with the HOMESPHERE_ prefix."""

    def test_env_values(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("HOMESPHERE_DATA_FILE", "/tmp/house.txt")
        monkeypatch.setenv("HOMESPHERE_ADMIN_LOGIN", "root")
        monkeypatch.setenv("HOMESPHERE_DEFAULT_LIGHT_POWER_W", "9.5")
        monkeypatch.setenv("HOMESPHERE_HOUSEHOLD_ID", "7")

        settings = HomeSphereSettings()

        assert settings.data_file == "/tmp/house.txt"
        assert settings.admin_login == "root"
        assert settings.default_light_power_w == 9.5
        assert settings.household_id == 7

    def test_cors_origins_json(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv(
            "HOMESPHERE_CORS_ORIGINS", '["http://localhost:3000", "https://home.example"]'
        )
        assert HomeSphereSettings().cors_origins == [
            "http://localhost:3000",
            "https://home.example",
        ]

    def test_dotenv_file(self, tmp_path: Path) -> None:
        # The autouse fixture chdirs into tmp_path.
        (tmp_path / ".env").write_text("HOMESPHERE_LOG_FORMAT=text\n", encoding="utf-8")
        assert HomeSphereSettings().log_format == "text"


class TestValidation:
    """Field validators."""

    def test_log_level_normalised(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("HOMESPHERE_LOG_LEVEL", " debug ")
        assert HomeSphereSettings().log_level == "DEBUG"

    def test_log_format_normalised(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("HOMESPHERE_LOG_FORMAT", "TEXT")
        assert HomeSphereSettings().log_format == "text"

    @pytest.mark.parametrize(
        ("var", "value"),
        [
            ("HOMESPHERE_LOG_LEVEL", "verbose"),
            ("HOMESPHERE_LOG_FORMAT", "xml"),
            ("HOMESPHERE_DEFAULT_CLIMATE_POWER_W", "0"),
            ("HOMESPHERE_DEFAULT_LIGHT_POWER_W", "-5"),
            ("HOMESPHERE_ADMIN_LOGIN", "   "),
            ("HOMESPHERE_HOUSEHOLD_ID", "abc"),
        ],
    )
    def test_invalid_values(
        self, monkeypatch: pytest.MonkeyPatch, var: str, value: str
    ) -> None:
        monkeypatch.setenv(var, value)
        with pytest.raises(ValidationError):
            HomeSphereSettings()
