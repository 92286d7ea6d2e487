"""
HomeSphere configuration loaded from environment variables.

Uses Pydantic BaseSettings for automatic env var loading and validation.
Every variable carries the ``HOMESPHERE_`` prefix and may also come from a
``.env`` file in the working directory.

CHANGELOG:
- 2026-10-12: Add CORS origins for the HTTP API (STORY-014)
- 2026-10-10: Initial creation (STORY-012)

TODO:
- None
"""

from pydantic import field_validator
from pydantic_settings import BaseSettings

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
_LOG_FORMATS = ("json", "text")


class HomeSphereSettings(BaseSettings):
    """HomeSphere runtime configuration.

    All values are optional and have defaults suitable for a local
    simulation session.

    Attributes:
        data_file: Household data file loaded at startup. Empty means start
            with an empty household.
        log_level: Root log level name.
        log_format: ``json`` for one JSON object per line, ``text`` for a
            plain line format.
        admin_login: Login name of the administrator bootstrapped when the
            user list is empty.
        admin_password: Password of that administrator.
        default_climate_power_w: Rated wattage of climate units created
            without an explicit rating.
        default_light_power_w: Rated wattage of lights created without an
            explicit rating.
        household_id: Id of the household created at startup.
        household_address: Address of the household created at startup.
        cors_origins: Origins allowed by the HTTP API CORS middleware.
    """

    data_file: str = ""
    log_level: str = "INFO"
    log_format: str = "json"
    admin_login: str = "admin"
    admin_password: str = "admin"
    default_climate_power_w: float = 1500.0
    default_light_power_w: float = 20.0
    household_id: int = 1
    household_address: str = "Default household address"
    cors_origins: list[str] = []

    @field_validator("log_level")
    @classmethod
    def log_level_must_be_known(cls, v: str) -> str:
        """Normalise the level name to upper case and reject unknown names."""
        level = v.strip().upper()
        if level not in _LOG_LEVELS:
            raise ValueError(
                f"HOMESPHERE_LOG_LEVEL must be one of {', '.join(_LOG_LEVELS)}"
            )
        return level

    @field_validator("log_format")
    @classmethod
    def log_format_must_be_known(cls, v: str) -> str:
        fmt = v.strip().lower()
        if fmt not in _LOG_FORMATS:
            raise ValueError("HOMESPHERE_LOG_FORMAT must be 'json' or 'text'")
        return fmt

    @field_validator("default_climate_power_w", "default_light_power_w")
    @classmethod
    def power_must_be_positive(cls, v: float) -> float:
        """Rated wattage must be > 0."""
        if v <= 0:
            raise ValueError("Default device power must be > 0 W")
        return v

    @field_validator("admin_login")
    @classmethod
    def admin_login_must_not_be_empty(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("HOMESPHERE_ADMIN_LOGIN must not be empty")
        return v

    model_config = {
        "env_prefix": "HOMESPHERE_",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
    }
