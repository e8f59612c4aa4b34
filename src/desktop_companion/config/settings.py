"""Application configuration settings.

This module provides the AppConfig class and settings singleton. AppConfig
holds process-level knobs (logging, timeouts, file locations); the user's
device settings (hub URL, token, enabled sensors) live in the persisted
settings store instead.
"""

from pathlib import Path

import structlog
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from desktop_companion.config.env_loader import Environment, get_environment, load_env_files
from desktop_companion.config.validators import (
    resolve_path,
    validate_log_format,
    validate_log_level,
)

log = structlog.get_logger(__name__)

DEFAULT_SETTINGS_PATH = Path("~/.config/desktop_companion/settings.json")
DEFAULT_LOG_DIR = Path("~/.local/state/desktop_companion/logs")


class AppConfig(BaseSettings):
    """Process configuration loaded from environment variables and .env files."""

    model_config = SettingsConfigDict(
        env_prefix="COMPANION_",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
        validate_default=True,
    )

    environment: Environment = Field(
        default_factory=get_environment, description="Current environment"
    )
    debug: bool = Field(default=False, alias="APP_DEBUG", description="Debug mode flag")

    app_name: str = Field(default="Desktop Companion", description="Application display name")
    app_version: str = Field(default="0.1.0", description="Version reported at registration")

    # Telemetry
    log_dir: Path = Field(default=DEFAULT_LOG_DIR, description="Log directory path")
    log_level: str = Field(
        default="INFO",
        alias="APP_LOG_LEVEL",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )
    log_format: str = Field(
        default="json", alias="APP_LOG_FORMAT", description="Log format (json or console)"
    )

    # Persisted device settings
    settings_path: Path = Field(
        default=DEFAULT_SETTINGS_PATH, description="Path to the persisted device settings JSON"
    )

    # Hub client
    request_timeout_seconds: float = Field(
        default=30.0, gt=0, description="Timeout for registration and webhook calls"
    )
    probe_timeout_seconds: float = Field(
        default=5.0, gt=0, description="Timeout for the ping probe and webhook liveness check"
    )
    verify_ssl: bool = Field(
        default=False,
        description="Verify TLS certificates (local hubs often use self-signed certificates)",
    )

    # Registration and polling
    registration_settle_seconds: float = Field(
        default=3.0,
        ge=0,
        description="Delay after device registration before declaring sensors",
    )
    poll_warmup_seconds: float = Field(
        default=5.0, ge=0, description="Delay before the first polling cycle"
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level."""
        return validate_log_level(v)

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        """Validate log format."""
        return validate_log_format(v)

    @field_validator("log_dir", "settings_path", mode="before")
    @classmethod
    def resolve_paths(cls, v: Path | str) -> Path:
        """Resolve ``~`` and relative paths to absolute."""
        return resolve_path(v)


_settings: AppConfig | None = None


def load_app_config() -> AppConfig:
    """Load and validate application configuration.

    Loads .env files in priority order, then builds AppConfig from the
    environment.

    Returns:
        Validated AppConfig instance.

    Raises:
        ValidationError: If configuration validation fails.
    """
    log.info("loading_app_config", environment=get_environment().value)

    load_env_files()

    try:
        config = AppConfig()
        log.info(
            "app_config_loaded",
            environment=config.environment.value,
            debug=config.debug,
            log_level=config.log_level,
            settings_path=str(config.settings_path),
        )
        return config
    except Exception as e:
        log.error("app_config_load_failed", error=str(e), error_type=type(e).__name__)
        raise


def get_settings() -> AppConfig:
    """Get the application settings singleton.

    Returns:
        AppConfig instance (singleton pattern).
    """
    global _settings
    if _settings is None:
        _settings = load_app_config()
    return _settings
