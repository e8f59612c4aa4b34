"""Configuration for the desktop companion agent.

Two layers live here:
- AppConfig: process configuration from environment variables and .env files
- DeviceSettings: the user's hub configuration, persisted through a SettingsStore
"""

from desktop_companion.config.env_loader import Environment, get_environment
from desktop_companion.config.settings import AppConfig, get_settings, load_app_config
from desktop_companion.config.store import (
    DeviceSettings,
    JsonSettingsStore,
    MemorySettingsStore,
    SettingsSaveError,
    SettingsStore,
)
from desktop_companion.config.validators import normalize_access_token, normalize_server_url

__all__ = [
    # App-level settings
    "AppConfig",
    "get_settings",
    "load_app_config",
    "Environment",
    "get_environment",
    # Device settings
    "DeviceSettings",
    "SettingsStore",
    "JsonSettingsStore",
    "MemorySettingsStore",
    "SettingsSaveError",
    # Normalizers
    "normalize_server_url",
    "normalize_access_token",
]
