"""Persisted device settings.

The agent keeps the user's hub configuration, registration credentials and
sensor toggles in a small JSON document. ``SettingsStore`` is the seam the
rest of the package depends on; ``JsonSettingsStore`` is the on-disk default.
"""

import pathlib
import uuid
from typing import Protocol

import orjson
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from desktop_companion.config.validators import normalize_access_token, normalize_server_url
from desktop_companion.telemetry import get_logger

log = get_logger(__name__)


class SettingsSaveError(Exception):
    """Raised when device settings cannot be written."""


def _new_device_id() -> str:
    return str(uuid.uuid4())


class DeviceSettings(BaseModel):
    """User-facing device settings.

    Attributes:
        server_url: Hub base URL, normalized.
        access_token: Long-lived access token, trimmed.
        webhook_id: Webhook identifier issued at registration, if any.
        device_id: Stable generated device identity.
        update_interval: Polling cadence in seconds.
        language: UI language code.
        enabled_sensors: Explicit sensor toggles keyed by catalog id.
        autostart: Whether the agent should start with the user session.
    """

    # Normalizers run on every assignment, not only on load
    model_config = ConfigDict(validate_assignment=True)

    server_url: str = ""
    access_token: str = ""
    webhook_id: str | None = None
    device_id: str = Field(default_factory=_new_device_id)
    update_interval: int = Field(default=60, ge=1)
    language: str = "en"
    enabled_sensors: dict[str, bool] = Field(default_factory=dict)
    autostart: bool = False

    @field_validator("server_url")
    @classmethod
    def normalize_url(cls, v: str) -> str:
        """Store the URL in canonical form."""
        return normalize_server_url(v)

    @field_validator("access_token")
    @classmethod
    def normalize_token(cls, v: str) -> str:
        """Store the token trimmed."""
        return normalize_access_token(v)

    @property
    def is_configured(self) -> bool:
        """True when both a server URL and an access token are present."""
        return bool(self.server_url) and bool(self.access_token)


class SettingsStore(Protocol):
    """Load/save interface for device settings."""

    def load(self) -> DeviceSettings: ...

    def save(self, settings: DeviceSettings) -> None: ...


class JsonSettingsStore:
    """Device settings persisted as an indented JSON file."""

    def __init__(self, path: pathlib.Path) -> None:
        self.path = path

    def load(self) -> DeviceSettings:
        """Load settings, falling back to defaults for a missing or corrupt file.

        A freshly generated device id is written back immediately so the
        device identity stays stable across restarts.
        """
        if not self.path.exists():
            log.info("device_settings_missing", path=str(self.path))
            settings = DeviceSettings()
            self._save_quietly(settings)
            return settings

        try:
            data = orjson.loads(self.path.read_bytes())
            return DeviceSettings.model_validate(data)
        except (OSError, orjson.JSONDecodeError, ValidationError) as e:
            log.warning(
                "device_settings_unreadable",
                path=str(self.path),
                error=str(e),
                error_type=type(e).__name__,
            )
            settings = DeviceSettings()
            self._save_quietly(settings)
            return settings

    def save(self, settings: DeviceSettings) -> None:
        """Write settings to disk.

        Raises:
            SettingsSaveError: If the file cannot be written.
        """
        content = orjson.dumps(
            settings.model_dump(mode="json"),
            option=orjson.OPT_INDENT_2 | orjson.OPT_APPEND_NEWLINE,
        )
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
            tmp_path.write_bytes(content)
            tmp_path.replace(self.path)
        except OSError as e:
            raise SettingsSaveError(f"Failed to save settings to {self.path}: {e}") from e
        log.debug("device_settings_saved", path=str(self.path))

    def _save_quietly(self, settings: DeviceSettings) -> None:
        try:
            self.save(settings)
        except SettingsSaveError as e:
            log.warning("device_settings_initial_save_failed", error=str(e))


class MemorySettingsStore:
    """In-memory settings store.

    Keeps a deep copy on every save so callers cannot mutate the stored
    snapshot behind the store's back.
    """

    def __init__(self, settings: DeviceSettings | None = None) -> None:
        self._settings = (settings or DeviceSettings()).model_copy(deep=True)
        self.save_count = 0

    def load(self) -> DeviceSettings:
        return self._settings.model_copy(deep=True)

    def save(self, settings: DeviceSettings) -> None:
        self._settings = settings.model_copy(deep=True)
        self.save_count += 1
