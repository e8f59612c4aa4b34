"""Home Assistant desktop_app client.

Registration, sensor declaration and batched state pushes, with typed
errors for every failure the caller needs to tell apart.
"""

from desktop_companion.hass_client.client import HassClient
from desktop_companion.hass_client.payloads import (
    DeviceIdentity,
    RegistrationResponse,
    build_register_sensor,
    build_registration,
    build_update_sensor_states,
)
from desktop_companion.hass_client.types import (
    ConfigIncomplete,
    HassClientError,
    IntegrationNotInstalled,
    IntegrationRemoved,
    MalformedResponse,
    NetworkTimeout,
    NotRegistered,
    PushFailed,
    RegistrationRejected,
    Unauthorized,
    Unreachable,
    WebhookExpired,
)

__all__ = [
    "HassClient",
    "DeviceIdentity",
    "RegistrationResponse",
    "build_register_sensor",
    "build_registration",
    "build_update_sensor_states",
    # Errors
    "HassClientError",
    "ConfigIncomplete",
    "Unreachable",
    "NetworkTimeout",
    "IntegrationNotInstalled",
    "Unauthorized",
    "RegistrationRejected",
    "MalformedResponse",
    "NotRegistered",
    "WebhookExpired",
    "IntegrationRemoved",
    "PushFailed",
]
