"""Request and response payloads for the desktop_app integration.

Builders are pure functions: the same sensor values always produce the same
payload, so declaring a sensor twice is harmless on the hub.
"""

from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel
from typing_extensions import TypedDict

from desktop_companion.hass_client.types import REGISTER_SENSOR, UPDATE_SENSOR_STATES
from desktop_companion.sensors.types import SensorValue


@dataclass(frozen=True)
class DeviceIdentity:
    """What the device tells the hub about itself at registration."""

    device_id: str
    device_name: str
    manufacturer: str | None
    model: str | None
    os_name: str
    os_version: str
    app_version: str


class RegistrationPayload(TypedDict):
    device_id: str
    device_name: str
    manufacturer: str | None
    model: str | None
    os_name: str
    os_version: str
    app_version: str


class WebhookCommand(TypedDict):
    type: str
    data: dict[str, Any]


class RegistrationResponse(BaseModel):
    """Body returned by the registrations endpoint."""

    success: bool = False
    webhook_id: str | None = None
    error: str | None = None


def build_registration(identity: DeviceIdentity) -> RegistrationPayload:
    return RegistrationPayload(
        device_id=identity.device_id,
        device_name=identity.device_name,
        manufacturer=identity.manufacturer,
        model=identity.model,
        os_name=identity.os_name,
        os_version=identity.os_version,
        app_version=identity.app_version,
    )


def build_register_sensor(value: SensorValue) -> WebhookCommand:
    """Declare one sensor's metadata along with its current state.

    Optional metadata is omitted rather than sent as null.
    """
    definition = value.definition
    data: dict[str, Any] = {
        "sensor_unique_id": value.unique_id,
        "sensor_name": definition.name,
        "sensor_type": definition.sensor_type.value,
        "sensor_state": value.state,
    }
    optional = {
        "sensor_device_class": definition.device_class,
        "sensor_unit_of_measurement": definition.unit_of_measurement,
        "sensor_state_class": definition.state_class.value if definition.state_class else None,
        "sensor_icon": definition.icon,
    }
    data.update({key: item for key, item in optional.items() if item is not None})
    return WebhookCommand(type=REGISTER_SENSOR, data=data)


def build_update_sensor_states(values: list[SensorValue]) -> WebhookCommand:
    """Batch the current state of many sensors into one command."""
    sensors = []
    for value in values:
        entry: dict[str, Any] = {
            "sensor_unique_id": value.unique_id,
            "sensor_state": value.state,
            "sensor_attributes": dict(value.attributes),
        }
        if value.definition.icon:
            entry["sensor_icon"] = value.definition.icon
        sensors.append(entry)
    return WebhookCommand(type=UPDATE_SENSOR_STATES, data={"sensors": sensors})
