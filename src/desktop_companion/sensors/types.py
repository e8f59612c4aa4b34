"""Sensor value model.

This module defines the wire-ready sensor types used throughout the package:
- SensorType / SensorCategory / StateClass: closed vocabularies
- SensorDefinition: static metadata for one logical sensor
- SensorValue: one reading of a sensor, immutable after construction
- SensorListItem: catalog row for configuration front ends
"""

import dataclasses
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any

StateValue = str | int | float | bool


class SensorType(str, Enum):
    """Kind of entity the hub creates for a sensor."""

    SENSOR = "sensor"
    BINARY_SENSOR = "binary_sensor"


class SensorCategory(str, Enum):
    """Whether a sensor is re-sampled every cycle or collected once."""

    DYNAMIC = "dynamic"
    STATIC = "static"


class StateClass(str, Enum):
    """State aggregation hint for the hub's statistics."""

    MEASUREMENT = "measurement"
    TOTAL_INCREASING = "total_increasing"


def _is_sensor_state(value: Any) -> bool:
    return isinstance(value, (str, int, float)) and not isinstance(value, bool)


def _is_binary_state(value: Any) -> bool:
    return isinstance(value, bool)


# Which state variants each sensor type accepts
STATE_VARIANTS: dict[SensorType, Callable[[Any], bool]] = {
    SensorType.SENSOR: _is_sensor_state,
    SensorType.BINARY_SENSOR: _is_binary_state,
}


@dataclass(frozen=True)
class SensorDefinition:
    """Static description of a sensor.

    ``unique_id`` is the idempotency key on the hub: changing it creates a
    new logical sensor there.
    """

    unique_id: str
    name: str
    category: SensorCategory
    sensor_type: SensorType = SensorType.SENSOR
    unit_of_measurement: str | None = None
    device_class: str | None = None
    icon: str | None = None
    state_class: StateClass | None = None

    def instance(self, id_suffix: str, name_suffix: str) -> "SensorDefinition":
        """Derive the definition of one hardware instance (a disk, a GPU...)."""
        return dataclasses.replace(
            self,
            unique_id=f"{self.unique_id}{id_suffix}",
            name=f"{self.name}{name_suffix}",
        )

    def value(self, state: StateValue, attributes: Mapping[str, Any] | None = None) -> "SensorValue":
        """Build a SensorValue for this definition."""
        return SensorValue(definition=self, state=state, attributes=dict(attributes or {}))


@dataclass(frozen=True)
class SensorValue:
    """One sensor reading, ready for the wire.

    Raises:
        TypeError: If ``state`` is not a variant accepted by the sensor type
            (binary sensors take bool; sensors take str, int or float).
    """

    definition: SensorDefinition
    state: StateValue
    attributes: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        accepts = STATE_VARIANTS[self.definition.sensor_type]
        if not accepts(self.state):
            raise TypeError(
                f"{self.definition.sensor_type.value} {self.definition.unique_id!r} "
                f"cannot hold state of type {type(self.state).__name__}"
            )
        object.__setattr__(self, "attributes", MappingProxyType(dict(self.attributes)))

    @property
    def unique_id(self) -> str:
        return self.definition.unique_id

    @property
    def name(self) -> str:
        return self.definition.name

    @property
    def updates_at_interval(self) -> bool:
        return self.definition.category is SensorCategory.DYNAMIC


@dataclass(frozen=True)
class SensorListItem:
    """Catalog row: one toggleable sensor and its current enablement."""

    id: str
    name: str
    enabled: bool
    updates_at_interval: bool
