"""Fixed sensor catalog.

``CATALOG`` lists every toggleable sensor in display order. A toggle may
govern several emitted sensors (``gpu`` covers GPU usage, temperature, VRAM
and model; ``disk_usage`` covers every partition). Toggles that update every
interval default to enabled; identity facts default to disabled.

The ``SensorDefinition`` constants below describe each emitted sensor. For
multi-instance hardware they are templates specialised with
``SensorDefinition.instance``.
"""

from collections.abc import Mapping
from dataclasses import dataclass

from desktop_companion.sensors.types import (
    SensorCategory,
    SensorDefinition,
    SensorType,
    StateClass,
)

DYNAMIC = SensorCategory.DYNAMIC
STATIC = SensorCategory.STATIC


@dataclass(frozen=True)
class CatalogEntry:
    """One toggleable catalog row."""

    id: str
    name: str
    updates_at_interval: bool

    @property
    def default_enabled(self) -> bool:
        return self.updates_at_interval


CATALOG: tuple[CatalogEntry, ...] = (
    CatalogEntry("cpu_usage", "CPU Usage", True),
    CatalogEntry("cpu_frequency", "CPU Frequency", True),
    CatalogEntry("cpu_temperature", "CPU Temperature", True),
    CatalogEntry("cpu_model", "CPU Model", False),
    CatalogEntry("memory_usage", "Memory Usage", True),
    CatalogEntry("memory_used", "Memory Used", True),
    CatalogEntry("memory_total", "Memory Total", False),
    CatalogEntry("disk_usage", "Disk Usage", True),
    CatalogEntry("gpu", "GPU Sensors", True),
    CatalogEntry("network", "Network Sensors", True),
    CatalogEntry("battery", "Battery Sensors", True),
    CatalogEntry("process_count", "Process Count", True),
    CatalogEntry("last_boot", "Last Boot", False),
    CatalogEntry("os_version", "OS Version", False),
    CatalogEntry("hostname", "Hostname", False),
    CatalogEntry("logged_in_user", "Logged-in User", False),
    CatalogEntry("motherboard", "Motherboard", False),
    CatalogEntry("bios_version", "BIOS Version", False),
)

CATALOG_BY_ID: Mapping[str, CatalogEntry] = {entry.id: entry for entry in CATALOG}


def default_enabled(sensor_id: str) -> bool:
    """Default enablement for a toggle id absent from the enablement map.

    Unknown ids default to enabled, matching interval metrics.
    """
    entry = CATALOG_BY_ID.get(sensor_id)
    return entry.default_enabled if entry is not None else True


# CPU
CPU_USAGE = SensorDefinition(
    "cpu_usage", "CPU Usage", DYNAMIC,
    unit_of_measurement="%", icon="mdi:cpu-64-bit", state_class=StateClass.MEASUREMENT,
)
CPU_FREQUENCY = SensorDefinition(
    "cpu_frequency", "CPU Frequency", DYNAMIC,
    unit_of_measurement="MHz", device_class="frequency", icon="mdi:speedometer",
    state_class=StateClass.MEASUREMENT,
)
CPU_TEMPERATURE = SensorDefinition(
    "cpu_temperature", "CPU Temperature", DYNAMIC,
    unit_of_measurement="°C", device_class="temperature", icon="mdi:thermometer",
    state_class=StateClass.MEASUREMENT,
)
CPU_MODEL = SensorDefinition("cpu_model", "CPU Model", STATIC, icon="mdi:cpu-64-bit")

# Memory
MEMORY_USAGE = SensorDefinition(
    "memory_usage", "Memory Usage", DYNAMIC,
    unit_of_measurement="%", icon="mdi:memory", state_class=StateClass.MEASUREMENT,
)
MEMORY_USED = SensorDefinition(
    "memory_used", "Memory Used", DYNAMIC,
    unit_of_measurement="GB", device_class="data_size", icon="mdi:memory",
    state_class=StateClass.MEASUREMENT,
)
MEMORY_TOTAL = SensorDefinition(
    "memory_total", "Memory Total", STATIC,
    unit_of_measurement="GB", device_class="data_size", icon="mdi:memory",
)

# Disks (template, one instance per partition)
DISK_USAGE = SensorDefinition(
    "disk_usage", "Disk Usage", DYNAMIC,
    unit_of_measurement="%", icon="mdi:harddisk", state_class=StateClass.MEASUREMENT,
)

# GPUs (templates, one instance per adapter)
GPU_USAGE = SensorDefinition(
    "gpu_usage", "GPU Usage", DYNAMIC,
    unit_of_measurement="%", icon="mdi:expansion-card", state_class=StateClass.MEASUREMENT,
)
GPU_TEMPERATURE = SensorDefinition(
    "gpu_temperature", "GPU Temperature", DYNAMIC,
    unit_of_measurement="°C", device_class="temperature", icon="mdi:thermometer",
    state_class=StateClass.MEASUREMENT,
)
GPU_VRAM_USED = SensorDefinition(
    "gpu_vram_used", "GPU VRAM Used", DYNAMIC,
    unit_of_measurement="MB", device_class="data_size", icon="mdi:expansion-card-variant",
    state_class=StateClass.MEASUREMENT,
)
GPU_MODEL = SensorDefinition("gpu_model", "GPU Model", STATIC, icon="mdi:expansion-card")

# Network (templates, one pair per interface)
NETWORK_RX = SensorDefinition(
    "network_rx", "Network RX", DYNAMIC,
    unit_of_measurement="B", device_class="data_size", icon="mdi:download-network",
    state_class=StateClass.TOTAL_INCREASING,
)
NETWORK_TX = SensorDefinition(
    "network_tx", "Network TX", DYNAMIC,
    unit_of_measurement="B", device_class="data_size", icon="mdi:upload-network",
    state_class=StateClass.TOTAL_INCREASING,
)

# Batteries (templates, one pair per battery)
BATTERY_LEVEL = SensorDefinition(
    "battery_level", "Battery Level", DYNAMIC,
    unit_of_measurement="%", device_class="battery", icon="mdi:battery",
    state_class=StateClass.MEASUREMENT,
)
BATTERY_CHARGING = SensorDefinition(
    "battery_charging", "Battery Charging", DYNAMIC,
    sensor_type=SensorType.BINARY_SENSOR, device_class="battery_charging",
    icon="mdi:battery-charging",
)

# System
PROCESS_COUNT = SensorDefinition(
    "process_count", "Process Count", DYNAMIC,
    icon="mdi:application-cog", state_class=StateClass.MEASUREMENT,
)
LAST_BOOT = SensorDefinition(
    "last_boot", "Last Boot", STATIC, device_class="timestamp", icon="mdi:restart",
)
OS_VERSION = SensorDefinition("os_version", "OS Version", STATIC, icon="mdi:monitor")
HOSTNAME = SensorDefinition("hostname", "Hostname", STATIC, icon="mdi:desktop-tower")
LOGGED_IN_USER = SensorDefinition(
    "logged_in_user", "Logged-in User", STATIC, icon="mdi:account"
)
MOTHERBOARD = SensorDefinition("motherboard", "Motherboard", STATIC, icon="mdi:expansion-card")
BIOS_VERSION = SensorDefinition("bios_version", "BIOS Version", STATIC, icon="mdi:chip")
