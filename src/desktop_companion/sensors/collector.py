"""Sensor collector.

Turns raw readings from a ``MetricSource`` into wire-ready ``SensorValue``
objects, honouring the enablement map. Every collect call takes one
``MetricSnapshot`` so each underlying source is sampled at most once per call
no matter how many sensors it feeds.
"""

import re
from collections.abc import Callable, Iterator, Mapping
from datetime import datetime, timezone
from functools import cached_property
from typing import Any

from desktop_companion.sensors import catalog
from desktop_companion.sensors.catalog import CATALOG, default_enabled
from desktop_companion.sensors.platforms.base import MetricSource
from desktop_companion.sensors.readings import (
    BatteryReading,
    CpuReading,
    GpuReading,
    MemoryReading,
    NetworkReading,
    PartitionReading,
    SystemInfoReading,
)
from desktop_companion.sensors.types import SensorListItem, SensorValue
from desktop_companion.telemetry import SENSOR_SOURCE_ERROR, get_logger

log = get_logger(__name__)

_UNSAFE_CHARS = re.compile(r"[/\\: ]")
_REPEATED_UNDERSCORES = re.compile(r"_{2,}")

ROOT_MOUNT_ID = "root"


def sanitize_identifier(raw: str) -> str:
    """Make a mount point or interface name safe for use in a sensor id.

    Path separators, colons, spaces, and backslashes become underscores;
    runs of underscores collapse and leading/trailing ones are trimmed.

    Example:
        >>> sanitize_identifier("/mnt/My Disk")
        'mnt_My_Disk'
    """
    safe = _UNSAFE_CHARS.sub("_", raw)
    safe = _REPEATED_UNDERSCORES.sub("_", safe)
    return safe.strip("_")


def _unique_keys(names: list[str], fallback: str = "") -> list[str]:
    """Sanitize instance names, suffixing any collision with its position.

    A suffix that is itself taken counts up until the key is free.
    """
    keys: list[str] = []
    seen: set[str] = set()
    for index, name in enumerate(names):
        base = key = sanitize_identifier(name) or fallback
        suffix = index
        while key in seen:
            key = f"{base}_{suffix}"
            suffix += 1
        seen.add(key)
        keys.append(key)
    return keys


def _positional_suffixes(count: int) -> list[tuple[str, str]]:
    """(id_suffix, name_suffix) per instance; no suffix for a single instance."""
    if count == 1:
        return [("", "")]
    return [(f"_{i}", f" {i}") for i in range(count)]


class MetricSnapshot:
    """Per-call memo over a metric source.

    Each reading is sampled lazily on first access and then reused for the
    rest of the call. A source that raises is logged and treated as
    unavailable.
    """

    def __init__(self, source: MetricSource) -> None:
        self._source = source

    def _sample(self, name: str, sampler: Callable[[], Any], unavailable: Any = None) -> Any:
        try:
            return sampler()
        except Exception as e:
            log.warning(
                SENSOR_SOURCE_ERROR,
                metric=name,
                error=str(e),
                error_type=type(e).__name__,
            )
            return unavailable

    @cached_property
    def cpu(self) -> CpuReading | None:
        return self._sample("cpu", self._source.cpu)

    @cached_property
    def memory(self) -> MemoryReading | None:
        return self._sample("memory", self._source.memory)

    @cached_property
    def partitions(self) -> list[PartitionReading]:
        return self._sample("partitions", self._source.partitions, [])

    @cached_property
    def networks(self) -> list[NetworkReading]:
        return self._sample("networks", self._source.networks, [])

    @cached_property
    def gpus(self) -> list[GpuReading]:
        return self._sample("gpus", self._source.gpus, [])

    @cached_property
    def batteries(self) -> list[BatteryReading]:
        return self._sample("batteries", self._source.batteries, [])

    @cached_property
    def system_info(self) -> SystemInfoReading | None:
        return self._sample("system_info", self._source.system_info)


SensorBuilder = Callable[[MetricSnapshot], Iterator[SensorValue]]


# Dynamic builders


def _cpu_usage(snap: MetricSnapshot) -> Iterator[SensorValue]:
    if snap.cpu is not None:
        yield catalog.CPU_USAGE.value(f"{snap.cpu.usage_percent:.1f}")


def _cpu_frequency(snap: MetricSnapshot) -> Iterator[SensorValue]:
    if snap.cpu is not None:
        yield catalog.CPU_FREQUENCY.value(snap.cpu.frequency_mhz)


def _cpu_temperature(snap: MetricSnapshot) -> Iterator[SensorValue]:
    if snap.cpu is not None and snap.cpu.temperature_c is not None:
        yield catalog.CPU_TEMPERATURE.value(f"{snap.cpu.temperature_c:.1f}")


def _memory_usage(snap: MetricSnapshot) -> Iterator[SensorValue]:
    if snap.memory is not None:
        yield catalog.MEMORY_USAGE.value(f"{snap.memory.usage_percent:.1f}")


def _memory_used(snap: MetricSnapshot) -> Iterator[SensorValue]:
    if snap.memory is not None:
        yield catalog.MEMORY_USED.value(f"{snap.memory.used_gb:.2f}")


def _disk_usage(snap: MetricSnapshot) -> Iterator[SensorValue]:
    partitions = snap.partitions
    keys = _unique_keys([p.mount_point for p in partitions], fallback=ROOT_MOUNT_ID)
    for partition, key in zip(partitions, keys):
        definition = catalog.DISK_USAGE.instance(f"_{key}", f" {partition.mount_point}")
        yield definition.value(
            f"{partition.usage_percent:.1f}",
            {
                "total_gb": f"{partition.total_gb:.1f}",
                "used_gb": f"{partition.used_gb:.1f}",
                "filesystem": partition.filesystem,
                "disk_type": partition.disk_type,
            },
        )


def _gpu_dynamic(snap: MetricSnapshot) -> Iterator[SensorValue]:
    gpus = snap.gpus
    for gpu, (id_suffix, name_suffix) in zip(gpus, _positional_suffixes(len(gpus))):
        if gpu.usage_percent is not None:
            yield catalog.GPU_USAGE.instance(id_suffix, name_suffix).value(f"{gpu.usage_percent:.1f}")
        if gpu.temperature_c is not None:
            yield catalog.GPU_TEMPERATURE.instance(id_suffix, name_suffix).value(
                f"{gpu.temperature_c:.1f}"
            )
        if gpu.vram_used_mb is not None:
            yield catalog.GPU_VRAM_USED.instance(id_suffix, name_suffix).value(f"{gpu.vram_used_mb:.0f}")


def _network(snap: MetricSnapshot) -> Iterator[SensorValue]:
    interfaces = snap.networks
    keys = _unique_keys([iface.name for iface in interfaces], fallback="interface")
    for iface, key in zip(interfaces, keys):
        # Raw byte counters; the hub handles total_increasing scaling itself
        yield catalog.NETWORK_RX.instance(f"_{key}", f" {iface.name}").value(
            iface.received_bytes,
            {"mac_address": iface.mac_address, "ip_addresses": list(iface.ip_addresses)},
        )
        yield catalog.NETWORK_TX.instance(f"_{key}", f" {iface.name}").value(iface.transmitted_bytes)


def _battery(snap: MetricSnapshot) -> Iterator[SensorValue]:
    batteries = snap.batteries
    for battery, (id_suffix, name_suffix) in zip(batteries, _positional_suffixes(len(batteries))):
        attributes: dict[str, Any] = {"state": battery.state}
        if battery.state_of_health is not None:
            attributes["state_of_health"] = f"{battery.state_of_health:.0f}%"
        if battery.cycle_count is not None:
            attributes["cycle_count"] = battery.cycle_count
        yield catalog.BATTERY_LEVEL.instance(id_suffix, name_suffix).value(
            f"{battery.percentage:.0f}", attributes
        )
        yield catalog.BATTERY_CHARGING.instance(id_suffix, name_suffix).value(battery.is_charging)


def _process_count(snap: MetricSnapshot) -> Iterator[SensorValue]:
    info = snap.system_info
    if info is not None and info.process_count is not None:
        yield catalog.PROCESS_COUNT.value(info.process_count)


# Static builders


def _cpu_model(snap: MetricSnapshot) -> Iterator[SensorValue]:
    if snap.cpu is not None and snap.cpu.model:
        yield catalog.CPU_MODEL.value(
            snap.cpu.model,
            {
                "core_count": snap.cpu.core_count,
                "logical_core_count": snap.cpu.logical_core_count,
            },
        )


def _memory_total(snap: MetricSnapshot) -> Iterator[SensorValue]:
    if snap.memory is not None:
        yield catalog.MEMORY_TOTAL.value(f"{snap.memory.total_gb:.1f}")


def _gpu_model(snap: MetricSnapshot) -> Iterator[SensorValue]:
    gpus = snap.gpus
    for gpu, (id_suffix, name_suffix) in zip(gpus, _positional_suffixes(len(gpus))):
        attributes: dict[str, Any] = {"vendor": gpu.vendor}
        if gpu.driver_version:
            attributes["driver_version"] = gpu.driver_version
        if gpu.vram_total_mb is not None:
            attributes["vram_total_mb"] = gpu.vram_total_mb
        yield catalog.GPU_MODEL.instance(id_suffix, name_suffix).value(gpu.name, attributes)


def _last_boot(snap: MetricSnapshot) -> Iterator[SensorValue]:
    info = snap.system_info
    if info is not None and info.boot_time is not None:
        booted = datetime.fromtimestamp(info.boot_time, tz=timezone.utc).replace(microsecond=0)
        yield catalog.LAST_BOOT.value(booted.isoformat())


def _os_version(snap: MetricSnapshot) -> Iterator[SensorValue]:
    info = snap.system_info
    if info is not None:
        yield catalog.OS_VERSION.value(
            f"{info.os_name} {info.os_version}",
            {"os_name": info.os_name, "os_version": info.os_version},
        )


def _hostname(snap: MetricSnapshot) -> Iterator[SensorValue]:
    if snap.system_info is not None:
        yield catalog.HOSTNAME.value(snap.system_info.hostname)


def _logged_in_user(snap: MetricSnapshot) -> Iterator[SensorValue]:
    info = snap.system_info
    if info is not None and info.logged_in_user:
        yield catalog.LOGGED_IN_USER.value(info.logged_in_user)


def _motherboard(snap: MetricSnapshot) -> Iterator[SensorValue]:
    info = snap.system_info
    if info is None or not info.motherboard_manufacturer or not info.motherboard_model:
        return
    yield catalog.MOTHERBOARD.value(
        f"{info.motherboard_manufacturer} {info.motherboard_model}",
        {"manufacturer": info.motherboard_manufacturer, "model": info.motherboard_model},
    )


def _bios_version(snap: MetricSnapshot) -> Iterator[SensorValue]:
    info = snap.system_info
    if info is None or not info.bios_version:
        return
    attributes = {}
    if info.bios_vendor:
        attributes["bios_vendor"] = info.bios_vendor
    if info.bios_release_date:
        attributes["bios_release_date"] = info.bios_release_date
    yield catalog.BIOS_VERSION.value(info.bios_version, attributes)


# (toggle id, builder) in emission order
DYNAMIC_BUILDERS: tuple[tuple[str, SensorBuilder], ...] = (
    ("cpu_usage", _cpu_usage),
    ("cpu_frequency", _cpu_frequency),
    ("cpu_temperature", _cpu_temperature),
    ("memory_usage", _memory_usage),
    ("memory_used", _memory_used),
    ("disk_usage", _disk_usage),
    ("gpu", _gpu_dynamic),
    ("network", _network),
    ("battery", _battery),
    ("process_count", _process_count),
)

STATIC_BUILDERS: tuple[tuple[str, SensorBuilder], ...] = (
    ("cpu_model", _cpu_model),
    ("os_version", _os_version),
    ("hostname", _hostname),
    ("logged_in_user", _logged_in_user),
    ("last_boot", _last_boot),
    ("motherboard", _motherboard),
    ("bios_version", _bios_version),
    ("gpu", _gpu_model),
    ("memory_total", _memory_total),
)


class SensorCollector:
    """Collects enabled sensors from a metric source.

    The collector holds no state beyond its source and the enablement map,
    so it can be rebuilt from persisted settings at any time.

    Args:
        source: Metric source for the running platform.
        enabled_sensors: Toggle id -> enabled. Absent ids use the catalog
            default.
    """

    def __init__(self, source: MetricSource, enabled_sensors: Mapping[str, bool] | None = None) -> None:
        self.source = source
        self._enabled: dict[str, bool] = dict(enabled_sensors or {})

    @property
    def enabled_sensors(self) -> dict[str, bool]:
        return dict(self._enabled)

    def set_enabled_sensors(self, enabled_sensors: Mapping[str, bool]) -> None:
        """Replace the whole enablement map."""
        self._enabled = dict(enabled_sensors)

    def is_enabled(self, sensor_id: str) -> bool:
        enabled = self._enabled.get(sensor_id)
        if enabled is None:
            return default_enabled(sensor_id)
        return enabled

    def get_sensor_list(self) -> list[SensorListItem]:
        """Every catalog entry with its current enablement, enabled or not."""
        return [
            SensorListItem(
                id=entry.id,
                name=entry.name,
                enabled=self.is_enabled(entry.id),
                updates_at_interval=entry.updates_at_interval,
            )
            for entry in CATALOG
        ]

    def collect_static(self) -> list[SensorValue]:
        """Enabled sensors collected once (identity and hardware facts)."""
        return self._collect(MetricSnapshot(self.source), STATIC_BUILDERS)

    def collect_dynamic(self) -> list[SensorValue]:
        """Enabled sensors re-sampled every polling cycle."""
        return self._collect(MetricSnapshot(self.source), DYNAMIC_BUILDERS)

    def collect_all(self) -> list[SensorValue]:
        """Static then dynamic sensors from a single snapshot."""
        snapshot = MetricSnapshot(self.source)
        return self._collect(snapshot, STATIC_BUILDERS) + self._collect(snapshot, DYNAMIC_BUILDERS)

    def _collect(
        self,
        snapshot: MetricSnapshot,
        builders: tuple[tuple[str, SensorBuilder], ...],
    ) -> list[SensorValue]:
        # Snapshot the map so a concurrent toggle cannot split one cycle
        enabled = self._enabled
        values: list[SensorValue] = []
        for toggle_id, build in builders:
            is_on = enabled.get(toggle_id)
            if is_on is None:
                is_on = default_enabled(toggle_id)
            if is_on:
                values.extend(build(snapshot))
        return values

