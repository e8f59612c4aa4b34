"""Typed readings returned by metric sources.

Readings are plain frozen dataclasses; a source reports an unavailable metric
as ``None`` (or an empty list for multi-instance hardware).
"""

from dataclasses import dataclass

BYTES_PER_GB = 1024**3
BYTES_PER_MB = 1024**2


def _percent(part: float, total: float) -> float:
    return (part / total) * 100.0 if total > 0 else 0.0


@dataclass(frozen=True)
class CpuReading:
    model: str
    usage_percent: float
    frequency_mhz: int
    core_count: int
    logical_core_count: int
    temperature_c: float | None = None


@dataclass(frozen=True)
class MemoryReading:
    total_bytes: int
    used_bytes: int
    available_bytes: int

    @property
    def usage_percent(self) -> float:
        return _percent(self.used_bytes, self.total_bytes)

    @property
    def total_gb(self) -> float:
        return self.total_bytes / BYTES_PER_GB

    @property
    def used_gb(self) -> float:
        return self.used_bytes / BYTES_PER_GB


@dataclass(frozen=True)
class PartitionReading:
    device: str
    mount_point: str
    total_bytes: int
    used_bytes: int
    available_bytes: int
    filesystem: str
    disk_type: str = "Unknown"

    @property
    def usage_percent(self) -> float:
        return _percent(self.used_bytes, self.total_bytes)

    @property
    def total_gb(self) -> float:
        return self.total_bytes / BYTES_PER_GB

    @property
    def used_gb(self) -> float:
        return self.used_bytes / BYTES_PER_GB


@dataclass(frozen=True)
class NetworkReading:
    name: str
    received_bytes: int
    transmitted_bytes: int
    mac_address: str = ""
    ip_addresses: tuple[str, ...] = ()


@dataclass(frozen=True)
class GpuReading:
    name: str
    vendor: str
    usage_percent: float | None = None
    temperature_c: float | None = None
    vram_total_mb: int | None = None
    vram_used_mb: int | None = None
    driver_version: str | None = None


@dataclass(frozen=True)
class BatteryReading:
    percentage: float
    state: str
    is_charging: bool
    state_of_health: float | None = None
    cycle_count: int | None = None


@dataclass(frozen=True)
class SystemInfoReading:
    """Identity facts about the host.

    ``boot_time`` is a POSIX timestamp.
    """

    os_name: str
    os_version: str
    hostname: str
    boot_time: float | None = None
    process_count: int | None = None
    logged_in_user: str | None = None
    motherboard_manufacturer: str | None = None
    motherboard_model: str | None = None
    bios_version: str | None = None
    bios_vendor: str | None = None
    bios_release_date: str | None = None
