"""Portable metric source built on psutil.

``MetricSource`` is the capability interface the collector depends on.
``PsutilMetricSource`` implements it with psutil and the standard library
only; per-platform subclasses override the hooks for facts psutil does not
expose (board and BIOS identity, disk media type, non-NVIDIA GPUs).
"""

import getpass
import platform
import socket
from typing import Protocol

import psutil

from desktop_companion.sensors.platforms.gpu import query_nvidia_smi
from desktop_companion.sensors.readings import (
    BatteryReading,
    CpuReading,
    GpuReading,
    MemoryReading,
    NetworkReading,
    PartitionReading,
    SystemInfoReading,
)
from desktop_companion.telemetry import get_logger

log = get_logger(__name__)

# Labels/chips that identify the package or core temperature
CPU_TEMPERATURE_CHIPS = ("coretemp", "k10temp", "zenpower", "cpu_thermal", "cpu-thermal")
CPU_TEMPERATURE_LABEL_HINTS = ("cpu", "core", "package", "tctl", "tdie")


class MetricSource(Protocol):
    """Capability interface for raw host metrics.

    Every method samples the OS afresh and reports a missing metric as
    ``None`` (or ``[]`` for multi-instance hardware) rather than raising.
    """

    def cpu(self) -> CpuReading | None: ...

    def memory(self) -> MemoryReading | None: ...

    def partitions(self) -> list[PartitionReading]: ...

    def networks(self) -> list[NetworkReading]: ...

    def gpus(self) -> list[GpuReading]: ...

    def batteries(self) -> list[BatteryReading]: ...

    def system_info(self) -> SystemInfoReading | None: ...


class PsutilMetricSource:
    """Cross-platform metric source."""

    def __init__(self) -> None:
        # cpu_percent(interval=None) measures since the previous call; prime it
        # so the first real sample is meaningful.
        psutil.cpu_percent(interval=None)
        # Board and BIOS identity never changes while running
        self._board: dict[str, str | None] | None = None

    # CPU

    def cpu(self) -> CpuReading:
        freq = psutil.cpu_freq()
        return CpuReading(
            model=self._cpu_model(),
            usage_percent=float(psutil.cpu_percent(interval=None)),
            frequency_mhz=int(freq.current) if freq else 0,
            core_count=psutil.cpu_count(logical=False) or 0,
            logical_core_count=psutil.cpu_count(logical=True) or 0,
            temperature_c=self._cpu_temperature(),
        )

    def _cpu_model(self) -> str:
        return platform.processor() or platform.machine()

    def _cpu_temperature(self) -> float | None:
        if not hasattr(psutil, "sensors_temperatures"):
            return None
        try:
            temps = psutil.sensors_temperatures(fahrenheit=False)
        except (OSError, RuntimeError):
            return None
        if not temps:
            return None

        for chip in CPU_TEMPERATURE_CHIPS:
            entries = temps.get(chip)
            if entries:
                return float(entries[0].current)

        for entries in temps.values():
            for entry in entries:
                label = (entry.label or "").lower()
                if any(hint in label for hint in CPU_TEMPERATURE_LABEL_HINTS):
                    return float(entry.current)
        return None

    # Memory

    def memory(self) -> MemoryReading:
        vm = psutil.virtual_memory()
        return MemoryReading(
            total_bytes=vm.total,
            used_bytes=vm.total - vm.available,
            available_bytes=vm.available,
        )

    # Disks

    def partitions(self) -> list[PartitionReading]:
        readings: list[PartitionReading] = []
        seen_mounts: set[str] = set()
        for part in psutil.disk_partitions(all=False):
            if part.mountpoint in seen_mounts or self._skip_filesystem(part.fstype):
                continue
            try:
                usage = psutil.disk_usage(part.mountpoint)
            except (OSError, PermissionError):
                log.debug("disk_usage_unavailable", mount_point=part.mountpoint)
                continue
            if usage.total == 0:
                continue
            seen_mounts.add(part.mountpoint)
            readings.append(
                PartitionReading(
                    device=part.device,
                    mount_point=part.mountpoint,
                    total_bytes=usage.total,
                    used_bytes=usage.total - usage.free,
                    available_bytes=usage.free,
                    filesystem=part.fstype,
                    disk_type=self._disk_type(part.device),
                )
            )
        return readings

    def _skip_filesystem(self, fstype: str) -> bool:
        return False

    def _disk_type(self, device: str) -> str:
        return "Unknown"

    # Network

    def networks(self) -> list[NetworkReading]:
        counters = psutil.net_io_counters(pernic=True)
        addresses = psutil.net_if_addrs()
        readings = []
        for name, io in counters.items():
            mac = ""
            ips: list[str] = []
            for addr in addresses.get(name, []):
                if addr.family == psutil.AF_LINK:
                    mac = addr.address
                elif addr.family in (socket.AF_INET, socket.AF_INET6):
                    ips.append(addr.address)
            readings.append(
                NetworkReading(
                    name=name,
                    received_bytes=io.bytes_recv,
                    transmitted_bytes=io.bytes_sent,
                    mac_address=mac,
                    ip_addresses=tuple(ips),
                )
            )
        return readings

    # GPUs

    def gpus(self) -> list[GpuReading]:
        nvidia = query_nvidia_smi()
        if nvidia:
            return nvidia
        return self._platform_gpus()

    def _platform_gpus(self) -> list[GpuReading]:
        return []

    # Batteries

    def batteries(self) -> list[BatteryReading]:
        if not hasattr(psutil, "sensors_battery"):
            return []
        battery = psutil.sensors_battery()
        if battery is None:
            return []
        if battery.power_plugged is None:
            state = "Unknown"
        elif not battery.power_plugged:
            state = "Discharging"
        elif battery.percent >= 100:
            state = "Full"
        else:
            state = "Charging"
        return [
            BatteryReading(
                percentage=float(battery.percent),
                state=state,
                is_charging=state == "Charging",
            )
        ]

    # System

    def system_info(self) -> SystemInfoReading:
        os_name, os_version = self._os_release()
        if self._board is None:
            self._board = self._board_info()
        return SystemInfoReading(
            os_name=os_name,
            os_version=os_version,
            hostname=socket.gethostname() or "Unknown",
            boot_time=psutil.boot_time(),
            process_count=len(psutil.pids()),
            logged_in_user=self._logged_in_user(),
            **self._board,
        )

    def _os_release(self) -> tuple[str, str]:
        return platform.system() or "Unknown", platform.release() or "Unknown"

    def _board_info(self) -> dict[str, str | None]:
        """Board and BIOS facts as SystemInfoReading keyword arguments."""
        return {}

    def _logged_in_user(self) -> str | None:
        try:
            return getpass.getuser()
        except (KeyError, OSError):
            return None
