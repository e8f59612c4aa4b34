"""macOS metric source backed by ``sysctl`` and ``system_profiler``."""

import platform
from typing import Any

import orjson

from desktop_companion.sensors.platforms.base import PsutilMetricSource
from desktop_companion.sensors.platforms.command import run_command
from desktop_companion.sensors.readings import GpuReading
from desktop_companion.telemetry import get_logger

log = get_logger(__name__)


def system_profiler(data_type: str, timeout: float = 10.0) -> list[dict[str, Any]]:
    """Return the item list of one ``system_profiler -json`` data type."""
    output = run_command(["system_profiler", data_type, "-json"], timeout=timeout)
    if output is None:
        return []
    try:
        data = orjson.loads(output)
    except orjson.JSONDecodeError:
        log.debug("system_profiler_unparseable", data_type=data_type)
        return []
    items = data.get(data_type, [])
    return items if isinstance(items, list) else []


def parse_vram_mb(raw: str | None) -> int | None:
    """Parse ``"8 GB"`` / ``"1536 MB"`` strings reported for discrete GPUs."""
    if not raw:
        return None
    parts = raw.split()
    try:
        amount = float(parts[0])
    except (ValueError, IndexError):
        return None
    unit = parts[1].upper() if len(parts) > 1 else "MB"
    return int(amount * 1024) if unit == "GB" else int(amount)


class AppleMetricSource(PsutilMetricSource):
    """Metric source for macOS hosts."""

    def __init__(self) -> None:
        super().__init__()
        self._gpu_cache: list[GpuReading] | None = None

    def _cpu_model(self) -> str:
        brand = run_command(["sysctl", "-n", "machdep.cpu.brand_string"])
        if brand and brand.strip():
            return brand.strip()
        return super()._cpu_model()

    def _os_release(self) -> tuple[str, str]:
        version = platform.mac_ver()[0]
        return "macOS", version or platform.release()

    def _disk_type(self, device: str) -> str:
        # Every Mac sold since 2020 boots from internal flash
        return "SSD" if device.startswith("/dev/disk") else "Unknown"

    def _board_info(self) -> dict[str, str | None]:
        items = system_profiler("SPHardwareDataType")
        if not items:
            return {}
        hw = items[0]
        return {
            "motherboard_manufacturer": "Apple",
            "motherboard_model": hw.get("machine_model") or hw.get("machine_name"),
            "bios_version": hw.get("boot_rom_version"),
            "bios_vendor": "Apple",
        }

    def _platform_gpus(self) -> list[GpuReading]:
        # Model and VRAM are static; macOS exposes no usage counters without root
        if self._gpu_cache is None:
            self._gpu_cache = [
                GpuReading(
                    name=item.get("sppci_model") or item.get("_name") or "Apple GPU",
                    vendor=item.get("spdisplays_vendor", "Apple").replace("sppci_vendor_", ""),
                    vram_total_mb=parse_vram_mb(
                        item.get("spdisplays_vram") or item.get("spdisplays_vram_shared")
                    ),
                )
                for item in system_profiler("SPDisplaysDataType")
            ]
        return self._gpu_cache
