"""Windows metric source backed by CIM queries through PowerShell."""

import platform
from typing import Any

import orjson

from desktop_companion.sensors.platforms.base import PsutilMetricSource
from desktop_companion.sensors.platforms.command import run_command
from desktop_companion.sensors.readings import BYTES_PER_MB, GpuReading
from desktop_companion.telemetry import get_logger

log = get_logger(__name__)

# MSFT_PhysicalDisk.MediaType codes
MEDIA_TYPES = {3: "HDD", 4: "SSD", 5: "SCM"}


def query_cim(class_name: str, properties: list[str], namespace: str | None = None) -> list[dict[str, Any]]:
    """Run ``Get-CimInstance`` and return the selected properties as dicts."""
    target = f"Get-CimInstance -ClassName {class_name}"
    if namespace:
        target += f" -Namespace {namespace}"
    script = f"{target} | Select-Object {','.join(properties)} | ConvertTo-Json -Compress"
    output = run_command(["powershell", "-NoProfile", "-NonInteractive", "-Command", script], timeout=10.0)
    if not output or not output.strip():
        return []
    try:
        data = orjson.loads(output)
    except orjson.JSONDecodeError:
        log.debug("cim_output_unparseable", class_name=class_name)
        return []
    # ConvertTo-Json emits a bare object for a single instance
    if isinstance(data, dict):
        return [data]
    return [item for item in data if isinstance(item, dict)]


class WindowsMetricSource(PsutilMetricSource):
    """Metric source for Windows hosts."""

    def __init__(self) -> None:
        super().__init__()
        self._gpu_cache: list[GpuReading] | None = None
        self._media_types: dict[str, str] | None = None

    def _cpu_model(self) -> str:
        rows = query_cim("Win32_Processor", ["Name"])
        if rows and rows[0].get("Name"):
            return str(rows[0]["Name"]).strip()
        return super()._cpu_model()

    def _os_release(self) -> tuple[str, str]:
        return "Windows", platform.version() or platform.release()

    def _disk_type(self, device: str) -> str:
        # Single physical disk systems are the common case; with several
        # disks the drive-letter mapping is not exposed by MSFT_PhysicalDisk.
        if self._media_types is None:
            rows = query_cim(
                "MSFT_PhysicalDisk", ["DeviceId", "MediaType"], namespace="root/Microsoft/Windows/Storage"
            )
            self._media_types = {
                str(row.get("DeviceId")): MEDIA_TYPES.get(row.get("MediaType"), "Unknown") for row in rows
            }
        kinds = set(self._media_types.values())
        return kinds.pop() if len(kinds) == 1 else "Unknown"

    def _board_info(self) -> dict[str, str | None]:
        board = query_cim("Win32_BaseBoard", ["Manufacturer", "Product"])
        bios = query_cim("Win32_BIOS", ["SMBIOSBIOSVersion", "Manufacturer", "ReleaseDate"])
        info: dict[str, str | None] = {}
        if board:
            info["motherboard_manufacturer"] = board[0].get("Manufacturer")
            info["motherboard_model"] = board[0].get("Product")
        if bios:
            info["bios_version"] = bios[0].get("SMBIOSBIOSVersion")
            info["bios_vendor"] = bios[0].get("Manufacturer")
            release = bios[0].get("ReleaseDate")
            info["bios_release_date"] = str(release) if release else None
        return info

    def _platform_gpus(self) -> list[GpuReading]:
        if self._gpu_cache is None:
            rows = query_cim("Win32_VideoController", ["Name", "AdapterCompatibility", "AdapterRAM", "DriverVersion"])
            self._gpu_cache = [
                GpuReading(
                    name=row.get("Name") or "GPU",
                    vendor=row.get("AdapterCompatibility") or "Unknown",
                    vram_total_mb=int(row["AdapterRAM"]) // BYTES_PER_MB if row.get("AdapterRAM") else None,
                    driver_version=row.get("DriverVersion"),
                )
                for row in rows
            ]
        return self._gpu_cache
