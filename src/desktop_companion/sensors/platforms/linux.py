"""Linux metric source.

Fills the gaps psutil leaves from sysfs and procfs: DMI board identity,
rotational flags for disks, per-battery health, and AMD/Intel GPUs.
"""

import os
import platform
from pathlib import Path

from desktop_companion.sensors.platforms.base import PsutilMetricSource
from desktop_companion.sensors.readings import BYTES_PER_MB, BatteryReading, GpuReading
from desktop_companion.telemetry import get_logger

log = get_logger(__name__)

DMI_DIR = Path("/sys/class/dmi/id")
BLOCK_DIR = Path("/sys/block")
POWER_SUPPLY_DIR = Path("/sys/class/power_supply")
DRM_DIR = Path("/sys/class/drm")

PSEUDO_FILESYSTEMS = {"squashfs", "overlay", "tmpfs", "devtmpfs", "ramfs", "efivarfs"}

PCI_VENDORS = {"0x1002": "AMD", "0x8086": "Intel", "0x10de": "NVIDIA"}

# sysfs status strings -> battery state names
BATTERY_STATES = {
    "charging": "Charging",
    "discharging": "Discharging",
    "full": "Full",
    "not charging": "Not charging",
}


def read_sysfs(path: Path) -> str | None:
    """Read a one-line sysfs attribute, or None if absent/unreadable."""
    try:
        value = path.read_text(encoding="utf-8", errors="replace").strip()
    except OSError:
        return None
    return value or None


def _read_int(path: Path) -> int | None:
    raw = read_sysfs(path)
    if raw is None:
        return None
    try:
        return int(raw)
    except ValueError:
        return None


class LinuxMetricSource(PsutilMetricSource):
    """Metric source for Linux hosts."""

    def __init__(
        self,
        dmi_dir: Path = DMI_DIR,
        block_dir: Path = BLOCK_DIR,
        power_supply_dir: Path = POWER_SUPPLY_DIR,
        drm_dir: Path = DRM_DIR,
    ) -> None:
        super().__init__()
        self.dmi_dir = dmi_dir
        self.block_dir = block_dir
        self.power_supply_dir = power_supply_dir
        self.drm_dir = drm_dir

    def _cpu_model(self) -> str:
        try:
            with open("/proc/cpuinfo", encoding="utf-8") as f:
                for line in f:
                    if line.startswith("model name"):
                        return line.split(":", 1)[1].strip()
        except OSError:
            pass
        return super()._cpu_model()

    def _skip_filesystem(self, fstype: str) -> bool:
        return fstype in PSEUDO_FILESYSTEMS

    def _disk_type(self, device: str) -> str:
        name = os.path.basename(device)
        if not name:
            return "Unknown"
        try:
            candidates = [d.name for d in self.block_dir.iterdir() if name.startswith(d.name)]
        except OSError:
            return "Unknown"
        if not candidates:
            return "Unknown"
        # nvme0n1p2 matches both nvme0n1 and (unlikely) nvme0; the longest wins
        block = max(candidates, key=len)
        rotational = read_sysfs(self.block_dir / block / "queue" / "rotational")
        if rotational == "1":
            return "HDD"
        if rotational == "0":
            return "SSD"
        return "Unknown"

    def _os_release(self) -> tuple[str, str]:
        try:
            release = platform.freedesktop_os_release()
        except OSError:
            return super()._os_release()
        name = release.get("NAME") or "Linux"
        version = release.get("VERSION_ID") or release.get("VERSION") or platform.release()
        return name, version

    def _board_info(self) -> dict[str, str | None]:
        return {
            "motherboard_manufacturer": read_sysfs(self.dmi_dir / "board_vendor"),
            "motherboard_model": read_sysfs(self.dmi_dir / "board_name"),
            "bios_version": read_sysfs(self.dmi_dir / "bios_version"),
            "bios_vendor": read_sysfs(self.dmi_dir / "bios_vendor"),
            "bios_release_date": read_sysfs(self.dmi_dir / "bios_date"),
        }

    def batteries(self) -> list[BatteryReading]:
        try:
            supplies = sorted(self.power_supply_dir.iterdir())
        except OSError:
            supplies = []

        readings = []
        for supply in supplies:
            if read_sysfs(supply / "type") != "Battery":
                continue
            capacity = _read_int(supply / "capacity")
            if capacity is None:
                continue
            status = (read_sysfs(supply / "status") or "").lower()
            state = BATTERY_STATES.get(status, "Unknown")
            readings.append(
                BatteryReading(
                    percentage=float(capacity),
                    state=state,
                    is_charging=state == "Charging",
                    state_of_health=self._battery_health(supply),
                    cycle_count=_read_int(supply / "cycle_count"),
                )
            )
        if readings:
            return readings
        return super().batteries()

    def _battery_health(self, supply: Path) -> float | None:
        for full_name, design_name in (
            ("energy_full", "energy_full_design"),
            ("charge_full", "charge_full_design"),
        ):
            full = _read_int(supply / full_name)
            design = _read_int(supply / design_name)
            if full is not None and design:
                return round(full / design * 100.0, 1)
        return None

    def _platform_gpus(self) -> list[GpuReading]:
        try:
            cards = sorted(
                p for p in self.drm_dir.iterdir() if p.name.startswith("card") and "-" not in p.name
            )
        except OSError:
            return []

        gpus = []
        for card in cards:
            device = card / "device"
            vendor = PCI_VENDORS.get(read_sysfs(device / "vendor") or "")
            if vendor is None or vendor == "NVIDIA":
                # NVIDIA is covered by nvidia-smi; unknown vendors are skipped
                continue
            vram_total = _read_int(device / "mem_info_vram_total")
            vram_used = _read_int(device / "mem_info_vram_used")
            busy = _read_int(device / "gpu_busy_percent")
            gpus.append(
                GpuReading(
                    name=read_sysfs(device / "product_name") or f"{vendor} GPU",
                    vendor=vendor,
                    usage_percent=float(busy) if busy is not None else None,
                    temperature_c=self._hwmon_temperature(device),
                    vram_total_mb=vram_total // BYTES_PER_MB if vram_total is not None else None,
                    vram_used_mb=vram_used // BYTES_PER_MB if vram_used is not None else None,
                    driver_version=read_sysfs(device / "driver" / "module" / "version"),
                )
            )
        return gpus

    def _hwmon_temperature(self, device: Path) -> float | None:
        try:
            hwmons = sorted((device / "hwmon").iterdir())
        except OSError:
            return None
        for hwmon in hwmons:
            millidegrees = _read_int(hwmon / "temp1_input")
            if millidegrees is not None:
                return millidegrees / 1000.0
        return None
