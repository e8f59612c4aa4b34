"""NVIDIA GPU metrics via ``nvidia-smi``.

nvidia-smi ships with the driver on Linux and Windows, so it is the one GPU
source every platform tries first.
"""

from desktop_companion.sensors.platforms.command import run_command
from desktop_companion.sensors.readings import GpuReading
from desktop_companion.telemetry import get_logger

log = get_logger(__name__)

NVIDIA_SMI_QUERY = (
    "name,utilization.gpu,temperature.gpu,memory.total,memory.used,driver_version"
)
NOT_SUPPORTED = {"[not supported]", "n/a", "[n/a]", ""}


def _parse_number(raw: str) -> float | None:
    if raw.strip().lower() in NOT_SUPPORTED:
        return None
    try:
        return float(raw)
    except ValueError:
        return None


def parse_nvidia_smi(output: str) -> list[GpuReading]:
    """Parse ``--format=csv,noheader,nounits`` output, one GPU per line."""
    gpus = []
    for line in output.splitlines():
        if not line.strip():
            continue
        parts = [p.strip() for p in line.split(",")]
        if len(parts) < 6:
            log.debug("nvidia_smi_line_skipped", line=line)
            continue
        vram_total = _parse_number(parts[3])
        vram_used = _parse_number(parts[4])
        gpus.append(
            GpuReading(
                name=parts[0] or "NVIDIA GPU",
                vendor="NVIDIA",
                usage_percent=_parse_number(parts[1]),
                temperature_c=_parse_number(parts[2]),
                vram_total_mb=int(vram_total) if vram_total is not None else None,
                vram_used_mb=int(vram_used) if vram_used is not None else None,
                driver_version=parts[5] or None,
            )
        )
    return gpus


def query_nvidia_smi(timeout: float = 3.0) -> list[GpuReading]:
    """Query all NVIDIA GPUs.

    Returns:
        One reading per GPU; empty if nvidia-smi is missing or fails.
    """
    output = run_command(
        ["nvidia-smi", f"--query-gpu={NVIDIA_SMI_QUERY}", "--format=csv,noheader,nounits"],
        timeout=timeout,
    )
    if output is None:
        return []
    return parse_nvidia_smi(output)
