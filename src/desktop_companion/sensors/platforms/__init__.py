"""Per-platform metric sources."""

import platform

from desktop_companion.sensors.platforms.base import MetricSource, PsutilMetricSource
from desktop_companion.telemetry import get_logger

log = get_logger(__name__)


def _detect_platform() -> str:
    system = platform.system().lower()
    if system == "darwin":
        return "macos"
    if system in {"linux", "windows"}:
        return system
    return "other"


def get_metric_source() -> MetricSource:
    """Build the metric source for the running platform."""
    detected = _detect_platform()
    if detected == "linux":
        from desktop_companion.sensors.platforms.linux import LinuxMetricSource

        source: MetricSource = LinuxMetricSource()
    elif detected == "macos":
        from desktop_companion.sensors.platforms.apple import AppleMetricSource

        source = AppleMetricSource()
    elif detected == "windows":
        from desktop_companion.sensors.platforms.windows import WindowsMetricSource

        source = WindowsMetricSource()
    else:
        source = PsutilMetricSource()
    log.info("metric_source_selected", platform=detected, source=type(source).__name__)
    return source


__all__ = ["MetricSource", "PsutilMetricSource", "get_metric_source"]
