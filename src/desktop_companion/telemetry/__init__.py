"""Telemetry module for structured logging and trace correlation.

This module provides:
- Structured logging via structlog
- TraceContext for correlating the events of one operation
- Semantic event constants
"""

from desktop_companion.telemetry.events import (
    HUB_REQUEST_COMPLETED,
    HUB_REQUEST_FAILED,
    HUB_REQUEST_STARTED,
    POLL_CYCLE_COMPLETED,
    POLL_CYCLE_FAILED,
    POLL_CYCLE_SKIPPED,
    POLLER_STARTED,
    POLLER_STOPPED,
    REGISTRATION_COMPLETED,
    REGISTRATION_FAILED,
    REGISTRATION_INVALIDATED,
    REGISTRATION_STAGE,
    REGISTRATION_STARTED,
    SENSOR_POLL,
    SENSOR_SOURCE_ERROR,
    SENSOR_TOGGLED,
    SETTINGS_SAVED,
    WEBHOOK_EXPIRED,
)
from desktop_companion.telemetry.logger import configure_logging, get_logger, mask_secret
from desktop_companion.telemetry.trace import TraceContext

__all__ = [
    "TraceContext",
    "get_logger",
    "configure_logging",
    "mask_secret",
    # Event constants
    "SENSOR_POLL",
    "SENSOR_SOURCE_ERROR",
    "SENSOR_TOGGLED",
    "HUB_REQUEST_STARTED",
    "HUB_REQUEST_COMPLETED",
    "HUB_REQUEST_FAILED",
    "WEBHOOK_EXPIRED",
    "REGISTRATION_STARTED",
    "REGISTRATION_STAGE",
    "REGISTRATION_COMPLETED",
    "REGISTRATION_FAILED",
    "POLLER_STARTED",
    "POLLER_STOPPED",
    "POLL_CYCLE_SKIPPED",
    "POLL_CYCLE_COMPLETED",
    "POLL_CYCLE_FAILED",
    "REGISTRATION_INVALIDATED",
    "SETTINGS_SAVED",
]
