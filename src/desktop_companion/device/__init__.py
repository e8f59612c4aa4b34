"""Device state, registration workflow, polling loop and commands."""

from desktop_companion.device.poller import SensorPoller
from desktop_companion.device.service import DeviceService, SettingsView, build_service
from desktop_companion.device.state import DeviceState
from desktop_companion.device.workflow import RegistrationStage, RegistrationWorkflow

__all__ = [
    "DeviceService",
    "DeviceState",
    "RegistrationStage",
    "RegistrationWorkflow",
    "SensorPoller",
    "SettingsView",
    "build_service",
]
