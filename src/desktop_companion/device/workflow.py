"""Registration workflow.

Pairs the device with the hub as an ordered series of stages:

    UNCONFIGURED -> VALIDATED -> REACHABLE -> REGISTERED -> SENSORS_DECLARED -> LIVE

Each transition has one guard. A failure stops the run with the most
specific typed error; the only state kept from a partial run is the webhook
id, persisted as soon as it is issued.
"""

import asyncio
import platform
from collections.abc import Awaitable, Callable
from enum import Enum

from desktop_companion.config.store import DeviceSettings
from desktop_companion.device.state import DeviceState
from desktop_companion.hass_client import (
    ConfigIncomplete,
    DeviceIdentity,
    HassClient,
    HassClientError,
)
from desktop_companion.sensors import MetricSnapshot, SensorCollector
from desktop_companion.telemetry import (
    REGISTRATION_COMPLETED,
    REGISTRATION_FAILED,
    REGISTRATION_STAGE,
    REGISTRATION_STARTED,
    TraceContext,
    get_logger,
    mask_secret,
)

log = get_logger(__name__)


class RegistrationStage(str, Enum):
    """Stages of a registration run, in order."""

    UNCONFIGURED = "unconfigured"
    VALIDATED = "validated"
    REACHABLE = "reachable"
    REGISTERED = "registered"
    SENSORS_DECLARED = "sensors_declared"
    LIVE = "live"


class RegistrationWorkflow:
    """Runs device registration against the shared device state.

    Usage:
        workflow = RegistrationWorkflow(state, app_version="0.1.0")
        webhook_id = await workflow.run()

    Attributes:
        stage: Last stage reached by the most recent run.
    """

    def __init__(
        self,
        state: DeviceState,
        app_version: str,
        settle_seconds: float = 3.0,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        """Initialize the workflow.

        Args:
            state: Shared device state.
            app_version: Version reported to the hub.
            settle_seconds: Wait after registration before declaring sensors;
                the hub sets up a new device's platforms asynchronously and
                drops declarations that arrive too early.
            sleep: Awaitable sleep, replaceable in tests.
        """
        self.state = state
        self.app_version = app_version
        self.settle_seconds = settle_seconds
        self._sleep = sleep
        self.stage = RegistrationStage.UNCONFIGURED

    async def run(self) -> str:
        """Register the device, declare its sensors and push a first snapshot.

        Sets the registered flag on success.

        Returns:
            The webhook id issued by the hub.

        Raises:
            ConfigIncomplete: If URL or token is empty; nothing is sent.
            HassClientError: The first failure, with a context prefix naming
                the step that failed.
            SettingsSaveError: If the webhook id cannot be persisted.
        """
        trace_ctx = TraceContext.new_trace("registration")
        self.stage = RegistrationStage.UNCONFIGURED
        log.info(REGISTRATION_STARTED, **trace_ctx.log_fields())

        try:
            async with (
                self.state.settings() as settings,
                self.state.client() as client,
                self.state.collector() as collector,
            ):
                webhook_id = await self._run_locked(settings, client, collector, trace_ctx)
        except Exception as e:
            log.error(
                REGISTRATION_FAILED,
                stage=self.stage.value,
                error=str(e),
                error_type=type(e).__name__,
                **trace_ctx.log_fields(),
            )
            raise

        await self.state.set_registered(True)
        self._advance(RegistrationStage.LIVE, trace_ctx)
        log.info(
            REGISTRATION_COMPLETED,
            webhook_id=mask_secret(webhook_id),
            **trace_ctx.log_fields(),
        )
        return webhook_id

    async def _run_locked(
        self,
        settings: DeviceSettings,
        client: HassClient,
        collector: SensorCollector,
        trace_ctx: TraceContext,
    ) -> str:
        # UNCONFIGURED -> VALIDATED
        if not settings.server_url:
            raise ConfigIncomplete("Server URL is not configured")
        if not settings.access_token:
            raise ConfigIncomplete("Access token is not configured")
        client.update_config(settings.server_url, settings.access_token)
        self._advance(RegistrationStage.VALIDATED, trace_ctx)

        identity = await self._device_identity(settings, collector)

        # VALIDATED -> REACHABLE
        try:
            await client.check_reachable(trace_ctx=trace_ctx)
        except HassClientError as e:
            raise e.with_context("Cannot reach Home Assistant Desktop App API")
        self._advance(RegistrationStage.REACHABLE, trace_ctx)

        # REACHABLE -> REGISTERED
        try:
            webhook_id = await client.register_device(identity, trace_ctx=trace_ctx)
        except HassClientError as e:
            raise e.with_context("Registration failed")

        settings.webhook_id = webhook_id
        client.set_webhook_id(webhook_id)
        self.state.persist(settings)
        self._advance(RegistrationStage.REGISTERED, trace_ctx)

        await self._sleep(self.settle_seconds)

        # REGISTERED -> SENSORS_DECLARED
        values = await asyncio.to_thread(collector.collect_all)
        try:
            await client.register_sensors(values, trace_ctx=trace_ctx)
        except HassClientError as e:
            raise e.with_context("Sensor registration failed")
        self._advance(RegistrationStage.SENSORS_DECLARED, trace_ctx, sensor_count=len(values))

        # SENSORS_DECLARED -> LIVE (same snapshot as the first state push)
        try:
            await client.update_sensors(values, trace_ctx=trace_ctx)
        except HassClientError as e:
            raise e.with_context("Initial sensor update failed")
        return webhook_id

    async def _device_identity(self, settings: DeviceSettings, collector: SensorCollector) -> DeviceIdentity:
        snapshot = MetricSnapshot(collector.source)
        info = await asyncio.to_thread(lambda: snapshot.system_info)
        if info is None:
            return DeviceIdentity(
                device_id=settings.device_id,
                device_name=platform.node() or settings.device_id,
                manufacturer=None,
                model=None,
                os_name=platform.system(),
                os_version=platform.release(),
                app_version=self.app_version,
            )
        return DeviceIdentity(
            device_id=settings.device_id,
            device_name=info.hostname,
            manufacturer=info.motherboard_manufacturer,
            model=info.motherboard_model,
            os_name=info.os_name,
            os_version=info.os_version,
            app_version=self.app_version,
        )

    def _advance(self, stage: RegistrationStage, trace_ctx: TraceContext, **fields: object) -> None:
        self.stage = stage
        log.info(REGISTRATION_STAGE, stage=stage.value, **trace_ctx.log_fields(), **fields)
