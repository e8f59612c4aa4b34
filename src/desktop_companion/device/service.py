"""Device service: the caller-facing command surface.

Every manual action (save settings, register, toggle a sensor, update now)
goes through ``DeviceService``. Errors are returned to the caller unmodified
so front ends can show them verbatim.
"""

import asyncio
from collections.abc import Mapping

import httpx

from desktop_companion.config.settings import AppConfig
from desktop_companion.config.store import DeviceSettings, JsonSettingsStore, SettingsStore
from desktop_companion.device.poller import SensorPoller
from desktop_companion.device.state import DeviceState
from desktop_companion.device.workflow import RegistrationWorkflow
from desktop_companion.hass_client import HassClient, NetworkTimeout, NotRegistered, Unreachable
from desktop_companion.sensors import (
    CATALOG_BY_ID,
    MetricSource,
    SensorCollector,
    SensorListItem,
    get_metric_source,
)
from desktop_companion.telemetry import SENSOR_TOGGLED, TraceContext, get_logger

log = get_logger(__name__)

PUBLIC_IP_URL = "https://api.ipify.org"
PUBLIC_IP_TIMEOUT_SECONDS = 5.0


class SettingsView(DeviceSettings):
    """Settings snapshot returned to front ends, with the registered flag."""

    is_registered: bool = False


class DeviceService:
    """Manual operations over the shared device state.

    Usage:
        service = build_service(get_settings())
        await service.register()
        await service.update_now()
    """

    def __init__(
        self,
        state: DeviceState,
        workflow: RegistrationWorkflow,
        poller: SensorPoller,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.state = state
        self.workflow = workflow
        self.poller = poller
        self._transport = transport

    async def get_settings(self) -> SettingsView:
        async with self.state.settings() as settings:
            data = settings.model_dump()
        return SettingsView(**data, is_registered=await self.state.is_registered())

    async def save_settings(
        self,
        server_url: str,
        access_token: str,
        update_interval: int,
        language: str,
        autostart: bool,
        reregister: bool = True,
    ) -> str | None:
        """Normalize and persist user settings.

        When the URL or token changed, the client is reconfigured, the stored
        webhook id is cleared, and the registered flag drops before any new
        registration starts, so concurrent pushes are skipped meanwhile.

        Args:
            server_url: Hub base URL as typed by the user.
            access_token: Long-lived access token.
            update_interval: Polling cadence in seconds.
            language: UI language code.
            autostart: Start with the user session.
            reregister: Run registration right away when credentials changed
                and both are present.

        Returns:
            The new webhook id if a registration ran, else None.

        Raises:
            ValidationError: If any value is invalid; nothing is changed then.
            SettingsSaveError: If settings cannot be persisted.
            HassClientError: If the triggered registration fails.
        """
        async with self.state.settings() as settings:
            # Validate every field before the live settings change at all
            candidate = DeviceSettings.model_validate(
                {
                    **settings.model_dump(),
                    "server_url": server_url,
                    "access_token": access_token,
                    "update_interval": update_interval,
                    "language": language,
                    "autostart": autostart,
                }
            )
            credentials_changed = (
                settings.server_url != candidate.server_url
                or settings.access_token != candidate.access_token
            )

            if credentials_changed:
                async with self.state.client() as client:
                    client.update_config(candidate.server_url, candidate.access_token)
                    client.clear_webhook_id()
                await self.state.set_registered(False)
                settings.webhook_id = None

            settings.server_url = candidate.server_url
            settings.access_token = candidate.access_token
            settings.update_interval = candidate.update_interval
            settings.language = candidate.language
            settings.autostart = candidate.autostart
            self.state.persist(settings)

            should_register = credentials_changed and reregister and settings.is_configured

        if should_register:
            return await self.register()
        return None

    async def register(self) -> str:
        """Run the registration workflow. Returns the new webhook id."""
        return await self.workflow.run()

    async def sensor_list(self) -> list[SensorListItem]:
        async with self.state.collector() as collector:
            return collector.get_sensor_list()

    async def toggle_sensor(self, sensor_id: str, enabled: bool) -> None:
        """Enable or disable one catalog toggle.

        Raises:
            ValueError: If ``sensor_id`` is not a catalog toggle.
            SettingsSaveError: If settings cannot be persisted.
        """
        if sensor_id not in CATALOG_BY_ID:
            raise ValueError(f"Unknown sensor id: {sensor_id}")

        async with self.state.settings() as settings:
            enabled_sensors = dict(settings.enabled_sensors)
            enabled_sensors[sensor_id] = enabled
            settings.enabled_sensors = enabled_sensors
            self.state.persist(settings)
            async with self.state.collector() as collector:
                collector.set_enabled_sensors(enabled_sensors)
        log.info(SENSOR_TOGGLED, sensor_id=sensor_id, enabled=enabled)

    async def set_enabled_sensors(self, enabled_sensors: Mapping[str, bool]) -> None:
        """Replace the whole enablement map."""
        replacement = dict(enabled_sensors)
        async with self.state.settings() as settings:
            settings.enabled_sensors = replacement
            self.state.persist(settings)
            async with self.state.collector() as collector:
                collector.set_enabled_sensors(replacement)
        log.info(SENSOR_TOGGLED, sensor_count=len(replacement))

    async def update_now(self) -> int:
        """Collect dynamic sensors and push them immediately.

        Returns:
            Number of sensor values pushed.

        Raises:
            NotRegistered: If the device is not registered.
            HassClientError: If the push fails.
        """
        if not await self.state.is_registered():
            raise NotRegistered("Device not registered")

        async with self.state.collector() as collector:
            values = await asyncio.to_thread(collector.collect_dynamic)
        async with self.state.client() as client:
            await client.update_sensors(values, trace_ctx=TraceContext.new_trace("update_now"))
        return len(values)

    async def verify_registration(self) -> bool:
        """Check the stored webhook with the hub; demote the flag if it is gone."""
        if not await self.state.is_registered():
            return False
        async with self.state.client() as client:
            valid = await client.check_webhook_valid()
        if not valid:
            log.warning("webhook_rejected_at_startup")
            await self.state.set_registered(False)
        return valid

    async def public_ip(self) -> str:
        """This machine's outbound IP, for reverse proxy allowlists.

        Raises:
            Unreachable: If the lookup service cannot be reached.
        """
        try:
            async with httpx.AsyncClient(
                timeout=httpx.Timeout(PUBLIC_IP_TIMEOUT_SECONDS),
                transport=self._transport,
            ) as client:
                response = await client.get(PUBLIC_IP_URL)
                response.raise_for_status()
        except httpx.TimeoutException as e:
            raise NetworkTimeout(f"Public IP lookup timed out: {e}") from e
        except httpx.HTTPError as e:
            raise Unreachable(f"Public IP lookup failed: {e}") from e
        return response.text.strip()

    async def run(self) -> None:
        """Start the polling loop and keep it running for the process lifetime."""
        await self.verify_registration()
        await self.poller.start()
        try:
            await self.poller.wait()
        finally:
            await self.poller.stop()


def build_service(
    config: AppConfig,
    store: SettingsStore | None = None,
    source: MetricSource | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> DeviceService:
    """Wire the store, client, collector and state from configuration.

    Args:
        config: Process configuration.
        store: Settings store. Defaults to the JSON file at ``config.settings_path``.
        source: Metric source. Defaults to the one for the running platform.
        transport: Optional httpx transport for every outgoing request.
    """
    store = store or JsonSettingsStore(config.settings_path)
    settings = store.load()

    client = HassClient(
        server_url=settings.server_url,
        access_token=settings.access_token,
        webhook_id=settings.webhook_id,
        request_timeout=config.request_timeout_seconds,
        probe_timeout=config.probe_timeout_seconds,
        verify_ssl=config.verify_ssl,
        transport=transport,
    )
    collector = SensorCollector(source or get_metric_source(), settings.enabled_sensors)
    state = DeviceState(store=store, settings=settings, client=client, collector=collector)

    workflow = RegistrationWorkflow(
        state,
        app_version=config.app_version,
        settle_seconds=config.registration_settle_seconds,
    )
    poller = SensorPoller(state, warmup_seconds=config.poll_warmup_seconds)
    return DeviceService(state, workflow, poller, transport=transport)
