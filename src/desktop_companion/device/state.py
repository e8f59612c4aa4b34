"""Shared device state.

``DeviceState`` is the single owner of the persisted settings, the hub
client, the sensor collector and the registered flag. Each field has its own
lock so, for example, toggling a sensor never waits on an in-flight push.

Lock order, whenever more than one is held: settings, client, collector,
registered.
"""

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from desktop_companion.config.store import DeviceSettings, SettingsStore
from desktop_companion.hass_client import HassClient
from desktop_companion.sensors import SensorCollector
from desktop_companion.telemetry import REGISTRATION_INVALIDATED, SETTINGS_SAVED, get_logger

log = get_logger(__name__)


class DeviceState:
    """Field-granular synchronized container for device state.

    The registered flag is the source of truth for "may we push"; a stored
    webhook id without the flag means not registered.

    Args:
        store: Where settings are persisted.
        settings: Settings loaded from ``store``.
        client: Hub client built from ``settings``.
        collector: Sensor collector built from ``settings``.
        registered: Initial flag. Defaults to whether a webhook id is stored.
    """

    def __init__(
        self,
        store: SettingsStore,
        settings: DeviceSettings,
        client: HassClient,
        collector: SensorCollector,
        registered: bool | None = None,
    ) -> None:
        self.store = store
        self._settings = settings
        self._client = client
        self._collector = collector
        self._registered = settings.webhook_id is not None if registered is None else registered

        self._settings_lock = asyncio.Lock()
        self._client_lock = asyncio.Lock()
        self._collector_lock = asyncio.Lock()
        self._registered_lock = asyncio.Lock()

    @asynccontextmanager
    async def settings(self) -> AsyncIterator[DeviceSettings]:
        """Exclusive access to the live settings object."""
        async with self._settings_lock:
            yield self._settings

    @asynccontextmanager
    async def client(self) -> AsyncIterator[HassClient]:
        async with self._client_lock:
            yield self._client

    @asynccontextmanager
    async def collector(self) -> AsyncIterator[SensorCollector]:
        async with self._collector_lock:
            yield self._collector

    async def is_registered(self) -> bool:
        async with self._registered_lock:
            return self._registered

    async def set_registered(self, registered: bool) -> None:
        async with self._registered_lock:
            if self._registered and not registered:
                log.info(REGISTRATION_INVALIDATED)
            self._registered = registered

    async def update_interval(self) -> int:
        async with self._settings_lock:
            return self._settings.update_interval

    def persist(self, settings: DeviceSettings) -> None:
        """Save settings. Call with the settings lock held.

        Raises:
            SettingsSaveError: If the store cannot write.
        """
        self.store.save(settings)
        log.debug(SETTINGS_SAVED)
