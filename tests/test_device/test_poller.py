"""Tests for the polling loop."""

import asyncio

import pytest
from fakes import HubRecorder, build_device

from desktop_companion.config import DeviceSettings


@pytest.fixture
def registered_settings() -> DeviceSettings:
    return DeviceSettings(server_url="https://ha.local:8123", access_token="token-123", webhook_id="abc123")


async def _wait_for(condition, attempts: int = 200) -> None:
    for _ in range(attempts):
        if condition():
            return
        await asyncio.sleep(0.01)
    raise AssertionError("condition not met")


class TestPollOnce:
    """Test a single polling cycle."""

    @pytest.mark.asyncio
    async def test_skips_when_unregistered(self, hub: HubRecorder, configured_settings: DeviceSettings) -> None:
        """Test no push happens without registration."""
        service = build_device(hub, configured_settings)

        assert await service.poller.poll_once() is False
        assert hub.requests == []

    @pytest.mark.asyncio
    async def test_pushes_dynamic_sensors(self, hub: HubRecorder, registered_settings: DeviceSettings) -> None:
        """Test a registered cycle pushes one batch of dynamic sensors."""
        registered_settings.enabled_sensors = {"hostname": True}
        service = build_device(hub, registered_settings)

        assert await service.poller.poll_once() is True

        commands = hub.webhook_commands()
        assert len(commands) == 1
        assert commands[0]["type"] == "update_sensor_states"
        ids = [s["sensor_unique_id"] for s in commands[0]["data"]["sensors"]]
        assert "cpu_usage" in ids
        assert "hostname" not in ids

    @pytest.mark.asyncio
    async def test_gone_webhook_demotes(self, hub: HubRecorder, registered_settings: DeviceSettings) -> None:
        """Test a 410 clears the registered flag and stops later pushes."""
        hub.webhook_status = 410
        service = build_device(hub, registered_settings)

        assert await service.poller.poll_once() is False
        assert await service.state.is_registered() is False
        assert service.state.store.load().webhook_id == "abc123"

        assert await service.poller.poll_once() is False
        assert len(hub.requests) == 1

    @pytest.mark.asyncio
    async def test_pushes_resume_after_reregistration(
        self, hub: HubRecorder, registered_settings: DeviceSettings
    ) -> None:
        """Test a new registration after a 410 brings pushes back on the new webhook."""
        hub.webhook_status = 410
        service = build_device(hub, registered_settings)
        assert await service.poller.poll_once() is False

        hub.webhook_status = 200
        hub.registration_body = {"success": True, "webhook_id": "def456"}
        assert await service.register() == "def456"
        hub.requests.clear()

        assert await service.poller.poll_once() is True
        assert hub.paths() == ["/api/webhook/def456"]
        assert hub.webhook_commands()[0]["type"] == "update_sensor_states"
        assert service.state.store.load().webhook_id == "def456"

    @pytest.mark.asyncio
    async def test_other_failures_keep_registration(
        self, hub: HubRecorder, registered_settings: DeviceSettings
    ) -> None:
        """Test a transient failure is retried on the next cycle."""
        hub.webhook_status = 500
        service = build_device(hub, registered_settings)

        assert await service.poller.poll_once() is False
        assert await service.state.is_registered() is True

        hub.webhook_status = 200
        assert await service.poller.poll_once() is True


class TestPollerLifecycle:
    """Test starting and stopping the background loop."""

    @pytest.mark.asyncio
    async def test_start_and_stop(self, hub: HubRecorder, registered_settings: DeviceSettings) -> None:
        """Test the loop pushes repeatedly until stopped."""
        service = build_device(hub, registered_settings)
        poller = service.poller

        await poller.start()
        assert poller.running is True
        await _wait_for(lambda: len(hub.requests) >= 2)
        await poller.stop()

        assert poller.running is False
        assert poller._task is None
        pushed = len(hub.requests)
        await asyncio.sleep(0.05)
        assert len(hub.requests) == pushed

    @pytest.mark.asyncio
    async def test_start_twice_is_noop(self, hub: HubRecorder, registered_settings: DeviceSettings) -> None:
        """Test a second start keeps the existing task."""
        service = build_device(hub, registered_settings)
        poller = service.poller

        await poller.start()
        task = poller._task
        await poller.start()

        assert poller._task is task
        await poller.stop()

    @pytest.mark.asyncio
    async def test_loop_survives_failures(self, hub: HubRecorder, registered_settings: DeviceSettings) -> None:
        """Test failing cycles do not end the loop."""
        hub.webhook_status = 503
        service = build_device(hub, registered_settings)

        await service.poller.start()
        await _wait_for(lambda: len(hub.requests) >= 3)
        assert service.poller._task is not None
        assert not service.poller._task.done()
        await service.poller.stop()
