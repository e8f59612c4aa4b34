"""Tests for HassClient against a mock transport."""

import json

import httpx
import pytest

from desktop_companion.hass_client import (
    DeviceIdentity,
    HassClient,
    HassClientError,
    IntegrationNotInstalled,
    IntegrationRemoved,
    MalformedResponse,
    NetworkTimeout,
    NotRegistered,
    PushFailed,
    RegistrationRejected,
    Unauthorized,
    Unreachable,
    WebhookExpired,
)
from desktop_companion.sensors import catalog

IDENTITY = DeviceIdentity(
    device_id="device-1",
    device_name="workstation",
    manufacturer="ASUSTeK",
    model="ROG STRIX B550-F",
    os_name="Ubuntu",
    os_version="24.04",
    app_version="0.1.0",
)

VALUES = [catalog.CPU_USAGE.value("12.3"), catalog.PROCESS_COUNT.value(321)]


def _client(handler, webhook_id: str | None = "abc123", **kwargs) -> HassClient:
    return HassClient(
        server_url="https://ha.local:8123/api/",
        access_token=" token-123 ",
        webhook_id=webhook_id,
        transport=httpx.MockTransport(handler),
        **kwargs,
    )


def _status(code: int, body: str = ""):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(code, text=body)

    return handler


class TestConfiguration:
    """Test client configuration handling."""

    def test_normalizes_url_and_token(self) -> None:
        """Test constructor normalization."""
        client = _client(_status(200))

        assert client.server_url == "https://ha.local:8123"
        assert client.access_token == "token-123"

    def test_update_config_keeps_webhook(self) -> None:
        """Test replacing URL and token leaves the webhook id alone."""
        client = _client(_status(200))
        client.update_config("http://other:8123/", "new")

        assert client.server_url == "http://other:8123"
        assert client.access_token == "new"
        assert client.webhook_id == "abc123"

        client.clear_webhook_id()
        assert client.webhook_id is None


class TestCheckReachable:
    """Test the ping probe."""

    @pytest.mark.asyncio
    async def test_reachable(self) -> None:
        """Test a 200 ping passes and hits the ping path without auth."""
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={})

        await _client(handler).check_reachable()

        assert str(seen[0].url) == "https://ha.local:8123/api/desktop_app/ping"
        assert "authorization" not in seen[0].headers

    @pytest.mark.asyncio
    async def test_404_means_integration_missing(self) -> None:
        """Test a missing ping path raises IntegrationNotInstalled."""
        with pytest.raises(IntegrationNotInstalled):
            await _client(_status(404)).check_reachable()

    @pytest.mark.asyncio
    async def test_server_error_is_unreachable(self) -> None:
        """Test other failures raise Unreachable."""
        with pytest.raises(Unreachable):
            await _client(_status(502)).check_reachable()

    @pytest.mark.asyncio
    async def test_connection_error(self) -> None:
        """Test a transport error raises Unreachable."""

        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(Unreachable, match="Cannot connect"):
            await _client(handler).check_reachable()

    @pytest.mark.asyncio
    async def test_timeout(self) -> None:
        """Test a timeout raises NetworkTimeout, which is also Unreachable."""

        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        with pytest.raises(NetworkTimeout) as exc_info:
            await _client(handler).check_reachable()
        assert isinstance(exc_info.value, Unreachable)


class TestRegisterDevice:
    """Test device registration."""

    @pytest.mark.asyncio
    async def test_success(self) -> None:
        """Test a successful registration returns the webhook id."""
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"success": True, "webhook_id": "abc123"})

        webhook_id = await _client(handler, webhook_id=None).register_device(IDENTITY)

        assert webhook_id == "abc123"
        request = seen[0]
        assert request.method == "POST"
        assert request.url.path == "/api/desktop_app/registrations"
        assert request.headers["authorization"] == "Bearer token-123"
        assert request.headers["content-type"] == "application/json"
        body = json.loads(request.content)
        assert body["device_id"] == "device-1"
        assert body["manufacturer"] == "ASUSTeK"

    @pytest.mark.parametrize(
        ("status", "error"),
        [(401, Unauthorized), (404, IntegrationNotInstalled), (500, PushFailed)],
    )
    @pytest.mark.asyncio
    async def test_status_errors(self, status: int, error: type[HassClientError]) -> None:
        """Test HTTP failures map to typed errors."""
        with pytest.raises(error):
            await _client(_status(status, "nope")).register_device(IDENTITY)

    @pytest.mark.asyncio
    async def test_rejected(self) -> None:
        """Test success false carries the hub's reason."""

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"success": False, "error": "Device limit reached"})

        with pytest.raises(RegistrationRejected) as exc_info:
            await _client(handler).register_device(IDENTITY)

        assert exc_info.value.reason == "Device limit reached"
        assert str(exc_info.value) == "Registration rejected: Device limit reached"

    @pytest.mark.asyncio
    async def test_rejected_without_reason(self) -> None:
        """Test a missing reason falls back to a generic one."""

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"success": False})

        with pytest.raises(RegistrationRejected, match="Unknown error"):
            await _client(handler).register_device(IDENTITY)

    @pytest.mark.asyncio
    async def test_missing_webhook_id(self) -> None:
        """Test success without a webhook id is malformed."""

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"success": True})

        with pytest.raises(MalformedResponse, match="No webhook_id"):
            await _client(handler).register_device(IDENTITY)

    @pytest.mark.asyncio
    async def test_non_json_body(self) -> None:
        """Test an HTML page instead of JSON is malformed."""
        with pytest.raises(MalformedResponse):
            await _client(_status(200, "<html>proxy login</html>")).register_device(IDENTITY)


class TestWebhookCalls:
    """Test sensor declaration and state pushes."""

    @pytest.mark.asyncio
    async def test_update_sensors_single_request(self) -> None:
        """Test a batch is pushed in one request to the webhook path."""
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={})

        await _client(handler).update_sensors(VALUES)

        assert len(seen) == 1
        assert seen[0].url.path == "/api/webhook/abc123"
        assert "authorization" not in seen[0].headers
        body = json.loads(seen[0].content)
        assert body["type"] == "update_sensor_states"
        assert [s["sensor_unique_id"] for s in body["data"]["sensors"]] == ["cpu_usage", "process_count"]

    @pytest.mark.asyncio
    async def test_empty_update_sends_nothing(self) -> None:
        """Test an empty batch makes no request."""
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200)

        await _client(handler).update_sensors([])

        assert seen == []

    @pytest.mark.asyncio
    async def test_register_sensors_one_request_each(self) -> None:
        """Test declarations are sent one per sensor, in order."""
        seen: list[str] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(json.loads(request.content)["data"]["sensor_unique_id"])
            return httpx.Response(200, json={})

        await _client(handler).register_sensors(VALUES)

        assert seen == ["cpu_usage", "process_count"]

    @pytest.mark.asyncio
    async def test_register_sensors_stops_at_first_failure(self) -> None:
        """Test a failed declaration stops the remaining ones."""
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(500, text="boom")

        with pytest.raises(PushFailed):
            await _client(handler).register_sensors(VALUES)

        assert len(seen) == 1

    @pytest.mark.asyncio
    async def test_not_registered(self) -> None:
        """Test webhook calls without a webhook id fail before any request."""
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200)

        with pytest.raises(NotRegistered):
            await _client(handler, webhook_id=None).update_sensors(VALUES)
        assert seen == []

    @pytest.mark.parametrize(
        ("status", "error"),
        [(410, WebhookExpired), (404, IntegrationRemoved), (503, PushFailed)],
    )
    @pytest.mark.asyncio
    async def test_status_errors(self, status: int, error: type[HassClientError]) -> None:
        """Test webhook failures map to typed errors."""
        with pytest.raises(error):
            await _client(_status(status, "unavailable")).update_sensors(VALUES)

    @pytest.mark.asyncio
    async def test_push_failed_truncates_body(self) -> None:
        """Test the error keeps the status and a bounded body."""
        with pytest.raises(PushFailed) as exc_info:
            await _client(_status(500, "x" * 2000)).update_sensors(VALUES)

        assert exc_info.value.status_code == 500
        assert len(exc_info.value.body) == 500
        assert str(exc_info.value).startswith("HTTP 500: xxx")


class TestCheckWebhookValid:
    """Test the webhook liveness probe."""

    @pytest.mark.asyncio
    async def test_valid(self) -> None:
        """Test a 2xx answer to an empty batch means valid."""
        bodies: list[dict] = []

        def handler(request: httpx.Request) -> httpx.Response:
            bodies.append(json.loads(request.content))
            return httpx.Response(200, json={})

        assert await _client(handler).check_webhook_valid() is True
        assert bodies == [{"type": "update_sensor_states", "data": {"sensors": []}}]

    @pytest.mark.asyncio
    async def test_gone(self) -> None:
        """Test a 410 means invalid."""
        assert await _client(_status(410)).check_webhook_valid() is False

    @pytest.mark.asyncio
    async def test_no_webhook(self) -> None:
        """Test no webhook id means invalid without a request."""
        assert await _client(_status(200), webhook_id=None).check_webhook_valid() is False

    @pytest.mark.asyncio
    async def test_network_error_is_invalid(self) -> None:
        """Test connection failures report invalid rather than raising."""

        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("down", request=request)

        assert await _client(handler).check_webhook_valid() is False


class TestErrorContext:
    """Test diagnosis prefixes on errors."""

    def test_with_context_prefixes_message(self) -> None:
        """Test the context is rendered before the message."""
        error = Unauthorized("Access token was rejected").with_context("Registration failed")

        assert str(error) == "Registration failed: Access token was rejected"
        assert error.message == "Access token was rejected"
