"""Home Assistant desktop_app client.

This module provides the HassClient class, which wraps the hub's two
endpoints: the authenticated registrations endpoint used once per pairing,
and the webhook endpoint used for sensor declaration and state pushes. The
webhook id in the path is the only credential the high-frequency calls carry.
"""

import time
from typing import Any

import httpx
from pydantic import ValidationError

from desktop_companion.config.validators import normalize_access_token, normalize_server_url
from desktop_companion.hass_client.payloads import (
    DeviceIdentity,
    RegistrationResponse,
    build_register_sensor,
    build_registration,
    build_update_sensor_states,
)
from desktop_companion.hass_client.types import (
    PING_PATH,
    REGISTRATIONS_PATH,
    WEBHOOK_PATH,
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
from desktop_companion.sensors.types import SensorValue
from desktop_companion.telemetry import (
    HUB_REQUEST_COMPLETED,
    HUB_REQUEST_FAILED,
    HUB_REQUEST_STARTED,
    WEBHOOK_EXPIRED,
    TraceContext,
    get_logger,
    mask_secret,
)

log = get_logger(__name__)

# Response bodies are truncated to this many characters in errors
MAX_ERROR_BODY = 500


class HassClient:
    """Client for a Home Assistant hub running the desktop_app integration.

    The client keeps only its configuration: server URL, access token and the
    current webhook id. It is cheap to rebuild from persisted settings.

    Attributes:
        request_timeout: Timeout in seconds for registration and webhook calls.
        probe_timeout: Timeout in seconds for the ping and liveness probes.
        verify_ssl: Whether to verify TLS certificates.
    """

    def __init__(
        self,
        server_url: str,
        access_token: str,
        webhook_id: str | None = None,
        request_timeout: float = 30.0,
        probe_timeout: float = 5.0,
        verify_ssl: bool = False,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            server_url: Hub base URL; normalized on assignment.
            access_token: Long-lived access token; trimmed on assignment.
            webhook_id: Webhook id from a previous registration, if any.
            request_timeout: Timeout for registration and webhook calls.
            probe_timeout: Timeout for reachability and liveness probes.
            verify_ssl: Verify TLS certificates. Off by default since local
                hubs commonly serve self-signed certificates.
            transport: Optional httpx transport (tests inject a MockTransport).
        """
        self._server_url = normalize_server_url(server_url)
        self._access_token = normalize_access_token(access_token)
        self._webhook_id = webhook_id or None
        self.request_timeout = request_timeout
        self.probe_timeout = probe_timeout
        self.verify_ssl = verify_ssl
        self._transport = transport

    @property
    def server_url(self) -> str:
        return self._server_url

    @property
    def access_token(self) -> str:
        return self._access_token

    @property
    def webhook_id(self) -> str | None:
        return self._webhook_id

    def update_config(self, server_url: str, access_token: str) -> None:
        """Replace URL and token together. The webhook id is left untouched."""
        self._server_url = normalize_server_url(server_url)
        self._access_token = normalize_access_token(access_token)

    def set_webhook_id(self, webhook_id: str) -> None:
        self._webhook_id = webhook_id

    def clear_webhook_id(self) -> None:
        self._webhook_id = None

    # Endpoints

    async def check_reachable(self, trace_ctx: TraceContext | None = None) -> None:
        """Probe the integration's ping path without authentication.

        Raises:
            Unreachable: On connection failure or a non-2xx, non-404 status.
            NetworkTimeout: If the probe times out.
            IntegrationNotInstalled: If the ping path returns 404.
        """
        response = await self._request(
            "GET",
            PING_PATH,
            operation="ping",
            timeout=self.probe_timeout,
            trace_ctx=trace_ctx,
        )
        if response.status_code == 404:
            raise IntegrationNotInstalled(
                "The Desktop App integration is not installed on this Home Assistant server "
                f"({PING_PATH} returned 404)"
            )
        if not response.is_success:
            raise Unreachable(f"Server responded to {PING_PATH} with HTTP {response.status_code}")

    async def register_device(
        self,
        identity: DeviceIdentity,
        trace_ctx: TraceContext | None = None,
    ) -> str:
        """Register this device and return the new webhook id.

        Raises:
            Unauthorized: If the access token is rejected (401).
            IntegrationNotInstalled: If the endpoint is missing (404).
            RegistrationRejected: If the response reports ``success: false``.
            MalformedResponse: If the response is not the expected JSON or
                lacks a webhook id.
            PushFailed: For any other non-2xx status.
            Unreachable: On connection failure.
        """
        response = await self._request(
            "POST",
            REGISTRATIONS_PATH,
            operation="register_device",
            timeout=self.request_timeout,
            json=build_registration(identity),
            headers={"Authorization": f"Bearer {self._access_token}"},
            trace_ctx=trace_ctx,
        )
        if response.status_code == 401:
            raise Unauthorized("Access token was rejected by Home Assistant (401)")
        if response.status_code == 404:
            raise IntegrationNotInstalled(
                f"{REGISTRATIONS_PATH} not found: is the Desktop App integration installed?"
            )
        if not response.is_success:
            raise PushFailed(response.status_code, response.text[:MAX_ERROR_BODY])

        try:
            result = RegistrationResponse.model_validate(response.json())
        except (ValueError, ValidationError) as e:
            raise MalformedResponse(f"Invalid registration response: {e}") from e

        if not result.success:
            raise RegistrationRejected(result.error or "Unknown error")
        if not result.webhook_id:
            raise MalformedResponse("No webhook_id in registration response")

        log.info(
            "device_registered",
            webhook_id=mask_secret(result.webhook_id),
            device_id=identity.device_id,
            trace_id=trace_ctx.trace_id if trace_ctx else None,
        )
        return result.webhook_id

    async def register_sensor(self, value: SensorValue, trace_ctx: TraceContext | None = None) -> None:
        """Declare one sensor. Safe to repeat for an already-known sensor.

        Raises:
            NotRegistered: If no webhook id is set.
            WebhookExpired: On 410.
            IntegrationRemoved: On 404.
            PushFailed: For any other non-2xx status.
        """
        await self._post_webhook(
            build_register_sensor(value),
            operation="register_sensor",
            timeout=self.request_timeout,
            trace_ctx=trace_ctx,
        )

    async def register_sensors(
        self,
        values: list[SensorValue],
        trace_ctx: TraceContext | None = None,
    ) -> None:
        """Declare sensors one by one, stopping at the first failure."""
        for value in values:
            await self.register_sensor(value, trace_ctx=trace_ctx)

    async def update_sensors(
        self,
        values: list[SensorValue],
        trace_ctx: TraceContext | None = None,
    ) -> None:
        """Push the states of many sensors in one request.

        An empty batch returns immediately without a network call.

        Raises:
            NotRegistered: If no webhook id is set.
            WebhookExpired: On 410.
            IntegrationRemoved: On 404.
            PushFailed: For any other non-2xx status.
        """
        if not values:
            return
        await self._post_webhook(
            build_update_sensor_states(values),
            operation="update_sensor_states",
            timeout=self.request_timeout,
            trace_ctx=trace_ctx,
        )

    async def check_webhook_valid(self, trace_ctx: TraceContext | None = None) -> bool:
        """Liveness probe: push an empty batch and report whether it was accepted.

        Network errors count as invalid; nothing is raised.
        """
        if self._webhook_id is None:
            return False
        try:
            response = await self._request(
                "POST",
                WEBHOOK_PATH.format(webhook_id=self._webhook_id),
                operation="check_webhook",
                timeout=self.probe_timeout,
                json=build_update_sensor_states([]),
                trace_ctx=trace_ctx,
            )
        except Unreachable:
            return False
        return response.is_success

    # Transport

    async def _post_webhook(
        self,
        payload: Any,
        operation: str,
        timeout: float,
        trace_ctx: TraceContext | None,
    ) -> None:
        if self._webhook_id is None:
            raise NotRegistered("Device is not registered: no webhook_id configured")

        response = await self._request(
            "POST",
            WEBHOOK_PATH.format(webhook_id=self._webhook_id),
            operation=operation,
            timeout=timeout,
            json=payload,
            trace_ctx=trace_ctx,
        )
        if response.status_code == 410:
            log.warning(WEBHOOK_EXPIRED, operation=operation, webhook_id=mask_secret(self._webhook_id))
            raise WebhookExpired("410 Gone: webhook expired, re-registration required")
        if response.status_code == 404:
            raise IntegrationRemoved("404 Not Found: webhook is no longer registered on the server")
        if not response.is_success:
            raise PushFailed(response.status_code, response.text[:MAX_ERROR_BODY])

    async def _request(
        self,
        method: str,
        path: str,
        operation: str,
        timeout: float,
        json: Any = None,
        headers: dict[str, str] | None = None,
        trace_ctx: TraceContext | None = None,
    ) -> httpx.Response:
        """Send one request and translate transport failures.

        Raises:
            NetworkTimeout: If the request times out.
            Unreachable: On any other transport-level failure.
        """
        url = f"{self._server_url}{path}"
        trace_id = trace_ctx.trace_id if trace_ctx else None
        start_time = time.time()
        log.debug(HUB_REQUEST_STARTED, operation=operation, method=method, trace_id=trace_id)

        try:
            async with httpx.AsyncClient(
                timeout=httpx.Timeout(timeout),
                verify=self.verify_ssl,
                transport=self._transport,
            ) as client:
                response = await client.request(
                    method,
                    url,
                    json=json,
                    headers={"Content-Type": "application/json", **(headers or {})},
                )
        except httpx.TimeoutException as e:
            log.warning(
                HUB_REQUEST_FAILED,
                operation=operation,
                error="timeout",
                timeout_s=timeout,
                trace_id=trace_id,
            )
            raise NetworkTimeout(f"Request to {self._server_url} timed out after {timeout}s") from e
        except httpx.RequestError as e:
            log.warning(
                HUB_REQUEST_FAILED,
                operation=operation,
                error=str(e),
                error_type=type(e).__name__,
                trace_id=trace_id,
            )
            raise Unreachable(f"Cannot connect to {self._server_url}: {e}") from e

        latency_ms = int((time.time() - start_time) * 1000)
        log.debug(
            HUB_REQUEST_COMPLETED,
            operation=operation,
            status_code=response.status_code,
            latency_ms=latency_ms,
            trace_id=trace_id,
        )
        return response
