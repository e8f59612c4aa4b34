"""Type definitions for the hub client module.

This module defines:
- HassClientError and the error taxonomy for registration and push calls
- Wire constants for the desktop_app integration
"""

# Paths relative to the normalized server URL
PING_PATH = "/api/desktop_app/ping"
REGISTRATIONS_PATH = "/api/desktop_app/registrations"
WEBHOOK_PATH = "/api/webhook/{webhook_id}"

# Webhook command types
REGISTER_SENSOR = "register_sensor"
UPDATE_SENSOR_STATES = "update_sensor_states"


# Error hierarchy


class HassClientError(Exception):
    """Base exception for all hub client errors.

    Attributes:
        context: Optional diagnosis prefix set by the caller that knows which
            step failed (e.g. "Sensor registration failed").
    """

    def __init__(self, message: str, context: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.context = context

    def with_context(self, context: str) -> "HassClientError":
        """Attach a diagnosis prefix and return self for re-raising."""
        self.context = context
        return self

    def __str__(self) -> str:
        if self.context:
            return f"{self.context}: {self.message}"
        return self.message


class ConfigIncomplete(HassClientError):
    """Raised when the server URL or access token is missing."""

    pass


class Unreachable(HassClientError):
    """Raised when the hub cannot be reached at the connection level."""

    pass


class NetworkTimeout(Unreachable):
    """Raised when a hub request times out."""

    pass


class IntegrationNotInstalled(HassClientError):
    """Raised when the hub answers but has no desktop_app integration."""

    pass


class Unauthorized(HassClientError):
    """Raised when the hub rejects the access token."""

    pass


class RegistrationRejected(HassClientError):
    """Raised when the registration response reports a logical failure."""

    def __init__(self, reason: str, context: str | None = None) -> None:
        super().__init__(f"Registration rejected: {reason}", context)
        self.reason = reason


class MalformedResponse(HassClientError):
    """Raised when a success response lacks the expected fields."""

    pass


class NotRegistered(HassClientError):
    """Raised when a webhook call is attempted without a webhook id."""

    pass


class WebhookExpired(HassClientError):
    """Raised on HTTP 410: the webhook id is no longer valid."""

    pass


class IntegrationRemoved(HassClientError):
    """Raised on HTTP 404 from the webhook: the hub no longer hosts it."""

    pass


class PushFailed(HassClientError):
    """Raised for any other non-2xx webhook response."""

    def __init__(self, status_code: int, body: str, context: str | None = None) -> None:
        super().__init__(f"HTTP {status_code}: {body}", context)
        self.status_code = status_code
        self.body = body
