"""Semantic event constants for structured logging.

All log events should use these constants rather than magic strings to ensure
consistency and enable reliable querying and analysis.
"""

# Sensor collection events
SENSOR_POLL = "sensor_poll"
SENSOR_SOURCE_ERROR = "sensor_source_error"
SENSOR_TOGGLED = "sensor_toggled"

# Hub client events
HUB_REQUEST_STARTED = "hub_request_started"
HUB_REQUEST_COMPLETED = "hub_request_completed"
HUB_REQUEST_FAILED = "hub_request_failed"
WEBHOOK_EXPIRED = "webhook_expired"

# Registration workflow events
REGISTRATION_STARTED = "registration_started"
REGISTRATION_STAGE = "registration_stage"
REGISTRATION_COMPLETED = "registration_completed"
REGISTRATION_FAILED = "registration_failed"

# Polling loop events
POLLER_STARTED = "poller_started"
POLLER_STOPPED = "poller_stopped"
POLL_CYCLE_SKIPPED = "poll_cycle_skipped"
POLL_CYCLE_COMPLETED = "poll_cycle_completed"
POLL_CYCLE_FAILED = "poll_cycle_failed"

# Device state events
REGISTRATION_INVALIDATED = "registration_invalidated"
SETTINGS_SAVED = "settings_saved"
