"""Custom Pydantic validators and normalizers for configuration.

The URL and token normalizers are applied on every configuration write so the
stored values never carry whitespace, a trailing separator, or a duplicated
``/api`` segment.
"""

from collections.abc import Collection
from pathlib import Path

API_PATH_SEGMENT = "/api"
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
LOG_FORMATS = ("json", "console")


def _one_of(field: str, value: str, choices: Collection[str]) -> str:
    if value not in choices:
        raise ValueError(f"{field} must be one of {', '.join(choices)}, got {value!r}")
    return value


def validate_log_level(value: str) -> str:
    """Uppercase ``value`` and check it names a standard logging level."""
    return _one_of("log_level", value.strip().upper(), LOG_LEVELS)


def validate_log_format(value: str) -> str:
    return _one_of("log_format", value.strip().lower(), LOG_FORMATS)


def resolve_path(value: Path | str) -> Path:
    """Expand ``~`` and resolve a path to an absolute one.

    Relative paths resolve against the current working directory, which is
    where the agent is launched from (or its service working directory).
    """
    path = Path(value) if isinstance(value, str) else value
    return path.expanduser().resolve()


def normalize_server_url(value: str) -> str:
    """Normalize a hub base URL.

    Trims whitespace, strips one trailing ``/``, then strips a trailing
    ``/api`` segment together with any separator it leaves behind.

    Args:
        value: URL as typed by the user.

    Returns:
        Normalized base URL, e.g. ``https://ha.local`` for both
        ``https://ha.local/api/`` and ``https://ha.local``.

    Example:
        >>> normalize_server_url("  https://ha.local/api/ ")
        'https://ha.local'
    """
    url = value.strip()
    if url.endswith("/"):
        url = url[:-1]
    if url.endswith(API_PATH_SEGMENT):
        url = url[: -len(API_PATH_SEGMENT)].rstrip("/")
    return url


def normalize_access_token(value: str) -> str:
    """Strip surrounding whitespace from a long-lived access token."""
    return value.strip()
