"""Logging settings readable before AppConfig exists.

Loading AppConfig emits log events, so the logger needs its level and
directory first. Only the environment is consulted here, and this module must
not import telemetry.
"""

import os
from collections.abc import Iterable
from pathlib import Path

from desktop_companion.config.validators import resolve_path, validate_log_level

# Checked in order; the first one set wins
LOG_LEVEL_VARS = ("COMPANION_LOG_LEVEL", "APP_LOG_LEVEL")
LOG_DIR_VAR = "COMPANION_LOG_DIR"
DEFAULT_LOG_DIR = "~/.local/state/desktop_companion/logs"


def _first_set(names: Iterable[str]) -> str | None:
    for name in names:
        value = os.getenv(name)
        if value:
            return value
    return None


def get_bootstrap_log_level(default: str = "INFO") -> str:
    """Console log level from the environment.

    Unset or invalid values fall back to ``default``.
    """
    value = _first_set(LOG_LEVEL_VARS)
    if value is not None:
        try:
            return validate_log_level(value)
        except ValueError:
            pass
    return validate_log_level(default)


def get_bootstrap_log_dir(default: str = DEFAULT_LOG_DIR) -> Path:
    return resolve_path(os.getenv(LOG_DIR_VAR) or default)
