"""Structured logging configuration using structlog.

This module configures structlog for structured logging with:
- JSON-lines file output with rotation
- Pretty-printed console output on stderr
- UTC timestamps
- Component tracking derived from the logger name
"""

import logging
import logging.handlers
import pathlib
import sys
from typing import Any

import structlog

LOG_FILE_NAME = "current.jsonl"
LOG_FILE_MAX_BYTES = 10 * 1024 * 1024
LOG_FILE_BACKUP_COUNT = 5


def _get_log_level() -> str:
    """Get log level from the environment.

    Returns:
        Log level string (DEBUG, INFO, WARNING, ERROR, CRITICAL).
    """
    # Bootstrap from environment to avoid circular imports during startup.
    from desktop_companion.config.bootstrap import get_bootstrap_log_level  # noqa: PLC0415

    return get_bootstrap_log_level()


def _get_log_dir() -> pathlib.Path:
    from desktop_companion.config.bootstrap import get_bootstrap_log_dir  # noqa: PLC0415

    return get_bootstrap_log_dir()


def _add_component_from_event_dict(
    logger: Any, method_name: str, event_dict: dict[str, Any]
) -> dict[str, Any]:
    """Add component name (last part of the dotted logger name) to a log event.

    Args:
        logger: The structlog logger instance.
        method_name: The log method name (info, error, etc.).
        event_dict: The event dictionary.

    Returns:
        Event dictionary with component added.
    """
    logger_name = event_dict.get("logger", "")
    if "." in logger_name:
        component = logger_name.split(".")[-1]
    else:
        component = logger_name or "unknown"

    event_dict["component"] = component
    return event_dict


def _foreign_pre_chain() -> list[Any]:
    return [
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        _add_component_from_event_dict,
    ]


def _configure_file_handler(log_dir: pathlib.Path) -> logging.handlers.RotatingFileHandler:
    """Configure rotating file handler for JSON logs.

    Args:
        log_dir: Directory for log files.

    Returns:
        Configured RotatingFileHandler.
    """
    log_dir.mkdir(parents=True, exist_ok=True)

    handler = logging.handlers.RotatingFileHandler(
        log_dir / LOG_FILE_NAME,
        maxBytes=LOG_FILE_MAX_BYTES,
        backupCount=LOG_FILE_BACKUP_COUNT,
        encoding="utf-8",
    )
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processor=structlog.processors.JSONRenderer(),
            foreign_pre_chain=_foreign_pre_chain(),
        )
    )
    return handler


def _configure_console_handler(log_format: str = "console") -> logging.StreamHandler[Any]:
    """Configure console handler.

    Args:
        log_format: "console" for pretty output, "json" for JSON lines.

    Returns:
        Configured StreamHandler writing to stderr.
    """
    handler = logging.StreamHandler(sys.stderr)
    renderer: Any
    if log_format == "json":
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processor=renderer,
            foreign_pre_chain=_foreign_pre_chain(),
        )
    )
    return handler


def configure_logging(
    log_level: str | None = None,
    log_dir: pathlib.Path | None = None,
    log_format: str = "console",
) -> None:
    """Configure structlog for structured logging.

    Called lazily on the first ``get_logger`` call, and again by the CLI once
    full settings are available. Calling it twice replaces the handlers.

    Args:
        log_level: Console log level. Defaults to the bootstrap level.
        log_dir: Directory for the JSON log file. Defaults to the bootstrap
            directory. File logging is skipped if the directory is not writable.
        log_format: Console format, "console" or "json".
    """
    level_name = log_level or _get_log_level()
    directory = log_dir or _get_log_dir()

    # Root logger accepts all levels; individual handlers gate output.
    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)
    root_logger.handlers.clear()

    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)

    configured_level = getattr(logging, level_name, logging.INFO)

    try:
        file_handler = _configure_file_handler(directory)
    except OSError:
        file_handler = None
    if file_handler is not None:
        # File keeps INFO+ whatever the console level
        file_handler.setLevel(logging.INFO)
        root_logger.addHandler(file_handler)

    console_handler = _configure_console_handler(log_format)
    console_handler.setLevel(configured_level)
    root_logger.addHandler(console_handler)

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            _add_component_from_event_dict,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> Any:  # Returns structlog.stdlib.BoundLogger
    """Get a structured logger instance.

    Args:
        name: Logger name (typically __name__ of the calling module).

    Returns:
        Configured structlog logger instance.

    Example:
        >>> from desktop_companion.telemetry import get_logger
        >>> log = get_logger(__name__)
        >>> log.info("sensors_pushed", count=12)
    """
    if not structlog.is_configured():
        configure_logging()

    return structlog.get_logger(name)


def mask_secret(value: str | None, visible: int = 6) -> str | None:
    """Mask a secret for logging, keeping only its first characters.

    >>> mask_secret("abcdef123456")
    'abcdef…'
    """
    if value is None:
        return None
    if len(value) <= visible:
        return "…"
    return f"{value[:visible]}…"
