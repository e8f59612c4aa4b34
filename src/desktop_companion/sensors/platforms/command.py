"""Helper-command runner shared by the platform sources."""

import shutil
import subprocess

from desktop_companion.telemetry import get_logger

log = get_logger(__name__)


def run_command(args: list[str], timeout: float = 5.0) -> str | None:
    """Run a helper command and return its stdout.

    Returns:
        Captured stdout, or None when the command is missing, fails, or
        times out.
    """
    if shutil.which(args[0]) is None:
        log.debug("metric_command_not_found", command=args[0])
        return None
    try:
        result = subprocess.run(
            args,
            capture_output=True,
            text=True,
            timeout=timeout,
            check=False,
        )
    except (OSError, subprocess.TimeoutExpired) as e:
        log.debug("metric_command_failed", command=args[0], error=str(e))
        return None
    if result.returncode != 0:
        log.debug(
            "metric_command_nonzero_exit",
            command=args[0],
            returncode=result.returncode,
            stderr=result.stderr[:200],
        )
        return None
    return result.stdout
