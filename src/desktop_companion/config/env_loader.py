"""Environment variable file loader with priority-based loading."""

from enum import Enum
from pathlib import Path

from dotenv import load_dotenv

from desktop_companion.telemetry import get_logger

log = get_logger(__name__)


class Environment(str, Enum):
    """Application environment types."""

    DEVELOPMENT = "development"
    PRODUCTION = "production"
    TEST = "test"


def get_environment() -> Environment:
    """Detect current environment from the APP_ENV environment variable.

    Returns:
        Environment enum value. "production"/"prod" map to PRODUCTION,
        "test" to TEST, anything else to DEVELOPMENT.

    Note: reads os.environ directly because environment detection happens
    before settings are loaded.
    """
    import os  # noqa: PLC0415

    app_env = os.getenv("APP_ENV", "").lower()

    if app_env in ("production", "prod"):
        return Environment.PRODUCTION
    elif app_env == "test":
        return Environment.TEST
    else:
        return Environment.DEVELOPMENT


def load_env_files(project_root: Path | None = None) -> list[str]:
    """Load .env files in priority order.

    Priority order (highest to lowest):
    1. `.env.{environment}.local`
    2. `.env.{environment}`
    3. `.env.local`
    4. `.env`

    Args:
        project_root: Directory holding the .env files. Defaults to the
            current working directory.

    Returns:
        Names of the files that were loaded.
    """
    if project_root is None:
        project_root = Path.cwd()

    env_name = get_environment().value

    env_files = [
        project_root / ".env",
        project_root / ".env.local",
        project_root / f".env.{env_name}",
        project_root / f".env.{env_name}.local",
    ]

    loaded_files = []
    # Reversed so the highest-priority file is applied first; override=False
    # then keeps the first value seen, and real environment variables win.
    for env_file in reversed(env_files):
        if env_file.exists():
            load_dotenv(env_file, override=False)
            loaded_files.append(env_file.name)

    if loaded_files:
        log.info(
            "env_files_loaded",
            environment=env_name,
            files=loaded_files,
            project_root=str(project_root),
        )
    else:
        log.debug("no_env_files_found", environment=env_name, project_root=str(project_root))

    return loaded_files
