"""Environment driven configuration helpers.

Every setting is read from an ``HCITOOL_*`` environment variable; malformed
values fall back to the documented default with a warning.
"""

from __future__ import annotations

import logging
import os

logger = logging.getLogger(__name__)

LOG_LEVEL_ENV = "HCITOOL_LOG_LEVEL"
CONTROLLER_ENV = "HCITOOL_CONTROLLER"
DRY_RUN_ENV = "HCITOOL_DRY_RUN"
STRICT_OPTIONS_ENV = "HCITOOL_STRICT_OPTIONS"
CONNECTION_TIMEOUT_ENV = "HCITOOL_CONNECTION_TIMEOUT"
COMMAND_TIMEOUT_ENV = "HCITOOL_COMMAND_TIMEOUT"


def get_env(name: str, default: str | None = None) -> str | None:
    """Get an environment variable, treating blank values as unset.

    Args:
        name: Environment variable name (e.g., "HCITOOL_LOG_LEVEL")
        default: Value returned when the variable is unset or blank

    Returns:
        Environment variable value, or default if not found
    """
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return default
    return value.strip()


def get_env_bool(name: str, default: bool) -> bool:
    """Get boolean environment variable.

    Args:
        name: Environment variable name
        default: Default value if not found

    Returns:
        Boolean value from environment or default
    """
    raw = get_env(name)
    if raw is None:
        return default

    lowered = raw.lower()
    if lowered in ("1", "true", "yes", "on"):
        return True
    if lowered in ("0", "false", "no", "off"):
        return False

    try:
        return bool(int(raw))
    except ValueError:
        logger.warning(
            "Invalid boolean value for %s: '%s'. Using default: %s",
            name,
            raw,
            default,
        )
        return default


def get_env_int(name: str, default: int, minimum: int = 0) -> int:
    """Get integer environment variable.

    Args:
        name: Environment variable name
        default: Default value if not found or invalid
        minimum: Smallest accepted value

    Returns:
        Integer value from environment or default
    """
    raw = get_env(name)
    if raw is None:
        return default

    try:
        value = int(raw, 0)
    except ValueError:
        logger.warning(
            "Invalid integer value for %s: '%s'. Using default: %s",
            name,
            raw,
            default,
        )
        return default
    if value < minimum:
        logger.warning(
            "Value for %s must be at least %s, got %s. Using default: %s",
            name,
            minimum,
            value,
            default,
        )
        return default
    return value


def get_log_level(default: str = "WARNING") -> int:
    """Resolve ``HCITOOL_LOG_LEVEL`` into a ``logging`` level."""
    name = (get_env(LOG_LEVEL_ENV) or default).upper()
    level = logging.getLevelName(name)
    if not isinstance(level, int):
        logger.warning("Unknown log level '%s', using %s", name, default)
        return logging.getLevelName(default.upper())
    return level
