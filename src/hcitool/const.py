"""Defaults and fixed values shared across the command pipeline."""

from .config import (
    COMMAND_TIMEOUT_ENV,
    CONNECTION_TIMEOUT_ENV,
    get_env_int,
)

# Marker introducing an option name on the command line.
OPTION_PREFIX = "--"

# Default LE scan duration in milliseconds.
DEFAULT_SCAN_DURATION = 1000

# Default connection-establishment deadline in milliseconds.
DEFAULT_CONNECTION_TIMEOUT = get_env_int(
    CONNECTION_TIMEOUT_ENV, 5000, minimum=1
)

# Default deadline for commands answered by a Command Complete event.
DEFAULT_COMMAND_TIMEOUT = get_env_int(COMMAND_TIMEOUT_ENV, 1000, minimum=1)

# Largest valid connection handle (12-bit field, 0x0F00+ reserved).
MAX_CONNECTION_HANDLE = 0x0EFF

# LE scan interval/window bounds in 0.625 ms units.
MIN_SCAN_INTERVAL = 0x0004
MAX_SCAN_INTERVAL = 0x4000
DEFAULT_SCAN_INTERVAL = 0x0010
DEFAULT_SCAN_WINDOW = 0x0010

MAX_ADVERTISING_DATA_LENGTH = 31
MAX_LOCAL_NAME_LENGTH = 248

# Remote User Terminated Connection
DEFAULT_DISCONNECT_REASON = 0x13
