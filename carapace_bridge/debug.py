"""Debug switch.

On when CARAPACE_BRIDGE_DEBUG is set to anything but "" or "0", or after `--debug`.
"""

import os

__all__ = [
    "DEBUG_VARIABLE",
    "is_debug",
    "set_debug",
]

DEBUG_VARIABLE = "CARAPACE_BRIDGE_DEBUG"

_switch = {"debug": os.environ.get(DEBUG_VARIABLE, "0") not in {"", "0"}}


def is_debug() -> bool:
    return _switch["debug"]


def set_debug(value: bool) -> None:
    """Turn debug mode on or off, for loggers created afterwards."""
    _switch["debug"] = value
