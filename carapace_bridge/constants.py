"""Shared constants for carapace-bridge."""

import os
from pathlib import Path

__all__ = [
    "BUILTIN_CD_SWITCHES",
    "CONFIG_FILE",
    "DEFAULT_EXCLUDE",
    "DEFAULT_PROVIDER",
    "DEFAULT_TIMEOUT",
    "FIRST_PASS_TIMEOUT",
    "MIN_OUTPUT_LENGTH",
    "NOSPACE_ALL_MARKERS",
    "POLL_INTERVAL",
    "PROVIDER_SUBCOMMAND",
    "SETTINGS_COMMANDS",
    "SETTINGS_SECTION",
]

_xdg_config_home = Path(os.environ.get("XDG_CONFIG_HOME") or Path.home() / ".config")
CONFIG_FILE = _xdg_config_home / "carapace-bridge" / "config.toml"

# Name of the settings table in the config file, also the settings prefix in the host shell
SETTINGS_SECTION = "carapace"

DEFAULT_PROVIDER = "carapace"
PROVIDER_SUBCOMMAND = ("export", ".")
DEFAULT_EXCLUDE = "scoop;cmd"

# Provider timeouts (seconds)
FIRST_PASS_TIMEOUT = 5.0
DEFAULT_TIMEOUT = 5.0

# Delay between two polls of the provider output (seconds)
POLL_INTERVAL = 0.01

# Anything shorter can't be a document worth decoding
MIN_OUTPUT_LENGTH = 3

NOSPACE_ALL_MARKERS = frozenset({"*", "all"})

BUILTIN_CD_SWITCHES = ("/d", "/D", "/?")

# Host commands whose "set" sub command edits our settings
SETTINGS_COMMANDS = frozenset({"clink", "clink_x64"})
