"""Settings store and config file loading.

The config file is TOML::

    [carapace]
    enable = true
    exclude = "scoop;cmd"

    [aliases]
    gc = "git commit $*"
"""

from __future__ import annotations

import os
import tomllib
from pathlib import Path
from typing import TYPE_CHECKING, Any

from .constants import CONFIG_FILE, SETTINGS_SECTION
from .models import CarapaceBridgeError

if TYPE_CHECKING:
    import logging

    from .validation import ConfigItems

__all__ = [
    "BOOL_FALSE_STRINGS",
    "BOOL_STRINGS",
    "BOOL_TRUE_STRINGS",
    "ConfigError",
    "Configuration",
    "LoadedConfig",
    "coerce_to_bool",
    "load_config",
]

# Strings accepted for booleans, shared with the validator
BOOL_TRUE_STRINGS = frozenset({"true", "yes", "on", "1", "enabled"})
BOOL_FALSE_STRINGS = frozenset({"false", "no", "off", "0", "disabled"})
BOOL_STRINGS = BOOL_TRUE_STRINGS | BOOL_FALSE_STRINGS


class ConfigError(CarapaceBridgeError):
    """The configuration file can't be used."""


def coerce_to_bool(value: Any, default: bool = False) -> bool:  # noqa: ANN401
    """Read a loosely typed boolean setting.

    None gives `default`, blank strings and the BOOL_FALSE_STRINGS words
    (any case) are False, other strings are True, anything else goes through bool().
    """
    if value is None:
        return default
    if isinstance(value, str):
        word = value.strip().lower()
        return bool(word) and word not in BOOL_FALSE_STRINGS
    return bool(value)


class Configuration(dict):
    """The settings table, with schema defaults and typed getters.

    Getters never raise: a missing key falls back to the schema default,
    then to the `default` argument; a value of the wrong type is logged and
    replaced by `default`.
    """

    def __init__(self, *args: Any, logger: logging.Logger, schema: ConfigItems | None = None, **kwargs: Any) -> None:  # noqa: ANN401
        super().__init__(*args, **kwargs)
        self.log = logger
        self.defaults: dict[str, Any] = {}
        if schema:
            self.defaults = {field.name: field.default for field in schema if field.default is not None}

    def get(self, name: str, default: Any = None) -> Any:  # noqa: ANN401
        if name in self:
            return self[name]
        return self.defaults.get(name, default)

    def get_bool(self, name: str, default: bool = False) -> bool:
        return coerce_to_bool(self.get(name), default)

    def get_float(self, name: str, default: float = 0.0) -> float:
        value = self.get(name)
        if value is None:
            return default
        try:
            return float(value)
        except (ValueError, TypeError):
            self.log.warning("Invalid number for %s: %r", name, value)
            return default

    def get_str(self, name: str, default: str = "") -> str:
        value = self.get(name)
        return default if value is None else str(value)


class LoadedConfig(dict):
    """Content of a config file: the settings table and the alias table."""

    @property
    def settings(self) -> dict[str, Any]:
        """Return the settings table."""
        return self.get(SETTINGS_SECTION, {})

    @property
    def aliases(self) -> dict[str, str]:
        """Return the alias table (name -> expansion)."""
        return {name: value for name, value in self.get("aliases", {}).items() if isinstance(value, str)}


def load_config(config_filename: str = "") -> LoadedConfig:
    """Load the TOML configuration file.

    Args:
        config_filename: Optional path, the default location is used when empty.
                         A missing default file yields an empty configuration.

    Raises:
        ConfigError: the file is missing (explicit path only) or is not valid TOML
    """
    if config_filename:
        fname = Path(os.path.expandvars(config_filename)).expanduser()
        if not fname.exists():
            msg = f"Config file not found: {fname}"
            raise ConfigError(msg)
    else:
        fname = CONFIG_FILE
        if not fname.exists():
            return LoadedConfig()
    try:
        with fname.open("rb") as f:
            return LoadedConfig(tomllib.load(f))
    except tomllib.TOMLDecodeError as e:
        msg = f"Invalid TOML syntax in {fname}: {e}"
        raise ConfigError(msg) from e
