"""Static checks of the settings table, used by `carapace-bridge validate`.

A schema is a ConfigItems list of ConfigField; the same schema provides the
defaults of Configuration.
"""

import difflib
import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from .config import BOOL_STRINGS

__all__ = [
    "ConfigField",
    "ConfigItems",
    "ConfigValidator",
    "format_config_error",
]


@dataclass
class ConfigField:
    """An expected setting.

    Attributes:
        name: key in the settings table
        field_type: expected type, or a tuple of accepted types
        default: value used when the key is missing
        description: shown by the documentation and error messages
        validator: extra check returning error messages
    """

    name: str
    field_type: type | tuple[type, ...] = str
    default: Any = None
    description: str = ""
    validator: Callable[[Any], list[str]] | None = None

    @property
    def types(self) -> tuple[type, ...]:
        return self.field_type if isinstance(self.field_type, tuple) else (self.field_type,)

    @property
    def type_name(self) -> str:
        """Return the readable type, e.g. 'int or float'."""
        return " or ".join(typ.__name__ for typ in self.types)


class ConfigItems(list):
    """The fields of a settings table."""

    def __init__(self, *fields: ConfigField) -> None:
        super().__init__(fields)


def format_config_error(section: str, field: str, message: str, suggestion: str = "") -> str:
    """Format a configuration error message.

    Eg: "[carapace] Config error for 'timeout': must be greater than 0"
    """
    msg = f"[{section}] Config error for '{field}': {message}"
    if suggestion:
        msg += f" -> {suggestion}"
    return msg


def _accepts(typ: type, value: Any) -> bool:  # noqa: ANN401
    """Tell if `value` is usable as `typ`, strings included when they convert."""
    if typ is bool:
        return isinstance(value, bool) or (isinstance(value, str) and value.lower() in BOOL_STRINGS)
    if typ in {int, float}:
        if isinstance(value, bool):
            return False
        try:
            typ(value)
        except (ValueError, TypeError):
            return False
        return True
    return isinstance(value, typ)


_SUGGESTIONS = {
    bool: "Use true/false (without quotes)",
    int: "Use {name} = 42 (without quotes)",
    float: "Use {name} = 4.2 (without quotes)",
    str: 'Use {name} = "value"',
}


class ConfigValidator:
    """Checks a settings table against a schema."""

    def __init__(self, config: dict, section: str, logger: logging.Logger) -> None:
        self.config = config
        self.section = section
        self.log = logger

    def validate(self, schema: ConfigItems) -> list[str]:
        """Return the error messages, empty when the settings are valid."""
        errors = []
        for field_def in schema:
            value = self.config.get(field_def.name)
            if value is None:
                continue
            if not any(_accepts(typ, value) for typ in field_def.types):
                suggestion = _SUGGESTIONS.get(field_def.types[-1], "").format(name=field_def.name)
                errors.append(
                    format_config_error(self.section, field_def.name, f"Expected {field_def.type_name}, got {type(value).__name__}", suggestion)
                )
                continue
            if field_def.validator:
                errors.extend(format_config_error(self.section, field_def.name, error) for error in field_def.validator(value))
        return errors

    def warn_unknown_keys(self, schema: ConfigItems) -> list[str]:
        """Log and return a warning for every key the schema doesn't know."""
        known_keys = [f.name for f in schema]
        warnings = []
        for key in self.config:
            if key in known_keys:
                continue
            similar = difflib.get_close_matches(key, known_keys, n=1)
            if similar:
                msg = f"[{self.section}] Unknown option '{key}' (did you mean '{similar[0]}'?)"
            else:
                msg = f"[{self.section}] Unknown option '{key}' - will be ignored"
            self.log.warning(msg)
            warnings.append(msg)
        return warnings
