"""Settings schema."""

from .constants import DEFAULT_EXCLUDE, DEFAULT_PROVIDER, DEFAULT_TIMEOUT
from .validation import ConfigField, ConfigItems

__all__ = ["SETTINGS_SCHEMA"]


def _positive(value: float) -> list[str]:
    return [] if float(value) > 0 else ["must be greater than 0"]


SETTINGS_SCHEMA = ConfigItems(
    ConfigField("enable", bool, default=False, description="Enable carapace argument auto-completion"),
    ConfigField("exclude", str, default=DEFAULT_EXCLUDE, description="Exclude commands from carapace completion (';' separated)"),
    ConfigField(
        "timeout",
        (int, float),
        default=DEFAULT_TIMEOUT,
        description="Seconds without output before the provider is terminated (retry pass)",
        validator=_positive,
    ),
    ConfigField("provider", str, default=DEFAULT_PROVIDER, description="Completion provider executable"),
    ConfigField("kill_by_name", bool, default=True, description="Also kill stray provider processes by executable name on timeout"),
)
