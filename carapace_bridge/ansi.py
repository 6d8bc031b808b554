"""ANSI terminal color utilities.

Provides constants and helpers for terminal coloring with proper
NO_COLOR environment variable support and TTY detection, plus the
style-name resolver used to color provider candidates.
"""

import os
import re
import sys
from typing import TextIO

__all__ = [
    "BOLD",
    "DIM",
    "RED",
    "RESET",
    "YELLOW",
    "LogStyles",
    "make_style",
    "resolve_style",
    "sgr_prefix",
    "should_colorize",
]

# ANSI escape sequence prefix
_ESC = "\x1b["

# Reset all attributes
RESET = f"{_ESC}0m"

# Style codes
BOLD = "1"
DIM = "2"

# Foreground color codes
RED = "31"
YELLOW = "33"

_COLOR_OFFSETS = {
    "black": 0,
    "red": 1,
    "green": 2,
    "yellow": 3,
    "blue": 4,
    "magenta": 5,
    "cyan": 6,
    "white": 7,
}

_ATTRIBUTES = {
    "bold": BOLD,
    "dim": DIM,
    "italic": "3",
    "underline": "4",
    "underlined": "4",
    "blink": "5",
    "blinking": "5",
    "reverse": "7",
    "inverse": "7",
    "strikethrough": "9",
}

_HEX_COLOR = re.compile(r"#([0-9a-fA-F]{6})")


def should_colorize(stream: TextIO | None = None) -> bool:
    """Determine if ANSI colors should be used for the given stream.

    Respects:
    - NO_COLOR environment variable (disables colors)
    - FORCE_COLOR environment variable (forces colors)
    - TTY detection (disables colors when piping)

    Args:
        stream: The output stream to check. Defaults to sys.stderr.

    Returns:
        True if colors should be used, False otherwise.
    """
    if os.environ.get("NO_COLOR"):
        return False
    if os.environ.get("FORCE_COLOR"):
        return True
    if stream is None:
        stream = sys.stderr
    return hasattr(stream, "isatty") and stream.isatty()


def make_style(*codes: str) -> tuple[str, str]:
    """Create a style prefix and suffix pair.

    Args:
        *codes: ANSI codes to apply.

    Returns:
        Tuple of (prefix, suffix) strings for use in formatters.
    """
    if not codes:
        return ("", RESET)
    return (f"{_ESC}{';'.join(codes)}m", RESET)


def sgr_prefix(code: str) -> str:
    """Return the escape sequence selecting the SGR `code`."""
    return f"{_ESC}{code}m"


def _color_code(name: str, background: bool) -> str | None:
    """Translate a single color word to its SGR code.

    Accepts "red", "bright-red", "brightred", "#rrggbb" and 0-255 palette indexes.
    """
    base = 40 if background else 30
    name = name.replace("_", "-")
    bright = False
    for prefix in ("bright-", "bright", "br-"):
        if name.startswith(prefix):
            name = name[len(prefix) :]
            bright = True
            break
    if name in _COLOR_OFFSETS:
        return str(base + (60 if bright else 0) + _COLOR_OFFSETS[name])
    if name == "default" and not bright:
        return str(base + 9)
    if bright:
        return None
    hex_match = _HEX_COLOR.fullmatch(name)
    if hex_match:
        rgb = hex_match.group(1)
        red, green, blue = (int(rgb[i : i + 2], 16) for i in (0, 2, 4))
        return f"{base + 8};2;{red};{green};{blue}"
    if name.isdigit() and int(name) < 256:  # noqa: PLR2004
        return f"{base + 8};5;{int(name)}"
    return None


def resolve_style(style: str) -> str | None:
    """Resolve a provider style name to an SGR code.

    Styles are space separated words: attributes ("bold", "underline"...),
    foreground colors ("yellow", "bright-blue", "fg-red", "#ff8800"),
    and background colors ("bg-blue" or "on blue").

    Args:
        style: The style description, e.g. "bold yellow" or "fg-cyan bg-black"

    Returns:
        The SGR code (e.g. "1;33") or None if any word is unknown
    """
    codes: list[str] = []
    background_next = False
    bright_next = False
    for word in style.lower().split():
        if word == "on":
            background_next = True
            continue
        if word in {"bright", "br"}:
            bright_next = True
            continue
        if word in _ATTRIBUTES and not (background_next or bright_next):
            codes.append(_ATTRIBUTES[word])
            continue
        background = background_next
        if word.startswith(("fg-", "bg-")):
            background = word.startswith("bg-")
            word = word[3:]  # noqa: PLW2901
        code = _color_code(f"bright-{word}" if bright_next else word, background)
        if code is None:
            return None
        codes.append(code)
        background_next = bright_next = False
    if background_next or bright_next or not codes:
        return None
    return ";".join(codes)


class LogStyles:
    """Pre-built styles for log levels."""

    WARNING = (YELLOW, DIM)
    ERROR = (RED, DIM)
    CRITICAL = (RED, BOLD)
