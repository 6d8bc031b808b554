"""Tests for the ansi module."""

import os
from io import StringIO
from unittest.mock import patch

import pytest

from carapace_bridge.ansi import (
    BOLD,
    DIM,
    RED,
    RESET,
    YELLOW,
    LogStyles,
    make_style,
    resolve_style,
    sgr_prefix,
    should_colorize,
)


def test_make_style():
    """Test make_style returns correct prefix and suffix."""
    prefix, suffix = make_style(YELLOW, DIM)
    assert prefix == "\x1b[33;2m"
    assert suffix == RESET


def test_make_style_no_codes():
    prefix, suffix = make_style()
    assert prefix == ""
    assert suffix == RESET


def test_sgr_prefix():
    assert sgr_prefix("1;33") == "\x1b[1;33m"


def test_should_colorize_respects_no_color():
    """Test that NO_COLOR environment variable disables colors."""
    with patch.dict(os.environ, {"NO_COLOR": "1"}, clear=False):
        assert should_colorize() is False


def test_should_colorize_respects_force_color():
    """Test that FORCE_COLOR environment variable forces colors."""
    env = {k: v for k, v in os.environ.items() if k != "NO_COLOR"}
    env["FORCE_COLOR"] = "1"
    with patch.dict(os.environ, env, clear=True):
        assert should_colorize(StringIO()) is True


def test_should_colorize_non_tty():
    """Test that a non-TTY stream disables colors."""
    env = {k: v for k, v in os.environ.items() if k not in {"NO_COLOR", "FORCE_COLOR"}}
    with patch.dict(os.environ, env, clear=True):
        assert should_colorize(StringIO()) is False


def test_log_styles():
    assert LogStyles.WARNING == (YELLOW, DIM)
    assert LogStyles.ERROR == (RED, DIM)
    assert LogStyles.CRITICAL == (RED, BOLD)


@pytest.mark.parametrize(
    ("style", "expected"),
    [
        ("yellow", "33"),
        ("YELLOW", "33"),
        ("bold", "1"),
        ("bold yellow", "1;33"),
        ("underline red", "4;31"),
        ("bright-blue", "94"),
        ("brightblue", "94"),
        ("br-green", "92"),
        ("bright yellow", "93"),
        ("fg-cyan", "36"),
        ("bg-blue", "44"),
        ("white on blue", "37;44"),
        ("on bright red", "101"),
        ("default", "39"),
        ("#ff8800", "38;2;255;136;0"),
        ("bg-#000000", "48;2;0;0;0"),
        ("208", "38;5;208"),
    ],
)
def test_resolve_style(style, expected):
    """Test style names resolve to SGR codes."""
    assert resolve_style(style) == expected


@pytest.mark.parametrize("style", ["", "   ", "sparkly", "bold sparkly", "256", "#ff88", "on", "bright", "bright-default"])
def test_resolve_style_unknown(style):
    """Test unknown or incomplete styles resolve to None."""
    assert resolve_style(style) is None
