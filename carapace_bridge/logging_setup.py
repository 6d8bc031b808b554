"""Loggers of the bridge.

`init_logger` builds the shared handlers once, `get_logger` attaches them to
named, non-propagating loggers. The screen handler writes to stderr so that
`complete` keeps stdout for the matches.
"""

import logging

from .ansi import LogStyles, make_style, should_colorize
from .debug import is_debug, set_debug

__all__ = [
    "LevelColorFormatter",
    "get_logger",
    "init_logger",
]

SCREEN_FORMAT = "carapace-bridge: %(message)s"
SCREEN_DEBUG_FORMAT = "[%(name)s] %(message)s (%(filename)s:%(lineno)d)"
FILE_FORMAT = "%(asctime)s %(levelname)-8s [%(name)s] %(message)s (%(filename)s:%(lineno)d)"

_LEVEL_STYLES = {
    logging.WARNING: LogStyles.WARNING,
    logging.ERROR: LogStyles.ERROR,
    logging.CRITICAL: LogStyles.CRITICAL,
}

_handlers: list[logging.Handler] = []


class LevelColorFormatter(logging.Formatter):
    """Formatter wrapping warnings and errors in their level color."""

    def __init__(self, fmt: str, colored: bool) -> None:
        super().__init__(fmt)
        self.styles = {level: make_style(*codes) for level, codes in _LEVEL_STYLES.items()} if colored else {}

    def format(self, record: logging.LogRecord) -> str:
        text = super().format(record)
        style = self.styles.get(record.levelno)
        if style is None:
            return text
        prefix, suffix = style
        return f"{prefix}{text}{suffix}"


def init_logger(filename: str | None = None, force_debug: bool = False) -> None:
    """Build the handlers used by the loggers created afterwards.

    Args:
        filename: Also write the records to this file
        force_debug: Turn debug mode on (verbose screen format and DEBUG level)
    """
    if force_debug:
        set_debug(True)
    _handlers.clear()
    if filename:
        file_handler = logging.FileHandler(filename)
        file_handler.setFormatter(logging.Formatter(FILE_FORMAT))
        _handlers.append(file_handler)
    screen_handler = logging.StreamHandler()
    screen_handler.setFormatter(LevelColorFormatter(SCREEN_DEBUG_FORMAT if is_debug() else SCREEN_FORMAT, should_colorize()))
    _handlers.append(screen_handler)


def get_logger(name: str = "carapace", level: int | None = None) -> logging.Logger:
    """Return a named logger.

    Args:
        name (str): logger's name
        level (int): logger's level, DEBUG in debug mode and WARNING otherwise when not set

    Returns:
        The logger instance
    """
    logger = logging.getLogger(name)
    if level is None:
        level = logging.DEBUG if is_debug() else logging.WARNING
    logger.setLevel(level)
    logger.propagate = False
    for handler in _handlers:
        if handler not in logger.handlers:
            logger.addHandler(handler)
    return logger
