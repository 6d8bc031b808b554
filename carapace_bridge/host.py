"""Host shell interfaces.

The dispatcher only talks to the shell through these objects:

LineState:
    The line being edited, tokenized up to the cursor.

HostShell:
    Protocol documenting what the shell provides (aliases, settings, popups,
    style resolution, file system and search path lookups).

LocalHost:
    HostShell implementation backed by the current environment, used by the
    command line client and the tests.
"""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Protocol, runtime_checkable

import aiofiles.os

from .ansi import resolve_style
from .logging_setup import get_logger
from .models import CompletionMatch, MatchKind, Popup
from .utils import explode

if TYPE_CHECKING:
    import logging

    from .config import Configuration

__all__ = ["HostShell", "LineState", "LocalHost", "Word", "split_words"]

_QUOTES = "\"'"


@dataclass(frozen=True)
class Word:
    """A word of the command line."""

    text: str  # without quotes
    offset: int  # index of the first character in the line
    length: int  # raw length in the line, quotes included


def split_words(text: str) -> list[Word]:
    """Split a command line in words, honoring quotes.

    A trailing empty word is added when the text is empty or ends with a space,
    it stands for the word about to be typed.
    """
    words: list[Word] = []
    current: list[str] = []
    start = -1
    quote = ""
    for idx, char in enumerate(text):
        if quote:
            if char == quote:
                quote = ""
            else:
                current.append(char)
            continue
        if char == " ":
            if start >= 0:
                words.append(Word("".join(current), start, idx - start))
                current = []
                start = -1
            continue
        if start < 0:
            start = idx
        if char in _QUOTES:
            quote = char
        else:
            current.append(char)
    if start >= 0:
        words.append(Word("".join(current), start, len(text) - start))
    else:
        words.append(Word("", len(text), 0))
    return words


@dataclass
class LineState:
    """The command line up to the cursor, as seen by the completion engine.

    Attributes:
        line: the whole line
        cursor: cursor index, the text before the cursor is line[:cursor]
        words: words up to the cursor, the last one being the word under completion
    """

    line: str
    cursor: int
    words: list[Word] = field(default_factory=list)

    @classmethod
    def parse(cls, line: str, cursor: int | None = None) -> LineState:
        """Build from a raw line, with the cursor at the end by default."""
        if cursor is None:
            cursor = len(line)
        cursor = max(0, min(cursor, len(line)))
        return cls(line=line, cursor=cursor, words=split_words(line[:cursor]))

    @property
    def word_count(self) -> int:
        """Return the number of words, the word under completion included."""
        return len(self.words)

    def word(self, index: int) -> str:
        """Return the text of the word at `index` (0-based), or an empty string."""
        return self.words[index].text if 0 <= index < len(self.words) else ""

    @property
    def end_word(self) -> str:
        """Return the word under completion."""
        return self.words[-1].text if self.words else ""

    @property
    def command_offset(self) -> int:
        """Return the index of the command word in the line."""
        return self.words[0].offset if self.words else 0

    @property
    def char_before_cursor(self) -> str:
        """Return the character just before the cursor, or an empty string."""
        return self.line[self.cursor - 1] if self.cursor > 0 else ""

    @property
    def args(self) -> list[str]:
        """Return the words following the command, unquoted."""
        return [word.text for word in self.words[1:]]


@runtime_checkable
class HostShell(Protocol):
    """Services provided by the host shell.

    A host may also define `decorate_matches(matches) -> matches`, applied to
    the final match list (icons...).
    """

    settings: Configuration

    def get_alias(self, name: str) -> str | None:
        """Return the alias expansion of `name`, if it is an alias."""
        ...

    def popup(self, popup: Popup) -> None:
        """Show a popup list to the user."""
        ...

    def resolve_style(self, style: str) -> str | None:
        """Return the SGR color code for a style name, None if unknown."""
        ...

    def is_dir(self, path: str) -> bool:
        """Return True if `path` is an existing directory."""
        ...

    def path_extensions(self) -> list[str]:
        """Return the executable extensions, [""] where executables have none."""
        ...

    async def command_exists(self, *names: str) -> bool:
        """Return True if every command of `names` is found on the search path."""
        ...

    def has_argmatcher(self, command: str) -> bool:
        """Return True if the shell has its own argument completion for `command`."""
        ...

    def dir_matches(self, word: str) -> list[CompletionMatch]:
        """Return directory completions for `word`."""
        ...


class LocalHost:
    """HostShell backed by the current process environment."""

    def __init__(
        self,
        settings: Configuration,
        aliases: dict[str, str] | None = None,
        argmatchers: set[str] | frozenset[str] = frozenset(),
        log: logging.Logger | None = None,
    ) -> None:
        """Initialize.

        Args:
            settings: The settings store
            aliases: Alias table (name -> expansion)
            argmatchers: Commands having their own argument completion in the shell
            log: Logger used to display popups
        """
        self.settings = settings
        self.aliases = aliases or {}
        self.argmatchers = argmatchers
        self.log = log or get_logger("host")
        self.popups: list[Popup] = []

    def get_alias(self, name: str) -> str | None:
        return self.aliases.get(name)

    def popup(self, popup: Popup) -> None:
        self.popups.append(popup)
        for entry in popup.entries:
            self.log.warning("%s: %s", entry.display, entry.description)

    def resolve_style(self, style: str) -> str | None:
        return resolve_style(style)

    def is_dir(self, path: str) -> bool:
        return os.path.isdir(os.path.expanduser(path))

    def search_path(self) -> list[str]:
        """Return the directories of the PATH environment variable."""
        return explode(os.environ.get("PATH", ""), os.pathsep)

    def path_extensions(self) -> list[str]:
        pathext = os.environ.get("PATHEXT")
        if pathext is None:
            return [""]
        return explode(pathext, ";") or [""]

    async def _is_executable(self, candidate: str) -> bool:
        if not await aiofiles.os.path.isfile(candidate):
            return False
        return sys.platform == "win32" or await aiofiles.os.access(candidate, os.X_OK)

    async def _find(self, name: str, paths: list[str], extensions: list[str]) -> bool:
        if os.sep in name or (os.altsep and os.altsep in name):
            candidates = [name, *(name + ext for ext in extensions if ext)]
        else:
            candidates = [os.path.join(directory, name + ext) for directory in paths for ext in extensions]
        for candidate in candidates:
            if await self._is_executable(candidate):
                return True
        return False

    async def command_exists(self, *names: str) -> bool:
        paths = self.search_path()
        if not paths:
            return True
        extensions = self.path_extensions()
        for name in names:
            if name and not await self._find(name, paths, extensions):
                self.log.debug("%s not found in PATH", name)
                return False
        return True

    def has_argmatcher(self, command: str) -> bool:
        return command in self.argmatchers

    def dir_matches(self, word: str) -> list[CompletionMatch]:
        directory, prefix = os.path.split(word)
        try:
            entries = sorted(os.scandir(os.path.expanduser(directory) or "."), key=lambda entry: entry.name)
        except OSError:
            return []
        return [
            CompletionMatch(text=os.path.join(directory, entry.name) + os.sep, display=entry.name + os.sep, kind=MatchKind.DIR)
            for entry in entries
            if entry.name.startswith(prefix) and entry.is_dir()
        ]

    def decorate_matches(self, matches: list[CompletionMatch]) -> list[CompletionMatch]:
        return matches
