"""Alias expansion parsing.

Only aliases forwarding their arguments with a trailing `$*` can be completed,
e.g. `gc=git commit $*` is completed as `git commit <args>`.
"""

from __future__ import annotations

from dataclasses import dataclass

__all__ = ["AliasExpansion", "parse_alias"]

ALIAS_ARGS_MARKER = "$*"
_QUOTES = "\"'"


@dataclass(frozen=True)
class AliasExpansion:
    """The command embedded in an alias and its fixed arguments."""

    command: str
    args: str = ""


def _first_token_end(text: str, start: int) -> int:
    """Return the index after the token starting at `start`.

    A token opened by a quote runs up to the matching quote, otherwise up to the next space.
    """
    if text[start] in _QUOTES:
        closing = text.find(text[start], start + 1)
        return len(text) if closing == -1 else closing + 1
    space = text.find(" ", start)
    return len(text) if space == -1 else space


def parse_alias(expansion: str) -> AliasExpansion | None:
    """Extract the command and fixed arguments of an alias.

    Args:
        expansion: The alias text, e.g. '"C:\\Program Files\\Git\\bin\\git.exe" log $*'

    Returns:
        The expansion, or None when the alias doesn't end with `$*` or names no command
    """
    body = expansion.rstrip(" ")
    if not body.endswith(ALIAS_ARGS_MARKER):
        return None
    body = body[: -len(ALIAS_ARGS_MARKER)]
    start = len(body) - len(body.lstrip(" "))
    if start >= len(body):
        return None
    end = _first_token_end(body, start)
    command = body[start:end]
    if not command.strip(_QUOTES):
        return None
    return AliasExpansion(command=command, args=body[end:].strip())
