"""Utilities."""

import ntpath

__all__ = ["command_basename", "explode", "last_segment"]


def explode(text: str, delimiters: str = " ", quote_chars: str = "") -> list[str]:
    """Split `text` on any of `delimiters`, dropping empty segments.

    Delimiters between matching quote characters don't split; the quotes are kept.

    Eg:
        explode('scoop;"a;b";;cmd', ";", '"') == ["scoop", '"a;b"', "cmd"]
    """
    parts: list[str] = []
    current: list[str] = []
    quote = ""
    for char in text:
        if quote:
            if char == quote:
                quote = ""
            current.append(char)
        elif char in quote_chars:
            quote = char
            current.append(char)
        elif char in delimiters:
            if current:
                parts.append("".join(current))
                current = []
        else:
            current.append(char)
    if current:
        parts.append("".join(current))
    return parts


def last_segment(value: str, delimiter: str) -> str:
    """Return the last segment of `value` if splitting on `delimiter` yields more than one."""
    if delimiter not in value:
        return value
    segments = explode(value, delimiter)
    return segments[-1] if len(segments) > 1 else value


def command_basename(command: str, extensions: list[str] | tuple[str, ...] = ()) -> str:
    """Return the command name without directory nor executable extension.

    Both "/" and "\\" are treated as separators, and the extension is only
    removed when it is one of `extensions` (case insensitive):
    command_basename("C:\\bin\\git.EXE", [".exe"]) -> "git"
    """
    name = ntpath.basename(command.strip("\"'"))
    stem, ext = ntpath.splitext(name)
    if stem and ext.lower() in {e.lower() for e in extensions if e}:
        return stem
    return name
