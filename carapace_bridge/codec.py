"""Encoder and decoder for the JSON-style interchange format.

The completion provider talks to us with a single JSON document. This module
implements both directions without relying on a parsing library:

encode:
    Serializes None, bool, numbers, str, list/tuple and dict trees.
    Numbers use 14 significant digits so the output does not depend on
    platform float formatting.

decode:
    Recursive descent parser driven by a one-character dispatch table.
    Errors carry the 1-based line and column of the offending character.
"""

from __future__ import annotations

import math
import re
from collections.abc import Callable
from typing import Any

from .models import CarapaceBridgeError

__all__ = [
    "CircularReference",
    "CodecError",
    "EncodeError",
    "InterchangeSyntaxError",
    "InvalidKeyType",
    "InvalidNumber",
    "TrailingGarbageError",
    "UnsupportedType",
    "decode",
    "encode",
]


class CodecError(CarapaceBridgeError):
    """Base class for interchange codec failures."""


class EncodeError(CodecError):
    """A value could not be serialized."""


class InvalidKeyType(EncodeError, TypeError):
    """An object key is not a string."""


class InvalidNumber(EncodeError, ValueError):
    """A number is NaN, infinite or out of float range."""


class CircularReference(EncodeError, ValueError):
    """A container contains itself."""


class UnsupportedType(EncodeError, TypeError):
    """The value has no interchange representation."""


class InterchangeSyntaxError(CodecError, ValueError):
    """Malformed interchange text.

    Attributes:
        line: 1-based line of the error
        column: 1-based column of the error
        message: description without the position
    """

    def __init__(self, message: str, line: int, column: int) -> None:
        super().__init__(f"{message} at line {line} col {column}")
        self.message = message
        self.line = line
        self.column = column


class TrailingGarbageError(InterchangeSyntaxError):
    """Non-whitespace text follows the top-level value."""


# Encode {{{

_ESCAPES = {
    "\\": "\\\\",
    '"': '\\"',
    "\b": "\\b",
    "\f": "\\f",
    "\n": "\\n",
    "\r": "\\r",
    "\t": "\\t",
}

_NEEDS_ESCAPE = re.compile(r'[\x00-\x1f\\"]')


def _escape_char(match: re.Match[str]) -> str:
    char = match.group(0)
    return _ESCAPES.get(char) or f"\\u{ord(char):04x}"


def _encode_string(value: str) -> str:
    return '"' + _NEEDS_ESCAPE.sub(_escape_char, value) + '"'


def _encode_number(value: float) -> str:
    try:
        number = float(value)
    except OverflowError as e:
        msg = f"unexpected number value '{value}'"
        raise InvalidNumber(msg) from e
    if math.isnan(number) or math.isinf(number):
        msg = f"unexpected number value '{value}'"
        raise InvalidNumber(msg)
    return format(number, ".14g")


def _encode(value: Any, stack: set[int]) -> str:  # noqa: ANN401
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int | float):
        return _encode_number(value)
    if isinstance(value, str):
        return _encode_string(value)
    if isinstance(value, list | tuple | dict):
        if id(value) in stack:
            msg = "circular reference"
            raise CircularReference(msg)
        stack.add(id(value))
        try:
            if isinstance(value, dict):
                members = []
                for key, item in value.items():
                    if not isinstance(key, str):
                        msg = f"invalid object key type '{type(key).__name__}'"
                        raise InvalidKeyType(msg)
                    members.append(_encode_string(key) + ":" + _encode(item, stack))
                return "{" + ",".join(members) + "}"
            return "[" + ",".join(_encode(item, stack) for item in value) + "]"
        finally:
            stack.discard(id(value))
    msg = f"unexpected type '{type(value).__name__}'"
    raise UnsupportedType(msg)


def encode(value: Any) -> str:  # noqa: ANN401
    """Serialize `value` to interchange text.

    Args:
        value: None, bool, int, float, str, list, tuple or dict (str keys) tree

    Returns:
        The compact text form

    Raises:
        InvalidKeyType: an object key is not a string
        InvalidNumber: NaN or infinite number
        CircularReference: a container contains itself
        UnsupportedType: any other Python type
    """
    return _encode(value, set())


# }}}

# Decode {{{

_SPACE_CHARS = frozenset(" \t\r\n")
_DELIM_CHARS = frozenset(" \t\r\n]},")
_LITERALS: dict[str, Any] = {"true": True, "false": False, "null": None}
_UNESCAPES = {
    '"': '"',
    "\\": "\\",
    "/": "/",
    "b": "\b",
    "f": "\f",
    "n": "\n",
    "r": "\r",
    "t": "\t",
}

_NUMBER = re.compile(r"-?(?:0|[1-9]\d*)(?:\.\d+)?(?:[eE][+-]?\d+)?")
_HEX4 = re.compile(r"[0-9a-fA-F]{4}")

_Parser = Callable[[str, int], tuple[Any, int]]


def _error(text: str, idx: int, message: str, error_class: type[InterchangeSyntaxError] = InterchangeSyntaxError) -> InterchangeSyntaxError:
    """Build a syntax error positioned at `idx` (0-based)."""
    consumed = text[:idx]
    line = consumed.count("\n") + 1
    column = idx - (consumed.rfind("\n") + 1) + 1
    return error_class(message, line, column)


def _skip_spaces(text: str, idx: int) -> int:
    length = len(text)
    while idx < length and text[idx] in _SPACE_CHARS:
        idx += 1
    return idx


def _token_end(text: str, idx: int) -> int:
    length = len(text)
    while idx < length and text[idx] not in _DELIM_CHARS:
        idx += 1
    return idx


def _parse_unicode_escape(text: str, idx: int) -> tuple[str, int]:
    """Decode the `\\uXXXX` escape whose backslash is at `idx`.

    Returns the decoded character and the index after the escape.
    A high surrogate immediately followed by a low surrogate escape
    is combined into a single code point.
    """
    hex_digits = _HEX4.match(text, idx + 2)
    if not hex_digits:
        raise _error(text, idx, "invalid unicode escape in string")
    code = int(hex_digits.group(0), 16)
    end = idx + 6
    if 0xD800 <= code <= 0xDBFF and text.startswith("\\u", end):  # noqa: PLR2004
        low_digits = _HEX4.match(text, end + 2)
        if low_digits:
            low = int(low_digits.group(0), 16)
            if 0xDC00 <= low <= 0xDFFF:  # noqa: PLR2004
                return chr((code - 0xD800) * 0x400 + (low - 0xDC00) + 0x10000), end + 6
    if 0xD800 <= code <= 0xDFFF:  # noqa: PLR2004
        raise _error(text, idx, "invalid unicode escape in string")
    return chr(code), end


def _parse_string(text: str, idx: int) -> tuple[str, int]:
    parts: list[str] = []
    length = len(text)
    j = idx + 1
    k = j
    while j < length:
        char = text[j]
        if char < " ":
            raise _error(text, j, "control character in string")
        if char == "\\":
            parts.append(text[k:j])
            escaped = text[j + 1 : j + 2]
            if escaped == "u":
                decoded, j = _parse_unicode_escape(text, j)
                parts.append(decoded)
            elif escaped in _UNESCAPES:
                parts.append(_UNESCAPES[escaped])
                j += 2
            else:
                raise _error(text, j, f"invalid escape char '{escaped}' in string")
            k = j
            continue
        if char == '"':
            parts.append(text[k:j])
            return "".join(parts), j + 1
        j += 1
    raise _error(text, idx, "expected closing quote for string")


def _parse_number(text: str, idx: int) -> tuple[float, int]:
    end = _token_end(text, idx)
    token = text[idx:end]
    if not _NUMBER.fullmatch(token):
        raise _error(text, idx, f"invalid number '{token}'")
    return float(token), end


def _parse_literal(text: str, idx: int) -> tuple[Any, int]:
    end = _token_end(text, idx)
    word = text[idx:end]
    if word not in _LITERALS:
        raise _error(text, idx, f"invalid literal '{word}'")
    return _LITERALS[word], end


def _parse_array(text: str, idx: int) -> tuple[list[Any], int]:
    result: list[Any] = []
    idx = _skip_spaces(text, idx + 1)
    if text[idx : idx + 1] == "]":
        return result, idx + 1
    while True:
        value, idx = _parse(text, idx)
        result.append(value)
        idx = _skip_spaces(text, idx)
        char = text[idx : idx + 1]
        if char == "]":
            return result, idx + 1
        if char != ",":
            raise _error(text, idx, "expected ']' or ','")
        idx = _skip_spaces(text, idx + 1)


def _parse_object(text: str, idx: int) -> tuple[dict[str, Any], int]:
    result: dict[str, Any] = {}
    idx = _skip_spaces(text, idx + 1)
    if text[idx : idx + 1] == "}":
        return result, idx + 1
    while True:
        if text[idx : idx + 1] != '"':
            raise _error(text, idx, "expected string for key")
        key, idx = _parse_string(text, idx)
        idx = _skip_spaces(text, idx)
        if text[idx : idx + 1] != ":":
            raise _error(text, idx, "expected ':' after key")
        idx = _skip_spaces(text, idx + 1)
        result[key], idx = _parse(text, idx)
        idx = _skip_spaces(text, idx)
        char = text[idx : idx + 1]
        if char == "}":
            return result, idx + 1
        if char != ",":
            raise _error(text, idx, "expected '}' or ','")
        idx = _skip_spaces(text, idx + 1)


_VALUE_PARSERS: dict[str, _Parser] = {
    '"': _parse_string,
    "-": _parse_number,
    **dict.fromkeys("0123456789", _parse_number),
    **dict.fromkeys("tfn", _parse_literal),
    "[": _parse_array,
    "{": _parse_object,
}


def _parse(text: str, idx: int) -> tuple[Any, int]:
    char = text[idx : idx + 1]
    parser = _VALUE_PARSERS.get(char)
    if parser is None:
        if not char:
            raise _error(text, idx, "unexpected end of input")
        raise _error(text, idx, f"unexpected character '{char}'")
    return parser(text, idx)


def decode(text: str) -> Any:  # noqa: ANN401
    """Parse interchange text.

    Args:
        text: The document to parse

    Returns:
        The decoded tree: dict, list, str, float, bool or None

    Raises:
        TypeError: `text` is not a str
        InterchangeSyntaxError: malformed document, or nesting deeper than the
            interpreter recursion limit allows
        TrailingGarbageError: text follows the top-level value
    """
    if not isinstance(text, str):
        msg = f"expected argument of type str, got {type(text).__name__}"
        raise TypeError(msg)
    start = _skip_spaces(text, 0)
    try:
        value, idx = _parse(text, start)
    except RecursionError:
        raise _error(text, start, "too deeply nested") from None
    idx = _skip_spaces(text, idx)
    if idx < len(text):
        raise _error(text, idx, "trailing garbage", TrailingGarbageError)
    return value


# }}}
