"""Tests for the interchange codec."""

import math
import sys

import pytest

from carapace_bridge.codec import (
    CircularReference,
    InterchangeSyntaxError,
    InvalidKeyType,
    InvalidNumber,
    TrailingGarbageError,
    UnsupportedType,
    decode,
    encode,
)


class TestEncode:
    """Tests for encode()."""

    def test_scalars(self):
        assert encode(None) == "null"
        assert encode(True) == "true"
        assert encode(False) == "false"
        assert encode("abc") == '"abc"'
        assert encode(42) == "42"
        assert encode(-1.5) == "-1.5"

    def test_fourteen_significant_digits(self):
        assert encode(1 / 3) == "0.33333333333333"
        assert encode(1e15) == "1e+15"
        assert encode(123456789012345678) == "1.2345678901235e+17"

    def test_string_escapes(self):
        assert encode('a"b\\c') == '"a\\"b\\\\c"'
        assert encode("\n\t\r\b\f") == '"\\n\\t\\r\\b\\f"'
        assert encode("\x01") == '"\\u0001"'
        assert encode("a/b") == '"a/b"'

    def test_containers(self):
        assert encode([]) == "[]"
        assert encode({}) == "{}"
        assert encode([1, "a", None]) == '[1,"a",null]'
        assert encode((True, False)) == "[true,false]"
        assert encode({"a": [1, {"b": None}]}) == '{"a":[1,{"b":null}]}'

    def test_invalid_key_type(self):
        with pytest.raises(InvalidKeyType):
            encode({1: "a"})

    @pytest.mark.parametrize("value", [math.nan, math.inf, -math.inf, 10**400])
    def test_invalid_number(self, value):
        with pytest.raises(InvalidNumber):
            encode(value)

    def test_circular_reference(self):
        table: dict = {"a": 1}
        table["self"] = table
        with pytest.raises(CircularReference):
            encode(table)

        items: list = [1]
        items.append([items])
        with pytest.raises(CircularReference):
            encode(items)

    def test_shared_reference_is_not_circular(self):
        shared = [1, 2]
        assert encode({"a": shared, "b": shared}) == '{"a":[1,2],"b":[1,2]}'

    def test_unsupported_type(self):
        with pytest.raises(UnsupportedType):
            encode({1, 2})


class TestDecode:
    """Tests for decode()."""

    def test_scalars(self):
        assert decode("null") is None
        assert decode("true") is True
        assert decode(" false ") is False
        assert decode("12") == 12.0
        assert isinstance(decode("12"), float)
        assert decode("-0.5e2") == -50.0
        assert decode('"hi"') == "hi"

    def test_containers(self):
        text = ' {\n\t"values" : [ {"value": "--help", "tag": "flags"} ],\r\n "nospace": "/" } '
        assert decode(text) == {"values": [{"value": "--help", "tag": "flags"}], "nospace": "/"}
        assert decode("[]") == []
        assert decode("{}") == {}
        assert decode("[[], {}]") == [[], {}]

    def test_escapes(self):
        assert decode(r'"a\"b\\c\/d\b\f\n\r\t"') == 'a"b\\c/d\b\f\n\r\t'
        assert decode(r'"\u00e9"') == "\u00e9"

    def test_surrogate_pair(self):
        result = decode(r'"\ud83d\ude00"')
        assert result == "\U0001f600"
        assert len(result) == 1
        assert result.encode("utf-8") == b"\xf0\x9f\x98\x80"

    def test_lone_surrogate_rejected(self):
        with pytest.raises(InterchangeSyntaxError, match="invalid unicode escape"):
            decode(r'"\ud83d"')
        with pytest.raises(InterchangeSyntaxError, match="invalid unicode escape"):
            decode(r'"\ude00"')

    def test_invalid_unicode_escape(self):
        with pytest.raises(InterchangeSyntaxError, match="invalid unicode escape"):
            decode(r'"\u12g4"')

    def test_invalid_escape(self):
        with pytest.raises(InterchangeSyntaxError, match="invalid escape char 'x'"):
            decode(r'"\x"')

    def test_control_character_rejected(self):
        with pytest.raises(InterchangeSyntaxError, match="control character in string"):
            decode('"a\tb"')
        with pytest.raises(InterchangeSyntaxError, match="control character"):
            decode('"line\nbreak"')

    def test_unterminated_string(self):
        with pytest.raises(InterchangeSyntaxError, match="expected closing quote"):
            decode('"abc')

    @pytest.mark.parametrize("text", ["01", "1.", "-", "1e", "0x10", "1_000", "-inf"])
    def test_invalid_numbers(self, text):
        with pytest.raises(InterchangeSyntaxError, match="invalid number"):
            decode(text)

    @pytest.mark.parametrize("text", ["tru", "nul", "falsey", "nan"])
    def test_invalid_literals(self, text):
        with pytest.raises(InterchangeSyntaxError, match="invalid literal"):
            decode(text)

    def test_structure_errors(self):
        with pytest.raises(InterchangeSyntaxError, match="expected ']' or ','"):
            decode("[1 2]")
        with pytest.raises(InterchangeSyntaxError, match="expected string for key"):
            decode("{a: 1}")
        with pytest.raises(InterchangeSyntaxError, match="expected ':' after key"):
            decode('{"a" 1}')
        with pytest.raises(InterchangeSyntaxError, match="expected '}' or ','"):
            decode('{"a": 1 "b": 2}')
        with pytest.raises(InterchangeSyntaxError, match="unexpected character"):
            decode("[1, ]")
        with pytest.raises(InterchangeSyntaxError, match="unexpected end of input"):
            decode("")
        with pytest.raises(InterchangeSyntaxError, match="unexpected end of input"):
            decode("[1,")

    def test_error_position(self):
        text = '{\n  "values": [\n    {"value": tru}\n  ]\n}'
        with pytest.raises(InterchangeSyntaxError) as info:
            decode(text)
        assert info.value.line == 3
        assert info.value.column == 15
        assert info.value.message == "invalid literal 'tru'"
        assert str(info.value) == "invalid literal 'tru' at line 3 col 15"

    def test_error_position_first_line(self):
        with pytest.raises(InterchangeSyntaxError) as info:
            decode("@")
        assert (info.value.line, info.value.column) == (1, 1)

    def test_trailing_garbage(self):
        with pytest.raises(TrailingGarbageError) as info:
            decode('{"a": 1}\n x')
        assert (info.value.line, info.value.column) == (2, 2)
        assert isinstance(info.value, InterchangeSyntaxError)

    def test_deep_nesting(self):
        depth = sys.getrecursionlimit() + 10
        with pytest.raises(InterchangeSyntaxError, match="too deeply nested") as info:
            decode("  " + "[" * depth + "]" * depth)
        assert (info.value.line, info.value.column) == (1, 3)
        assert decode("[" * 50 + "]" * 50)[0][0] == []

    def test_trailing_whitespace_allowed(self):
        assert decode("[1]\r\n\t ") == [1.0]

    @pytest.mark.parametrize("value", [None, 1, b"[]", ["[]"]])
    def test_non_string_input(self, value):
        with pytest.raises(TypeError):
            decode(value)


@pytest.mark.parametrize(
    "value",
    [
        None,
        True,
        "plain",
        "quote \" backslash \\ control \x07 emoji \U0001f600",
        3.25,
        [],
        {},
        [1.0, "two", [False, None], {"k": "v"}],
        {"messages": [], "values": [{"value": "a=b", "display": "\u00e9", "description": ""}], "nospace": "/="},
    ],
)
def test_round_trip(value):
    assert decode(encode(value)) == value


def test_round_trip_precision():
    assert decode(encode(math.pi)) == pytest.approx(math.pi, rel=1e-13)
