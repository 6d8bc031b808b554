"""Tests for the candidate transformation."""

import pytest

from carapace_bridge.models import CandidateSpec, DecodedPayload, MatchKind, PayloadError
from carapace_bridge.transform import CandidateTransformer, TransformContext


def payload(*values, nospace=None, messages=()):
    return DecodedPayload(messages=tuple(messages), values=tuple(CandidateSpec(**v) for v in values), nospace=nospace)


@pytest.fixture
def transformer():
    return CandidateTransformer(is_dir=lambda path: path.endswith("dir"))


class TestDecodedPayload:
    """Building the payload from a decoded document."""

    def test_from_value(self):
        data = {
            "messages": ["oops", 3],
            "values": [{"value": "--help", "tag": "flags", "display": 1}, "junk", {"description": "no value"}],
            "nospace": "/",
        }
        result = DecodedPayload.from_value(data)
        assert result.messages == ("oops",)
        assert result.values == (CandidateSpec(value="--help", tag="flags"), CandidateSpec(value="", description="no value"))
        assert result.nospace == "/"

    def test_missing_fields(self):
        assert DecodedPayload.from_value({}) == DecodedPayload()
        assert DecodedPayload.from_value({"values": "nope", "nospace": 1}) == DecodedPayload()

    @pytest.mark.parametrize("data", [[], "text", 1.0, None])
    def test_not_an_object(self, data):
        with pytest.raises(PayloadError):
            DecodedPayload.from_value(data)


class TestValueDerivation:
    """Compound values are reduced to the part being typed."""

    def test_equals(self, transformer):
        result = transformer.transform(payload({"value": "a=b=c"}))
        assert [m.text for m in result.matches] == ["c"]
        assert result.matches[0].display == "c"

    def test_comma_and_semicolon(self, transformer):
        result = transformer.transform(payload({"value": "x,y"}, {"value": "p;q"}, {"value": "k=v1,v2;v3"}))
        assert [m.text for m in result.matches] == ["y", "q", "v3"]

    def test_equals_typed_with_argmatcher(self, transformer):
        context = TransformContext(cursor_char="=", has_argmatcher=True)
        assert transformer.derive_value("--opt=val", context) == "val"

    def test_equals_typed_without_argmatcher(self, transformer):
        context = TransformContext(cursor_char="=", has_argmatcher=False)
        assert transformer.derive_value("--opt=val", context) == "--opt=val"

    def test_display_kept(self, transformer):
        result = transformer.transform(payload({"value": "--color=auto", "display": "auto", "description": "Colors"}))
        match = result.matches[0]
        assert (match.text, match.display, match.description) == ("auto", "auto", "Colors")

    def test_empty_values_dropped(self, transformer):
        result = transformer.transform(payload({"value": ""}, {"value": "ok"}))
        assert [m.text for m in result.matches] == ["ok"]


class TestClassify:
    """Match kinds derived from the candidate tags."""

    @pytest.mark.parametrize(
        ("tag", "display", "value", "expected"),
        [
            (None, "x", "x", MatchKind.WORD),
            ("", "x", "x", MatchKind.WORD),
            ("file_completion.files", "main.py", "main.py", MatchKind.FILE),
            ("directories", "src/", "src/", MatchKind.DIR),
            ("files", "src\\", "src\\", MatchKind.DIR),
            ("flags", "--help", "--help", MatchKind.ARG),
            ("git.commands", "commit", "commit", MatchKind.ARG),
            ("changes", "a-dir", "a-dir", MatchKind.DIR),
            ("changes", "a.txt", "a.txt", MatchKind.FILE),
            ("branches", "main", "main", MatchKind.WORD),
        ],
    )
    def test_classify(self, transformer, tag, display, value, expected):
        assert transformer.classify(tag, display, value) is expected


class TestStyleAndAppend:
    """Display coloring and the suppress-append rules."""

    def test_style_prefix(self, transformer):
        match = transformer.transform(payload({"value": "main", "style": "bold blue"})).matches[0]
        assert match.display == "\x1b[1;34mmain"
        assert match.text == "main"

    def test_unknown_style_ignored(self, transformer):
        match = transformer.transform(payload({"value": "main", "style": "sparkly"})).matches[0]
        assert match.display == "main"

    def test_custom_style_resolver(self):
        transformer = CandidateTransformer(style_resolver=lambda style: "35" if style == "fancy" else None)
        match = transformer.transform(payload({"value": "x", "style": "fancy"})).matches[0]
        assert match.display == "\x1b[35mx"

    def test_default_appends(self, transformer):
        match = transformer.transform(payload({"value": "main"})).matches[0]
        assert match.suppress_append is False

    @pytest.mark.parametrize("marker", ["*", "all"])
    def test_nospace_everything(self, transformer, marker):
        result = transformer.transform(payload({"value": "a"}, {"value": "b"}, nospace=marker))
        assert all(m.suppress_append for m in result.matches)

    def test_nospace_suffix(self, transformer):
        result = transformer.transform(payload({"value": "src/"}, {"value": "key="}, {"value": "file"}, nospace="/="))
        # "key=" is reduced to "key=" itself, a lone segment
        assert [m.suppress_append for m in result.matches] == [True, True, False]

    def test_warning_style_flag(self, transformer):
        result = transformer.transform(
            payload(
                {"value": "--force", "style": "yellow"},
                {"value": "-f", "style": "fg-yellow"},
                {"value": "plain", "style": "yellow"},
                {"value": "--quiet", "style": "blue"},
            )
        )
        assert [m.suppress_append for m in result.matches] == [True, True, False, False]


class TestMessages:
    """Provider messages."""

    def test_message_takes_priority(self, transformer):
        result = transformer.transform(payload({"value": "a"}, messages=["first", "second"]))
        assert result.diagnostic == "first"
        assert result.matches == []

    def test_no_message(self, transformer):
        assert transformer.transform(payload({"value": "a"})).diagnostic is None
