"""Turn a provider document into typed completion matches."""

from __future__ import annotations

import os
from collections.abc import Callable
from dataclasses import dataclass, field

from .ansi import YELLOW, resolve_style, sgr_prefix
from .constants import NOSPACE_ALL_MARKERS
from .models import CandidateSpec, CompletionMatch, DecodedPayload, MatchKind
from .utils import last_segment

__all__ = ["CandidateTransformer", "TransformContext", "TransformResult"]

FILE_TAG_SUFFIXES = ("files", "directories")
ARG_TAG_SUFFIXES = ("flags", "commands")
CHANGES_TAG_SUFFIX = "changes"
PATH_SEPARATORS = ("/", "\\")


@dataclass(frozen=True)
class TransformContext:
    """Command line context of the request.

    Attributes:
        cursor_char: the character just before the cursor
        has_argmatcher: the shell has its own argument completion for the command
    """

    cursor_char: str = ""
    has_argmatcher: bool = False

    def splits_on_equals(self, value: str) -> bool:
        """Tell if an `option=value` candidate should be reduced to its value."""
        if self.cursor_char == "=":
            return self.has_argmatcher
        return "=" in value


@dataclass
class TransformResult:
    """Matches produced from a document, or the message to show instead."""

    matches: list[CompletionMatch] = field(default_factory=list)
    diagnostic: str | None = None


class CandidateTransformer:
    """Applies the candidate heuristics: separator splitting, tag typing, styling and suppress-append."""

    def __init__(
        self,
        style_resolver: Callable[[str], str | None] = resolve_style,
        is_dir: Callable[[str], bool] = os.path.isdir,
    ) -> None:
        self.style_resolver = style_resolver
        self.is_dir = is_dir

    def transform(self, payload: DecodedPayload, context: TransformContext | None = None) -> TransformResult:
        """Build the matches for `payload`.

        Provider messages take priority: the first one is returned as the
        diagnostic and no match is produced.
        """
        if payload.messages:
            return TransformResult(diagnostic=payload.messages[0])
        context = context or TransformContext()
        matches = []
        for spec in payload.values:
            match = self.build_match(spec, payload.nospace, context)
            if match is not None:
                matches.append(match)
        return TransformResult(matches=matches)

    def derive_value(self, value: str, context: TransformContext) -> str:
        """Keep only the component of a compound value the user is typing."""
        if context.splits_on_equals(value):
            value = last_segment(value, "=")
        value = last_segment(value, ",")
        return last_segment(value, ";")

    def classify(self, tag: str | None, display: str, value: str) -> MatchKind:
        """Return the match kind for a provider tag."""
        if not tag:
            return MatchKind.WORD
        if tag.endswith(FILE_TAG_SUFFIXES):
            return MatchKind.DIR if display.endswith(PATH_SEPARATORS) else MatchKind.FILE
        if tag.endswith(ARG_TAG_SUFFIXES):
            return MatchKind.ARG
        if tag.endswith(CHANGES_TAG_SUFFIX):
            return MatchKind.DIR if self.is_dir(value) else MatchKind.FILE
        return MatchKind.WORD

    def build_match(self, spec: CandidateSpec, nospace: str | None, context: TransformContext) -> CompletionMatch | None:
        """Build the match of a single candidate, None if it has nothing to insert."""
        value = self.derive_value(spec.value, context)
        if not value:
            return None
        display = spec.display if spec.display is not None else value
        kind = self.classify(spec.tag, display, value)
        color = self.style_resolver(spec.style) if spec.style else None
        if color:
            display = sgr_prefix(color) + display
        warning_style = spec.style == "yellow" or color == YELLOW
        return CompletionMatch(
            text=value,
            display=display,
            description=spec.description or "",
            kind=kind,
            suppress_append=(
                nospace in NOSPACE_ALL_MARKERS or (warning_style and value.startswith("-")) or (bool(nospace) and value[-1] in nospace)  # type: ignore[operator]
            ),
        )
