"""Data models shared by the completion pipeline."""

from __future__ import annotations

import shlex
from dataclasses import dataclass, field
from enum import IntEnum, StrEnum
from typing import Any

__all__ = [
    "CandidateSpec",
    "CarapaceBridgeError",
    "CompletionMatch",
    "CompletionOutcome",
    "DecodedPayload",
    "DispatchState",
    "ExitCode",
    "FailureReason",
    "MatchKind",
    "OutcomeStatus",
    "PayloadError",
    "Popup",
    "PopupEntry",
    "ProcessStartError",
    "ProviderInvocation",
    "RunResult",
]


class CarapaceBridgeError(Exception):
    """Base class for errors raised by this package."""


class PayloadError(CarapaceBridgeError):
    """The decoded provider document does not have the expected shape."""


class ProcessStartError(CarapaceBridgeError):
    """The provider process could not be started."""


class FailureReason(StrEnum):
    """Why a provider run did not succeed."""

    NONE = "none"
    TERMINATED = "terminated"
    TIMEOUT = "timeout"


class MatchKind(StrEnum):
    """Match types understood by the host shell."""

    WORD = "word"
    ARG = "arg"
    FILE = "file"
    DIR = "dir"


class DispatchState(StrEnum):
    """States of a completion request."""

    IDLE = "idle"
    INVOKING = "invoking"
    DECODING = "decoding"
    DONE = "done"
    TIMED_OUT = "timed_out"
    BUSY = "busy"


class OutcomeStatus(StrEnum):
    """What the host shell should do with a dispatcher result."""

    NO_MATCHES = "no_matches"  # let other completion sources run
    MATCHES = "matches"  # merge the matches into the UI
    HANDLED = "handled"  # a diagnostic was shown, stop here


class ExitCode(IntEnum):
    """Exit codes for the command line client."""

    SUCCESS = 0
    USAGE_ERROR = 1
    CONFIG_ERROR = 2
    NO_MATCHES = 3


@dataclass(frozen=True)
class ProviderInvocation:
    """A single provider command line."""

    executable: str
    args: tuple[str, ...] = ()
    timeout: float = 5.0

    @property
    def argv(self) -> list[str]:
        """Return the argument vector, executable first."""
        return [self.executable, *self.args]

    @property
    def command_line(self) -> str:
        """Return a shell-quoted rendering, for logs."""
        return shlex.join(self.argv)


@dataclass(frozen=True)
class RunResult:
    """Outcome of one provider run."""

    succeeded: bool
    output: str = ""
    failure: FailureReason = FailureReason.NONE

    @classmethod
    def ok(cls, output: str) -> RunResult:
        """Build a successful result."""
        return cls(succeeded=True, output=output)

    @classmethod
    def failed(cls, reason: FailureReason) -> RunResult:
        """Build a failed result."""
        return cls(succeeded=False, failure=reason)


@dataclass(frozen=True)
class CandidateSpec:
    """One raw candidate as emitted by the provider."""

    value: str
    display: str | None = None
    description: str | None = None
    tag: str | None = None
    style: str | None = None

    @classmethod
    def from_value(cls, item: dict[str, Any]) -> CandidateSpec:
        """Build from a decoded object, ignoring fields of the wrong type."""

        def _text(key: str) -> str | None:
            value = item.get(key)
            return value if isinstance(value, str) else None

        return cls(
            value=_text("value") or "",
            display=_text("display"),
            description=_text("description"),
            tag=_text("tag"),
            style=_text("style"),
        )


@dataclass(frozen=True)
class DecodedPayload:
    """The provider document."""

    messages: tuple[str, ...] = ()
    values: tuple[CandidateSpec, ...] = ()
    nospace: str | None = None

    @classmethod
    def from_value(cls, data: Any) -> DecodedPayload:  # noqa: ANN401
        """Build from a decoded interchange value.

        Raises:
            PayloadError: the document is not an object
        """
        if not isinstance(data, dict):
            msg = f"expected an object, got {type(data).__name__}"
            raise PayloadError(msg)
        messages = data.get("messages")
        values = data.get("values")
        nospace = data.get("nospace")
        return cls(
            messages=tuple(m for m in messages if isinstance(m, str)) if isinstance(messages, list) else (),
            values=tuple(CandidateSpec.from_value(v) for v in values if isinstance(v, dict)) if isinstance(values, list) else (),
            nospace=nospace if isinstance(nospace, str) else None,
        )


@dataclass(frozen=True)
class CompletionMatch:
    """A completion ready to be rendered by the host shell."""

    text: str
    display: str = ""
    description: str = ""
    kind: MatchKind = MatchKind.WORD
    suppress_append: bool = False


@dataclass(frozen=True)
class PopupEntry:
    """A line of a popup list."""

    value: str
    display: str
    description: str = ""


@dataclass(frozen=True)
class Popup:
    """A popup list shown to the user."""

    title: str
    entries: tuple[PopupEntry, ...] = ()

    @classmethod
    def error(cls, display: str, description: str) -> Popup:
        """Build the single-entry error popup used for diagnostics."""
        return cls(title="Error", entries=(PopupEntry(value="", display=display, description=description),))


@dataclass
class CompletionOutcome:
    """Result of a completion request."""

    status: OutcomeStatus
    state: DispatchState = DispatchState.DONE
    matches: list[CompletionMatch] = field(default_factory=list)
    diagnostic: str | None = None
    sort: bool = True

    @classmethod
    def no_matches(cls, state: DispatchState = DispatchState.DONE) -> CompletionOutcome:
        """Let the other completion sources run."""
        return cls(status=OutcomeStatus.NO_MATCHES, state=state)

    @classmethod
    def handled(cls, diagnostic: str, state: DispatchState = DispatchState.DONE) -> CompletionOutcome:
        """A diagnostic was shown, nothing else should be offered."""
        return cls(status=OutcomeStatus.HANDLED, state=state, diagnostic=diagnostic)
