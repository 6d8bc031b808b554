"""Completion request dispatcher.

Entry point called by the host shell once per completion request::

    dispatcher = CompletionDispatcher(host)
    outcome = await dispatcher.generate(LineState.parse("git checkout ma"))

A request goes through IDLE -> INVOKING -> DECODING -> DONE, or stops at
TIMED_OUT (provider silent twice) or BUSY (a previous run still active).
Cheap checks (settings, alias, search path, exclusion list) run before any
process is spawned.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from .aliases import parse_alias
from .codec import CodecError, decode
from .constants import (
    BUILTIN_CD_SWITCHES,
    DEFAULT_EXCLUDE,
    DEFAULT_PROVIDER,
    DEFAULT_TIMEOUT,
    FIRST_PASS_TIMEOUT,
    MIN_OUTPUT_LENGTH,
    PROVIDER_SUBCOMMAND,
    SETTINGS_COMMANDS,
    SETTINGS_SECTION,
)
from .host import split_words
from .logging_setup import get_logger
from .models import (
    CompletionMatch,
    CompletionOutcome,
    DecodedPayload,
    DispatchState,
    FailureReason,
    MatchKind,
    OutcomeStatus,
    PayloadError,
    Popup,
    ProviderInvocation,
    RunResult,
)
from .process import ProviderCoordinator
from .transform import CandidateTransformer, TransformContext
from .utils import command_basename, explode

if TYPE_CHECKING:
    import logging

    from .host import HostShell, LineState

__all__ = ["BUSY_MESSAGE", "TIMEOUT_MESSAGE", "CompletionDispatcher"]

BUSY_MESSAGE = "The previous completion request is still running; terminating the provider process."
TIMEOUT_MESSAGE = "Execution timed out, terminating the process."


class CompletionDispatcher:
    """Generates the matches of a command line through the provider."""

    def __init__(
        self,
        host: HostShell,
        coordinator: ProviderCoordinator | None = None,
        transformer: CandidateTransformer | None = None,
        log: logging.Logger | None = None,
    ) -> None:
        """Initialize.

        Args:
            host: The host shell services
            coordinator: Provider runner, uses the process-wide run slot by default
            transformer: Candidate transformer, built from the host services by default
            log: Logger to use
        """
        self.host = host
        self.log = log or get_logger("dispatcher")
        self.coordinator = coordinator or ProviderCoordinator(kill_by_name=host.settings.get_bool("kill_by_name", True))
        self.transformer = transformer or CandidateTransformer(host.resolve_style, host.is_dir)
        self._exclude_setting: str | None = None
        self._excluded: frozenset[str] = frozenset()

    @property
    def provider(self) -> str:
        """Return the provider executable."""
        return self.host.settings.get_str("provider", DEFAULT_PROVIDER) or DEFAULT_PROVIDER

    @property
    def excluded(self) -> frozenset[str]:
        """Return the excluded command names, parsed again whenever the setting changes."""
        setting = self.host.settings.get_str("exclude", DEFAULT_EXCLUDE)
        if setting != self._exclude_setting:
            self._exclude_setting = setting
            self._excluded = frozenset(explode(setting, ";", '"'))
        return self._excluded

    @property
    def retry_timeout(self) -> float:
        """Return the timeout of the second attempt."""
        timeout = self.host.settings.get_float("timeout", DEFAULT_TIMEOUT)
        return timeout if timeout > 0 else DEFAULT_TIMEOUT

    async def generate(self, line_state: LineState) -> CompletionOutcome:
        """Generate the matches for the command line.

        Returns:
            The outcome: NO_MATCHES to let other sources run, MATCHES to merge,
            or HANDLED when a diagnostic popup was shown
        """
        if not self.host.settings.get_bool("enable"):
            return CompletionOutcome.no_matches()
        if line_state.word_count < 2:  # noqa: PLR2004
            return CompletionOutcome.no_matches()

        command = line_state.word(0).lower()
        command_name = command
        alias_args: list[str] = []
        alias = self.host.get_alias(command)
        if alias is not None:
            expansion = parse_alias(alias)
            if expansion is None:
                self.log.debug("Alias %s is not completable: %s", command, alias)
                return CompletionOutcome.no_matches()
            command_name = expansion.command
            alias_args = [word.text for word in split_words(expansion.args) if word.length]

        name = command_basename(command_name, self.host.path_extensions())
        if name == "cd":
            return self._complete_cd(line_state)
        if name in SETTINGS_COMMANDS:
            return self._complete_settings(line_state)

        if not name or not await self.host.command_exists(name, self.provider):
            return CompletionOutcome.no_matches()
        if name in self.excluded:
            self.log.debug("%s is excluded", name)
            return CompletionOutcome.no_matches()

        invocation = ProviderInvocation(
            executable=self.provider,
            args=(name, *PROVIDER_SUBCOMMAND, *alias_args, *line_state.args),
            timeout=FIRST_PASS_TIMEOUT,
        )

        if self.coordinator.busy:
            await self.coordinator.cancel_active(self.provider)
            self.host.popup(Popup.error("Error", BUSY_MESSAGE))
            return CompletionOutcome.handled(BUSY_MESSAGE, DispatchState.BUSY)

        self.log.debug("%s -> %s", DispatchState.IDLE, DispatchState.INVOKING)
        result = await self._invoke(invocation)
        if result.failure is FailureReason.TIMEOUT:
            self.host.popup(Popup.error("Timeout", TIMEOUT_MESSAGE))
            return CompletionOutcome.handled(TIMEOUT_MESSAGE, DispatchState.TIMED_OUT)
        if not result.succeeded:
            return CompletionOutcome.no_matches()

        self.log.debug("%s -> %s", DispatchState.INVOKING, DispatchState.DECODING)
        payload = self._decode(result.output)
        if payload is None:
            return CompletionOutcome.no_matches()

        context = TransformContext(
            cursor_char=line_state.char_before_cursor,
            has_argmatcher=self.host.has_argmatcher(command),
        )
        transformed = self.transformer.transform(payload, context)
        if transformed.diagnostic is not None:
            self.host.popup(Popup.error("Error", transformed.diagnostic))
            return CompletionOutcome.handled(transformed.diagnostic)
        if not transformed.matches:
            return CompletionOutcome.no_matches()
        matches = transformed.matches
        decorate = getattr(self.host, "decorate_matches", None)
        if callable(decorate):
            matches = decorate(matches)
        return CompletionOutcome(status=OutcomeStatus.MATCHES, matches=matches)

    async def _invoke(self, invocation: ProviderInvocation) -> RunResult:
        """Run the provider, retrying once with the configured timeout."""
        result = await self.coordinator.run(invocation, FIRST_PASS_TIMEOUT)
        if result.failure is FailureReason.TIMEOUT:
            self.log.info("Provider timed out, retrying with a %ss timeout", self.retry_timeout)
            result = await self.coordinator.run(invocation, self.retry_timeout)
        return result

    def _decode(self, output: str) -> DecodedPayload | None:
        """Decode the provider output, None if it can't be used."""
        if len(output) < MIN_OUTPUT_LENGTH:
            self.log.debug("Provider output too short: %r", output)
            return None
        try:
            return DecodedPayload.from_value(decode(output))
        except (CodecError, PayloadError) as e:
            self.log.debug("Invalid provider output: %s", e)
            return None

    def _complete_cd(self, line_state: LineState) -> CompletionOutcome:
        """Complete `cd`: its switches after a "/", directories otherwise."""
        end_word = line_state.end_word
        if end_word == "/":
            return CompletionOutcome(
                status=OutcomeStatus.MATCHES,
                matches=[CompletionMatch(text=switch, display=switch) for switch in BUILTIN_CD_SWITCHES],
                sort=False,
            )
        return CompletionOutcome(status=OutcomeStatus.NO_MATCHES, matches=self.host.dir_matches(end_word))

    def _complete_settings(self, line_state: LineState) -> CompletionOutcome:
        """Complete the value of the exclusion list setting (`clink set carapace.exclude <value>`)."""
        if line_state.word_count != 4 or line_state.word(1) != "set" or line_state.word(2) != f"{SETTINGS_SECTION}.exclude":  # noqa: PLR2004
            return CompletionOutcome.no_matches()
        current = self.host.settings.get_str("exclude", DEFAULT_EXCLUDE).removesuffix(";")
        return CompletionOutcome(
            status=OutcomeStatus.MATCHES,
            matches=[
                CompletionMatch(
                    text=current,
                    display=current,
                    description="Commands Excluded from Autocompletion",
                    suppress_append=True,
                ),
                CompletionMatch(
                    text=current + ";",
                    display=current + ";",
                    description="Add Commands to Autocompletion Exclusion List",
                    suppress_append=True,
                ),
                CompletionMatch(text="clear", display="clear", description="Clear List", kind=MatchKind.ARG),
            ],
        )
