"""carapace-bridge command line client.

Usage:
    carapace-bridge [--debug <logfile>] [--config <file>] complete <command line...>
    carapace-bridge [--config <file>] validate
    carapace-bridge help
"""

import asyncio
import sys

from .config import ConfigError, Configuration, LoadedConfig, load_config
from .constants import CONFIG_FILE, SETTINGS_SECTION
from .dispatcher import CompletionDispatcher
from .host import LineState, LocalHost
from .logging_setup import get_logger, init_logger
from .models import ExitCode, OutcomeStatus
from .schema import SETTINGS_SCHEMA
from .validation import ConfigValidator

__all__ = ["main"]

USAGE = f"""Syntax: carapace-bridge [--debug <logfile>] [--config <file>] <command> [args...]

Commands:
 complete <line>      print the matches of a command line (cursor at the end)
                      one per line: text, kind and description separated by tabs
 validate             check the settings of the configuration file
 help                 show this message

Default configuration file: {CONFIG_FILE}
"""


def use_param(txt: str, args: list[str]) -> str:
    """Check if parameter `txt` is in `args`.

    if found, removes it from `args` & returns the argument value
    """
    v = ""
    if txt in args:
        i = args.index(txt)
        v = args[i + 1] if i + 1 < len(args) else ""
        del args[i : i + 2]
    return v


async def run_complete(line: str, config: LoadedConfig) -> ExitCode:
    """Run a completion request for `line` and print the matches."""
    log = get_logger("cli")
    # an explicit request: enabled unless the config file says otherwise
    settings = Configuration({"enable": True, **config.settings}, logger=log, schema=SETTINGS_SCHEMA)
    host = LocalHost(settings, aliases=config.aliases)
    dispatcher = CompletionDispatcher(host)

    outcome = await dispatcher.generate(LineState.parse(line))
    if outcome.status is OutcomeStatus.HANDLED:
        print(outcome.diagnostic, file=sys.stderr)
        return ExitCode.SUCCESS
    for match in outcome.matches:
        print(f"{match.text}\t{match.kind}\t{match.description}")
    return ExitCode.SUCCESS if outcome.matches else ExitCode.NO_MATCHES


def run_validate(config: LoadedConfig) -> ExitCode:
    """Check the settings table against the schema."""
    log = get_logger("validate")
    validator = ConfigValidator(config.settings, SETTINGS_SECTION, log)
    errors = validator.validate(SETTINGS_SCHEMA)
    validator.warn_unknown_keys(SETTINGS_SCHEMA)
    for error in errors:
        print(error, file=sys.stderr)
    if errors:
        return ExitCode.CONFIG_ERROR
    print("Configuration OK")
    return ExitCode.SUCCESS


def main() -> None:
    """Run the command."""
    args = sys.argv[1:]
    debug_flag = use_param("--debug", args)
    if debug_flag:
        init_logger(filename=debug_flag, force_debug=True)
    else:
        init_logger()
    log = get_logger("startup")

    config_override = use_param("--config", args)

    if not args or args[0] in {"help", "--help", "-h"}:
        print(USAGE)
        sys.exit(ExitCode.SUCCESS if args else ExitCode.USAGE_ERROR)

    try:
        config = load_config(config_override)
    except ConfigError as e:
        log.critical("%s", e)
        sys.exit(ExitCode.CONFIG_ERROR)

    if args[0] == "validate":
        sys.exit(run_validate(config))
    if args[0] == "complete" and len(args) > 1:
        try:
            sys.exit(asyncio.run(run_complete(" ".join(args[1:]), config)))
        except KeyboardInterrupt:
            sys.exit(ExitCode.NO_MATCHES)

    print(USAGE, file=sys.stderr)
    sys.exit(ExitCode.USAGE_ERROR)


if __name__ == "__main__":
    main()
