"""CLI application entry point and command routing for apitester.

This module is the **sole error boundary** for the entire application.
It catches :class:`~apitester.exceptions.ApiTesterError`,
``KeyboardInterrupt``, and any unexpected ``Exception``, rendering
user-friendly messages via Rich and returning well-defined exit codes.

Architecture notes
------------------
* No call logic lives here; planning and execution are delegated to
  the core dispatcher, loading and marshalling to the infra layer.
* The native library is opened once per process, after every
  operation in the request has been validated, and released on every
  exit path.
* This module is the only place that translates between the domain
  world and the OS process exit code.
"""

from __future__ import annotations

import argparse
import sys
from typing import TYPE_CHECKING

from apitester.cli import exit_codes
from apitester.cli.console import console, escape_markup
from apitester.exceptions import ApiTesterError, UsageError
from apitester.version import __version__

if TYPE_CHECKING:
    from apitester.config import AppSettings

BUILTIN_COMMANDS: tuple[str, ...] = ("list", "doctor", "menu")


# ---------------------------------------------------------------------------
# Argument parser
# ---------------------------------------------------------------------------

def _build_parser() -> argparse.ArgumentParser:
    """Construct the top-level argument parser.

    Global options must precede the operation; everything from the
    operation name onwards is handed to the dispatcher untouched, so
    negative numbers and ``+`` separators survive parsing:

    * ``apitester <operation> [args...] [+ <operation> [args...]]``
    * ``apitester call <symbol> <return-type> [<type>:<value> ...]``
    * ``apitester list | doctor | menu``
    """
    parser = argparse.ArgumentParser(
        prog="apitester",
        description="Exercise the exported functions of a native shared library.",
        epilog="Run 'apitester list' to see available operations.",
    )
    parser.add_argument(
        "-V",
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Increase log verbosity (-v info, -vv debug).",
    )
    parser.add_argument(
        "-l",
        "--library",
        default=None,
        metavar="PATH",
        help="Shared library to load (overrides APITESTER_LIBRARY).",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Print one JSON object per call instead of text.",
    )
    parser.add_argument(
        "command",
        nargs=argparse.REMAINDER,
        help="Operation and its arguments, or one of: list, doctor, menu.",
    )
    return parser


# ---------------------------------------------------------------------------
# Command dispatch
# ---------------------------------------------------------------------------

def _handle_list() -> int:
    """Print the operation catalog."""
    from apitester.cli.render import render_operations
    from apitester.core.catalog import build_default_registry

    render_operations(build_default_registry())
    return exit_codes.SUCCESS


def _handle_doctor(settings: AppSettings, library: str | None) -> int:
    """Report whether a library can be found and loaded here."""
    from apitester.cli.doctor import run_doctor

    return run_doctor(settings, library)


def _handle_menu(settings: AppSettings, library: str | None, as_json: bool) -> int:
    """Open the library once and hand it to the interactive menu."""
    from apitester.cli.menu import run_menu
    from apitester.core.catalog import build_default_registry
    from apitester.core.dispatcher import CommandDispatcher
    from apitester.infra.native_library import open_library

    dispatcher = CommandDispatcher(
        build_default_registry(),
        init_options=settings.init_options(),
    )
    with open_library(settings, library) as binding:
        return run_menu(dispatcher, binding, as_json=as_json)


def _handle_operations(
    settings: AppSettings,
    command: list[str],
    library: str | None,
    as_json: bool,
) -> int:
    """Plan every requested call, then run them against one library session.

    Flow:
    1. Build the registry and dispatcher from *settings*.
    2. Plan all descriptors (usage errors surface before loading).
    3. Open the library, execute in order, print each result.
    4. Release the library, even when a call fails.
    """
    from apitester.cli.render import render_outcome
    from apitester.core.catalog import build_default_registry
    from apitester.core.dispatcher import CommandDispatcher
    from apitester.infra.native_library import open_library

    dispatcher = CommandDispatcher(
        build_default_registry(),
        init_options=settings.init_options(),
    )
    descriptors = dispatcher.plan(command)

    with open_library(settings, library) as binding:
        for outcome in dispatcher.execute(descriptors, binding):
            render_outcome(outcome, as_json=as_json)
    return exit_codes.SUCCESS


# ---------------------------------------------------------------------------
# Main entry point
# ---------------------------------------------------------------------------

def main(argv: list[str] | None = None) -> int:
    """Run the apitester CLI.

    Parameters
    ----------
    argv:
        Arguments after the program name; ``None`` reads ``sys.argv[1:]``.

    Returns
    -------
    int
        OS process exit code.
    """
    parser = _build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help(sys.stderr)
        return exit_codes.USAGE_ERROR

    from apitester.cli.log import setup_logging
    from apitester.config import load_settings

    settings = load_settings()
    setup_logging(args.verbose, settings.log_level)

    command: list[str] = args.command
    name = command[0].strip().lower()

    if name in BUILTIN_COMMANDS and len(command) > 1:
        raise UsageError(f"'{name}' takes no arguments.")
    if name == "list":
        return _handle_list()
    if name == "doctor":
        return _handle_doctor(settings, args.library)
    if name == "menu":
        return _handle_menu(settings, args.library, args.json)

    return _handle_operations(settings, command, args.library, args.json)


# ---------------------------------------------------------------------------
# Script-level error boundary
# ---------------------------------------------------------------------------

def _exit_code_for(exc: ApiTesterError) -> int:
    if isinstance(exc, UsageError):
        return exit_codes.USAGE_ERROR
    return exit_codes.GENERAL_ERROR


def cli() -> None:
    """Console-script entry: run :func:`main` and map every error to an exit code."""
    try:
        code = main()
        sys.exit(code)
    except ApiTesterError as exc:
        console.print(f"[bold red]Error:[/bold red] {escape_markup(str(exc))}")
        if exc.hint:
            console.print(f"[yellow]Hint:[/yellow] {escape_markup(exc.hint)}")
        sys.exit(_exit_code_for(exc))
    except KeyboardInterrupt:
        console.print("\n[yellow]Aborted by user.[/yellow]")
        sys.exit(exit_codes.KEYBOARD_INTERRUPT)
    except Exception as exc:  # noqa: BLE001
        console.print(
            "[bold red]Unexpected error.[/bold red] "
            "Please report this issue.\n"
            f"  {type(exc).__name__}: {escape_markup(str(exc))}"
        )
        sys.exit(exit_codes.UNEXPECTED_ERROR)
