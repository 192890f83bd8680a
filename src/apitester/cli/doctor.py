"""``apitester doctor``: can a native library be loaded from here?

Collects interpreter, platform and library-lookup facts into
:class:`Check` rows and prints them as a table on stderr.  Nothing is
loaded; a library that is found may still fail to load (wrong
architecture, missing dependencies), which ``-v`` on a real call
will show.
"""

from __future__ import annotations

import platform
import sys
from dataclasses import dataclass

from apitester.cli import exit_codes
from apitester.cli.console import console, escape_markup
from apitester.config import AppSettings
from apitester.infra.library_locator import LibraryStatus, detect_library
from apitester.infra.native_library import interpreter_bits
from apitester.version import __version__

OK = "OK"
WARN = "WARN"
FAIL = "FAIL"

_STATUS_STYLES: dict[str, str] = {OK: "green", WARN: "yellow", FAIL: "red"}
_SYSTEM_NAMES: dict[str, str] = {"Darwin": "macOS"}


@dataclass(frozen=True, slots=True)
class Check:
    """One row of the doctor report."""

    component: str
    value: str
    status: str = OK
    note: str = ""

    @property
    def failed(self) -> bool:
        return self.status == FAIL


def _library_check(status: LibraryStatus) -> Check:
    if status.found and status.target:
        value = f"{status.target} ({status.source})"
        if status.source == "loader":
            return Check("Library", value, WARN, "not located; left to the system loader")
        return Check("Library", value)
    return Check("Library", "not found", FAIL)


def _convention_check(settings: AppSettings) -> Check:
    convention = settings.calling_convention
    if convention == "stdcall" and platform.system() != "Windows":
        return Check("Convention", convention, FAIL, "Windows only")
    return Check("Convention", convention)


def _ui_check() -> Check:
    missing: list[str] = []
    for module in ("rich", "questionary"):
        try:
            __import__(module)
        except ImportError:
            missing.append(module)
    if missing:
        return Check("UI", f"missing: {', '.join(missing)}", WARN)
    return Check("UI", "rich, questionary")


def collect_checks(settings: AppSettings, library: LibraryStatus) -> list[Check]:
    """Build every report row; never raises."""
    python_ok = sys.version_info[:2] >= (3, 10)
    system = platform.system()
    return [
        Check("apitester", __version__),
        Check(
            "Python",
            f"{platform.python_version()} ({interpreter_bits()}-bit)",
            OK if python_ok else FAIL,
            "" if python_ok else ">=3.10 required",
        ),
        Check("Interpreter", sys.executable or "unknown"),
        _library_check(library),
        _convention_check(settings),
        _ui_check(),
        Check(
            "OS",
            f"{_SYSTEM_NAMES.get(system, system)} {platform.release()} ({platform.machine()})",
        ),
    ]


def _status_text(check: Check) -> str:
    return f"{check.status} ({check.note})" if check.note else check.status


def _render(checks: list[Check]) -> bool:
    """Print the report; return whether Rich was used."""
    try:
        from rich.table import Table
    except ModuleNotFoundError:
        print("\napitester doctor", file=sys.stderr)
        print("-" * 72, file=sys.stderr)
        for check in checks:
            print(f"{check.component:<12} {check.value:<44} {_status_text(check)}", file=sys.stderr)
        print(file=sys.stderr)
        return False

    table = Table(title="apitester doctor", header_style="bold cyan", border_style="dim")
    table.add_column("Component", style="bold", min_width=12)
    table.add_column("Value", min_width=20)
    table.add_column("Status", justify="center", min_width=8)
    for check in checks:
        style = _STATUS_STYLES[check.status]
        table.add_row(
            check.component,
            escape_markup(check.value),
            f"[{style}]{escape_markup(_status_text(check))}[/{style}]",
        )
    console.print()
    console.print(table)
    console.print()
    return True


def run_doctor(settings: AppSettings, explicit_library: str | None = None) -> int:
    """Print the diagnostics report.

    Returns :data:`exit_codes.GENERAL_ERROR` when any check fails,
    :data:`exit_codes.SUCCESS` otherwise.
    """
    library = detect_library(settings, explicit_library)
    checks = collect_checks(settings, library)
    rich_used = _render(checks)

    lines: list[str] = []
    if not library.found:
        lines.append("Native library not found. Searched:")
        lines.extend(f"  {candidate}" for candidate in library.candidates)
        lines.append("Pass --library PATH or set APITESTER_LIBRARY.")

    failed = any(check.failed for check in checks)
    summary = "Some checks failed." if failed else "All checks passed."
    for line in lines:
        console.print(escape_markup(line) if rich_used else line)
    if rich_used:
        style = "bold red" if failed else "bold green"
        console.print(f"[{style}]{summary}[/{style}]")
    else:
        print(summary, file=sys.stderr)

    return exit_codes.GENERAL_ERROR if failed else exit_codes.SUCCESS
