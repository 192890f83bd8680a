"""CLI console helpers with optional Rich support.

This module intentionally avoids module-level imports of optional UI
dependencies so bootstrap paths (``--help``, ``--version``, plain
operation calls) remain functional even when Rich is not installed.

Two proxies are exposed: :data:`console` for diagnostics on stderr and
:data:`output` for call results on stdout.
"""

from __future__ import annotations

import sys
from typing import Any

from apitester.exceptions import EnvironmentError


def _load_rich_console_class() -> type[Any]:
    """Return ``rich.console.Console`` class or raise ``EnvironmentError``."""
    try:
        from rich.console import Console
    except ModuleNotFoundError as exc:
        raise EnvironmentError(
            "rich is not installed. Install with: pip install rich",
        ) from exc
    return Console


def get_rich_console(*, stderr: bool = True) -> Any:
    """Create a Rich console instance targeting stderr (or stdout)."""
    console_class = _load_rich_console_class()
    return console_class(stderr=stderr)


class _ConsoleProxy:
    """Minimal ``print``-compatible proxy with Rich fallback."""

    def __init__(self, *, stderr: bool = True, markup: bool = True) -> None:
        self._stderr = stderr
        self._markup = markup

    def print(self, *objects: object) -> None:
        """Render with Rich when available, else plain print."""
        stream = sys.stderr if self._stderr else sys.stdout
        try:
            rich_console = get_rich_console(stderr=self._stderr)
        except EnvironmentError:
            print(*objects, file=stream)
            return
        if self._markup:
            rich_console.print(*objects)
        else:
            rich_console.print(*objects, markup=False, emoji=False, highlight=False, soft_wrap=True)


console = _ConsoleProxy()
output = _ConsoleProxy(stderr=False, markup=False)


def escape_markup(text: str) -> str:
    """Escape Rich markup in *text*; identity when Rich is missing."""
    try:
        from rich.markup import escape
    except ModuleNotFoundError:
        return text
    return escape(text)
