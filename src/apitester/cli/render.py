"""Rendering of call results and the operation catalog.

Results go to stdout through :data:`~apitester.cli.console.output`;
tables are diagnostics and go to stderr like the ``doctor`` report.
"""

from __future__ import annotations

import json
import sys

from apitester.cli.console import console, output
from apitester.core.arguments import usage_line
from apitester.core.formatting import describe_outcome, outcome_to_dict
from apitester.core.models import CallOutcome
from apitester.core.registry import OperationRegistry


def render_outcome(outcome: CallOutcome, *, as_json: bool = False) -> None:
    """Emit one outcome to stdout, as text or as a JSON line."""
    if as_json:
        output.print(json.dumps(outcome_to_dict(outcome), ensure_ascii=False))
    else:
        output.print(describe_outcome(outcome))


def _operation_rows(registry: OperationRegistry) -> list[tuple[str, str, str]]:
    return [
        (spec.name, usage_line(spec.signature, spec.name), spec.summary)
        for spec in registry
    ]


def render_operations(registry: OperationRegistry) -> None:
    """Print the operation table (Rich when available)."""
    rows = _operation_rows(registry)
    rows.append(
        (
            "call",
            "call <symbol> <return-type> [<type>:<value> ...]",
            "Call any exported symbol with an ad-hoc signature.",
        ),
    )

    try:
        from rich.markup import escape
        from rich.table import Table
    except ModuleNotFoundError:
        print("\nOperations", file=sys.stderr)
        print("=" * 72, file=sys.stderr)
        for name, usage, summary in rows:
            print(f"{name:<16} {usage}", file=sys.stderr)
            if summary:
                print(f"{'':<16} {summary}", file=sys.stderr)
        print(file=sys.stderr)
        return

    table = Table(
        title="Operations",
        show_header=True,
        header_style="bold magenta",
        border_style="dim",
    )
    table.add_column("Operation", style="bold", min_width=14)
    table.add_column("Usage", min_width=20)
    table.add_column("Description")
    for name, usage, summary in rows:
        table.add_row(escape(name), escape(usage), escape(summary))

    console.print()
    console.print(table)
    console.print("[dim]Chain operations with '+', e.g. init + ready + done[/dim]")
    console.print()
