"""Allow ``python -m apitester`` invocation.

This module simply delegates to the CLI error-boundary entry point so
that ``python -m apitester`` behaves identically to the ``apitester``
console script.
"""

from __future__ import annotations

from apitester.cli.app import cli

if __name__ == "__main__":
    cli()
