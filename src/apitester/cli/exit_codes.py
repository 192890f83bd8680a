"""Exit-code constants used by the CLI layer.

Centralised here so that every exit path uses a well-known, tested
value rather than magic integers scattered across the codebase.
"""

from __future__ import annotations

SUCCESS: int = 0
"""Clean exit — every requested call completed."""

GENERAL_ERROR: int = 1
"""A known ApiTesterError (binding or native call failure) was caught."""

UNEXPECTED_ERROR: int = 2
"""An unhandled exception escaped all known error boundaries."""

USAGE_ERROR: int = 64
"""Malformed or missing command-line input (sysexits ``EX_USAGE``)."""

KEYBOARD_INTERRUPT: int = 130
"""User pressed Ctrl+C.  Follows POSIX convention (128 + SIGINT=2)."""
