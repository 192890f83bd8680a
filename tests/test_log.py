"""Tests for CLI logging setup (cli/log.py)."""

from __future__ import annotations

import logging

import pytest

from apitester.cli.log import level_for


class TestLevelFor:
    @pytest.mark.parametrize(
        ("verbosity", "expected"),
        [(1, logging.INFO), (2, logging.DEBUG), (5, logging.DEBUG)],
    )
    def test_verbose_flags(self, verbosity: int, expected: int) -> None:
        assert level_for(verbosity, "ERROR") == expected

    def test_default_used_without_flags(self) -> None:
        assert level_for(0) == logging.WARNING
        assert level_for(0, "error") == logging.ERROR
