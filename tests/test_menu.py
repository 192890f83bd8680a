"""Tests for the interactive menu (cli/menu.py).

questionary is replaced by a scripted fake; answers are consumed in
order, ``None`` standing for Ctrl+C / Esc.
"""

from __future__ import annotations

import sys
from collections.abc import Iterable
from typing import Any
from unittest.mock import patch

import pytest
from conftest import FakeBinding

from apitester.cli import exit_codes
from apitester.cli.menu import QUIT, _build_choice_label, run_menu
from apitester.core.catalog import build_default_registry
from apitester.core.dispatcher import CommandDispatcher
from apitester.core.models import CallResult
from apitester.exceptions import EnvironmentError


class _Question:
    def __init__(self, answer: Any) -> None:
        self._answer = answer

    def ask(self) -> Any:
        return self._answer


class FakeQuestionary:
    """Scripted stand-in for the questionary module."""

    class Choice:
        def __init__(self, title: str, value: str) -> None:
            self.title = title
            self.value = value

    def __init__(self, selections: Iterable[Any], texts: Iterable[Any] = ()) -> None:
        self._selections = list(selections)
        self._texts = list(texts)
        self.choices: list[FakeQuestionary.Choice] = []
        self.text_prompts: list[tuple[str, str]] = []

    def select(self, message: str, choices: list[Any], **kwargs: Any) -> _Question:
        self.choices = choices
        return _Question(self._selections.pop(0))

    def text(self, message: str, default: str = "") -> _Question:
        self.text_prompts.append((message, default))
        return _Question(self._texts.pop(0))


def _run(fake: FakeQuestionary, binding: FakeBinding) -> int:
    dispatcher = CommandDispatcher(build_default_registry())
    with patch("apitester.cli.menu._import_questionary", return_value=fake):
        return run_menu(dispatcher, binding)


class TestRunMenu:
    def test_quit_immediately(self) -> None:
        fake = FakeQuestionary([QUIT])
        assert _run(fake, FakeBinding()) == exit_codes.SUCCESS
        assert fake.choices[-1].value == QUIT
        assert len(fake.choices) == len(build_default_registry()) + 1

    def test_cancel_leaves_menu(self) -> None:
        assert _run(FakeQuestionary([None]), FakeBinding()) == exit_codes.SUCCESS

    def test_runs_operation_then_returns_to_menu(self, capsys: pytest.CaptureFixture[str]) -> None:
        binding = FakeBinding({"IsAmAndApiReady": CallResult(value=True)})
        _run(FakeQuestionary(["ready", "ready", QUIT]), binding)
        assert binding.calls_to("IsAmAndApiReady") == [(), ()]
        assert capsys.readouterr().out.count("API ready: true") == 2

    def test_prompts_with_defaults(self) -> None:
        binding = FakeBinding({"AmMetersToScale": CallResult(value=3.0)})
        fake = FakeQuestionary(["meters-to-scale", QUIT], texts=["750"])
        _run(fake, binding)
        ((message, default),) = fake.text_prompts
        assert message.startswith("meters (int)")
        assert default == "2000"
        assert binding.calls_to("AmMetersToScale") == [(750,)]

    def test_cancelled_prompt_skips_call(self) -> None:
        binding = FakeBinding({"AmMetersToScale": CallResult(value=3.0)})
        _run(FakeQuestionary(["meters-to-scale", QUIT], texts=[None]), binding)
        assert binding.resolved == []

    def test_error_is_reported_and_menu_continues(self, capsys: pytest.CaptureFixture[str]) -> None:
        binding = FakeBinding(
            {
                "GetAmPath": CallResult(value=False, outputs={"path": ""}),
                "IsAmAndApiReady": CallResult(value=True),
            },
        )
        assert _run(FakeQuestionary(["am-path", "ready", QUIT]), binding) == exit_codes.SUCCESS
        captured = capsys.readouterr()
        assert "GetAmPath reported failure" in captured.err
        assert "API ready: true" in captured.out

    def test_bad_argument_is_reported(self, capsys: pytest.CaptureFixture[str]) -> None:
        binding = FakeBinding({"AmMetersToScale": CallResult(value=3.0)})
        _run(FakeQuestionary(["meters-to-scale", QUIT], texts=["lots"]), binding)
        assert "Invalid integer" in capsys.readouterr().err
        assert binding.resolved == []


class TestHelpers:
    def test_choice_label(self) -> None:
        spec = build_default_registry().get("ready")
        label = _build_choice_label(spec)
        assert label.startswith("ready")
        assert spec.summary in label

    def test_missing_questionary(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setitem(sys.modules, "questionary", None)
        with pytest.raises(EnvironmentError, match="questionary is not installed"):
            run_menu(CommandDispatcher(build_default_registry()), FakeBinding())
