"""Interactive operation menu for the CLI layer.

This module is responsible for:

* Prompting the user to pick an operation via questionary arrow keys.
* Prompting for each user-supplied argument, pre-filled with defaults.
* Running the call against the already-loaded library and printing
  the result, then returning to the menu.

The library stays loaded for the whole session, so stateful sequences
(``init`` → ``ready`` → ``done``) work across menu picks.
"""

from __future__ import annotations

from typing import Any

from apitester.cli import exit_codes
from apitester.cli.console import console, escape_markup
from apitester.cli.render import render_outcome
from apitester.core.dispatcher import CommandDispatcher
from apitester.core.formatting import format_value
from apitester.core.models import OperationSpec, Parameter
from apitester.core.protocols import NativeBinding
from apitester.exceptions import ApiTesterError, EnvironmentError

QUIT: str = "__quit__"


def _import_questionary() -> Any:
    """Import questionary lazily for interactive selection."""
    try:
        import questionary
    except ModuleNotFoundError as exc:
        raise EnvironmentError(
            "questionary is not installed. Install with: pip install questionary",
        ) from exc
    return questionary


def _build_choice_label(spec: OperationSpec) -> str:
    """Single-line label: ``"api-version      Version of the API library itself."``"""
    return f"{spec.name:<16} {spec.summary}".rstrip()


def _default_text(param: Parameter) -> str:
    if param.default is None:
        return ""
    return format_value(param.default)


def _prompt_arguments(questionary: Any, spec: OperationSpec) -> list[str] | None:
    """Ask for every user-supplied parameter; ``None`` when cancelled."""
    answers: list[str] = []
    for param in spec.signature.user_parameters:
        question = f"{param.name} ({param.type.value})"
        if param.help:
            question = f"{question}: {param.help}"
        answer: str | None = questionary.text(question, default=_default_text(param)).ask()
        if answer is None:
            return None
        answers.append(answer)
    return answers


def run_menu(
    dispatcher: CommandDispatcher,
    binding: NativeBinding,
    *,
    as_json: bool = False,
) -> int:
    """Loop over operation picks until the user quits.

    Errors from a single call are reported and the menu continues.

    Returns
    -------
    int
        :data:`exit_codes.SUCCESS` once the user leaves the menu.
    """
    questionary = _import_questionary()
    specs = list(dispatcher.registry)

    choices = [
        questionary.Choice(title=_build_choice_label(spec), value=spec.name)
        for spec in specs
    ]
    choices.append(questionary.Choice(title="Quit", value=QUIT))

    while True:
        selected: str | None = questionary.select(
            "Select operation:",
            choices=choices,
            use_arrow_keys=True,
            use_shortcuts=False,
        ).ask()  # Returns None on Ctrl+C / Esc

        if selected is None or selected == QUIT:
            return exit_codes.SUCCESS

        spec = dispatcher.registry.get(selected)
        arguments = _prompt_arguments(questionary, spec)
        if arguments is None:
            continue

        try:
            descriptor = dispatcher.plan_one([spec.name, *arguments])
            outcome = dispatcher.call(descriptor, binding)
        except ApiTesterError as exc:
            console.print(f"[bold red]Error:[/bold red] {escape_markup(str(exc))}")
            if exc.hint:
                console.print(f"[yellow]Hint:[/yellow] {escape_markup(exc.hint)}")
            continue

        render_outcome(outcome, as_json=as_json)
