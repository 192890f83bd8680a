"""Tests for CommandDispatcher (core/dispatcher.py).

The :class:`NativeBinding` dependency is **faked** — no shared library
is loaded.  These tests verify:

* Planning rejects bad input before the binding is touched.
* Each descriptor is resolved and executed exactly once, in order.
* ``fails_on_false`` maps a false result to ``NativeCallError``.
* Unexpected binding errors are wrapped as ``NativeCallError``.
"""

from __future__ import annotations

import pytest
from conftest import FakeBinding

from apitester.core.catalog import build_default_registry
from apitester.core.dispatcher import CommandDispatcher
from apitester.core.models import CallResult, InitOptions, NativeType, VersionInfo
from apitester.exceptions import NativeCallError, SymbolNotFoundError, TypeMismatchError, UsageError


def _dispatcher(**kwargs: object) -> CommandDispatcher:
    return CommandDispatcher(build_default_registry(), **kwargs)  # type: ignore[arg-type]


# ---------------------------------------------------------------------------
# Planning
# ---------------------------------------------------------------------------

class TestPlan:
    def test_empty_argv_raises(self) -> None:
        with pytest.raises(UsageError, match="No operation given"):
            _dispatcher().plan([])

    def test_unknown_operation_raises(self) -> None:
        with pytest.raises(UsageError, match="Unknown operation"):
            _dispatcher().plan(["frobnicate"])

    def test_single_operation(self) -> None:
        (descriptor,) = _dispatcher().plan(["meters-to-scale", "500"])
        assert descriptor.operation == "meters-to-scale"
        assert descriptor.function == "AmMetersToScale"
        assert descriptor.arguments == (500,)
        assert descriptor.label == "Scale"

    def test_sequence(self) -> None:
        plan = _dispatcher().plan(["init", "+", "ready", "+", "done"])
        assert [d.function for d in plan] == ["AmApiInit", "IsAmAndApiReady", "AmApiDone"]

    def test_bad_argument_anywhere_rejects_whole_plan(self) -> None:
        with pytest.raises(UsageError, match="Invalid integer"):
            _dispatcher().plan(["ready", "+", "meters-to-scale", "far"])

    def test_init_options_from_constructor(self) -> None:
        options = InitOptions(timeout_ms=1234, profile="truck")
        (descriptor,) = _dispatcher(init_options=options).plan(["init"])
        assert descriptor.arguments == (options,)
        assert descriptor.fails_on_false is True

    def test_raw_call(self) -> None:
        (descriptor,) = _dispatcher().plan(["call", "abs", "int", "int:-3"])
        assert descriptor.operation == "call"
        assert descriptor.function == "abs"
        assert descriptor.restype is NativeType.INT32
        assert descriptor.arguments == (-3,)
        assert descriptor.fails_on_false is False

    def test_planning_does_not_touch_binding(self) -> None:
        binding = FakeBinding()
        dispatcher = _dispatcher()
        dispatcher.plan(["ready", "+", "done"])
        assert binding.resolved == []


# ---------------------------------------------------------------------------
# Execution
# ---------------------------------------------------------------------------

class TestExecute:
    def test_call_executes_once(self) -> None:
        binding = FakeBinding({"AmMetersToScale": CallResult(value=12.5)})
        dispatcher = _dispatcher()
        outcomes = list(dispatcher.execute(dispatcher.plan(["meters-to-scale"]), binding))

        assert len(outcomes) == 1
        assert outcomes[0].result.value == 12.5
        assert binding.calls_to("AmMetersToScale") == [(2000,)]

    def test_sequence_runs_in_order(self) -> None:
        binding = FakeBinding(
            {
                "AmApiInit": CallResult(value=True),
                "IsAmAndApiReady": CallResult(value=True),
                "AmApiDone": CallResult(value=None),
            },
        )
        dispatcher = _dispatcher()
        outcomes = list(dispatcher.execute(dispatcher.plan(["init", "+", "ready", "+", "done"]), binding))
        assert [o.descriptor.function for o in outcomes] == [
            "AmApiInit",
            "IsAmAndApiReady",
            "AmApiDone",
        ]
        assert binding.resolved == ["AmApiInit", "IsAmAndApiReady", "AmApiDone"]

    def test_execute_is_lazy(self) -> None:
        binding = FakeBinding({"IsAmAndApiReady": CallResult(value=True)})
        dispatcher = _dispatcher()
        iterator = dispatcher.execute(dispatcher.plan(["ready"]), binding)
        assert binding.resolved == []
        next(iterator)
        assert binding.resolved == ["IsAmAndApiReady"]

    def test_failure_stops_sequence(self) -> None:
        binding = FakeBinding(
            {
                "IsAmAndApiReady": CallResult(value=True),
                "GetAmPath": CallResult(value=False, outputs={"path": ""}, error_code=2),
                "AmApiDone": CallResult(value=None),
            },
        )
        dispatcher = _dispatcher()
        seen: list[str] = []
        with pytest.raises(NativeCallError, match="GetAmPath reported failure") as exc_info:
            for outcome in dispatcher.execute(
                dispatcher.plan(["ready", "+", "am-path", "+", "done"]), binding,
            ):
                seen.append(outcome.descriptor.function)

        assert seen == ["IsAmAndApiReady"]
        assert exc_info.value.error_code == 2
        assert "native error 2" in str(exc_info.value)
        assert binding.calls_to("AmApiDone") == []

    def test_false_without_fails_on_false_is_a_result(self) -> None:
        binding = FakeBinding({"IsAmAndApiReady": CallResult(value=False)})
        dispatcher = _dispatcher()
        (outcome,) = dispatcher.execute(dispatcher.plan(["ready"]), binding)
        assert outcome.result.value is False

    def test_output_parameters_pass_through(self) -> None:
        version = VersionInfo(1, 2, 3, 4, 5)
        binding = FakeBinding({"GetAmApiVersion": CallResult(value=None, outputs={"version": version})})
        dispatcher = _dispatcher()
        (outcome,) = dispatcher.execute(dispatcher.plan(["api-version"]), binding)
        assert outcome.result.outputs == {"version": version}
        assert binding.calls_to("GetAmApiVersion") == [(None,)]


# ---------------------------------------------------------------------------
# Error propagation
# ---------------------------------------------------------------------------

class TestErrors:
    def test_symbol_not_found_propagates(self) -> None:
        dispatcher = _dispatcher()
        with pytest.raises(SymbolNotFoundError):
            list(dispatcher.execute(dispatcher.plan(["ready"]), FakeBinding()))

    def test_type_mismatch_propagates(self) -> None:
        binding = FakeBinding({"IsAmAndApiReady": TypeMismatchError("bad")})
        dispatcher = _dispatcher()
        with pytest.raises(TypeMismatchError):
            list(dispatcher.execute(dispatcher.plan(["ready"]), binding))

    def test_unexpected_error_wrapped(self) -> None:
        binding = FakeBinding({"IsAmAndApiReady": RuntimeError("segv")})
        dispatcher = _dispatcher()
        with pytest.raises(NativeCallError, match="Unexpected error calling IsAmAndApiReady"):
            list(dispatcher.execute(dispatcher.plan(["ready"]), binding))
