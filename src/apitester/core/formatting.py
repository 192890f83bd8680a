"""Pure conversion of call outcomes into printable text and JSON data."""

from __future__ import annotations

import dataclasses
from typing import Any

from apitester.core.models import CallOutcome, NativeType, VersionInfo


def format_value(value: Any) -> str:
    """Render a decoded native value for humans."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        return repr(value)
    return str(value)


def describe_outcome(outcome: CallOutcome) -> str:
    """Build the single result line for *outcome*.

    Rules
    -----
    * Output parameters are the payload when present (``label: value``;
      several outputs are joined as ``name=value``).
    * Otherwise a ``void`` call renders as ``label: ok``.
    * Otherwise the return value is shown.
    """
    descriptor = outcome.descriptor
    result = outcome.result
    label = descriptor.label or descriptor.function

    if result.outputs:
        if len(result.outputs) == 1:
            (value,) = result.outputs.values()
            payload = format_value(value)
        else:
            payload = ", ".join(
                f"{name}={format_value(value)}" for name, value in result.outputs.items()
            )
        if descriptor.restype is not NativeType.VOID and not descriptor.fails_on_false:
            payload = f"{payload} (returned {format_value(result.value)})"
        return f"{label}: {payload}"

    if descriptor.restype is NativeType.VOID:
        return f"{label}: ok"
    return f"{label}: {format_value(result.value)}"


def _jsonable(value: Any) -> Any:
    if isinstance(value, VersionInfo):
        return dataclasses.asdict(value)
    return value


def outcome_to_dict(outcome: CallOutcome) -> dict[str, Any]:
    """Return a JSON-serialisable mapping describing *outcome*."""
    descriptor = outcome.descriptor
    result = outcome.result
    return {
        "operation": descriptor.operation,
        "function": descriptor.function,
        "restype": descriptor.restype.value,
        "return": _jsonable(result.value),
        "outputs": {name: _jsonable(value) for name, value in result.outputs.items()},
        "error_code": result.error_code,
    }
