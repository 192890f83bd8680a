"""Pure command-line argument parsing into typed native values.

Every function in this module is a **pure** transformation: no I/O,
no side effects, fully deterministic, and trivially unit-testable.
Malformed input always raises :class:`~apitester.exceptions.UsageError`.

Pipeline order (driven by the dispatcher):

1. **Split** — break the argument vector into ``+``-separated segments.
2. **Parse** — convert each string to the value of its declared type.
3. **Bind** — align parsed values with a signature's parameters.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from apitester.core.models import (
    BUFFER_TYPES,
    FLOAT_TYPES,
    INTEGER_RANGES,
    RETURN_TYPES,
    TEXT_TYPES,
    Direction,
    FunctionSignature,
    InitOptions,
    NativeType,
    Parameter,
)
from apitester.exceptions import UsageError

SEQUENCE_SEPARATOR: str = "+"
"""Token that chains several operations into one invocation."""

_TRUE_WORDS: frozenset[str] = frozenset({"1", "true", "yes", "on", "y"})
_FALSE_WORDS: frozenset[str] = frozenset({"0", "false", "no", "off", "n"})

MAX_BUFFER_SIZE: int = 1 << 20

_TYPE_NAMES: frozenset[str] = frozenset(t.value for t in NativeType)


# ---------------------------------------------------------------------------
# 1. Split
# ---------------------------------------------------------------------------

def split_sequence(tokens: Sequence[str]) -> list[list[str]]:
    """Split *tokens* on :data:`SEQUENCE_SEPARATOR`.

    ``["init", "+", "ready"]`` becomes ``[["init"], ["ready"]]``.
    Empty segments (leading, trailing or doubled separators) are
    rejected.
    """
    segments: list[list[str]] = [[]]
    for token in tokens:
        if token == SEQUENCE_SEPARATOR:
            segments.append([])
        else:
            segments[-1].append(token)

    if any(not segment for segment in segments):
        raise UsageError(
            f"Empty operation in sequence: {' '.join(tokens)!r}",
            hint=f"Separate operations with a single '{SEQUENCE_SEPARATOR}', "
            f"e.g. init {SEQUENCE_SEPARATOR} ready",
        )
    return segments


# ---------------------------------------------------------------------------
# 2. Parse
# ---------------------------------------------------------------------------

def parse_bool(text: str, *, name: str = "value") -> bool:
    """Parse ``true``/``false`` style words (case-insensitive)."""
    word = text.strip().lower()
    if word in _TRUE_WORDS:
        return True
    if word in _FALSE_WORDS:
        return False
    raise UsageError(
        f"Invalid boolean for {name}: {text!r}",
        hint="Use one of: true, false, yes, no, on, off, 1, 0",
    )


def parse_int(text: str, native_type: NativeType, *, name: str = "value") -> int:
    """Parse a decimal, ``0x`` hex, ``0o`` octal or ``0b`` binary integer."""
    try:
        value = int(text.strip(), 0)
    except ValueError:
        raise UsageError(f"Invalid integer for {name}: {text!r}") from None

    low, high = INTEGER_RANGES[native_type]
    if not low <= value <= high:
        raise UsageError(
            f"Value {value} for {name} is out of range for {native_type.value}",
            hint=f"Expected {low} .. {high}",
        )
    return value


def parse_float(text: str, *, name: str = "value") -> float:
    try:
        return float(text.strip())
    except ValueError:
        raise UsageError(f"Invalid number for {name}: {text!r}") from None


def parse_value(text: str, native_type: NativeType, *, name: str = "value") -> Any:
    """Convert one command-line string into a value of *native_type*."""
    if native_type is NativeType.BOOL:
        return parse_bool(text, name=name)
    if native_type in INTEGER_RANGES:
        return parse_int(text, native_type, name=name)
    if native_type in FLOAT_TYPES:
        return parse_float(text, name=name)
    if native_type in TEXT_TYPES:
        return text
    raise UsageError(
        f"Parameter {name} of type {native_type.value} cannot be given on the command line.",
    )


def parse_type_name(text: str) -> NativeType:
    """Map a type name such as ``int`` or ``wchar[]`` to :class:`NativeType`."""
    try:
        return NativeType(text.strip().lower())
    except ValueError:
        known = ", ".join(t.value for t in NativeType if t is not NativeType.INIT_OPTIONS)
        raise UsageError(
            f"Unknown native type: {text!r}",
            hint=f"Known types: {known}",
        ) from None


def parse_buffer_size(text: str, *, name: str = "buffer") -> int:
    try:
        size = int(text.strip(), 0)
    except ValueError:
        raise UsageError(f"Invalid buffer size for {name}: {text!r}") from None
    if not 1 <= size <= MAX_BUFFER_SIZE:
        raise UsageError(
            f"Buffer size {size} for {name} must be between 1 and {MAX_BUFFER_SIZE}",
        )
    return size


# ---------------------------------------------------------------------------
# 3. Bind
# ---------------------------------------------------------------------------

def bind_arguments(
    signature: FunctionSignature,
    tokens: Sequence[str],
    *,
    init_options: InitOptions | None = None,
) -> tuple[Any, ...]:
    """Align *tokens* with the parameters of *signature*.

    User-supplied parameters consume tokens in order and fall back to
    their default once tokens run out.  Output parameters are bound to
    ``None``; ``init-options`` parameters receive *init_options*.

    Raises
    ------
    UsageError
        On a missing required argument, a malformed value, or leftover
        tokens.
    """
    remaining = list(tokens)
    values: list[Any] = []

    for param in signature.parameters:
        if param.direction is Direction.OUT:
            values.append(None)
        elif param.type is NativeType.INIT_OPTIONS:
            values.append(init_options if init_options is not None else InitOptions())
        elif remaining:
            values.append(parse_value(remaining.pop(0), param.type, name=param.name))
        elif param.default is not None:
            values.append(param.default)
        else:
            raise UsageError(
                f"Missing argument <{param.name}> for {signature.symbol}",
                hint=usage_line(signature),
            )

    if remaining:
        raise UsageError(
            f"Too many arguments for {signature.symbol}: {' '.join(remaining)}",
            hint=usage_line(signature),
        )
    return tuple(values)


def usage_line(signature: FunctionSignature, name: str | None = None) -> str:
    """Render ``name <a> [b=default]`` for the user-supplied parameters."""
    parts: list[str] = [name or signature.symbol]
    for param in signature.user_parameters:
        if param.default is None:
            parts.append(f"<{param.name}:{param.type.value}>")
        else:
            parts.append(f"[{param.name}:{param.type.value}={param.default!r}]")
    return " ".join(parts)


# ---------------------------------------------------------------------------
# Ad-hoc signatures for the ``call`` operation
# ---------------------------------------------------------------------------

def parse_raw_call(tokens: Sequence[str]) -> tuple[FunctionSignature, tuple[Any, ...]]:
    """Build a signature and values from ``<symbol> <restype> [type:value ...]``.

    Output parameters are written ``char[]:<size>``, ``wchar[]:<size>``
    or ``version-info`` and are named ``out1``, ``out2`` ... in order.
    """
    if len(tokens) < 2:
        raise UsageError(
            "call requires a symbol and a return type.",
            hint="call <symbol> <return-type> [<type>:<value> ...]",
        )

    symbol, restype_name, *arg_tokens = tokens
    if not symbol.strip():
        raise UsageError("Symbol name must not be empty.")

    restype = parse_type_name(restype_name)
    if restype not in RETURN_TYPES:
        raise UsageError(
            f"{restype.value} is not a valid return type.",
            hint="Return output buffers and structs through parameters instead.",
        )

    parameters: list[Parameter] = []
    values: list[Any] = []
    outputs = 0
    for position, token in enumerate(arg_tokens, start=1):
        type_name, sep, raw_value = token.partition(":")
        if not sep and type_name.strip().lower() not in _TYPE_NAMES:
            raise UsageError(
                f"Argument {token!r} must be written as <type>:<value>",
                hint="e.g. int:42, double:1.5, string:hello",
            )
        native_type = parse_type_name(type_name)

        if native_type is NativeType.VOID or native_type is NativeType.INIT_OPTIONS:
            raise UsageError(f"{native_type.value} cannot be used as an argument type.")

        if native_type in BUFFER_TYPES:
            outputs += 1
            name = f"out{outputs}"
            if not sep:
                raise UsageError(
                    f"{native_type.value} argument needs a size, e.g. {native_type.value}:256",
                )
            parameters.append(
                Parameter(
                    name=name,
                    type=native_type,
                    direction=Direction.OUT,
                    size=parse_buffer_size(raw_value, name=name),
                ),
            )
            values.append(None)
            continue

        if native_type is NativeType.VERSION_INFO:
            outputs += 1
            parameters.append(
                Parameter(name=f"out{outputs}", type=native_type, direction=Direction.OUT),
            )
            values.append(None)
            continue

        if not sep:
            raise UsageError(
                f"Argument {token!r} must be written as <type>:<value>",
                hint="e.g. int:42, double:1.5, string:hello",
            )
        name = f"arg{position}"
        parameters.append(Parameter(name=name, type=native_type))
        values.append(parse_value(raw_value, native_type, name=name))

    signature = FunctionSignature(
        symbol=symbol,
        parameters=tuple(parameters),
        restype=restype,
    )
    return signature, tuple(values)
