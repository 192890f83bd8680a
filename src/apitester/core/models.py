"""Domain models for apitester.

All models are **frozen** dataclasses: immutable value objects with no
behaviour beyond data access and a few derived properties.  They carry
zero I/O and no dependency on ``ctypes``; the binding layer translates
them into foreign types.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


# ---------------------------------------------------------------------------
# Foreign value types
# ---------------------------------------------------------------------------

class NativeType(str, Enum):
    """Closed set of foreign types understood by the binding layer."""

    VOID = "void"
    BOOL = "bool"
    INT8 = "int8"
    UINT8 = "uint8"
    INT16 = "int16"
    UINT16 = "uint16"
    INT32 = "int"
    UINT32 = "uint"
    INT64 = "int64"
    UINT64 = "uint64"
    FLOAT = "float"
    DOUBLE = "double"
    STRING = "string"
    WSTRING = "wstring"
    CHAR_BUFFER = "char[]"
    WCHAR_BUFFER = "wchar[]"
    VERSION_INFO = "version-info"
    INIT_OPTIONS = "init-options"


INTEGER_RANGES: dict[NativeType, tuple[int, int]] = {
    NativeType.INT8: (-(2**7), 2**7 - 1),
    NativeType.UINT8: (0, 2**8 - 1),
    NativeType.INT16: (-(2**15), 2**15 - 1),
    NativeType.UINT16: (0, 2**16 - 1),
    NativeType.INT32: (-(2**31), 2**31 - 1),
    NativeType.UINT32: (0, 2**32 - 1),
    NativeType.INT64: (-(2**63), 2**63 - 1),
    NativeType.UINT64: (0, 2**64 - 1),
}
"""Inclusive value range of every integer type."""

FLOAT_TYPES: frozenset[NativeType] = frozenset({NativeType.FLOAT, NativeType.DOUBLE})

TEXT_TYPES: frozenset[NativeType] = frozenset({NativeType.STRING, NativeType.WSTRING})

BUFFER_TYPES: frozenset[NativeType] = frozenset(
    {NativeType.CHAR_BUFFER, NativeType.WCHAR_BUFFER},
)

OUTPUT_TYPES: frozenset[NativeType] = BUFFER_TYPES | {NativeType.VERSION_INFO}
"""Types that are only valid for caller-allocated output parameters."""

SCALAR_TYPES: frozenset[NativeType] = (
    frozenset(INTEGER_RANGES) | FLOAT_TYPES | {NativeType.BOOL}
)

RETURN_TYPES: frozenset[NativeType] = SCALAR_TYPES | TEXT_TYPES | {NativeType.VOID}
"""Types a foreign function may return."""


class Direction(str, Enum):
    """Data flow of a parameter relative to the native function."""

    IN = "in"
    OUT = "out"


# ---------------------------------------------------------------------------
# Signatures
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class Parameter:
    """One parameter of a foreign function."""

    name: str
    """Display name, also used as the key of decoded outputs."""

    type: NativeType
    """Foreign type of the parameter."""

    direction: Direction = Direction.IN
    """Whether the caller passes a value in or reads one back."""

    size: int | None = None
    """Element count of ``char[]`` / ``wchar[]`` output buffers."""

    default: Any = None
    """Value used when the argument is omitted; ``None`` means required."""

    help: str = ""
    """One-line description shown by ``list`` and the interactive menu."""

    @property
    def user_supplied(self) -> bool:
        """``True`` when the value comes from a command-line argument."""
        return self.direction is Direction.IN and self.type is not NativeType.INIT_OPTIONS

    @property
    def required(self) -> bool:
        return self.user_supplied and self.default is None


@dataclass(frozen=True, slots=True)
class FunctionSignature:
    """Symbol name plus ordered parameters and return type."""

    symbol: str
    parameters: tuple[Parameter, ...] = ()
    restype: NativeType = NativeType.VOID

    @property
    def user_parameters(self) -> tuple[Parameter, ...]:
        return tuple(p for p in self.parameters if p.user_supplied)


@dataclass(frozen=True, slots=True)
class OperationSpec:
    """A named, registered operation of the command dispatcher."""

    name: str
    """Command-line name (e.g. ``api-version``)."""

    signature: FunctionSignature
    """Foreign signature invoked by the operation."""

    summary: str = ""
    """One-line description for ``list`` and ``menu``."""

    label: str = ""
    """Prefix of the rendered result; defaults to the symbol name."""

    fails_on_false: bool = False
    """Treat a ``bool`` result of ``False`` as a native call failure."""

    @property
    def display_label(self) -> str:
        return self.label or self.signature.symbol


# ---------------------------------------------------------------------------
# Native data structures
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class VersionInfo:
    """Decoded ``CVersionInfo`` structure."""

    major: int
    minor: int
    major_build: int
    minor_build: int
    platform: int

    def __str__(self) -> str:
        return (
            f"{self.major}.{self.minor}.{self.major_build}.{self.minor_build}"
            f" (platform={self.platform})"
        )


@dataclass(frozen=True, slots=True)
class InitOptions:
    """Values passed to the library's initialisation routine."""

    start_if_not_running: bool = True
    timeout_ms: int = 60_000
    fast_start: bool = False
    keep_in_back: bool = False
    language: str = ""
    map_path: str = ""
    profile: str = ""


# ---------------------------------------------------------------------------
# Invocation records
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class CallDescriptor:
    """One invocation into the native library.

    Created per invocation by the dispatcher and discarded once the call
    returns or fails.  ``arguments`` is aligned with
    ``signature.parameters``; output parameters hold ``None``.
    """

    operation: str
    signature: FunctionSignature
    arguments: tuple[Any, ...]
    fails_on_false: bool = False
    label: str = ""

    @property
    def function(self) -> str:
        return self.signature.symbol

    @property
    def restype(self) -> NativeType:
        return self.signature.restype


@dataclass(frozen=True, slots=True)
class CallResult:
    """Raw result of a foreign call as reported by the binding layer."""

    value: Any
    """Decoded return value (``None`` for ``void``)."""

    outputs: dict[str, Any] = field(default_factory=dict)
    """Decoded output parameters keyed by parameter name."""

    error_code: int = 0
    """``errno`` / ``GetLastError()`` captured right after the call."""


@dataclass(frozen=True, slots=True)
class CallOutcome:
    """A descriptor paired with the result of executing it."""

    descriptor: CallDescriptor
    result: CallResult
