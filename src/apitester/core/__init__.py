"""Core / service layer — operation registry, argument parsing, dispatch.

Rules
-----
* No ``print()`` calls.
* No filesystem or native-library I/O.
* No imports from ``cli`` or ``infra``.
* All functions must be fully typed and deterministic.
"""

from apitester.core.catalog import build_default_registry
from apitester.core.dispatcher import CommandDispatcher
from apitester.core.models import (
    CallDescriptor,
    CallOutcome,
    CallResult,
    Direction,
    FunctionSignature,
    InitOptions,
    NativeType,
    OperationSpec,
    Parameter,
    VersionInfo,
)
from apitester.core.protocols import NativeBinding, NativeFunction
from apitester.core.registry import OperationRegistry

__all__: list[str] = [
    "CallDescriptor",
    "CallOutcome",
    "CallResult",
    "CommandDispatcher",
    "Direction",
    "FunctionSignature",
    "InitOptions",
    "NativeBinding",
    "NativeFunction",
    "NativeType",
    "OperationRegistry",
    "OperationSpec",
    "Parameter",
    "VersionInfo",
    "build_default_registry",
]
