"""Protocols (interfaces) consumed by the core layer.

These define the contracts that the native binding layer must satisfy.
Core code depends ONLY on these protocols, never on ``ctypes`` or the
concrete loader.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any, Protocol

from apitester.core.models import CallResult, FunctionSignature


class NativeFunction(Protocol):
    """A resolved foreign function ready to be called."""

    signature: FunctionSignature

    def __call__(self, arguments: Sequence[Any]) -> CallResult:
        """Marshal *arguments*, perform the call, and decode the result.

        *arguments* is aligned with ``signature.parameters``; output
        parameters are passed as ``None`` and allocated by the binding.

        Raises
        ------
        TypeMismatchError
            When a value does not match its declared foreign type.
        NativeCallError
            When the foreign call faults.
        """
        ...  # pragma: no cover


class NativeBinding(Protocol):
    """Contract for a loaded native library.

    Any object that implements :meth:`resolve` and :meth:`close`
    satisfies this protocol structurally (no explicit inheritance
    required).
    """

    def resolve(self, signature: FunctionSignature) -> NativeFunction:
        """Look up ``signature.symbol`` and declare its foreign types.

        Raises
        ------
        SymbolNotFoundError
            When the symbol is not exported by the library.
        TypeMismatchError
            When the signature uses types invalid in its position.
        """
        ...  # pragma: no cover

    def close(self) -> None:
        """Release the library handle.  Safe to call more than once."""
        ...  # pragma: no cover
