"""Explicit registration table mapping operation names to specs.

Built once at startup; every lookup happens before a library is loaded,
so unknown names never reach the binding layer.
"""

from __future__ import annotations

import difflib
from collections.abc import Iterable, Iterator

from apitester.core.models import (
    OUTPUT_TYPES,
    RETURN_TYPES,
    Direction,
    NativeType,
    OperationSpec,
)
from apitester.exceptions import UsageError

RESERVED_NAMES: frozenset[str] = frozenset({"call", "list", "doctor", "menu", "help"})
"""Names handled by the CLI or dispatcher themselves."""


class OperationRegistry:
    """Ordered, name-unique collection of :class:`OperationSpec` entries."""

    def __init__(self, specs: Iterable[OperationSpec] = ()) -> None:
        self._specs: dict[str, OperationSpec] = {}
        for spec in specs:
            self.register(spec)

    def register(self, spec: OperationSpec) -> None:
        """Add *spec*, validating its name and signature.

        Raises
        ------
        ValueError
            On a reserved or duplicate name, or an inconsistent signature.
        """
        name = spec.name
        if not name or name != name.strip().lower() or " " in name:
            raise ValueError(f"Invalid operation name: {name!r}")
        if name in RESERVED_NAMES:
            raise ValueError(f"Operation name {name!r} is reserved")
        if name in self._specs:
            raise ValueError(f"Operation {name!r} is already registered")

        signature = spec.signature
        if signature.restype not in RETURN_TYPES:
            raise ValueError(f"{name}: {signature.restype.value} is not a return type")
        if spec.fails_on_false and signature.restype is not NativeType.BOOL:
            raise ValueError(f"{name}: fails_on_false requires a bool return type")
        for param in signature.parameters:
            is_output_type = param.type in OUTPUT_TYPES
            if is_output_type != (param.direction is Direction.OUT):
                raise ValueError(
                    f"{name}: parameter {param.name!r} has type {param.type.value}"
                    f" but direction {param.direction.value}",
                )
            if param.type in (NativeType.CHAR_BUFFER, NativeType.WCHAR_BUFFER) and not param.size:
                raise ValueError(f"{name}: buffer parameter {param.name!r} needs a size")

        self._specs[name] = spec

    def get(self, name: str) -> OperationSpec:
        """Return the spec registered as *name*.

        Raises
        ------
        UsageError
            For an unknown name, with a close-match suggestion if any.
        """
        key = name.strip().lower()
        try:
            return self._specs[key]
        except KeyError:
            pass

        matches = difflib.get_close_matches(key, list(self._specs), n=1)
        hint = (
            f"Did you mean '{matches[0]}'?"
            if matches
            else "Run 'apitester list' to see available operations."
        )
        raise UsageError(f"Unknown operation: {name!r}", hint=hint)

    def names(self) -> list[str]:
        return list(self._specs)

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and name.strip().lower() in self._specs

    def __iter__(self) -> Iterator[OperationSpec]:
        return iter(self._specs.values())

    def __len__(self) -> int:
        return len(self._specs)
