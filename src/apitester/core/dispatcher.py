"""Command dispatcher — turns argument vectors into native calls.

This is the central service consumed by the CLI layer.  It depends on
an :class:`~apitester.core.registry.OperationRegistry` built at startup
and on a :class:`~apitester.core.protocols.NativeBinding` passed in
explicitly at execution time, keeping the core free of ``ctypes``.

Guarantees
----------
* Planning is pure: unknown operations and malformed arguments are
  rejected before any library is loaded.
* Each planned descriptor is executed exactly once, in order.
* Only :class:`~apitester.exceptions.ApiTesterError` subclasses escape.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator, Sequence
from typing import Any

from apitester.core.arguments import bind_arguments, parse_raw_call, split_sequence
from apitester.core.models import (
    CallDescriptor,
    CallOutcome,
    CallResult,
    InitOptions,
    NativeType,
)
from apitester.core.protocols import NativeBinding
from apitester.core.registry import OperationRegistry
from apitester.exceptions import ApiTesterError, NativeCallError, UsageError

logger = logging.getLogger(__name__)

RAW_CALL_OPERATION: str = "call"


class CommandDispatcher:
    """Plans and executes operations against a native binding.

    Parameters
    ----------
    registry:
        Operations addressable by name.
    init_options:
        Values bound to ``init-options`` parameters.
    """

    def __init__(
        self,
        registry: OperationRegistry,
        *,
        init_options: InitOptions | None = None,
    ) -> None:
        self._registry: OperationRegistry = registry
        self._init_options: InitOptions = init_options or InitOptions()

    @property
    def registry(self) -> OperationRegistry:
        return self._registry

    # ------------------------------------------------------------------
    # Planning (pure)
    # ------------------------------------------------------------------

    def plan(self, argv: Sequence[str]) -> list[CallDescriptor]:
        """Translate *argv* into an ordered list of call descriptors.

        Raises
        ------
        UsageError
            If *argv* is empty, names an unknown operation, or carries
            malformed arguments for any operation in the sequence.
        """
        if not argv:
            raise UsageError(
                "No operation given.",
                hint="Run 'apitester list' to see available operations.",
            )
        return [self.plan_one(segment) for segment in split_sequence(argv)]

    def plan_one(self, tokens: Sequence[str]) -> CallDescriptor:
        """Build the descriptor for a single ``<operation> [args...]`` segment."""
        name, *args = tokens

        if name.strip().lower() == RAW_CALL_OPERATION:
            signature, values = parse_raw_call(args)
            return CallDescriptor(
                operation=RAW_CALL_OPERATION,
                signature=signature,
                arguments=values,
            )

        spec = self._registry.get(name)
        values = bind_arguments(spec.signature, args, init_options=self._init_options)
        return CallDescriptor(
            operation=spec.name,
            signature=spec.signature,
            arguments=values,
            fails_on_false=spec.fails_on_false,
            label=spec.display_label,
        )

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    def execute(
        self,
        descriptors: Sequence[CallDescriptor],
        binding: NativeBinding,
    ) -> Iterator[CallOutcome]:
        """Execute *descriptors* in order, yielding each outcome as it completes.

        Execution stops at the first failure; outcomes already yielded
        stay valid.
        """
        for descriptor in descriptors:
            yield self.call(descriptor, binding)

    def call(self, descriptor: CallDescriptor, binding: NativeBinding) -> CallOutcome:
        """Resolve and invoke one descriptor.

        Raises
        ------
        SymbolNotFoundError / TypeMismatchError
            From the binding layer.
        NativeCallError
            When the call faults or a ``fails_on_false`` call returns false.
        """
        logger.info("calling %s for operation %s", descriptor.function, descriptor.operation)
        function = binding.resolve(descriptor.signature)
        result = self._invoke(function, descriptor.arguments, descriptor.function)
        logger.debug("%s returned %r", descriptor.function, result.value)

        if (
            descriptor.fails_on_false
            and descriptor.restype is NativeType.BOOL
            and not result.value
        ):
            detail = f" (native error {result.error_code})" if result.error_code else ""
            raise NativeCallError(
                f"{descriptor.function} reported failure{detail}.",
                hint="Check that the application is installed and the API is initialised.",
                error_code=result.error_code,
            )

        return CallOutcome(descriptor=descriptor, result=result)

    # ------------------------------------------------------------------
    # Binding delegation (safe boundary)
    # ------------------------------------------------------------------

    @staticmethod
    def _invoke(function: Any, arguments: Sequence[Any], symbol: str) -> CallResult:
        """Call the binding and ensure only our exceptions escape."""
        try:
            return function(arguments)
        except ApiTesterError:
            # Already typed; propagate unchanged.
            raise
        except Exception as exc:
            raise NativeCallError(
                f"Unexpected error calling {symbol}: {exc}",
            ) from exc
