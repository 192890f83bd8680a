"""Shared pytest fixtures and configuration for the apitester test suite.

Guidelines
----------
* No real AutoMapa library is required; the binding layer is faked.
* Integration tests against the C runtime skip when it cannot be found.
* Core tests must be pure — no side effects.
* Tests must not depend on ``APITESTER_*`` variables or a local ``.env``.
"""

from __future__ import annotations

import os
from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from typing import Any

import pytest

from apitester.core.models import CallResult, FunctionSignature
from apitester.exceptions import SymbolNotFoundError


@pytest.fixture(autouse=True)
def _isolated_environment(
    monkeypatch: pytest.MonkeyPatch,
    tmp_path: Any,
) -> None:
    """Drop APITESTER_* variables and run from an empty directory."""
    for key in list(os.environ):
        if key.upper().startswith("APITESTER_"):
            monkeypatch.delenv(key, raising=False)
    monkeypatch.chdir(tmp_path)


class FakeFunction:
    """Callable standing in for a resolved native function."""

    def __init__(self, signature: FunctionSignature, result: CallResult | Exception) -> None:
        self.signature = signature
        self._result = result
        self.calls: list[tuple[Any, ...]] = []

    def __call__(self, arguments: Sequence[Any]) -> CallResult:
        self.calls.append(tuple(arguments))
        if isinstance(self._result, Exception):
            raise self._result
        return self._result


class FakeBinding:
    """In-memory :class:`NativeBinding` keyed by symbol name."""

    def __init__(self, results: dict[str, CallResult | Exception] | None = None) -> None:
        self.results: dict[str, CallResult | Exception] = dict(results or {})
        self.functions: dict[str, FakeFunction] = {}
        self.resolved: list[str] = []
        self.close_count = 0

    def resolve(self, signature: FunctionSignature) -> FakeFunction:
        self.resolved.append(signature.symbol)
        if signature.symbol not in self.results:
            raise SymbolNotFoundError(f"Symbol {signature.symbol!r} not found.")
        function = self.functions.get(signature.symbol)
        if function is None:
            function = FakeFunction(signature, self.results[signature.symbol])
            self.functions[signature.symbol] = function
        return function

    def calls_to(self, symbol: str) -> list[tuple[Any, ...]]:
        function = self.functions.get(symbol)
        return function.calls if function is not None else []

    def close(self) -> None:
        self.close_count += 1


class FakeLibrarySession:
    """Replacement for ``open_library`` that counts acquisitions."""

    def __init__(self, binding: FakeBinding) -> None:
        self.binding = binding
        self.open_count = 0
        self.targets: list[str | None] = []

    @contextmanager
    def __call__(self, settings: Any, explicit: str | None = None) -> Iterator[FakeBinding]:
        self.open_count += 1
        self.targets.append(explicit)
        try:
            yield self.binding
        finally:
            self.binding.close()


@pytest.fixture()
def fake_binding() -> FakeBinding:
    return FakeBinding()


@pytest.fixture()
def fake_session(
    monkeypatch: pytest.MonkeyPatch,
    fake_binding: FakeBinding,
) -> FakeLibrarySession:
    """Patch ``open_library`` so CLI tests never touch a real loader."""
    session = FakeLibrarySession(fake_binding)
    monkeypatch.setattr("apitester.infra.native_library.open_library", session)
    return session
