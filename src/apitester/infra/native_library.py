"""``ctypes`` backed implementation of :class:`~apitester.core.protocols.NativeBinding`.

This module is the **only** place in the codebase that loads shared
libraries and performs foreign calls.  ``ctypes`` errors are caught
here and re-raised as typed
:class:`~apitester.exceptions.ApiTesterError` subclasses, so nothing raw
escapes the infrastructure boundary.
"""

from __future__ import annotations

import ctypes
import logging
import platform
import struct
import sys
from collections.abc import Callable, Iterator, Sequence
from contextlib import contextmanager
from typing import Any

from apitester.config import AppSettings
from apitester.core.models import (
    FLOAT_TYPES,
    INTEGER_RANGES,
    OUTPUT_TYPES,
    RETURN_TYPES,
    CallResult,
    Direction,
    FunctionSignature,
    InitOptions,
    NativeType,
    Parameter,
)
from apitester.exceptions import (
    BindingError,
    LibraryLoadError,
    NativeCallError,
    SymbolNotFoundError,
    TypeMismatchError,
)
from apitester.infra.library_locator import require_library
from apitester.infra.structures import ApiInitOptions, CVersionInfo

logger = logging.getLogger(__name__)

_IS_WINDOWS: bool = sys.platform == "win32"

_SCALAR_CTYPES: dict[NativeType, Any] = {
    NativeType.BOOL: ctypes.c_int32,
    NativeType.INT8: ctypes.c_int8,
    NativeType.UINT8: ctypes.c_uint8,
    NativeType.INT16: ctypes.c_int16,
    NativeType.UINT16: ctypes.c_uint16,
    NativeType.INT32: ctypes.c_int32,
    NativeType.UINT32: ctypes.c_uint32,
    NativeType.INT64: ctypes.c_int64,
    NativeType.UINT64: ctypes.c_uint64,
    NativeType.FLOAT: ctypes.c_float,
    NativeType.DOUBLE: ctypes.c_double,
    NativeType.STRING: ctypes.c_char_p,
    NativeType.WSTRING: ctypes.c_wchar_p,
}

_PARAMETER_CTYPES: dict[NativeType, Any] = {
    **_SCALAR_CTYPES,
    NativeType.CHAR_BUFFER: ctypes.POINTER(ctypes.c_char),
    NativeType.WCHAR_BUFFER: ctypes.POINTER(ctypes.c_wchar),
    NativeType.VERSION_INFO: ctypes.POINTER(CVersionInfo),
    NativeType.INIT_OPTIONS: ctypes.POINTER(ApiInitOptions),
}

Loader = Callable[[str], Any]
Unloader = Callable[[int], None]


def interpreter_bits() -> int:
    """Pointer width of the running interpreter (32 or 64)."""
    return struct.calcsize("P") * 8


def default_loader(calling_convention: str) -> Loader:
    """Return the ``ctypes`` loader for *calling_convention*.

    Raises
    ------
    LibraryLoadError
        When ``stdcall`` is requested on a platform without ``WinDLL``.
    """
    if calling_convention == "stdcall":
        win_dll = getattr(ctypes, "WinDLL", None)
        if win_dll is None:
            raise LibraryLoadError(
                "stdcall libraries can only be loaded on Windows.",
                hint="Set APITESTER_CALLING_CONVENTION=cdecl.",
            )
        return lambda target: win_dll(target, use_last_error=True)
    if _IS_WINDOWS:
        return lambda target: ctypes.CDLL(target, use_last_error=True)
    return lambda target: ctypes.CDLL(target, use_errno=True)


def release_handle(handle: int) -> None:
    """Unload a library handle obtained from ``ctypes``."""
    import _ctypes

    if _IS_WINDOWS:
        _ctypes.FreeLibrary(handle)
    else:
        _ctypes.dlclose(handle)


def _reset_error() -> None:
    if _IS_WINDOWS:
        ctypes.set_last_error(0)
    else:
        ctypes.set_errno(0)


def _read_error() -> int:
    if _IS_WINDOWS:
        return ctypes.get_last_error()
    return ctypes.get_errno()


# ---------------------------------------------------------------------------
# Loaded library
# ---------------------------------------------------------------------------

class NativeLibrary:
    """Concrete :class:`NativeBinding` owning one loaded library handle.

    Usage::

        with NativeLibrary.open("/opt/am/libtpcAmApi.so") as library:
            function = library.resolve(signature)
            result = function(arguments)

    The handle is released exactly once, by :meth:`close` or on leaving
    the ``with`` block, whichever comes first.
    """

    def __init__(
        self,
        dll: Any,
        target: str,
        *,
        encoding: str = "utf-8",
        unloader: Unloader | None = release_handle,
    ) -> None:
        self._dll: Any = dll
        self._target: str = target
        self._encoding: str = encoding
        self._unloader: Unloader | None = unloader
        self._closed: bool = False

    @classmethod
    def open(
        cls,
        target: str,
        *,
        calling_convention: str = "cdecl",
        encoding: str = "utf-8",
        loader: Loader | None = None,
        unloader: Unloader | None = release_handle,
    ) -> NativeLibrary:
        """Load *target* and wrap the handle.

        Raises
        ------
        LibraryLoadError
            When the loader rejects the library.
        """
        load = loader or default_loader(calling_convention)
        logger.info("loading native library %s (%s)", target, calling_convention)
        try:
            dll = load(target)
        except OSError as exc:
            raise LibraryLoadError(
                f"Cannot load {target}: {exc}",
                hint=(
                    f"Running under {interpreter_bits()}-bit Python at {sys.executable} "
                    f"on {platform.machine() or 'unknown machine'}; the library must be "
                    "built for the same architecture."
                ),
            ) from exc
        return cls(dll, target, encoding=encoding, unloader=unloader)

    @property
    def target(self) -> str:
        return self._target

    @property
    def closed(self) -> bool:
        return self._closed

    # ------------------------------------------------------------------
    # Protocol methods
    # ------------------------------------------------------------------

    def resolve(self, signature: FunctionSignature) -> BoundFunction:
        """Look up ``signature.symbol`` and declare its foreign types.

        Raises
        ------
        BindingError
            When the library has already been closed.
        TypeMismatchError
            When a type is not valid in its position.
        SymbolNotFoundError
            When the symbol is not exported.
        """
        if self._closed:
            raise BindingError(f"Library {self._target} is already closed.")

        _validate_signature(signature)

        try:
            # Item access returns a fresh function pointer, so argtypes
            # set here never leak into other resolutions of the symbol.
            function = self._dll[signature.symbol]
        except AttributeError as exc:
            raise SymbolNotFoundError(
                f"Symbol {signature.symbol!r} not found in {self._target}.",
                hint="Check the spelling and that the library exports it undecorated.",
            ) from exc

        function.argtypes = [_PARAMETER_CTYPES[p.type] for p in signature.parameters]
        function.restype = (
            None if signature.restype is NativeType.VOID else _SCALAR_CTYPES[signature.restype]
        )
        logger.debug("resolved %s in %s", signature.symbol, self._target)
        return BoundFunction(signature, function, encoding=self._encoding)

    def close(self) -> None:
        """Release the library handle.  Later calls are no-ops."""
        if self._closed:
            return
        self._closed = True
        handle = getattr(self._dll, "_handle", None)
        logger.info("releasing native library %s", self._target)
        if self._unloader is None or handle is None:
            return
        try:
            self._unloader(handle)
        except OSError as exc:
            logger.warning("could not release native library %s: %s", self._target, exc)

    def __enter__(self) -> NativeLibrary:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


# ---------------------------------------------------------------------------
# Resolved function
# ---------------------------------------------------------------------------

class BoundFunction:
    """Concrete :class:`NativeFunction` wrapping a ``ctypes`` function pointer."""

    def __init__(self, signature: FunctionSignature, function: Any, *, encoding: str) -> None:
        self.signature: FunctionSignature = signature
        self._function: Any = function
        self._encoding: str = encoding

    def __call__(self, arguments: Sequence[Any]) -> CallResult:
        parameters = self.signature.parameters
        symbol = self.signature.symbol
        if len(arguments) != len(parameters):
            raise TypeMismatchError(
                f"{symbol} takes {len(parameters)} argument(s), got {len(arguments)}.",
            )

        c_args: list[Any] = []
        outputs: dict[str, Any] = {}
        for param, value in zip(parameters, arguments):
            _check_value(symbol, param, value)
            c_arg, output = self._marshal(param, value)
            c_args.append(c_arg)
            if output is not None:
                outputs[param.name] = output

        _reset_error()
        try:
            raw = self._function(*c_args)
        except ctypes.ArgumentError as exc:
            raise TypeMismatchError(f"{symbol}: {exc}") from exc
        except OSError as exc:
            code = getattr(exc, "winerror", None) or exc.errno or 0
            raise NativeCallError(
                f"{symbol} faulted: {exc}",
                error_code=code,
            ) from exc
        error_code = _read_error()

        return CallResult(
            value=self._decode_return(raw),
            outputs={name: self._decode_output(obj) for name, obj in outputs.items()},
            error_code=error_code,
        )

    # ------------------------------------------------------------------
    # Marshalling
    # ------------------------------------------------------------------

    def _marshal(self, param: Parameter, value: Any) -> tuple[Any, Any]:
        """Return ``(c_argument, output_object_or_None)`` for one parameter."""
        native_type = param.type
        if native_type is NativeType.CHAR_BUFFER:
            buffer = ctypes.create_string_buffer(param.size or 1)
            return buffer, buffer
        if native_type is NativeType.WCHAR_BUFFER:
            buffer = ctypes.create_unicode_buffer(param.size or 1)
            return buffer, buffer
        if native_type is NativeType.VERSION_INFO:
            info = CVersionInfo()
            return ctypes.byref(info), info
        if native_type is NativeType.INIT_OPTIONS:
            options = ApiInitOptions.from_model(value, encoding=self._encoding)
            return ctypes.byref(options), None
        if native_type is NativeType.STRING:
            try:
                return value.encode(self._encoding), None
            except UnicodeEncodeError as exc:
                raise TypeMismatchError(
                    f"{param.name} cannot be encoded as {self._encoding}: {exc}",
                ) from exc
        if native_type is NativeType.BOOL:
            return int(value), None
        return value, None

    def _decode_return(self, raw: Any) -> Any:
        restype = self.signature.restype
        if restype is NativeType.VOID:
            return None
        if restype is NativeType.BOOL:
            return bool(raw)
        if restype is NativeType.STRING:
            return None if raw is None else raw.decode(self._encoding, errors="replace")
        return raw

    def _decode_output(self, obj: Any) -> Any:
        if isinstance(obj, CVersionInfo):
            return obj.to_model()
        value = obj.value
        if isinstance(value, bytes):
            return value.decode(self._encoding, errors="replace")
        return value


# ---------------------------------------------------------------------------
# Validation helpers
# ---------------------------------------------------------------------------

def _validate_signature(signature: FunctionSignature) -> None:
    if signature.restype not in RETURN_TYPES:
        raise TypeMismatchError(
            f"{signature.symbol}: {signature.restype.value} cannot be a return type.",
        )
    for param in signature.parameters:
        if (param.type in OUTPUT_TYPES) != (param.direction is Direction.OUT):
            raise TypeMismatchError(
                f"{signature.symbol}: {param.type.value} parameter {param.name!r}"
                f" cannot have direction {param.direction.value}.",
            )
        if param.type is NativeType.VOID:
            raise TypeMismatchError(f"{signature.symbol}: void parameter {param.name!r}.")


def _check_value(symbol: str, param: Parameter, value: Any) -> None:
    """Raise :class:`TypeMismatchError` if *value* does not fit *param*."""
    native_type = param.type
    expected: str | None = None

    if param.direction is Direction.OUT:
        if value is not None:
            expected = "None (output parameter)"
    elif native_type is NativeType.INIT_OPTIONS:
        if not isinstance(value, InitOptions):
            expected = "InitOptions"
    elif native_type is NativeType.BOOL:
        if not isinstance(value, bool):
            expected = "bool"
    elif native_type in INTEGER_RANGES:
        if not isinstance(value, int) or isinstance(value, bool):
            expected = "int"
        else:
            low, high = INTEGER_RANGES[native_type]
            if not low <= value <= high:
                raise TypeMismatchError(
                    f"{symbol}: {param.name}={value} is out of range for {native_type.value}.",
                )
    elif native_type in FLOAT_TYPES:
        if not isinstance(value, (int, float)) or isinstance(value, bool):
            expected = "float"
    elif native_type in (NativeType.STRING, NativeType.WSTRING):
        if not isinstance(value, str):
            expected = "str"
        elif "\0" in value:
            raise TypeMismatchError(
                f"{symbol}: {param.name} must not contain NUL characters.",
            )

    if expected is not None:
        raise TypeMismatchError(
            f"{symbol}: {param.name} expects {expected} for {native_type.value},"
            f" got {type(value).__name__}.",
        )


# ---------------------------------------------------------------------------
# Session helper
# ---------------------------------------------------------------------------

@contextmanager
def open_library(
    settings: AppSettings,
    explicit: str | None = None,
) -> Iterator[NativeLibrary]:
    """Locate, load and yield the configured library; always release it."""
    target = require_library(settings, explicit)
    library = NativeLibrary.open(
        target,
        calling_convention=settings.calling_convention,
        encoding=settings.string_encoding,
    )
    try:
        yield library
    finally:
        library.close()
