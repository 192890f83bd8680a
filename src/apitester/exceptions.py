"""Custom exception hierarchy for apitester.

All exceptions that cross layer boundaries must inherit from
:class:`ApiTesterError`.  Raw ``ctypes`` and ``pydantic`` exceptions
must NEVER propagate beyond the layer that produced them; they are
caught and re-raised as a typed subclass defined here.

Hierarchy
---------
ApiTesterError
├── UsageError
├── ConfigurationError
├── EnvironmentError
├── BindingError
│   ├── LibraryNotFoundError
│   ├── LibraryLoadError
│   ├── SymbolNotFoundError
│   └── TypeMismatchError
└── NativeCallError
"""

from __future__ import annotations


class ApiTesterError(Exception):
    """Base exception for all apitester errors.

    Every user-visible error condition must map to a subclass of this
    exception so that the CLI error boundary can render a clean message
    without leaking internal stack traces.
    """

    def __init__(self, message: str, *, hint: str | None = None) -> None:
        super().__init__(message)
        self.hint: str | None = hint
        """Optional actionable guidance shown below the error message."""


# --- Command line ----------------------------------------------------------

class UsageError(ApiTesterError):
    """Raised for malformed or missing command-line arguments."""


# --- Configuration / environment ------------------------------------------

class ConfigurationError(ApiTesterError):
    """Raised when settings from the environment or ``.env`` are invalid."""


class EnvironmentError(ApiTesterError):
    """Raised when an optional runtime dependency is not available."""


# --- Native binding -------------------------------------------------------

class BindingError(ApiTesterError):
    """Raised when the binding layer cannot produce a usable callable."""


class LibraryNotFoundError(BindingError):
    """Raised when no shared library can be located by the search rules."""


class LibraryLoadError(BindingError):
    """Raised when the loader rejects the located shared library."""


class SymbolNotFoundError(BindingError):
    """Raised when a symbol is not exported by the loaded library."""


class TypeMismatchError(BindingError):
    """Raised when argument values do not match the declared signature."""


# --- Native call ----------------------------------------------------------

class NativeCallError(ApiTesterError):
    """Raised when the foreign call itself signals failure."""

    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        error_code: int = 0,
    ) -> None:
        super().__init__(message, hint=hint)
        self.error_code: int = error_code
        """Native error number captured right after the call (0 if none)."""
