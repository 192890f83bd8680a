"""Infrastructure layer — native library integration.

This layer wraps all interaction with ``ctypes`` and the operating
system's dynamic loader.  Every raw ``ctypes`` exception must be caught
here and re-raised as an :class:`~apitester.exceptions.ApiTesterError`
subclass.

Rules
-----
* No imports from ``cli``.
* No user-facing output (no ``print()``, no Rich rendering).
* Must expose clean, typed interfaces consumed by the core layer.
"""

from apitester.infra.library_locator import LibraryStatus, detect_library, require_library
from apitester.infra.native_library import BoundFunction, NativeLibrary, open_library

__all__: list[str] = [
    "BoundFunction",
    "LibraryStatus",
    "NativeLibrary",
    "detect_library",
    "open_library",
    "require_library",
]
