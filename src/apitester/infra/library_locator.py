"""Infrastructure: shared-library lookup and platform naming rules.

This module is responsible for turning configuration into something
the ``ctypes`` loader can open, and for explaining where it looked when
nothing was found.

Rules
-----
* Explicit ``--library`` / ``APITESTER_LIBRARY`` always wins.
* Configured search paths, then the working directory, then
  :func:`ctypes.util.find_library` for the default name.
* Detection only, no loading.
* No ``print()``; callers handle user-facing output.
"""

from __future__ import annotations

import ctypes.util
import os
import platform
from dataclasses import dataclass
from pathlib import Path

from apitester.config import AppSettings
from apitester.exceptions import LibraryNotFoundError

_LIBRARY_SUFFIXES: tuple[str, ...] = (".dll", ".so", ".dylib")


# ---------------------------------------------------------------------------
# Detection result
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class LibraryStatus:
    """Result of a library lookup.

    Attributes
    ----------
    found : bool
        Whether a loadable target was determined.
    target : str | None
        Path or name handed to the loader, or ``None``.
    source : str
        How the target was determined (``"explicit"``, ``"search path"``,
        ``"system"``, ``"loader"``) or ``"not found"``.
    candidates : tuple[str, ...]
        Every location examined, in order.
    """

    found: bool
    target: str | None
    source: str
    candidates: tuple[str, ...]


# ---------------------------------------------------------------------------
# Detection logic
# ---------------------------------------------------------------------------

def platform_library_filenames(name: str) -> tuple[str, ...]:
    """Return the file names *name* may have on the current OS."""
    if name.lower().endswith(_LIBRARY_SUFFIXES) or ".so." in name:
        return (name,)
    system = platform.system().lower()
    if system == "windows":
        return (f"{name}.dll",)
    if system == "darwin":
        return (f"lib{name}.dylib", f"{name}.dylib")
    return (f"lib{name}.so", f"{name}.so")


def _looks_like_path(text: str) -> bool:
    return os.sep in text or (os.altsep is not None and os.altsep in text)


def detect_library(settings: AppSettings, explicit: str | None = None) -> LibraryStatus:
    """Locate the shared library described by *explicit* or *settings*.

    Returns a :class:`LibraryStatus` regardless of the outcome; the
    caller decides whether to abort or merely report.
    """
    requested = explicit or settings.library
    if requested:
        return _detect_requested(requested)

    candidates: list[str] = []
    directories = [*settings.search_paths, Path.cwd()]
    for directory in directories:
        for filename in platform_library_filenames(settings.default_library_name):
            candidate = Path(directory).expanduser() / filename
            candidates.append(str(candidate))
            if candidate.is_file():
                return LibraryStatus(
                    found=True,
                    target=str(candidate.resolve()),
                    source="search path",
                    candidates=tuple(candidates),
                )

    system_name = ctypes.util.find_library(settings.default_library_name)
    candidates.append(f"system:{settings.default_library_name}")
    if system_name:
        return LibraryStatus(
            found=True,
            target=system_name,
            source="system",
            candidates=tuple(candidates),
        )

    return LibraryStatus(
        found=False,
        target=None,
        source="not found",
        candidates=tuple(candidates),
    )


def _detect_requested(requested: str) -> LibraryStatus:
    path = Path(requested).expanduser()
    if path.is_file():
        return LibraryStatus(
            found=True,
            target=str(path.resolve()),
            source="explicit",
            candidates=(str(path),),
        )

    if _looks_like_path(requested):
        return LibraryStatus(
            found=False,
            target=None,
            source="not found",
            candidates=(str(path),),
        )

    # Bare names: let find_library expand short names ("c" -> "libc.so.6"),
    # otherwise hand the name to the loader's own search.
    system_name = ctypes.util.find_library(requested)
    if system_name:
        return LibraryStatus(
            found=True,
            target=system_name,
            source="system",
            candidates=(requested,),
        )
    return LibraryStatus(
        found=True,
        target=requested,
        source="loader",
        candidates=(requested,),
    )


def require_library(settings: AppSettings, explicit: str | None = None) -> str:
    """Return the loader target or raise :class:`LibraryNotFoundError`."""
    status = detect_library(settings, explicit)
    if not status.found or status.target is None:
        hint_lines = ["Searched:"]
        hint_lines.extend(f"  {candidate}" for candidate in status.candidates)
        hint_lines.append("Pass --library PATH or set APITESTER_LIBRARY.")
        raise LibraryNotFoundError(
            "Native library not found.",
            hint="\n".join(hint_lines),
        )
    return status.target
