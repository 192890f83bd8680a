"""``ctypes`` layouts of the structures exchanged with the native API.

Booleans inside structures are 32-bit Win32 ``BOOL`` values, matching
the layout the library was compiled with.
"""

from __future__ import annotations

import ctypes

from apitester.core.models import InitOptions, VersionInfo
from apitester.exceptions import TypeMismatchError


class CVersionInfo(ctypes.Structure):
    _fields_ = [
        ("ucMajorVersion", ctypes.c_ushort),
        ("ucMinorVersion", ctypes.c_ushort),
        ("ucMajorBuild", ctypes.c_ushort),
        ("ucMinorBuild", ctypes.c_ushort),
        ("ucPlatform", ctypes.c_ubyte),
    ]

    def to_model(self) -> VersionInfo:
        return VersionInfo(
            major=self.ucMajorVersion,
            minor=self.ucMinorVersion,
            major_build=self.ucMajorBuild,
            minor_build=self.ucMinorBuild,
            platform=self.ucPlatform,
        )


class ApiInitOptions(ctypes.Structure):
    _fields_ = [
        ("bStartAmIfNotRunning", ctypes.c_int32),
        ("dwTimeout", ctypes.c_uint32),
        ("pbProcessCreated", ctypes.POINTER(ctypes.c_int32)),
        ("bFastStartMode", ctypes.c_int32),
        ("bKeepInBack", ctypes.c_int32),
        ("szInitLang", ctypes.c_char * 16),
        ("szMapPath", ctypes.c_char * 512),
        ("szProfile", ctypes.c_char * 256),
    ]

    @classmethod
    def from_model(
        cls,
        options: InitOptions,
        *,
        encoding: str = "utf-8",
    ) -> ApiInitOptions:
        """Build the structure from *options*; ``pbProcessCreated`` stays NULL.

        Raises
        ------
        TypeMismatchError
            When a text field does not fit its fixed-size array.
        """
        struct = cls()
        struct.bStartAmIfNotRunning = int(options.start_if_not_running)
        struct.dwTimeout = options.timeout_ms
        struct.bFastStartMode = int(options.fast_start)
        struct.bKeepInBack = int(options.keep_in_back)
        struct.szInitLang = _encode_fixed(options.language, 16, "language", encoding)
        struct.szMapPath = _encode_fixed(options.map_path, 512, "map_path", encoding)
        struct.szProfile = _encode_fixed(options.profile, 256, "profile", encoding)
        return struct


def _encode_fixed(text: str, capacity: int, name: str, encoding: str) -> bytes:
    """Encode *text*, leaving room for the terminating NUL."""
    try:
        raw = text.encode(encoding)
    except UnicodeEncodeError as exc:
        raise TypeMismatchError(f"{name} cannot be encoded as {encoding}: {exc}") from exc
    if len(raw) >= capacity:
        raise TypeMismatchError(
            f"{name} is {len(raw)} bytes; at most {capacity - 1} fit",
        )
    return raw
