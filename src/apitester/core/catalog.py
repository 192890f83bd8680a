"""Default operation catalog for the AutoMapa navigation API.

Each entry binds a command-line name to one exported function of the
``tpcAmApi`` library.  Arbitrary symbols of other libraries remain
reachable through the ``call`` operation.
"""

from __future__ import annotations

from apitester.core.models import (
    Direction,
    FunctionSignature,
    NativeType,
    OperationSpec,
    Parameter,
)
from apitester.core.registry import OperationRegistry

PATH_BUFFER_SIZE: int = 512
LANGUAGE_BUFFER_SIZE: int = 16

DEFAULT_POST_COMMAND: str = "showmap %lat %lon 1000"


def _version_out() -> Parameter:
    return Parameter(
        name="version",
        type=NativeType.VERSION_INFO,
        direction=Direction.OUT,
        help="Filled with major.minor.build.build and platform id.",
    )


DEFAULT_OPERATIONS: tuple[OperationSpec, ...] = (
    OperationSpec(
        name="api-version",
        signature=FunctionSignature("GetAmApiVersion", (_version_out(),)),
        summary="Version of the API library itself.",
        label="API version",
    ),
    OperationSpec(
        name="am-version",
        signature=FunctionSignature("GetAmVersion", (_version_out(),), NativeType.BOOL),
        summary="Version of the installed AutoMapa application.",
        label="AutoMapa version",
        fails_on_false=True,
    ),
    OperationSpec(
        name="am-path",
        signature=FunctionSignature(
            "GetAmPath",
            (
                Parameter(
                    name="path",
                    type=NativeType.WCHAR_BUFFER,
                    direction=Direction.OUT,
                    size=PATH_BUFFER_SIZE,
                ),
            ),
            NativeType.BOOL,
        ),
        summary="Installation directory of AutoMapa.",
        label="AutoMapa path",
        fails_on_false=True,
    ),
    OperationSpec(
        name="set-timeout",
        signature=FunctionSignature(
            "SetAmApiRecieveTimeout",
            (Parameter(name="timeout", type=NativeType.INT32, help="Receive timeout in ms."),),
        ),
        summary="Set the API receive timeout.",
        label="Receive timeout set",
    ),
    OperationSpec(
        name="init",
        signature=FunctionSignature(
            "AmApiInit",
            (Parameter(name="options", type=NativeType.INIT_OPTIONS),),
            NativeType.BOOL,
        ),
        summary="Initialise the API (options come from configuration).",
        label="API initialized",
        fails_on_false=True,
    ),
    OperationSpec(
        name="ready",
        signature=FunctionSignature("IsAmAndApiReady", restype=NativeType.BOOL),
        summary="Whether AutoMapa and the API are ready.",
        label="API ready",
    ),
    OperationSpec(
        name="done",
        signature=FunctionSignature("AmApiDone"),
        summary="Shut the API down.",
        label="API done",
    ),
    OperationSpec(
        name="language",
        signature=FunctionSignature(
            "GetAmCurrentLanguage",
            (
                Parameter(
                    name="language",
                    type=NativeType.WCHAR_BUFFER,
                    direction=Direction.OUT,
                    size=LANGUAGE_BUFFER_SIZE,
                ),
            ),
            NativeType.BOOL,
        ),
        summary="Current AutoMapa UI language.",
        label="Language",
        fails_on_false=True,
    ),
    OperationSpec(
        name="post-command",
        signature=FunctionSignature(
            "PostCommandToAm",
            (
                Parameter(
                    name="command",
                    type=NativeType.STRING,
                    default=DEFAULT_POST_COMMAND,
                    help="AutoMapa command line.",
                ),
                Parameter(
                    name="beep",
                    type=NativeType.BOOL,
                    default=False,
                    help="Beep when the command is accepted.",
                ),
            ),
            NativeType.BOOL,
        ),
        summary="Post a command to AutoMapa (default: zoom to 1 km).",
        label="PostCommand",
    ),
    OperationSpec(
        name="close",
        signature=FunctionSignature(
            "CloseAm",
            (
                Parameter(
                    name="kill_if_not_responding",
                    type=NativeType.BOOL,
                    default=True,
                    help="Kill the process when it does not respond.",
                ),
            ),
            NativeType.BOOL,
        ),
        summary="Close the AutoMapa application.",
        label="CloseAm",
    ),
    OperationSpec(
        name="meters-to-scale",
        signature=FunctionSignature(
            "AmMetersToScale",
            (Parameter(name="meters", type=NativeType.INT32, default=2000),),
            NativeType.DOUBLE,
        ),
        summary="Map scale for a distance in meters.",
        label="Scale",
    ),
)


def build_default_registry() -> OperationRegistry:
    """Return a fresh registry holding :data:`DEFAULT_OPERATIONS`."""
    return OperationRegistry(DEFAULT_OPERATIONS)
