"""Application settings.

Centralises environment variables (``APITESTER_*``) and the optional
``.env`` file through pydantic-settings, so the CLI and the binding
layer read configuration the same way.
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from apitester.core.models import InitOptions
from apitester.exceptions import ConfigurationError

_LOG_LEVELS: frozenset[str] = frozenset({"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"})


class AppSettings(BaseSettings):
    """Central configuration of the tester."""

    model_config = SettingsConfigDict(
        env_prefix="APITESTER_",
        extra="ignore",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
    )

    library: str | None = Field(
        default=None,
        description="Path or name of the shared library to load.",
    )
    search_paths: list[Path] = Field(
        default_factory=list,
        description="Directories searched for the default library name.",
    )
    default_library_name: str = Field(
        default="tpcAmApi_D",
        min_length=1,
        description="Base name looked up when no explicit library is configured.",
    )
    calling_convention: Literal["cdecl", "stdcall"] = Field(
        default="cdecl",
        description="Calling convention of the exported functions.",
    )
    string_encoding: str = Field(
        default="utf-8",
        min_length=1,
        description="Encoding of narrow (char*) strings and buffers.",
    )
    log_level: str = Field(
        default="WARNING",
        description="Root log level when no -v flag is given.",
    )

    init_start_if_not_running: bool = Field(default=True)
    init_timeout_ms: int = Field(default=60_000, ge=0, le=2**32 - 1)
    init_fast_start: bool = Field(default=False)
    init_keep_in_back: bool = Field(default=False)
    init_language: str = Field(default="", max_length=15)
    init_map_path: str = Field(default="", max_length=511)
    init_profile: str = Field(default="", max_length=255)

    @field_validator("log_level")
    @classmethod
    def _normalise_log_level(cls, value: str) -> str:
        level = value.strip().upper()
        if level not in _LOG_LEVELS:
            raise ValueError(f"must be one of {', '.join(sorted(_LOG_LEVELS))}")
        return level

    @field_validator("string_encoding")
    @classmethod
    def _check_encoding(cls, value: str) -> str:
        try:
            "".encode(value)
        except LookupError as exc:
            raise ValueError(f"unknown encoding {value!r}") from exc
        return value

    def init_options(self) -> InitOptions:
        """Build the :class:`InitOptions` passed to ``init``."""
        return InitOptions(
            start_if_not_running=self.init_start_if_not_running,
            timeout_ms=self.init_timeout_ms,
            fast_start=self.init_fast_start,
            keep_in_back=self.init_keep_in_back,
            language=self.init_language,
            map_path=self.init_map_path,
            profile=self.init_profile,
        )


def load_settings(**overrides: object) -> AppSettings:
    """Load settings from the environment, applying explicit *overrides*.

    Raises
    ------
    ConfigurationError
        When any setting fails validation.
    """
    try:
        return AppSettings(**overrides)
    except ValidationError as exc:
        problems = "; ".join(
            f"{'.'.join(str(loc) for loc in err['loc']) or 'settings'}: {err['msg']}"
            for err in exc.errors()
        )
        raise ConfigurationError(
            f"Invalid configuration: {problems}",
            hint="Check APITESTER_* environment variables and the .env file.",
        ) from exc
