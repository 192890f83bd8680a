"""Tests for ``apitester doctor`` (cli/doctor.py).

Library detection is patched; nothing is loaded.
"""

from __future__ import annotations

import sys
from unittest.mock import patch

import pytest

from apitester.cli import exit_codes
from apitester.cli.doctor import FAIL, WARN, collect_checks, run_doctor
from apitester.config import AppSettings
from apitester.infra.library_locator import LibraryStatus

_DETECT = "apitester.cli.doctor.detect_library"

_FOUND = LibraryStatus(
    found=True,
    target="/opt/am/libtpcAmApi_D.so",
    source="search path",
    candidates=("/opt/am/libtpcAmApi_D.so",),
)
_MISSING = LibraryStatus(
    found=False,
    target=None,
    source="not found",
    candidates=("/opt/am/libtpcAmApi_D.so", "system:tpcAmApi_D"),
)


def _settings(**values: object) -> AppSettings:
    return AppSettings(_env_file=None, **values)  # type: ignore[arg-type]


@pytest.fixture(autouse=True)
def _wide_console(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("COLUMNS", "200")


class TestRunDoctor:
    def test_all_checks_pass(self, capsys: pytest.CaptureFixture[str]) -> None:
        with patch(_DETECT, return_value=_FOUND):
            code = run_doctor(_settings())
        err = capsys.readouterr().err
        assert code == exit_codes.SUCCESS
        assert "/opt/am/libtpcAmApi_D.so" in err
        assert "All checks passed" in err

    def test_missing_library_fails_with_guidance(self, capsys: pytest.CaptureFixture[str]) -> None:
        with patch(_DETECT, return_value=_MISSING):
            code = run_doctor(_settings())
        err = capsys.readouterr().err
        assert code == exit_codes.GENERAL_ERROR
        assert "system:tpcAmApi_D" in err
        assert "APITESTER_LIBRARY" in err

    def test_explicit_library_forwarded(self) -> None:
        settings = _settings()
        with patch(_DETECT, return_value=_FOUND) as detect:
            run_doctor(settings, "/tmp/x.so")
        detect.assert_called_once_with(settings, "/tmp/x.so")

    def test_stdcall_off_windows_fails(self, capsys: pytest.CaptureFixture[str]) -> None:
        with patch(_DETECT, return_value=_FOUND), patch(
            "apitester.cli.doctor.platform.system", return_value="Linux",
        ):
            code = run_doctor(_settings(calling_convention="stdcall"))
        assert code == exit_codes.GENERAL_ERROR
        assert "Windows only" in capsys.readouterr().err

    def test_reports_interpreter_bits(self, capsys: pytest.CaptureFixture[str]) -> None:
        with patch(_DETECT, return_value=_FOUND):
            run_doctor(_settings())
        assert "-bit)" in capsys.readouterr().err


class TestCollectChecks:
    def test_rows(self) -> None:
        checks = collect_checks(_settings(), _FOUND)
        assert [check.component for check in checks] == [
            "apitester",
            "Python",
            "Interpreter",
            "Library",
            "Convention",
            "UI",
            "OS",
        ]
        assert not any(check.failed for check in checks)

    def test_missing_library_row_fails(self) -> None:
        library_row = next(c for c in collect_checks(_settings(), _MISSING) if c.component == "Library")
        assert library_row.status == FAIL

    def test_missing_ui_package_warns(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setitem(sys.modules, "questionary", None)
        ui_row = next(c for c in collect_checks(_settings(), _FOUND) if c.component == "UI")
        assert ui_row.status == WARN
        assert "questionary" in ui_row.value

    def test_plain_report_without_rich(
        self,
        monkeypatch: pytest.MonkeyPatch,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        for name in ("rich", "rich.console", "rich.markup", "rich.table"):
            monkeypatch.setitem(sys.modules, name, None)
        with patch(_DETECT, return_value=_MISSING):
            code = run_doctor(_settings())
        err = capsys.readouterr().err
        assert code == exit_codes.GENERAL_ERROR
        assert "Library" in err
        assert "Some checks failed." in err

    def test_loader_only_library_warns(self) -> None:
        status = LibraryStatus(found=True, target="nonexistent", source="loader", candidates=("nonexistent",))
        library_row = next(c for c in collect_checks(_settings(), status) if c.component == "Library")
        assert library_row.status == WARN
        assert not library_row.failed
