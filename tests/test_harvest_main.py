"""Tests for the CLI entry point and exit codes."""

from unittest.mock import patch

import pytest

from harvester.constants import ExitCodes
from harvester.errors import (
    DownloadFailed,
    FilesystemError,
    InvalidIdentifier,
    InvalidPlatform,
    ManifestError,
    NoVersionsAvailable,
    RegistryQueryFailed,
)
from harvester.harvest import exit_code_for, main
from harvester.models import BatchReport, FetchOutcome, FetchStatus


def _report(*statuses):
    report = BatchReport()
    for i, status in enumerate(statuses):
        report.add(FetchOutcome(identifier=f"pub.ext{i}", platform=None, status=status))
    return report


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ("EXTENSIONS_FILE", "OUTPUT_DIR", "DOWNLOAD", "ARCH", "HARVESTER_CONFIG",
                 "ERROR_ON_FAILURES", "HARVESTER_LOG_LEVEL", "VERBOSE"):
        monkeypatch.delenv(name, raising=False)
    # Keep pytest's own log capture handlers on the root logger.
    monkeypatch.setattr("harvester.harvest.configure_logging", lambda *args, **kwargs: None)


@pytest.mark.parametrize("exc,code", [
    (InvalidIdentifier("x"), ExitCodes.INVALID_INPUT),
    (InvalidPlatform("x"), ExitCodes.INVALID_INPUT),
    (ManifestError("bad"), ExitCodes.FILE_ERROR),
    (FilesystemError("/x", "denied"), ExitCodes.FILE_ERROR),
    (RegistryQueryFailed("a.b", "HTTP 500", 500), ExitCodes.CONNECTION_ERROR),
    (DownloadFailed("a.b"), ExitCodes.CONNECTION_ERROR),
    (NoVersionsAvailable("a.b"), ExitCodes.CONNECTION_ERROR),
])
def test_exit_code_mapping(exc, code):
    assert exit_code_for(exc) == code.value


def test_success(tmp_path):
    with patch("harvester.harvest.run", return_value=None) as run, \
            patch("harvester.harvest.asyncio.run", return_value=_report(FetchStatus.DOWNLOADED)):
        assert main(["-d", str(tmp_path)]) == ExitCodes.SUCCESS.value
    config = run.call_args.args[0]
    assert config.destination == str(tmp_path)


def test_item_failures_keep_exit_zero_by_default():
    with patch("harvester.harvest.run"), \
            patch("harvester.harvest.asyncio.run", return_value=_report(FetchStatus.FAILED)):
        assert main([]) == ExitCodes.SUCCESS.value


def test_error_on_failures():
    with patch("harvester.harvest.run"), \
            patch("harvester.harvest.asyncio.run", return_value=_report(FetchStatus.CACHED, FetchStatus.FAILED)):
        assert main(["--error-on-failures"]) == ExitCodes.EXIT_FAILURES.value


def test_structural_error_sets_exit_code():
    with patch("harvester.harvest.run"), \
            patch("harvester.harvest.asyncio.run", side_effect=ManifestError("Failed to read file x")):
        assert main([]) == ExitCodes.FILE_ERROR.value


def test_direct_mode_error():
    with patch("harvester.harvest.run"), \
            patch("harvester.harvest.asyncio.run", side_effect=InvalidIdentifier("invalid")):
        assert main(["-D", "invalid"]) == ExitCodes.INVALID_INPUT.value


def test_bad_config_file(tmp_path):
    assert main(["-c", str(tmp_path / "missing.yml")]) == ExitCodes.FILE_ERROR.value


def test_missing_manifest_end_to_end(tmp_path):
    code = main(["-i", str(tmp_path / "none.json"), "-d", str(tmp_path / "out")])
    assert code == ExitCodes.FILE_ERROR.value
