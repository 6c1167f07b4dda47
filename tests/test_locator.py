"""Tests for download URL and file name computation."""

import os

import pytest

from harvester.constants import Constants
from harvester.locator import locate, vsix_file_name
from harvester.models import Identifier
from harvester.platforms import PlatformTag


def test_universal_target():
    target = locate(Identifier.parse("publisher.name"), "1.0.0", "./extensions")
    assert target.url == Constants.MARKETPLACE_URL + "/publisher/vsextensions/name/1.0.0/vspackage"
    assert target.local_path == os.path.join("./extensions", "publisher.name-1.0.0.vsix")


def test_universal_tag_matches_none():
    ident = Identifier.parse("golang.Go")
    assert locate(ident, "0.46.1", "out", PlatformTag.UNIVERSAL) == locate(ident, "0.46.1", "out")


@pytest.mark.parametrize("platform,token", [
    (PlatformTag.LINUX_X64, "linux-x64"),
    (PlatformTag.LINUX_ARM64, "linux-arm64"),
    (PlatformTag.DARWIN_X64, "darwin-x64"),
    (PlatformTag.DARWIN_ARM64, "darwin-arm64"),
    (PlatformTag.WIN32_X64, "win32-x64"),
    (PlatformTag.WIN32_ARM64, "win32-arm64"),
])
def test_platform_target(platform, token):
    target = locate(Identifier.parse("rust-lang.rust-analyzer"), "0.3.2345", "out", platform)
    assert target.url.endswith(f"/rust-lang/vsextensions/rust-analyzer/0.3.2345/vspackage?targetPlatform={token}")
    assert os.path.basename(target.local_path) == f"rust-lang.rust-analyzer-0.3.2345@{token}.vsix"


def test_custom_base_url_trailing_slash():
    target = locate(Identifier.parse("a.b"), "1.0.0", "out", base_url="http://localhost:8080/publishers/")
    assert target.url == "http://localhost:8080/publishers/a/vsextensions/b/1.0.0/vspackage"


def test_destination_without_trailing_separator(tmp_path):
    target = locate(Identifier.parse("a.b"), "2.0.0", str(tmp_path))
    assert target.local_path == str(tmp_path / "a.b-2.0.0.vsix")


def test_locate_is_pure(tmp_path):
    missing = tmp_path / "does-not-exist"
    first = locate(Identifier.parse("a.b"), "1.0.0", str(missing), PlatformTag.WIN32_X64)
    second = locate(Identifier.parse("a.b"), "1.0.0", str(missing), PlatformTag.WIN32_X64)
    assert first == second
    assert not missing.exists()


def test_file_name_keeps_identifier_case():
    assert vsix_file_name(Identifier.parse("GitHub.copilot"), "1.277.1403") == "GitHub.copilot-1.277.1403.vsix"
