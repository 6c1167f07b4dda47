"""Tests for extension identifiers and platform tags."""

import pytest

from harvester.errors import InvalidIdentifier, InvalidPlatform
from harvester.models import Identifier
from harvester.platforms import PlatformTag


class TestIdentifier:
    """Parsing and formatting of ``publisher.name`` ids."""

    def test_parse_splits_publisher_and_name(self):
        ext = Identifier.parse("publisher.name")
        assert ext.publisher == "publisher"
        assert ext.name == "name"

    def test_format(self):
        assert Identifier(publisher="publisher", name="name").format() == "publisher.name"

    @pytest.mark.parametrize("text", ["golang.Go", "ms-python.python", "rust-lang.rust-analyzer", "A.b"])
    def test_round_trip_preserves_case(self, text):
        assert Identifier.parse(text).format() == text

    @pytest.mark.parametrize("text", ["invalid", "", ".", "a.", ".b", "a.b.c", "a..b"])
    def test_invalid_ids_rejected(self, text):
        with pytest.raises(InvalidIdentifier) as excinfo:
            Identifier.parse(text)
        assert excinfo.value.value == text

    def test_identifier_is_immutable_and_hashable(self):
        ext = Identifier.parse("golang.Go")
        with pytest.raises(Exception):
            ext.name = "other"  # type: ignore[misc]
        assert {ext, Identifier.parse("golang.Go")} == {ext}


class TestPlatformTag:
    """Field-name and query-token mapping."""

    def test_ordered_starts_with_universal(self):
        ordered = PlatformTag.ordered()
        assert ordered[0] is PlatformTag.UNIVERSAL
        assert [t.field_name for t in ordered] == [
            "universal",
            "linux_x64",
            "linux_arm64",
            "darwin_x64",
            "darwin_arm64",
            "win32_x64",
            "win32_arm64",
        ]

    def test_mapping_is_total(self):
        for tag in PlatformTag:
            assert tag.field_name
            if tag is PlatformTag.UNIVERSAL:
                assert tag.target_platform is None
                assert not tag.is_concrete
            else:
                assert tag.target_platform == tag.field_name.replace("_", "-")
                assert tag.is_concrete

    @pytest.mark.parametrize("text,expected", [
        ("linux_x64", PlatformTag.LINUX_X64),
        ("linux-x64", PlatformTag.LINUX_X64),
        ("darwin_arm64", PlatformTag.DARWIN_ARM64),
        ("win32-arm64", PlatformTag.WIN32_ARM64),
        ("universal", PlatformTag.UNIVERSAL),
    ])
    def test_parse_accepts_field_names_and_tokens(self, text, expected):
        assert PlatformTag.parse(text) is expected

    @pytest.mark.parametrize("text", ["linux", "x64", "LINUX_X64", ""])
    def test_parse_rejects_unknown(self, text):
        with pytest.raises(InvalidPlatform):
            PlatformTag.parse(text)
