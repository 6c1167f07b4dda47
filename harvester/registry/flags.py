"""Response-detail flags for marketplace queries.

Flags are kept as named booleans and only turned into the integer bitmask
expected by the API when the query payload is serialized.
"""
from __future__ import annotations

from dataclasses import dataclass, fields

# Bit value of each capability in the marketplace API.
FLAG_BITS = {
    "include_versions": 0x1,
    "include_files": 0x2,
    "include_category_and_tags": 0x4,
    "include_shared_accounts": 0x8,
    "include_version_properties": 0x10,
    "exclude_non_validated": 0x20,
    "include_installation_targets": 0x40,
    "include_asset_uri": 0x80,
    "include_statistics": 0x100,
    "include_latest_version_only": 0x200,
    "unpublished": 0x1000,
    "include_name_conflict_info": 0x8000,
}


@dataclass(frozen=True)
class QueryFlags:
    """Which details the registry should include in a query response."""

    include_versions: bool = False
    include_files: bool = False
    include_category_and_tags: bool = False
    include_shared_accounts: bool = False
    include_version_properties: bool = False
    exclude_non_validated: bool = False
    include_installation_targets: bool = False
    include_asset_uri: bool = False
    include_statistics: bool = False
    include_latest_version_only: bool = False
    unpublished: bool = False
    include_name_conflict_info: bool = False

    @classmethod
    def standard(cls) -> "QueryFlags":
        """Latest version only, with files, asset URI, statistics and properties."""
        return cls(
            include_versions=True,
            include_files=True,
            include_asset_uri=True,
            include_statistics=True,
            include_latest_version_only=True,
            include_version_properties=True,
        )

    @classmethod
    def all_versions(cls) -> "QueryFlags":
        """Every published version with files and properties."""
        return cls(
            include_versions=True,
            include_files=True,
            include_version_properties=True,
        )

    def to_bits(self) -> int:
        """Compose the integer bitmask sent in the ``flags`` field."""
        bits = 0
        for f in fields(self):
            if getattr(self, f.name):
                bits |= FLAG_BITS[f.name]
        return bits
