"""Typed view of marketplace ``extensionquery`` responses.

Only ``results[0].extensions[0].versions`` drives resolution; the remaining
fields are decoded so diagnostics and tests can inspect them.
"""
from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union

from harvester.constants import PropertyKeys
from harvester.errors import NoVersionsAvailable, ResponseParseFailed


def _require(data: Dict[str, Any], key: str, kind: type) -> Any:
    """Fetch ``data[key]`` and check its type, raising ValueError otherwise."""
    if not isinstance(data, dict):
        raise ValueError(f"expected object holding '{key}', got {type(data).__name__}")
    if key not in data:
        raise ValueError(f"missing '{key}'")
    value = data[key]
    if not isinstance(value, kind):
        raise ValueError(f"'{key}' should be {kind.__name__}, got {type(value).__name__}")
    return value


@dataclass(frozen=True)
class FileAsset:
    """A file published alongside a version (asset type -> source URL)."""
    asset_type: str
    source: str

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FileAsset":
        return cls(
            asset_type=_require(data, "assetType", str),
            source=_require(data, "source", str),
        )


@dataclass(frozen=True)
class VersionCandidate:
    """One published version of an extension, in registry order."""
    version: str
    properties: Dict[str, str] = field(default_factory=dict)
    files: List[FileAsset] = field(default_factory=list)
    flags: str = ""
    last_updated: str = ""
    target_platform: Optional[str] = None
    asset_uri: str = ""
    fallback_asset_uri: str = ""

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "VersionCandidate":
        properties: Dict[str, str] = {}
        for prop in data.get("properties") or []:
            key = _require(prop, "key", str)
            # First occurrence wins, matching a linear search over the list.
            if key not in properties:
                properties[key] = str(prop.get("value", ""))
        return cls(
            version=_require(data, "version", str),
            properties=properties,
            files=[FileAsset.from_dict(f) for f in data.get("files") or []],
            flags=str(data.get("flags", "")),
            last_updated=str(data.get("lastUpdated", "")),
            target_platform=data.get("targetPlatform"),
            asset_uri=str(data.get("assetUri", "")),
            fallback_asset_uri=str(data.get("fallbackAssetUri", "")),
        )

    @property
    def engine_requirement(self) -> Optional[str]:
        """Required VS Code engine range, e.g. ``^1.97.0``."""
        return self.properties.get(PropertyKeys.ENGINE)

    @property
    def pre_release(self) -> Optional[str]:
        """Raw pre-release property value (``"true"`` marks a pre-release)."""
        return self.properties.get(PropertyKeys.PRE_RELEASE)

    @property
    def is_pre_release(self) -> bool:
        return self.pre_release == "true"

    @property
    def vsix_url(self) -> Optional[str]:
        """Direct CDN URL of the VSIX package, when the files were requested."""
        for asset in self.files:
            if asset.asset_type == PropertyKeys.VSIX_PACKAGE:
                return asset.source
        return None


@dataclass(frozen=True)
class Publisher:
    publisher_name: str
    publisher_id: str = ""
    display_name: str = ""
    domain: Optional[str] = None
    is_domain_verified: bool = False

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Publisher":
        return cls(
            publisher_name=_require(data, "publisherName", str),
            publisher_id=str(data.get("publisherId", "")),
            display_name=str(data.get("displayName", "")),
            domain=data.get("domain"),
            is_domain_verified=bool(data.get("isDomainVerified", False)),
        )


@dataclass(frozen=True)
class ExtensionEntry:
    """An extension as listed in a query result."""
    extension_name: str
    versions: List[VersionCandidate]
    publisher: Optional[Publisher] = None
    extension_id: str = ""
    display_name: str = ""
    short_description: str = ""
    last_updated: str = ""

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ExtensionEntry":
        publisher = data.get("publisher")
        return cls(
            extension_name=_require(data, "extensionName", str),
            versions=[VersionCandidate.from_dict(v) for v in _require(data, "versions", list)],
            publisher=Publisher.from_dict(publisher) if publisher is not None else None,
            extension_id=str(data.get("extensionId", "")),
            display_name=str(data.get("displayName", "")),
            short_description=str(data.get("shortDescription", "")),
            last_updated=str(data.get("lastUpdated", "")),
        )

    @property
    def identifier(self) -> str:
        publisher = self.publisher.publisher_name if self.publisher else ""
        return f"{publisher}.{self.extension_name}"

    @property
    def latest_vsix_url(self) -> Optional[str]:
        if not self.versions:
            return None
        return self.versions[0].vsix_url


@dataclass(frozen=True)
class ResultItem:
    extensions: List[ExtensionEntry]
    paging_token: Optional[str] = None
    total_count: Optional[int] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ResultItem":
        total = None
        for meta in data.get("resultMetadata") or []:
            if meta.get("metadataType") != "ResultCount":
                continue
            for item in meta.get("metadataItems") or []:
                if item.get("name") == "TotalCount":
                    total = item.get("count")
        return cls(
            extensions=[ExtensionEntry.from_dict(e) for e in _require(data, "extensions", list)],
            paging_token=data.get("pagingToken"),
            total_count=total,
        )


@dataclass(frozen=True)
class MarketplaceResponse:
    """Decoded ``extensionquery`` response."""
    results: List[ResultItem]

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MarketplaceResponse":
        return cls(results=[ResultItem.from_dict(r) for r in _require(data, "results", list)])

    def candidates(self, identifier: str) -> List[VersionCandidate]:
        """Return the version list of the first extension of the first result.

        Raises:
            NoVersionsAvailable: when results, extensions or versions are empty.
        """
        if not self.results or not self.results[0].extensions:
            raise NoVersionsAvailable(identifier)
        versions = self.results[0].extensions[0].versions
        if not versions:
            raise NoVersionsAvailable(identifier)
        return list(versions)


def decode_body(body: Union[bytes, str]) -> str:
    """Text of a response body for logs and dumps; undecodable bytes are replaced."""
    if isinstance(body, bytes):
        return body.decode("utf-8", errors="replace")
    return body


def parse_marketplace_response(body: Union[bytes, str], identifier: str = "") -> MarketplaceResponse:
    """Decode a response body into a MarketplaceResponse.

    Raises:
        ResponseParseFailed: on non-UTF-8 bytes, invalid JSON or an unexpected
            shape; the body is kept on the exception as text.
    """
    if isinstance(body, bytes):
        try:
            text = body.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise ResponseParseFailed(identifier, f"invalid UTF-8: {exc}", decode_body(body)) from exc
    else:
        text = body
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ResponseParseFailed(identifier, f"invalid JSON: {exc}", text) from exc
    try:
        return MarketplaceResponse.from_dict(data)
    except (ValueError, TypeError, AttributeError) as exc:
        raise ResponseParseFailed(identifier, str(exc), text) from exc
