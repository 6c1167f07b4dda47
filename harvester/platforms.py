"""Platform tags for platform-specific extension builds."""

from __future__ import annotations

from enum import Enum
from typing import List, Optional

from harvester.errors import InvalidPlatform


class PlatformTag(Enum):
    """Build variants published by the marketplace.

    Each member's value is its manifest field name. ``UNIVERSAL`` carries no
    query token and means "no platform restriction".
    """

    UNIVERSAL = "universal"
    LINUX_X64 = "linux_x64"
    LINUX_ARM64 = "linux_arm64"
    DARWIN_X64 = "darwin_x64"
    DARWIN_ARM64 = "darwin_arm64"
    WIN32_X64 = "win32_x64"
    WIN32_ARM64 = "win32_arm64"

    @property
    def field_name(self) -> str:
        """Manifest key for this platform."""
        return self.value

    @property
    def target_platform(self) -> Optional[str]:
        """Query token sent as ``targetPlatform``, or None for universal."""
        return _TARGET_PLATFORMS[self]

    @property
    def is_concrete(self) -> bool:
        return self.target_platform is not None

    @classmethod
    def ordered(cls) -> List["PlatformTag"]:
        """All tags in processing order: universal first."""
        return [
            cls.UNIVERSAL,
            cls.LINUX_X64,
            cls.LINUX_ARM64,
            cls.DARWIN_X64,
            cls.DARWIN_ARM64,
            cls.WIN32_X64,
            cls.WIN32_ARM64,
        ]

    @classmethod
    def parse(cls, text: str) -> "PlatformTag":
        """Parse a manifest field name (``linux_x64``) or query token (``linux-x64``)."""
        value = (text or "").strip()
        for tag in cls:
            if value in (tag.field_name, tag.target_platform):
                return tag
        raise InvalidPlatform(text)

    def __str__(self) -> str:
        return self.field_name


_TARGET_PLATFORMS = {
    PlatformTag.UNIVERSAL: None,
    PlatformTag.LINUX_X64: "linux-x64",
    PlatformTag.LINUX_ARM64: "linux-arm64",
    PlatformTag.DARWIN_X64: "darwin-x64",
    PlatformTag.DARWIN_ARM64: "darwin-arm64",
    PlatformTag.WIN32_X64: "win32-x64",
    PlatformTag.WIN32_ARM64: "win32-arm64",
}
