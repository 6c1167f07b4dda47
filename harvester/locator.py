"""Download URL and local file name for an extension build."""

from __future__ import annotations

import os
from typing import Optional

from harvester.constants import Constants
from harvester.models import DownloadTarget, Identifier
from harvester.platforms import PlatformTag


def vsix_file_name(identifier: Identifier, version: str, platform: Optional[PlatformTag] = None) -> str:
    """``publisher.name-version[@target].vsix``."""
    token = platform.target_platform if platform is not None else None
    suffix = f"@{token}" if token else ""
    return f"{identifier.publisher}.{identifier.name}-{version}{suffix}.vsix"


def locate(
    identifier: Identifier,
    version: str,
    destination: str,
    platform: Optional[PlatformTag] = None,
    base_url: str = Constants.MARKETPLACE_URL,
) -> DownloadTarget:
    """Compute where to download an extension from and where to save it.

    Pure function: no network or filesystem access. The ``@target`` file
    suffix and ``targetPlatform`` query parameter appear only for a concrete
    platform; ``None`` and ``PlatformTag.UNIVERSAL`` mean no restriction.
    """
    token = platform.target_platform if platform is not None else None
    url = f"{base_url.rstrip('/')}/{identifier.publisher}/vsextensions/{identifier.name}/{version}/vspackage"
    if token:
        url = f"{url}?targetPlatform={token}"
    local_path = os.path.join(destination, vsix_file_name(identifier, version, platform))
    return DownloadTarget(url=url, local_path=local_path)
