"""Load the extensions manifest (``extensions.json``).

The manifest maps platform field names to lists of ``publisher.name`` ids:

    {"universal": ["golang.Go"], "linux_x64": ["rust-lang.rust-analyzer"]}
"""
from __future__ import annotations

import json
import logging
from typing import Any, Dict, List

from harvester.errors import ManifestError
from harvester.platforms import PlatformTag

logger = logging.getLogger(__name__)

Manifest = Dict[PlatformTag, List[str]]


def parse_manifest(data: Any, source: str = "<manifest>") -> Manifest:
    """Convert decoded manifest JSON into a per-platform mapping.

    Missing or null keys become empty lists. Unknown keys are ignored.

    Raises:
        ManifestError: if the document is not an object or a value is not a
            list of strings.
    """
    if not isinstance(data, dict):
        raise ManifestError(f"Failed to parse file {source}: expected a JSON object")

    known = {tag.field_name for tag in PlatformTag}
    for key in data:
        if key not in known:
            logger.warning("Ignoring unknown platform '%s' in %s", key, source)

    manifest: Manifest = {}
    for tag in PlatformTag.ordered():
        entries = data.get(tag.field_name)
        if entries is None:
            manifest[tag] = []
            continue
        if not isinstance(entries, list) or not all(isinstance(e, str) for e in entries):
            raise ManifestError(
                f"Failed to parse file {source}: '{tag.field_name}' must be a list of strings"
            )
        manifest[tag] = list(entries)
    return manifest


def load_manifest(path: str) -> Manifest:
    """Read and parse the manifest file at ``path``.

    Raises:
        ManifestError: if the file cannot be read or decoded.
    """
    logger.debug("Attempting to read file: %s", path)
    try:
        with open(path, encoding="utf-8") as fh:
            data = json.load(fh)
    except OSError as exc:
        raise ManifestError(f"Failed to read file {path}: {exc}") from exc
    except json.JSONDecodeError as exc:
        raise ManifestError(f"Failed to parse file {path}: {exc}") from exc
    return parse_manifest(data, path)
