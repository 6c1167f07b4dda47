"""Engine compatibility checks for extension version requirements."""

from __future__ import annotations

import re
from typing import List

_NUMERIC_DOTTED = re.compile(r"^[0-9.]*$")
_ASCII_DIGITS = re.compile(r"[0-9]+")


def _components(version: str) -> List[int]:
    """Split a dotted version into integers; anything but ASCII digits counts as 0."""
    parts = []
    for piece in version.strip().split("."):
        parts.append(int(piece) if _ASCII_DIGITS.fullmatch(piece) else 0)
    return parts


def compare_versions(version_a: str, version_b: str) -> int:
    """Compare two dotted versions component by component.

    Missing trailing components are treated as 0.

    Returns:
        1 if version_a > version_b, 0 if equal, -1 if version_a < version_b.
    """
    parts_a = _components(version_a)
    parts_b = _components(version_b)
    for i in range(max(len(parts_a), len(parts_b))):
        a = parts_a[i] if i < len(parts_a) else 0
        b = parts_b[i] if i < len(parts_b) else 0
        if a > b:
            return 1
        if a < b:
            return -1
    return 0


def satisfies(requirement: str, engine_version: str) -> bool:
    """Return True if ``engine_version`` meets an extension's engine requirement.

    Supported requirement forms:
        ``^X.Y.Z``  same major and same minor; patch is not constrained.
        ``>=X.Y.Z`` engine_version compares greater than or equal.
        ``X.Y.Z``   exact string match, no numeric normalization.
        anything else: substring match against engine_version.

    Args:
        requirement: Engine requirement from the version properties.
        engine_version: Concrete engine version, e.g. ``1.97.0``.
    """
    if requirement.startswith("^"):
        req_parts = requirement[1:].split(".")
        engine_parts = engine_version.split(".")
        if len(req_parts) < 2 or len(engine_parts) < 2:
            return False
        return req_parts[0] == engine_parts[0] and req_parts[1] == engine_parts[1]
    if requirement.startswith(">="):
        return compare_versions(engine_version, requirement[2:].strip()) >= 0
    if _NUMERIC_DOTTED.match(requirement):
        return requirement == engine_version
    return requirement in engine_version
