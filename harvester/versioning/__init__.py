"""Version compatibility and resolution."""

from .compat import compare_versions, satisfies
from .resolver import CompatibilityResolver, filter_compatible

__all__ = [
    "compare_versions",
    "satisfies",
    "CompatibilityResolver",
    "filter_compatible",
]
