"""Choose an extension version from registry candidates."""

from __future__ import annotations

import logging
from typing import List, Optional, Sequence

from harvester.common.logging_utils import extra_context, is_debug_enabled
from harvester.errors import NoVersionsAvailable
from harvester.models import Resolution, ResolveRequest
from harvester.registry.types import VersionCandidate
from harvester.versioning.compat import satisfies

logger = logging.getLogger(__name__)


def filter_compatible(
    candidates: Sequence[VersionCandidate],
    engine_version: str,
    allow_pre_release: bool = False,
) -> List[VersionCandidate]:
    """Return candidates compatible with ``engine_version``, in registry order.

    Candidates without an engine requirement are excluded. Pre-releases are
    excluded unless ``allow_pre_release`` is set.
    """
    compatible = []
    for candidate in candidates:
        requirement = candidate.engine_requirement
        if requirement is None or not satisfies(requirement, engine_version):
            continue
        if not allow_pre_release and candidate.is_pre_release:
            continue
        compatible.append(candidate)
    return compatible


class CompatibilityResolver:
    """Resolver applying engine compatibility and pre-release policy.

    Registry order is treated as newest-first and is never re-sorted.
    """

    def __init__(self, log: Optional[logging.Logger] = None):
        self._log = log or logger

    def resolve(self, req: ResolveRequest, candidates: Sequence[VersionCandidate]) -> Resolution:
        """Pick a version for ``req``.

        Without an engine constraint the first candidate wins. With one, the
        first compatible candidate wins; if none is compatible the first
        candidate is returned with ``fallback=True``.

        Raises:
            NoVersionsAvailable: if ``candidates`` is empty.
        """
        ident = req.identifier.format()
        if not candidates:
            raise NoVersionsAvailable(ident)

        if req.engine_version is None:
            return Resolution(
                version=candidates[0].version,
                candidate_count=len(candidates),
                compatible_count=len(candidates),
            )

        compatible = filter_compatible(candidates, req.engine_version, req.allow_pre_release)
        if is_debug_enabled(self._log):
            self._log.debug(
                "Got %d version(s) compatible with engine %s",
                len(compatible),
                req.engine_version,
                extra=extra_context(
                    event="decision",
                    component="resolver",
                    action="filter_compatible",
                    target=ident,
                    count=len(compatible),
                ),
            )
            for candidate in compatible:
                self._log.debug(
                    " - Version: %s Engine: %s PreRelease: %s",
                    candidate.version,
                    candidate.engine_requirement or "None",
                    candidate.pre_release or "false",
                )

        if compatible:
            return Resolution(
                version=compatible[0].version,
                candidate_count=len(candidates),
                compatible_count=len(compatible),
            )

        self._log.warning(
            "No version of %s is compatible with engine %s; using latest %s",
            ident,
            req.engine_version,
            candidates[0].version,
        )
        return Resolution(
            version=candidates[0].version,
            candidate_count=len(candidates),
            compatible_count=0,
            fallback=True,
        )
