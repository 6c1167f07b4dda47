"""Data models for extension resolution and fetching."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from harvester.errors import InvalidIdentifier
from harvester.platforms import PlatformTag


@dataclass(frozen=True)
class Identifier:
    """Extension identifier in ``publisher.name`` form."""
    publisher: str
    name: str

    @classmethod
    def parse(cls, text: str) -> "Identifier":
        """Split ``publisher.name`` into its two parts.

        Raises:
            InvalidIdentifier: unless there are exactly two non-empty parts.
        """
        parts = text.split(".")
        if len(parts) != 2 or not parts[0] or not parts[1]:
            raise InvalidIdentifier(text)
        return cls(publisher=parts[0], name=parts[1])

    def format(self) -> str:
        return f"{self.publisher}.{self.name}"

    def __str__(self) -> str:
        return self.format()


@dataclass(frozen=True)
class ResolveRequest:
    """Version resolution input for one extension."""
    identifier: Identifier
    engine_version: Optional[str] = None
    allow_pre_release: bool = False


@dataclass(frozen=True)
class Resolution:
    """Resolution outcome.

    ``fallback`` is True when an engine constraint was given but no candidate
    satisfied it, so the newest available version was chosen instead.
    """
    version: str
    candidate_count: int
    compatible_count: int
    fallback: bool = False


@dataclass(frozen=True)
class DownloadTarget:
    """Download URL and local file path for one extension build."""
    url: str
    local_path: str


@dataclass(frozen=True)
class FetchTask:
    """One identifier in one platform category."""
    request: ResolveRequest
    destination: str
    force_redownload: bool = False
    proxy: Optional[str] = None
    platform: Optional[PlatformTag] = None

    @property
    def identifier(self) -> Identifier:
        return self.request.identifier


class FetchStatus(Enum):
    """Terminal state of a fetch task."""
    DOWNLOADED = "downloaded"
    CACHED = "cached"
    FAILED = "failed"


@dataclass
class FetchOutcome:
    """Result of running a single fetch task."""
    identifier: str
    platform: Optional[PlatformTag]
    status: FetchStatus
    version: Optional[str] = None
    local_path: Optional[str] = None
    fallback: bool = False
    error: Optional[str] = None


@dataclass
class BatchReport:
    """Aggregated outcomes of a manifest run."""
    outcomes: List[FetchOutcome] = field(default_factory=list)

    def add(self, outcome: FetchOutcome) -> None:
        self.outcomes.append(outcome)

    @property
    def failures(self) -> List[FetchOutcome]:
        return [o for o in self.outcomes if o.status is FetchStatus.FAILED]

    @property
    def has_failures(self) -> bool:
        return any(o.status is FetchStatus.FAILED for o in self.outcomes)

    def count(self, status: FetchStatus) -> int:
        return sum(1 for o in self.outcomes if o.status is status)
