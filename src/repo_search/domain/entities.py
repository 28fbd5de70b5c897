"""Domain entities — pure data structures with no external dependencies."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

MAX_RESULTS = 100
DEFAULT_RESULTS = 100


class SortKey(str, Enum):
    """Ordering requested from the search service."""

    STARS = "stars"
    FORKS = "forks"
    RECENCY = "recency"
    RELEVANCE = "relevance"

    @classmethod
    def parse(cls, raw: str | None) -> SortKey:
        """Map user input to a sort key; ``updated`` is an alias of recency."""
        if not raw:
            return cls.RELEVANCE
        value = raw.strip().lower()
        if value == "updated":
            return cls.RECENCY
        try:
            return cls(value)
        except ValueError:
            raise ValueError(
                f"Invalid sort '{raw}'. Use: stars, forks, updated, or relevance"
            ) from None


class RepoSize(str, Enum):
    """Repository size bucket (GitHub reports size in KB)."""

    SMALL = "small"
    MEDIUM = "medium"
    LARGE = "large"

    @property
    def qualifier(self) -> str:
        return _SIZE_QUALIFIERS[self]

    @classmethod
    def parse(cls, raw: str | None) -> RepoSize | None:
        if not raw:
            return None
        try:
            return cls(raw.strip().lower())
        except ValueError:
            raise ValueError(
                f"Invalid repo_size '{raw}'. Use: small, medium, or large"
            ) from None


_SIZE_QUALIFIERS: dict[RepoSize, str] = {
    RepoSize.SMALL: "size:<25000",
    RepoSize.MEDIUM: "size:25000..100000",
    RepoSize.LARGE: "size:>100000",
}


def clamp_limit(limit: int | None) -> int:
    """Clamp a requested result count to ``1..MAX_RESULTS``."""
    if limit is None:
        return DEFAULT_RESULTS
    return max(1, min(int(limit), MAX_RESULTS))


@dataclass(frozen=True, slots=True)
class SearchFilters:
    """Optional qualifiers narrowing a search."""

    language: str | None = None
    min_stars: int | None = None
    size: RepoSize | None = None


@dataclass(frozen=True, slots=True)
class SearchQuery:
    """A submitted query — immutable for the lifetime of one search."""

    text: str
    filters: SearchFilters = field(default_factory=SearchFilters)
    sort: SortKey = SortKey.RELEVANCE
    limit: int = DEFAULT_RESULTS


@dataclass(frozen=True, slots=True)
class RepositoryMatch:
    """One repository returned by a search, in the service's rank order."""

    full_name: str
    html_url: str
    description: str | None = None
    stars: int = 0
    forks: int = 0
    language: str | None = None
    updated_at: datetime | None = None
    size_kb: int = 0


@dataclass(frozen=True, slots=True)
class SearchPage:
    """Ranked matches plus the service's total hit count."""

    matches: tuple[RepositoryMatch, ...]
    total_count: int = 0


@dataclass(frozen=True, slots=True)
class LanguageCount:
    """Per-language row of an analysis report.

    ``line_count`` is ``None`` for languages outside the line-counting subset.
    """

    label: str
    file_count: int
    line_count: int | None = None


@dataclass(frozen=True, slots=True)
class AnalysisReport:
    """Structured result of the file-count script.

    Entries keep the order the script emitted them in.  ``partial`` is set
    when parsing stopped early at a malformed line.  ``reported_total`` is the
    figure from the script's summary line, kept for display only; ``total``
    is always the sum of the entries.
    """

    entries: tuple[LanguageCount, ...] = ()
    warnings: tuple[str, ...] = ()
    partial: bool = False
    reported_total: int | None = None

    @property
    def total(self) -> int:
        return sum(entry.file_count for entry in self.entries)

    def get(self, label: str) -> LanguageCount | None:
        for entry in self.entries:
            if entry.label == label:
                return entry
        return None
