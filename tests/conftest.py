"""Shared fixtures and fakes for the test-suite."""

from __future__ import annotations

from pathlib import Path

import pytest

from repo_search.domain.entities import RepositoryMatch, SearchFilters, SearchPage, SortKey


def make_match(full_name: str, stars: int = 0) -> RepositoryMatch:
    return RepositoryMatch(
        full_name=full_name,
        html_url=f"https://github.com/{full_name}",
        description=f"{full_name} description",
        stars=stars,
        forks=1,
        language="Rust",
    )


class FakeSearchGateway:
    """Records calls and replays a canned page or error."""

    def __init__(self, page: SearchPage | None = None, error: Exception | None = None) -> None:
        self.page = page or SearchPage(matches=(), total_count=0)
        self.error = error
        self.calls: list[tuple[str, SearchFilters, SortKey, int]] = []

    async def search(
        self,
        text: str,
        filters: SearchFilters,
        sort: SortKey = SortKey.RELEVANCE,
        limit: int = 100,
    ) -> SearchPage:
        self.calls.append((text, filters, sort, limit))
        if self.error is not None:
            raise self.error
        return self.page


class FakeCloner:
    """Creates a tiny working tree instead of running git."""

    def __init__(self, error: Exception | None = None) -> None:
        self.error = error
        self.calls: list[tuple[str, Path, bool]] = []

    async def clone(self, url: str, dest: Path, *, shallow: bool = True) -> None:
        self.calls.append((url, dest, shallow))
        if self.error is not None:
            raise self.error
        dest.mkdir(parents=True, exist_ok=True)
        (dest / "main.py").write_text("print('hi')\n", encoding="utf-8")


@pytest.fixture
def matches() -> tuple[RepositoryMatch, ...]:
    return (
        make_match("rust-lang/rust", stars=90_000),
        make_match("bevyengine/bevy", stars=30_000),
        make_match("tokio-rs/tokio", stars=25_000),
    )
