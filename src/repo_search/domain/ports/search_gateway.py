"""Port: search gateway — defined by the domain, implemented by infrastructure."""

from __future__ import annotations

from typing import Protocol

from repo_search.domain.entities import SearchFilters, SearchPage, SortKey


class SearchGateway(Protocol):
    """Abstract contract for the remote repository search."""

    async def search(
        self,
        text: str,
        filters: SearchFilters,
        sort: SortKey = SortKey.RELEVANCE,
        limit: int = 100,
    ) -> SearchPage:
        """Return ranked matches; raise a ``SearchError`` subclass on failure."""
        ...
