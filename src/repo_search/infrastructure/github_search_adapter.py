"""GitHub REST search adapter — implements the SearchGateway port."""

from __future__ import annotations

import logging
import time
from datetime import datetime
from typing import Any

import httpx

from repo_search.domain.entities import (
    RepositoryMatch,
    SearchFilters,
    SearchPage,
    SortKey,
    clamp_limit,
)
from repo_search.domain.exceptions import (
    RateLimitedError,
    RemoteServiceError,
    SearchNetworkError,
    UnauthenticatedError,
)

logger = logging.getLogger(__name__)

_GITHUB_API = "https://api.github.com"

# SortKey -> value of the ``sort`` parameter; relevance is the API default.
_SORT_PARAMS: dict[SortKey, str | None] = {
    SortKey.STARS: "stars",
    SortKey.FORKS: "forks",
    SortKey.RECENCY: "updated",
    SortKey.RELEVANCE: None,
}


def build_search_query(text: str, filters: SearchFilters) -> str:
    """Append the filter qualifiers to the free-text query."""
    parts = [text.strip()]
    if filters.language:
        parts.append(f"language:{filters.language}")
    if filters.min_stars is not None:
        parts.append(f"stars:>={filters.min_stars}")
    if filters.size is not None:
        parts.append(filters.size.qualifier)
    return " ".join(part for part in parts if part)


class GitHubSearchAdapter:
    """Concrete ``SearchGateway`` backed by ``GET /search/repositories``.

    No retries happen here; every failure surfaces as a ``SearchError``.
    """

    def __init__(self, client: httpx.AsyncClient, token: str | None = None) -> None:
        self._client = client
        self._api_headers: dict[str, str] = {
            "Accept": "application/vnd.github.v3+json",
            "User-Agent": "repo-search/1.0",
        }
        if token:
            self._api_headers["Authorization"] = f"Bearer {token}"

    async def search(
        self,
        text: str,
        filters: SearchFilters,
        sort: SortKey = SortKey.RELEVANCE,
        limit: int = 100,
    ) -> SearchPage:
        """GET /search/repositories → SearchPage, in the API's rank order."""
        params: dict[str, str] = {
            "q": build_search_query(text, filters),
            "per_page": str(clamp_limit(limit)),
        }
        sort_param = _SORT_PARAMS[sort]
        if sort_param:
            params["sort"] = sort_param
            params["order"] = "desc"

        logger.info("Searching %r (sort=%s, per_page=%s)", params["q"], sort.value, params["per_page"])
        resp = await self._api_get("/search/repositories", params=params)
        try:
            data = resp.json()
            matches = tuple(_to_match(item) for item in data.get("items", []))
            total_count = int(data.get("total_count") or 0)
        except (ValueError, TypeError, KeyError, AttributeError) as exc:
            raise RemoteServiceError(
                f"Malformed response from GitHub: {exc}",
                status_code=resp.status_code,
            ) from exc

        logger.info("Search returned %d of %s matches", len(matches), total_count)
        return SearchPage(matches=matches, total_count=total_count)

    async def _api_get(
        self,
        endpoint: str,
        params: dict[str, str] | None = None,
    ) -> httpx.Response:
        """Perform a GitHub API GET request with error translation."""
        url = f"{_GITHUB_API}{endpoint}"
        try:
            resp = await self._client.get(url, headers=self._api_headers, params=params)
        except httpx.HTTPError as exc:
            raise SearchNetworkError(f"Network error contacting GitHub: {exc}") from exc

        if resp.is_success:
            return resp

        message = _error_message(resp)

        if resp.status_code == 401:
            raise UnauthenticatedError(
                "GitHub rejected the token. Check that it is valid and not expired."
            )

        if resp.status_code in (403, 429):
            retry_after = _retry_after(resp)
            if (
                resp.status_code == 429
                or retry_after is not None
                or resp.headers.get("x-ratelimit-remaining", "") == "0"
            ):
                hint = f" Retry in {retry_after:.0f}s." if retry_after is not None else ""
                raise RateLimitedError(
                    f"GitHub API rate limit exceeded.{hint} "
                    "Pass --token or set GITHUB_TOKEN to increase the limit.",
                    retry_after=retry_after,
                )

        raise RemoteServiceError(
            f"GitHub API returned HTTP {resp.status_code}: {message}",
            status_code=resp.status_code,
        )


def _retry_after(resp: httpx.Response) -> float | None:
    """Seconds until the limit resets, from ``Retry-After`` or ``x-ratelimit-reset``."""
    raw = resp.headers.get("retry-after")
    if raw:
        try:
            return max(0.0, float(raw))
        except ValueError:
            pass
    if resp.headers.get("x-ratelimit-remaining", "") == "0":
        reset_raw = resp.headers.get("x-ratelimit-reset", "")
        try:
            return max(0.0, int(reset_raw) - time.time())
        except ValueError:
            return None
    return None


def _error_message(resp: httpx.Response) -> str:
    try:
        payload = resp.json()
    except ValueError:
        return resp.text[:200] or resp.reason_phrase
    if isinstance(payload, dict) and payload.get("message"):
        return str(payload["message"])
    return resp.reason_phrase


def _to_match(item: dict[str, Any]) -> RepositoryMatch:
    return RepositoryMatch(
        full_name=item.get("full_name") or "Unknown",
        html_url=item.get("html_url") or "",
        description=item.get("description"),
        stars=item.get("stargazers_count") or 0,
        forks=item.get("forks_count") or 0,
        language=item.get("language"),
        updated_at=_parse_timestamp(item.get("updated_at")),
        size_kb=item.get("size") or 0,
    )


def _parse_timestamp(raw: str | None) -> datetime | None:
    if not raw:
        return None
    try:
        return datetime.fromisoformat(raw.replace("Z", "+00:00"))
    except ValueError:
        return None
