"""Dependency wiring — shared HTTP client lifecycle and concrete adapters."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable

import httpx

from repo_search.domain.ports.repo_cloner import RepoCloner
from repo_search.domain.ports.search_gateway import SearchGateway
from repo_search.infrastructure.browser import open_in_browser
from repo_search.infrastructure.config import Settings
from repo_search.infrastructure.git_cloner import GitCliCloner
from repo_search.infrastructure.github_search_adapter import GitHubSearchAdapter
from repo_search.services.analysis_runner import AnalysisRunner

_http_client: httpx.AsyncClient | None = None


@dataclass
class Services:
    """The collaborators the interactive loop drives."""

    search_gateway: SearchGateway
    analysis_runner: AnalysisRunner
    cloner: RepoCloner
    open_url: Callable[[str], None]
    script_choice: str | None = None
    repositories_dir: Path = field(default_factory=lambda: Path("repositories"))


async def startup(settings: Settings) -> None:
    """Initialise shared resources."""
    global _http_client  # noqa: PLW0603

    if _http_client is None:
        _http_client = httpx.AsyncClient(timeout=httpx.Timeout(settings.search_timeout_s))


async def shutdown() -> None:
    """Release shared resources."""
    global _http_client  # noqa: PLW0603

    if _http_client:
        await _http_client.aclose()
        _http_client = None


def get_search_gateway(settings: Settings) -> GitHubSearchAdapter:
    assert _http_client is not None, "startup() was not called"

    token = settings.github_token.get_secret_value() if settings.github_token else None
    return GitHubSearchAdapter(client=_http_client, token=token)


def get_services(settings: Settings) -> Services:
    """Build the adapters for one interactive session."""
    cloner = GitCliCloner(timeout_s=settings.clone_timeout_s)
    runner = AnalysisRunner(
        cloner=cloner,
        scripts_dir=settings.resolved_scripts_dir,
        timeout_s=settings.analysis_timeout_s,
        workspace_root=settings.workspace_root,
    )
    return Services(
        search_gateway=get_search_gateway(settings),
        analysis_runner=runner,
        cloner=cloner,
        open_url=open_in_browser,
        script_choice=settings.filecount_script,
        repositories_dir=settings.repositories_dir,
    )
