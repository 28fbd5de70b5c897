"""One-shot mode — run a single search and print the ranked results."""

from __future__ import annotations

import logging

from rich.console import Console

from repo_search.domain.entities import SearchPage, SearchQuery
from repo_search.domain.exceptions import SearchError
from repo_search.domain.ports.search_gateway import SearchGateway

logger = logging.getLogger(__name__)


async def run_once(query: SearchQuery, gateway: SearchGateway, console: Console) -> int:
    """Search once, print the results and return the process exit status."""
    console.print(f"Searching for: {query.text}\n", style="bold cyan")
    try:
        page = await gateway.search(query.text, query.filters, query.sort, query.limit)
    except SearchError as exc:
        logger.error("Search failed: %s", exc)
        console.print(f"Error: {exc}", style="red")
        return 1

    print_results(page, console)
    return 0


def print_results(page: SearchPage, console: Console) -> None:
    if not page.matches:
        console.print("No repositories found.", style="yellow")
        return

    console.print(
        f"Found {page.total_count} repositories (showing {len(page.matches)})\n",
        style="bold green",
    )
    for rank, match in enumerate(page.matches, start=1):
        console.print(f"[cyan]{rank}.[/] [bold]{match.full_name}[/]", highlight=False)
        console.print(
            f"   [yellow]★ {match.stars}[/] | [green]forks {match.forks}[/]"
            f" | [blue]{match.language or 'Unknown'}[/]",
            highlight=False,
        )
        if match.description:
            console.print(f"   {match.description}", style="dim", markup=False, highlight=False)
        console.print(f"   {match.html_url}", style="cyan underline", markup=False, highlight=False)
        console.print()
