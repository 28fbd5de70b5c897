from __future__ import annotations

import argparse
import asyncio
import logging
import sys

from pydantic import SecretStr
from rich.console import Console

from repo_search.domain.entities import (
    DEFAULT_RESULTS,
    RepoSize,
    SearchFilters,
    SearchQuery,
    SortKey,
    clamp_limit,
)
from repo_search.infrastructure.config import Settings, get_settings
from repo_search.interface import dependencies
from repo_search.interface.cli import run_once
from repo_search.interface.tui import RepoSearchApp
from repo_search.services.session import SessionController

_LOG_FORMAT = "%(asctime)s  %(levelname)-8s  %(name)s  %(message)s"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="repo-search",
        description=(
            "Search GitHub repositories. Starts the interactive UI when no "
            "query is given."
        ),
    )
    parser.add_argument("query", nargs="*", help='search terms, e.g. "large rust game"')
    parser.add_argument(
        "-l", "--limit", type=int, default=DEFAULT_RESULTS,
        help=f"number of results (1-100, default {DEFAULT_RESULTS})",
    )
    parser.add_argument("-L", "--language", help='filter by language, e.g. "rust"')
    parser.add_argument("-s", "--stars", type=int, help="minimum number of stars")
    parser.add_argument(
        "--repo-size", type=RepoSize.parse,
        help="small (<25MB), medium (25-100MB) or large (>100MB)",
    )
    parser.add_argument(
        "--sort", type=SortKey.parse, default=SortKey.RELEVANCE,
        help="stars, forks, updated or relevance (default)",
    )
    parser.add_argument("-t", "--token", help="GitHub personal access token")
    parser.add_argument("--no-tui", action="store_true", help="never start the interactive UI")
    return parser


def _configure_logging(settings: Settings, interactive: bool) -> None:
    # The full-screen UI owns the terminal, so interactive runs log to a file.
    logging.basicConfig(
        level=settings.log_level.upper(),
        format=_LOG_FORMAT,
        filename=settings.log_file if interactive else None,
    )


def main(argv: list[str] | None = None) -> int:
    """Parse arguments and run either the interactive UI or a one-shot search."""
    args = build_parser().parse_args(argv)
    settings = get_settings()
    if args.token:
        settings = settings.model_copy(update={"github_token": SecretStr(args.token)})

    filters = SearchFilters(language=args.language, min_stars=args.stars, size=args.repo_size)
    interactive = not args.query and not args.no_tui
    _configure_logging(settings, interactive)

    if interactive:
        controller = SessionController.with_presets(filters=filters, sort=args.sort, limit=args.limit)
        RepoSearchApp(controller=controller, settings=settings).run()
        return 0

    console = Console()
    if not args.query:
        console.print("Error: No query provided. Use --help for usage.", style="red")
        return 1

    query = SearchQuery(
        text=" ".join(args.query),
        filters=filters,
        sort=args.sort,
        limit=clamp_limit(args.limit),
    )
    return asyncio.run(_search_once(query, settings, console))


async def _search_once(query: SearchQuery, settings: Settings, console: Console) -> int:
    await dependencies.startup(settings)
    try:
        return await run_once(query, dependencies.get_search_gateway(settings), console)
    finally:
        await dependencies.shutdown()


if __name__ == "__main__":
    sys.exit(main())
