"""Interactive terminal UI — the event loop around :class:`SessionController`.

Keyboard events and completions of background work are both delivered to the
textual message loop; only handlers running on that loop touch the session
state.  Searches, analyses and clones run as workers and hand their outcome
back as an :class:`OperationFinished` message.
"""

from __future__ import annotations

import asyncio
import logging
from typing import cast

from textual import events
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.message import Message
from textual.screen import Screen
from textual.widgets import Static

from repo_search.domain.exceptions import AnalysisError, SearchError
from repo_search.infrastructure.config import Settings, get_settings
from repo_search.interface import dependencies
from repo_search.interface.dependencies import Services
from repo_search.interface.render import (
    render_details,
    render_help,
    render_results,
    render_search_box,
)
from repo_search.services.local_clone import clone_to_directory
from repo_search.services.session import (
    Completion,
    DispatchAnalysis,
    DispatchClone,
    DispatchSearch,
    Effect,
    OpenUrl,
    OperationKind,
    Quit,
    SessionController,
)

logger = logging.getLogger(__name__)

_TICK_SECONDS = 0.1


class OperationFinished(Message):
    """A background operation finished; carries its tagged completion."""

    def __init__(self, completion: Completion) -> None:
        super().__init__()
        self.completion = completion


class SearchScreen(Screen):
    """Search box, results, details and help bar stacked vertically."""

    DEFAULT_CSS = """
    SearchScreen {
        layout: vertical;
        padding: 1 2;
    }
    #search { height: 3; }
    #results { height: 1fr; min-height: 10; }
    #details { height: 1fr; min-height: 12; }
    #help { height: 1; }
    """

    def compose(self) -> ComposeResult:
        yield Static(id="search")
        yield Static(id="results")
        yield Static(id="details")
        yield Static(id="help")

    def on_mount(self) -> None:
        self.refresh_view()

    def on_resize(self, event: events.Resize) -> None:
        self.refresh_view()

    def on_key(self, event: events.Key) -> None:
        event.stop()
        event.prevent_default()
        cast("RepoSearchApp", self.app).handle_key(event.key, event.character)

    def refresh_view(self) -> None:
        app = cast("RepoSearchApp", self.app)
        state = app.controller.state
        results = self.query_one("#results", Static)
        self.query_one("#search", Static).update(render_search_box(state))
        results.update(render_results(state, results.size.height - 2, app.frame))
        self.query_one("#details", Static).update(render_details(state, app.frame))
        self.query_one("#help", Static).update(render_help(state))


class RepoSearchApp(App[None]):
    """Interactive repository search."""

    TITLE = "repo-search"
    ENABLE_COMMAND_PALETTE = False
    BINDINGS = [Binding("ctrl+c", "quit", "Quit", show=False, priority=True)]

    def __init__(
        self,
        controller: SessionController | None = None,
        services: Services | None = None,
        settings: Settings | None = None,
    ) -> None:
        super().__init__()
        self.controller = controller or SessionController()
        self.frame = 0
        self._services = services
        self._settings = settings
        self._owns_resources = False

    def get_default_screen(self) -> Screen:
        return SearchScreen()

    async def on_mount(self) -> None:
        if self._services is None:
            settings = self._settings or get_settings()
            await dependencies.startup(settings)
            self._services = dependencies.get_services(settings)
            self._owns_resources = True
        self.set_interval(_TICK_SECONDS, self._tick)

    async def on_unmount(self) -> None:
        if self._owns_resources:
            await dependencies.shutdown()

    # ── Input ───────────────────────────────────────────────────────────

    def handle_key(self, key: str, character: str | None) -> None:
        effects = self.controller.handle_key(key, character)
        for effect in effects:
            self._run_effect(effect)
        self._redraw()

    def on_operation_finished(self, message: OperationFinished) -> None:
        self.controller.handle_completion(message.completion)
        self._redraw()

    def _tick(self) -> None:
        self.frame += 1
        if self.controller.state.pending:
            self._redraw()

    def _redraw(self) -> None:
        if isinstance(self.screen, SearchScreen):
            self.screen.refresh_view()

    # ── Effects ─────────────────────────────────────────────────────────

    def _run_effect(self, effect: Effect) -> None:
        if isinstance(effect, Quit):
            self.exit()
        elif isinstance(effect, OpenUrl):
            self.run_worker(self._open(effect), group="browser")
        elif isinstance(effect, DispatchSearch):
            self.run_worker(self._search(effect), group=OperationKind.SEARCH.value)
        elif isinstance(effect, DispatchAnalysis):
            self.run_worker(self._analyze(effect), group=OperationKind.ANALYSIS.value)
        elif isinstance(effect, DispatchClone):
            self.run_worker(self._clone(effect), group=OperationKind.CLONE.value)

    async def _open(self, effect: OpenUrl) -> None:
        await asyncio.to_thread(self._require_services().open_url, effect.url)

    async def _search(self, effect: DispatchSearch) -> None:
        query = effect.query
        gateway = self._require_services().search_gateway
        try:
            page = await gateway.search(query.text, query.filters, query.sort, query.limit)
        except SearchError as exc:
            logger.warning("Search %r failed: %s", query.text, exc)
            completion = Completion(OperationKind.SEARCH, effect.generation, error=exc)
        else:
            completion = Completion(OperationKind.SEARCH, effect.generation, result=page)
        self.post_message(OperationFinished(completion))

    async def _analyze(self, effect: DispatchAnalysis) -> None:
        services = self._require_services()
        subject = effect.repository.full_name
        try:
            report = await services.analysis_runner.analyze(effect.repository, services.script_choice)
        except AnalysisError as exc:
            logger.warning("Analysis of %s failed: %s", subject, exc)
            completion = Completion(OperationKind.ANALYSIS, effect.generation, error=exc, subject=subject)
        else:
            completion = Completion(OperationKind.ANALYSIS, effect.generation, result=report, subject=subject)
        self.post_message(OperationFinished(completion))

    async def _clone(self, effect: DispatchClone) -> None:
        services = self._require_services()
        subject = effect.repository.full_name
        try:
            path = await clone_to_directory(services.cloner, effect.repository, services.repositories_dir)
        except AnalysisError as exc:
            logger.warning("Clone of %s failed: %s", subject, exc)
            completion = Completion(OperationKind.CLONE, effect.generation, error=exc, subject=subject)
        else:
            completion = Completion(OperationKind.CLONE, effect.generation, result=path, subject=subject)
        self.post_message(OperationFinished(completion))

    def _require_services(self) -> Services:
        assert self._services is not None, "services are wired in on_mount()"
        return self._services
