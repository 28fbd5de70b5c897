"""Interactive session controller — the mode/state machine behind the TUI.

The controller owns :class:`SessionState` and is the only thing that mutates
it.  It never performs I/O: key presses come in as ``(key, character)`` and
leave as a list of *effects* for the event loop to carry out.  Background
work reports back through :class:`Completion` values, each tagged with the
generation number it was dispatched under; a completion whose generation is
not the latest outstanding one for its kind is dropped.

Modes::

    EDITING ──enter──▶ SEARCHING ──ok──▶ BROWSING ──f──▶ ANALYZING
       ▲                   │                ▲  │             │
       └────── / ──────────┼────────────────┘  │             │
                           └─fail─▶ ERROR ◀────┴─────fail────┘
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Union

from repo_search.domain.entities import (
    DEFAULT_RESULTS,
    AnalysisReport,
    RepoSize,
    RepositoryMatch,
    SearchFilters,
    SearchPage,
    SearchQuery,
    SortKey,
    clamp_limit,
)
from repo_search.domain.exceptions import RepoSearchError
from repo_search.domain.value_objects import RepoIdentifier

logger = logging.getLogger(__name__)


class Mode(str, Enum):
    EDITING = "editing"
    SEARCHING = "searching"
    BROWSING = "browsing"
    ANALYZING = "analyzing"
    ERROR = "error"


class OperationKind(str, Enum):
    SEARCH = "search"
    ANALYSIS = "analysis"
    CLONE = "clone"


# ── Keymap ──────────────────────────────────────────────────────────────────

QUIT_KEYS = frozenset({"ctrl+c", "ctrl+q"})
DISMISS_KEYS = frozenset({"escape", "enter"})
UP_KEYS = frozenset({"up", "k"})
DOWN_KEYS = frozenset({"down", "j"})
OPEN_KEYS = frozenset({"enter", "o"})
ANALYZE_KEY = "f"
CLONE_KEY = "g"
EDIT_KEYS = frozenset({"slash", "/", "tab"})

_SIZE_KEYS: dict[str, RepoSize | None] = {
    "1": RepoSize.SMALL,
    "2": RepoSize.MEDIUM,
    "3": RepoSize.LARGE,
    "0": None,
}


# ── Effects (controller → event loop) ──────────────────────────────────────


@dataclass(frozen=True, slots=True)
class DispatchSearch:
    generation: int
    query: SearchQuery


@dataclass(frozen=True, slots=True)
class DispatchAnalysis:
    generation: int
    repository: RepoIdentifier


@dataclass(frozen=True, slots=True)
class DispatchClone:
    generation: int
    repository: RepoIdentifier


@dataclass(frozen=True, slots=True)
class OpenUrl:
    url: str


@dataclass(frozen=True, slots=True)
class Quit:
    pass


Effect = Union[DispatchSearch, DispatchAnalysis, DispatchClone, OpenUrl, Quit]


# ── Completions (event loop → controller) ──────────────────────────────────


@dataclass(frozen=True, slots=True)
class Completion:
    """Outcome of one background operation.

    Exactly one of ``result`` / ``error`` is meaningful.  ``subject`` names
    the repository an analysis or clone ran against.
    """

    kind: OperationKind
    generation: int
    result: object = None
    error: RepoSearchError | None = None
    subject: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


# ── State ───────────────────────────────────────────────────────────────────


def _zero_generations() -> dict[OperationKind, int]:
    return {kind: 0 for kind in OperationKind}


@dataclass
class SessionState:
    """Everything the renderer needs; created once, mutated only by the controller."""

    mode: Mode = Mode.EDITING
    draft: str = ""
    filters: SearchFilters = field(default_factory=SearchFilters)
    sort: SortKey = SortKey.RELEVANCE
    limit: int = DEFAULT_RESULTS
    last_query: SearchQuery | None = None
    matches: tuple[RepositoryMatch, ...] = ()
    total_count: int | None = None
    selected: int | None = None
    details_scroll: int = 0
    reports: dict[str, AnalysisReport] = field(default_factory=dict)
    last_report: AnalysisReport | None = None
    analysis_target: str | None = None
    clone_status: str | None = None
    error: RepoSearchError | None = None
    pending: set[OperationKind] = field(default_factory=set)
    generations: dict[OperationKind, int] = field(default_factory=_zero_generations)

    @property
    def selected_match(self) -> RepositoryMatch | None:
        if self.selected is None or not 0 <= self.selected < len(self.matches):
            return None
        return self.matches[self.selected]

    @property
    def has_searched(self) -> bool:
        return self.total_count is not None

    def is_pending(self, kind: OperationKind) -> bool:
        return kind in self.pending


class SessionController:
    """Applies key presses and completions to a :class:`SessionState`."""

    def __init__(self, state: SessionState | None = None) -> None:
        self._state = state or SessionState()
        self._closed = False

    @classmethod
    def with_presets(
        cls,
        *,
        draft: str = "",
        filters: SearchFilters | None = None,
        sort: SortKey = SortKey.RELEVANCE,
        limit: int | None = None,
    ) -> SessionController:
        """Build a controller whose searches carry the command-line filters."""
        return cls(
            SessionState(
                draft=draft,
                filters=filters or SearchFilters(),
                sort=sort,
                limit=clamp_limit(limit),
            )
        )

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def closed(self) -> bool:
        return self._closed

    # ── Input ───────────────────────────────────────────────────────────

    def handle_key(self, key: str, character: str | None = None) -> list[Effect]:
        """Apply one key press and return the effects it requests."""
        if self._closed:
            return []

        mode = self._state.mode
        if key in QUIT_KEYS or (key == "escape" and mode is not Mode.ERROR):
            self._closed = True
            return [Quit()]

        if mode is Mode.EDITING:
            return self._on_editing_key(key, character)
        if mode in (Mode.BROWSING, Mode.ANALYZING):
            return self._on_browsing_key(key)
        if mode is Mode.ERROR and key in DISMISS_KEYS:
            self._dismiss_error()
        return []

    def _on_editing_key(self, key: str, character: str | None) -> list[Effect]:
        state = self._state
        if key == "enter":
            return self._submit()
        if key == "backspace":
            state.draft = state.draft[:-1]
        elif key == "ctrl+u":
            state.draft = ""
        elif key == "tab":
            if state.matches:
                state.mode = Mode.BROWSING
        elif character is not None and len(character) == 1 and character.isprintable():
            state.draft += character
        return []

    def _on_browsing_key(self, key: str) -> list[Effect]:
        state = self._state
        if key in UP_KEYS:
            self._move_selection(-1)
        elif key in DOWN_KEYS:
            self._move_selection(1)
        elif key == "left":
            state.details_scroll = max(0, state.details_scroll - 1)
        elif key == "right":
            state.details_scroll += 1
        elif key in OPEN_KEYS:
            match = state.selected_match
            if match is not None and match.html_url:
                return [OpenUrl(match.html_url)]
        elif key == ANALYZE_KEY:
            return self._start_analysis()
        elif key == CLONE_KEY:
            return self._start_clone()
        elif key in _SIZE_KEYS:
            state.filters = replace(state.filters, size=_SIZE_KEYS[key])
        elif key in EDIT_KEYS and state.mode is Mode.BROWSING:
            state.mode = Mode.EDITING
        return []

    # ── Transitions ─────────────────────────────────────────────────────

    def _submit(self) -> list[Effect]:
        state = self._state
        text = state.draft.strip()
        if not text:
            return []
        generation = self._claim(OperationKind.SEARCH)
        if generation is None:
            return []
        query = SearchQuery(text=text, filters=state.filters, sort=state.sort, limit=state.limit)
        state.last_query = query
        state.mode = Mode.SEARCHING
        return [DispatchSearch(generation, query)]

    def _start_analysis(self) -> list[Effect]:
        state = self._state
        repository = self._selected_identifier()
        if repository is None or state.is_pending(OperationKind.ANALYSIS):
            return []
        generation = self._claim(OperationKind.ANALYSIS)
        if generation is None:
            return []
        state.analysis_target = repository.full_name
        state.mode = Mode.ANALYZING
        return [DispatchAnalysis(generation, repository)]

    def _start_clone(self) -> list[Effect]:
        state = self._state
        repository = self._selected_identifier()
        if repository is None:
            return []
        generation = self._claim(OperationKind.CLONE)
        if generation is None:
            return []
        state.clone_status = None
        return [DispatchClone(generation, repository)]

    def _move_selection(self, delta: int) -> None:
        state = self._state
        if not state.matches:
            return
        current = state.selected if state.selected is not None else 0
        new = max(0, min(len(state.matches) - 1, current + delta))
        if new != state.selected:
            state.selected = new
            state.details_scroll = 0

    def _dismiss_error(self) -> None:
        state = self._state
        state.error = None
        state.mode = Mode.BROWSING if state.matches else Mode.EDITING

    def _selected_identifier(self) -> RepoIdentifier | None:
        match = self._state.selected_match
        if match is None:
            return None
        try:
            return RepoIdentifier.from_string(match.full_name)
        except ValueError:
            logger.warning("Cannot derive a repository identifier from %r", match.full_name)
            return None

    def _claim(self, kind: OperationKind) -> int | None:
        """Mark *kind* pending under a fresh generation; ``None`` if already pending."""
        state = self._state
        if kind in state.pending:
            logger.debug("Discarding %s dispatch: one is already pending", kind.value)
            return None
        state.generations[kind] += 1
        state.pending.add(kind)
        return state.generations[kind]

    # ── Completions ─────────────────────────────────────────────────────

    def handle_completion(self, completion: Completion) -> bool:
        """Merge a background result into state; return ``False`` if it was stale."""
        if self._closed:
            return False

        state = self._state
        kind = completion.kind
        if kind not in state.pending or completion.generation != state.generations[kind]:
            logger.info(
                "Dropping stale %s completion (generation %d, current %d)",
                kind.value,
                completion.generation,
                state.generations[kind],
            )
            return False

        state.pending.discard(kind)
        if kind is OperationKind.SEARCH:
            self._apply_search(completion)
        elif kind is OperationKind.ANALYSIS:
            self._apply_analysis(completion)
        else:
            self._apply_clone(completion)
        return True

    def _apply_search(self, completion: Completion) -> None:
        state = self._state
        if completion.error is not None:
            state.error = completion.error
            state.mode = Mode.ERROR
            return

        page = completion.result
        assert isinstance(page, SearchPage)
        state.matches = page.matches
        state.total_count = page.total_count
        state.selected = 0 if page.matches else None
        state.details_scroll = 0
        state.mode = Mode.BROWSING

    def _apply_analysis(self, completion: Completion) -> None:
        state = self._state
        subject = completion.subject or state.analysis_target
        state.analysis_target = None
        if completion.error is not None:
            state.error = completion.error
            state.mode = Mode.ERROR
            return

        report = completion.result
        assert isinstance(report, AnalysisReport)
        if subject:
            state.reports[subject] = report
        state.last_report = report
        if state.mode is Mode.ANALYZING:
            state.mode = Mode.BROWSING

    def _apply_clone(self, completion: Completion) -> None:
        state = self._state
        if completion.error is not None:
            state.clone_status = f"Clone failed: {completion.error}"
        else:
            state.clone_status = f"Cloned to {completion.result}"
