"""Tests for the interactive session state machine."""

import itertools
import random

import pytest

from conftest import make_match
from repo_search.domain.entities import (
    AnalysisReport,
    LanguageCount,
    RepoSize,
    SearchFilters,
    SearchPage,
    SortKey,
)
from repo_search.domain.exceptions import ExecutionError, RateLimitedError
from repo_search.domain.value_objects import RepoIdentifier
from repo_search.services.session import (
    Completion,
    DispatchAnalysis,
    DispatchClone,
    DispatchSearch,
    Mode,
    OpenUrl,
    OperationKind,
    Quit,
    SessionController,
)

REPORT = AnalysisReport(entries=(LanguageCount("Rust", 10, 1000),))


def type_text(controller: SessionController, text: str) -> None:
    for char in text:
        controller.handle_key(char, char)


def search(controller: SessionController, text: str = "rust game") -> DispatchSearch:
    type_text(controller, text)
    (effect,) = controller.handle_key("enter", "\r")
    assert isinstance(effect, DispatchSearch)
    return effect


@pytest.fixture
def browsing(matches) -> SessionController:
    controller = SessionController()
    effect = search(controller)
    controller.handle_completion(
        Completion(OperationKind.SEARCH, effect.generation, result=SearchPage(matches, 1234))
    )
    assert controller.state.mode is Mode.BROWSING
    return controller


# ── Editing ─────────────────────────────────────────────────────────────────


def test_initial_state_is_empty():
    state = SessionController().state

    assert state.mode is Mode.EDITING
    assert state.draft == ""
    assert state.matches == ()
    assert state.selected is None
    assert state.last_report is None
    assert state.error is None
    assert state.pending == set()


def test_typing_and_backspace_edit_the_draft():
    controller = SessionController()
    type_text(controller, "rusty")
    controller.handle_key("backspace")

    assert controller.state.draft == "rust"
    assert controller.state.mode is Mode.EDITING


def test_backspace_on_empty_draft_is_noop():
    controller = SessionController()
    assert controller.handle_key("backspace") == []
    assert controller.state.draft == ""


def test_ctrl_u_clears_draft():
    controller = SessionController()
    type_text(controller, "abc")
    controller.handle_key("ctrl+u")
    assert controller.state.draft == ""


def test_submitting_empty_draft_does_nothing():
    controller = SessionController()

    assert controller.handle_key("enter", "\r") == []
    assert controller.state.mode is Mode.EDITING
    assert controller.state.pending == set()
    assert controller.state.generations[OperationKind.SEARCH] == 0


def test_submit_dispatches_search_with_presets():
    controller = SessionController.with_presets(
        filters=SearchFilters(language="rust", min_stars=50),
        sort=SortKey.STARS,
        limit=500,
    )
    effect = search(controller, "game engine")

    assert effect.generation == 1
    assert effect.query.text == "game engine"
    assert effect.query.filters == SearchFilters(language="rust", min_stars=50)
    assert effect.query.sort is SortKey.STARS
    assert effect.query.limit == 100
    assert controller.state.mode is Mode.SEARCHING
    assert controller.state.is_pending(OperationKind.SEARCH)


def test_keys_are_ignored_while_searching():
    controller = SessionController()
    search(controller)

    assert controller.handle_key("x", "x") == []
    assert controller.handle_key("enter", "\r") == []
    assert controller.state.generations[OperationKind.SEARCH] == 1


# ── Search completion ───────────────────────────────────────────────────────


def test_search_success_selects_first_match(browsing, matches):
    state = browsing.state

    assert state.matches == matches
    assert state.selected == 0
    assert state.total_count == 1234
    assert not state.is_pending(OperationKind.SEARCH)


def test_empty_search_result_has_no_selection():
    controller = SessionController()
    effect = search(controller)
    controller.handle_completion(
        Completion(OperationKind.SEARCH, effect.generation, result=SearchPage((), 0))
    )

    assert controller.state.mode is Mode.BROWSING
    assert controller.state.selected is None
    assert controller.handle_key("down") == []
    assert controller.state.selected is None


def test_search_failure_enters_error_then_editing():
    controller = SessionController()
    effect = search(controller)
    controller.handle_completion(
        Completion(OperationKind.SEARCH, effect.generation, error=RateLimitedError("slow down"))
    )

    assert controller.state.mode is Mode.ERROR
    assert not controller.state.is_pending(OperationKind.SEARCH)

    controller.handle_key("escape")
    assert controller.state.mode is Mode.EDITING
    assert controller.state.error is None


def test_rate_limited_search_keeps_previous_matches(browsing, matches):
    browsing.handle_key("/", "/")
    browsing.handle_key("ctrl+u")
    effect = search(browsing, "another")
    browsing.handle_completion(
        Completion(OperationKind.SEARCH, effect.generation, error=RateLimitedError("limit", 30.0))
    )
    assert browsing.state.mode is Mode.ERROR

    browsing.handle_key("enter", "\r")

    assert browsing.state.mode is Mode.BROWSING
    assert browsing.state.matches == matches


# ── Browsing ────────────────────────────────────────────────────────────────


def test_navigation_is_clamped(browsing):
    browsing.handle_key("up")
    assert browsing.state.selected == 0

    for _ in range(10):
        browsing.handle_key("down")
    assert browsing.state.selected == 2

    browsing.handle_key("k", "k")
    assert browsing.state.selected == 1


@pytest.mark.parametrize("count", [0, 1, 2, 5])
def test_random_navigation_stays_in_bounds(count):
    controller = SessionController()
    effect = search(controller)
    page = SearchPage(tuple(make_match(f"o/r{i}") for i in range(count)), count)
    controller.handle_completion(Completion(OperationKind.SEARCH, effect.generation, result=page))

    rng = random.Random(count)
    for key in (rng.choice(["up", "down"]) for _ in range(200)):
        controller.handle_key(key)
        selected = controller.state.selected
        if count == 0:
            assert selected is None
        else:
            assert 0 <= selected < count


def test_selection_change_resets_details_scroll(browsing):
    browsing.handle_key("right")
    browsing.handle_key("right")
    assert browsing.state.details_scroll == 2

    browsing.handle_key("down")
    assert browsing.state.details_scroll == 0


def test_open_key_emits_url_without_state_change(browsing):
    browsing.handle_key("down")

    effects = browsing.handle_key("o", "o")

    assert effects == [OpenUrl("https://github.com/bevyengine/bevy")]
    assert browsing.state.mode is Mode.BROWSING


def test_size_filter_keys(browsing):
    browsing.handle_key("2", "2")
    assert browsing.state.filters.size is RepoSize.MEDIUM

    browsing.handle_key("0", "0")
    assert browsing.state.filters.size is None


def test_slash_returns_to_editing_and_tab_back(browsing):
    browsing.handle_key("slash", "/")
    assert browsing.state.mode is Mode.EDITING

    browsing.handle_key("tab")
    assert browsing.state.mode is Mode.BROWSING


# ── Analysis ────────────────────────────────────────────────────────────────


def test_analyze_dispatches_for_selection(browsing):
    effects = browsing.handle_key("f", "f")

    assert effects == [DispatchAnalysis(1, RepoIdentifier("rust-lang", "rust"))]
    assert browsing.state.mode is Mode.ANALYZING
    assert browsing.state.analysis_target == "rust-lang/rust"


def test_analyze_while_pending_is_noop(browsing):
    browsing.handle_key("f", "f")
    generations = dict(browsing.state.generations)
    pending = set(browsing.state.pending)

    assert browsing.handle_key("f", "f") == []
    browsing.handle_key("down")
    assert browsing.handle_key("f", "f") == []

    assert browsing.state.generations == generations
    assert browsing.state.pending == pending


def test_analysis_success_returns_to_browsing(browsing):
    (effect,) = browsing.handle_key("f", "f")
    applied = browsing.handle_completion(
        Completion(OperationKind.ANALYSIS, effect.generation, result=REPORT, subject="rust-lang/rust")
    )

    assert applied is True
    assert browsing.state.mode is Mode.BROWSING
    assert browsing.state.last_report == REPORT
    assert browsing.state.reports["rust-lang/rust"] == REPORT
    assert browsing.state.analysis_target is None


def test_analysis_failure_preserves_matches_and_selection(browsing, matches):
    browsing.handle_key("down")
    (effect,) = browsing.handle_key("f", "f")
    browsing.handle_completion(
        Completion(
            OperationKind.ANALYSIS,
            effect.generation,
            error=ExecutionError("filecount.sh exited with status 1", exit_code=1),
        )
    )

    assert browsing.state.mode is Mode.ERROR
    assert browsing.state.matches == matches
    assert browsing.state.selected == 1

    browsing.handle_key("escape")
    assert browsing.state.mode is Mode.BROWSING
    assert browsing.handle_key("f", "f") == [
        DispatchAnalysis(2, RepoIdentifier("bevyengine", "bevy"))
    ]


def test_cannot_leave_to_editing_while_analyzing(browsing):
    browsing.handle_key("f", "f")
    browsing.handle_key("slash", "/")
    assert browsing.state.mode is Mode.ANALYZING


# ── Generations ─────────────────────────────────────────────────────────────


def test_stale_completion_is_dropped(browsing, matches):
    before_reports = dict(browsing.state.reports)

    stale_search = Completion(OperationKind.SEARCH, 0, result=SearchPage((make_match("x/y"),), 1))
    stale_analysis = Completion(OperationKind.ANALYSIS, 7, result=REPORT, subject="rust-lang/rust")

    assert browsing.handle_completion(stale_search) is False
    assert browsing.handle_completion(stale_analysis) is False
    assert browsing.state.matches == matches
    assert browsing.state.reports == before_reports
    assert browsing.state.last_report is None


def test_duplicate_completion_is_applied_once(browsing):
    (effect,) = browsing.handle_key("f", "f")
    completion = Completion(OperationKind.ANALYSIS, effect.generation, result=REPORT)

    assert browsing.handle_completion(completion) is True
    assert browsing.handle_completion(completion) is False


def test_generations_increase_per_kind(browsing):
    assert browsing.state.generations[OperationKind.SEARCH] == 1
    for expected in itertools.islice(itertools.count(1), 3):
        (effect,) = browsing.handle_key("f", "f")
        assert effect.generation == expected
        browsing.handle_completion(Completion(OperationKind.ANALYSIS, effect.generation, result=REPORT))
    assert browsing.state.generations[OperationKind.SEARCH] == 1


# ── Clone ───────────────────────────────────────────────────────────────────


def test_clone_runs_in_background(browsing):
    (effect,) = browsing.handle_key("g", "g")
    assert isinstance(effect, DispatchClone)
    assert browsing.state.mode is Mode.BROWSING
    assert browsing.handle_key("g", "g") == []

    browsing.handle_completion(
        Completion(OperationKind.CLONE, effect.generation, result="repositories/rust")
    )
    assert browsing.state.clone_status == "Cloned to repositories/rust"


# ── Quit ────────────────────────────────────────────────────────────────────


@pytest.mark.parametrize("key", ["ctrl+c", "escape"])
def test_quit_stops_further_mutation(key):
    controller = SessionController()
    type_text(controller, "abc")

    assert controller.handle_key(key) == [Quit()]
    assert controller.closed

    controller.handle_key("d", "d")
    assert controller.state.draft == "abc"


def test_escape_in_error_dismisses_instead_of_quitting():
    controller = SessionController()
    effect = search(controller)
    controller.handle_completion(
        Completion(OperationKind.SEARCH, effect.generation, error=RateLimitedError("x"))
    )

    assert controller.handle_key("escape") == []
    assert not controller.closed
