"""Renderer — pure functions from :class:`SessionState` to rich renderables."""

from __future__ import annotations

from rich.console import Group, RenderableType
from rich.panel import Panel
from rich.text import Text

from repo_search.domain.entities import AnalysisReport
from repo_search.services.session import Mode, OperationKind, SessionState

SPINNER_FRAMES = ("⠋", "⠙", "⠹", "⠸", "⠼", "⠴", "⠦", "⠧", "⠇", "⠏")


def spinner(frame: int) -> str:
    return SPINNER_FRAMES[frame % len(SPINNER_FRAMES)]


def render_search_box(state: SessionState) -> Panel:
    title = Text(" Search GitHub Repositories ")
    active = [f"size: {state.filters.size.value}"] if state.filters.size else []
    if state.filters.language:
        active.append(f"language: {state.filters.language}")
    if state.filters.min_stars is not None:
        active.append(f"stars >= {state.filters.min_stars}")
    if active:
        title.append(f"[{', '.join(active)}] ", style="yellow")

    text = Text(state.draft)
    if state.mode is Mode.EDITING:
        text.append("█", style="blink")
    return Panel(
        text,
        title=title,
        title_align="left",
        border_style="cyan" if state.mode is Mode.EDITING else "grey50",
    )


def render_results(state: SessionState, height: int, frame: int = 0) -> Panel:
    """Results list windowed to *height* rows around the selection."""
    title = " Results "
    if state.has_searched:
        title = f" Results ({state.total_count} total) "

    if state.mode is Mode.SEARCHING:
        body: RenderableType = Text(f"Searching... {spinner(frame)}", style="yellow", justify="center")
    elif state.mode is Mode.ERROR and state.error is not None:
        body = Text.assemble(
            ("Error: ", "bold red"),
            (str(state.error), "red"),
            ("\n\nPress Esc or Enter to dismiss.", "grey50"),
        )
    elif not state.has_searched:
        body = Text.assemble(
            ("\nWelcome to GitHub Search!\n\n", "bold cyan"),
            "Type a search query and press Enter to search.\n",
            "Examples: 'rust game', 'web framework', 'machine learning'\n\n",
            "Use ↑/↓ to navigate results, Enter to open in browser.",
            style="grey70",
            justify="center",
        )
    elif not state.matches:
        body = Text("No repositories found.", style="yellow", justify="center")
    else:
        body = _result_rows(state, max(1, height))

    border = "cyan" if state.mode in (Mode.BROWSING, Mode.ANALYZING) else "grey50"
    return Panel(body, title=title, title_align="left", border_style=border)


def _result_rows(state: SessionState, height: int) -> Text:
    selected = state.selected or 0
    start = max(0, min(selected - height // 2, len(state.matches) - height))
    rows = Text()
    for index, match in enumerate(state.matches[start : start + height], start=start):
        is_selected = index == state.selected
        row = Text("▶ " if is_selected else "  ")
        row.append(match.full_name, style="bold")
        row.append(" | ")
        row.append(f"★ {match.stars}", style="yellow")
        row.append(" | ")
        row.append(match.language or "Unknown", style="blue")
        row.append(f" | {match.size_kb} KB", style="grey50")
        if is_selected:
            row.stylize("on grey23")
        rows.append(row)
        rows.append("\n")
    rows.rstrip()
    return rows


def render_details(state: SessionState, frame: int = 0) -> Panel:
    match = state.selected_match
    if match is None:
        return Panel(
            Text("Select a repository to see details", style="grey50", justify="center"),
            title=" Details ",
            title_align="left",
        )

    lines: list[Text] = [
        Text.assemble(("Description: ", "grey50"), match.description or "No description"),
        Text(),
        Text.assemble(
            ("★ Stars: ", "yellow"),
            str(match.stars),
            "  ",
            ("Forks: ", "green"),
            str(match.forks),
            "  ",
            ("Language: ", "blue"),
            match.language or "Unknown",
        ),
    ]
    if match.updated_at is not None:
        lines.append(Text.assemble(("Updated: ", "grey50"), match.updated_at.strftime("%Y-%m-%d")))
    lines.append(Text())

    if state.is_pending(OperationKind.CLONE):
        lines.append(Text.assemble(("Clone: ", "cyan"), (f"cloning... {spinner(frame)}", "yellow")))
    elif state.clone_status:
        lines.append(Text.assemble(("Clone: ", "cyan"), state.clone_status))

    report = state.reports.get(match.full_name)
    if state.analysis_target == match.full_name:
        lines.append(
            Text.assemble(("Files: ", "magenta"), (f"cloning and counting... {spinner(frame)}", "yellow"))
        )
    elif report is not None:
        lines.extend(report_lines(report))
    else:
        lines.append(Text.assemble(("Files: ", "magenta"), ("press 'f' to count", "grey50")))

    lines.append(Text())
    lines.append(Text(match.html_url, style="underline cyan"))

    visible = lines[state.details_scroll :] or lines[-1:]
    return Panel(Group(*visible), title=" Details ", title_align="left")


def report_lines(report: AnalysisReport) -> list[Text]:
    """Format an analysis report the way the stock script pretty-prints it."""
    lines = [Text("File Count:", style="bold magenta")]
    for entry in report.entries:
        row = Text(f"  {entry.label}: {entry.file_count} files")
        if entry.line_count is not None:
            row.append(f" | {entry.line_count} LOC")
        lines.append(row)
    lines.append(Text(f"Total: {report.total} code files", style="bold"))
    if report.partial:
        lines.append(Text("(partial: script output was malformed)", style="yellow"))
    for warning in report.warnings:
        lines.append(Text(f"warning: {warning}", style="grey50"))
    return lines


_HELP: dict[Mode, list[tuple[str, str]]] = {
    Mode.EDITING: [("Enter", "Search"), ("Tab", "Results"), ("Ctrl+U", "Clear"), ("Esc", "Quit")],
    Mode.SEARCHING: [("Esc", "Quit")],
    Mode.BROWSING: [
        ("Enter/o", "Open"),
        ("↑↓", "Navigate"),
        ("←→", "Scroll"),
        ("f", "Count"),
        ("g", "Clone"),
        ("1/2/3/0", "Size"),
        ("/", "Edit"),
        ("Esc", "Quit"),
    ],
    Mode.ANALYZING: [("Enter/o", "Open"), ("↑↓", "Navigate"), ("g", "Clone"), ("Esc", "Quit")],
    Mode.ERROR: [("Esc/Enter", "Dismiss"), ("Ctrl+C", "Quit")],
}


def render_help(state: SessionState) -> Text:
    text = Text(justify="center")
    for key, label in _HELP[state.mode]:
        text.append(key, style="bold green")
        text.append(f": {label}  ")
    return text
