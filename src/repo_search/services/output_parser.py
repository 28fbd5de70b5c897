"""Analysis output parser — turns the file-count script's text into a report.

The scripts are plain text tools maintained per platform, so nothing about
their output is trusted beyond the line contract::

    <free-text header>
    Label|file_count|line_count
    ...
    Total: N code files

The stock zsh script pretty-prints rows as ``  Label: N files | M LOC``;
those are accepted too.  Anything else is ignored.
"""

from __future__ import annotations

import logging
import re

from repo_search.domain.entities import AnalysisReport, LanguageCount
from repo_search.domain.languages import counts_lines

logger = logging.getLogger(__name__)

# ── Compiled patterns ───────────────────────────────────────────────────────

# Integer counts, optionally grouped by a locale thousands separator.
_NUMBER = r"\d{1,3}(?:[,.'_ \u00a0\u202f]\d{3})+|\d+"
_NUMBER_RE = re.compile(rf"^(?:{_NUMBER})$")

_PRETTY_ROW_RE = re.compile(
    rf"^\s*(?P<label>[^|:]+?):\s+(?P<files>{_NUMBER})\s+files?"
    rf"(?:\s*\|\s*(?P<lines>{_NUMBER})\s+LOC)?\s*$"
)
_TOTAL_RE = re.compile(rf"^\s*Total:\s*(?P<total>{_NUMBER})\b", re.IGNORECASE)

_MALFORMED = object()


def _to_int(raw: str) -> int:
    return int(re.sub(r"\D", "", raw))


def parse_analysis_output(text: str) -> AnalysisReport:
    """Parse the captured stdout of a file-count script.

    Rows sharing a label are merged into the first occurrence; rows with zero
    files are dropped.  A pipe row with non-numeric counts before any data row
    is a column header and is skipped; after data rows it stops the parse and
    the report is marked ``partial``.  A summary total that disagrees with the
    sum of the rows only produces a warning.
    """
    counts: dict[str, list[int]] = {}
    warnings: list[str] = []
    reported_total: int | None = None
    partial = False

    for lineno, line in enumerate(text.splitlines(), start=1):
        row = _parse_row(line)
        if row is None:
            total_match = _TOTAL_RE.match(line)
            if total_match:
                reported_total = _to_int(total_match["total"])
            continue

        if row is _MALFORMED:
            if not counts:
                logger.debug("Skipping header-like line %d: %r", lineno, line)
                continue
            warnings.append(f"Malformed line {lineno}: {line.strip()!r}; report is partial.")
            partial = True
            break

        label, files, lines = row
        if files == 0:
            continue
        slot = counts.setdefault(label, [0, 0])
        slot[0] += files
        slot[1] += lines

    entries = tuple(
        LanguageCount(
            label=label,
            file_count=files,
            line_count=lines if (lines or counts_lines(label)) else None,
        )
        for label, (files, lines) in counts.items()
    )
    report_sum = sum(entry.file_count for entry in entries)

    if not partial:
        if reported_total is None:
            if entries:
                warnings.append("No total line found in script output.")
        elif reported_total != report_sum:
            warnings.append(
                f"Script reported {reported_total} files but rows add up to {report_sum}."
            )

    return AnalysisReport(
        entries=entries,
        warnings=tuple(warnings),
        partial=partial,
        reported_total=reported_total,
    )


def _parse_row(line: str) -> tuple[str, int, int] | object | None:
    """Return ``(label, files, lines)``, ``_MALFORMED``, or ``None`` for non-rows."""
    if line.count("|") == 2:
        label, files, lines = (part.strip() for part in line.split("|"))
        if not label:
            return None
        if not (_NUMBER_RE.match(files) and _NUMBER_RE.match(lines)):
            return _MALFORMED
        return label, _to_int(files), _to_int(lines)

    pretty = _PRETTY_ROW_RE.match(line)
    if pretty:
        lines = pretty["lines"]
        return pretty["label"].strip(), _to_int(pretty["files"]), _to_int(lines) if lines else 0

    return None
