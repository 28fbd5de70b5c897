"""Domain exception hierarchy.

Inner layers raise these; the interactive loop turns them into failure
completions and the one-shot CLI prints them.  None of them is fatal to the
process.
"""

from __future__ import annotations


class RepoSearchError(Exception):
    """Base exception for the entire application."""


# ── Search gateway errors ───────────────────────────────────────────────────


class SearchError(RepoSearchError):
    """Any failure of the remote search call."""


class RateLimitedError(SearchError):
    """The search API rate limit was exceeded (429 / 403 with rate-limit header)."""

    def __init__(self, message: str, retry_after: float | None = None) -> None:
        super().__init__(message)
        self.retry_after = retry_after


class UnauthenticatedError(SearchError):
    """The token was rejected (401)."""


class SearchNetworkError(SearchError):
    """Transport or connection failure before a response arrived."""


class RemoteServiceError(SearchError):
    """The service answered with a non-2xx application error."""

    def __init__(self, message: str, status_code: int) -> None:
        super().__init__(message)
        self.status_code = status_code


# ── Analysis errors ─────────────────────────────────────────────────────────


class AnalysisError(RepoSearchError):
    """Any failure while analysing a repository out of process."""


class WorkspaceError(AnalysisError):
    """The ephemeral workspace directory could not be created."""


class CloneError(AnalysisError):
    """``git clone`` failed, timed out, or the target already exists."""


class StagingError(AnalysisError):
    """The analysis script could not be copied into the workspace."""


class ExecutionError(AnalysisError):
    """The analysis script exited non-zero or was killed on timeout."""

    def __init__(
        self,
        message: str,
        *,
        timed_out: bool = False,
        exit_code: int | None = None,
    ) -> None:
        super().__init__(message)
        self.timed_out = timed_out
        self.exit_code = exit_code
