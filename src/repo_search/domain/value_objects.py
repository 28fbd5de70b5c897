"""Value objects — self-validating domain primitives."""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum

_IDENTIFIER_RE = re.compile(
    r"^(?:https?://github\.com/)?(?P<owner>[A-Za-z0-9\-_.]+)/(?P<repo>[A-Za-z0-9\-_.]+?)(?:\.git)?/?$"
)


@dataclass(frozen=True, slots=True)
class RepoIdentifier:
    """Validated ``owner/name`` pair.

    Accepts either the bare ``owner/name`` form the search API reports as
    ``full_name`` or a URL like ``https://github.com/psf/requests``.
    """

    owner: str
    repo: str

    @classmethod
    def from_string(cls, raw: str) -> RepoIdentifier:
        """Parse and validate a raw identifier or URL."""
        raw = raw.strip()
        match = _IDENTIFIER_RE.match(raw)
        if not match:
            raise ValueError(
                f"Invalid repository identifier: '{raw}'. "
                "Expected owner/name or https://github.com/<owner>/<name>"
            )
        return cls(owner=match["owner"], repo=match["repo"])

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.repo}"

    @property
    def clone_url(self) -> str:
        return f"https://github.com/{self.owner}/{self.repo}.git"

    def __str__(self) -> str:
        return self.full_name


# ── Analysis script selection ───────────────────────────────────────────────


class ScriptChoice(str, Enum):
    """The ``filecount_script`` configuration values."""

    MAC_ZSH = "mac_zsh"
    MAC_BASH = "mac_bash"
    WINDOWS = "windows"


DEFAULT_SCRIPT_CHOICE = ScriptChoice.MAC_ZSH

_SCRIPT_FILES: dict[ScriptChoice, str] = {
    ScriptChoice.MAC_ZSH: "filecount.sh",
    ScriptChoice.MAC_BASH: "mac_linux_bash_filecount.sh",
    ScriptChoice.WINDOWS: "windows_filecount.ps1",
}


def resolve_script_file(choice: str | None) -> str:
    """Return the script file name for *choice*; unknown values get the default."""
    try:
        key = ScriptChoice((choice or "").strip().lower())
    except ValueError:
        key = DEFAULT_SCRIPT_CHOICE
    return _SCRIPT_FILES[key]
