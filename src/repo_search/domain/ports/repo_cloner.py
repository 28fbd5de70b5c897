"""Port: repository cloner — defined by the domain, implemented by infrastructure."""

from __future__ import annotations

from pathlib import Path
from typing import Protocol


class RepoCloner(Protocol):
    """Abstract contract for materialising a repository's working tree."""

    async def clone(self, url: str, dest: Path, *, shallow: bool = True) -> None:
        """Clone *url* into *dest*; raise ``CloneError`` on failure."""
        ...
