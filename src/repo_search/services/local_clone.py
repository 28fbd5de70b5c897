"""Clone a match into the local ``repositories`` directory."""

from __future__ import annotations

import logging
from pathlib import Path

from repo_search.domain.exceptions import CloneError
from repo_search.domain.ports.repo_cloner import RepoCloner
from repo_search.domain.value_objects import RepoIdentifier

logger = logging.getLogger(__name__)


async def clone_to_directory(
    cloner: RepoCloner, repository: RepoIdentifier, repositories_dir: Path
) -> Path:
    """Full-clone *repository* into ``repositories_dir/<name>`` and return the path.

    Refuses to touch an existing directory.
    """
    target = Path(repositories_dir) / repository.repo
    if target.exists():
        raise CloneError(
            f"Directory '{target}' already exists. Remove it first or choose a different location."
        )
    try:
        Path(repositories_dir).mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise CloneError(f"Could not create {repositories_dir}: {exc}") from exc

    await cloner.clone(repository.clone_url, target, shallow=False)
    logger.info("Cloned %s to %s", repository.full_name, target)
    return target
