"""git CLI adapter — implements the RepoCloner port."""

from __future__ import annotations

import asyncio
import logging
import os
import signal
from pathlib import Path

from repo_search.domain.exceptions import CloneError

logger = logging.getLogger(__name__)


class GitCliCloner:
    """Concrete ``RepoCloner`` that shells out to ``git clone``."""

    def __init__(self, timeout_s: float = 300.0, git_executable: str = "git") -> None:
        self._timeout_s = timeout_s
        self._git = git_executable

    async def clone(self, url: str, dest: Path, *, shallow: bool = True) -> None:
        """Clone *url* into *dest* (which may exist but must be empty)."""
        args = [self._git, "clone", "--quiet"]
        if shallow:
            args += ["--depth", "1"]
        args += [url, str(dest)]

        # Never block on a credential prompt; private repos fail fast instead.
        env = {**os.environ, "GIT_TERMINAL_PROMPT": "0"}

        logger.debug("Running %s", " ".join(args))
        try:
            proc = await asyncio.create_subprocess_exec(
                *args,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.DEVNULL,
                stderr=asyncio.subprocess.PIPE,
                env=env,
                start_new_session=os.name != "nt",
            )
        except OSError as exc:
            raise CloneError(f"Could not run git: {exc}") from exc

        try:
            _, stderr = await asyncio.wait_for(proc.communicate(), timeout=self._timeout_s)
        except TimeoutError:
            raise CloneError(f"Cloning {url} timed out after {self._timeout_s:g}s") from None
        finally:
            if proc.returncode is None:
                _kill_process_group(proc)
                await proc.wait()

        if proc.returncode != 0:
            lines = stderr.decode("utf-8", errors="replace").strip().splitlines()
            reason = lines[-1] if lines else f"git exited with status {proc.returncode}"
            raise CloneError(f"Failed to clone {url}: {reason}")


def _kill_process_group(proc: asyncio.subprocess.Process) -> None:
    # git clone spawns helpers (remote-https, index-pack) in the same session.
    try:
        if os.name == "nt":
            proc.kill()
        else:
            os.killpg(proc.pid, signal.SIGKILL)
    except ProcessLookupError:
        pass
