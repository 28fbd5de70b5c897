"""Analysis runner — clone, stage a file-count script, run it, parse, clean up.

Every step has its own :class:`AnalysisError` subclass.  The workspace is
removed on every exit path; a failed removal is logged and never replaces
the primary result.
"""

from __future__ import annotations

import asyncio
import logging
import os
import shutil
import signal
import stat
import sys
import tempfile
from pathlib import Path

from repo_search.domain.entities import AnalysisReport
from repo_search.domain.exceptions import (
    ExecutionError,
    StagingError,
    WorkspaceError,
)
from repo_search.domain.ports.repo_cloner import RepoCloner
from repo_search.domain.value_objects import RepoIdentifier, resolve_script_file
from repo_search.services.output_parser import parse_analysis_output

logger = logging.getLogger(__name__)

_WORKSPACE_PREFIX = "repo-search-"
_STDERR_TAIL = 400


class AnalysisRunner:
    """Runs the configured file-count script against a fresh shallow clone.

    Parameters
    ----------
    cloner:
        Adapter that materialises the working tree into the workspace.
    scripts_dir:
        Directory holding the three analysis scripts.
    timeout_s:
        Wall-clock ceiling for the script; it is killed when exceeded.
    workspace_root:
        Parent directory for workspaces (system temp dir when ``None``).
    """

    def __init__(
        self,
        cloner: RepoCloner,
        scripts_dir: Path,
        *,
        timeout_s: float = 300.0,
        workspace_root: Path | None = None,
    ) -> None:
        self._cloner = cloner
        self._scripts_dir = Path(scripts_dir)
        self._timeout_s = timeout_s
        self._workspace_root = workspace_root

    async def analyze(
        self, repository: RepoIdentifier | str, script_choice: str | None = None
    ) -> AnalysisReport:
        """Count files per language in *repository* and return the parsed report."""
        if isinstance(repository, str):
            repository = RepoIdentifier.from_string(repository)

        workspace = self._create_workspace()
        logger.info("Analysing %s in %s", repository.full_name, workspace)
        try:
            await self._cloner.clone(repository.clone_url, workspace, shallow=True)
            script = self._stage_script(workspace, resolve_script_file(script_choice))
            stdout = await self._execute(script, workspace)
        finally:
            self._remove_workspace(workspace)

        report = parse_analysis_output(stdout)
        for warning in report.warnings:
            logger.warning("%s: %s", repository.full_name, warning)
        logger.info(
            "Analysis of %s finished: %d files in %d languages",
            repository.full_name,
            report.total,
            len(report.entries),
        )
        return report

    # ── Steps ───────────────────────────────────────────────────────────

    def _create_workspace(self) -> Path:
        try:
            if self._workspace_root is not None:
                Path(self._workspace_root).mkdir(parents=True, exist_ok=True)
            return Path(tempfile.mkdtemp(prefix=_WORKSPACE_PREFIX, dir=self._workspace_root))
        except OSError as exc:
            raise WorkspaceError(f"Could not create workspace: {exc}") from exc

    def _stage_script(self, workspace: Path, script_name: str) -> Path:
        source = self._scripts_dir / script_name
        if not source.is_file():
            raise StagingError(f"{script_name} not found in {self._scripts_dir}")

        dest = workspace / script_name
        try:
            shutil.copyfile(source, dest)
            dest.chmod(dest.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
        except OSError as exc:
            raise StagingError(f"Could not stage {script_name}: {exc}") from exc
        return dest

    async def _execute(self, script: Path, workspace: Path) -> str:
        command = _command_for(script)
        try:
            proc = await asyncio.create_subprocess_exec(
                *command,
                cwd=workspace,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                start_new_session=os.name != "nt",
            )
        except OSError as exc:
            raise ExecutionError(f"Could not start {script.name}: {exc}") from exc

        try:
            stdout, stderr = await asyncio.wait_for(proc.communicate(), timeout=self._timeout_s)
        except TimeoutError:
            raise ExecutionError(
                f"{script.name} timed out after {self._timeout_s:g}s",
                timed_out=True,
            ) from None
        finally:
            # Reached on timeout and on cancellation alike.
            if proc.returncode is None:
                _kill_process_group(proc)
                await proc.wait()

        if proc.returncode != 0:
            detail = stderr.decode("utf-8", errors="replace").strip()[-_STDERR_TAIL:]
            raise ExecutionError(
                f"{script.name} exited with status {proc.returncode}"
                + (f": {detail}" if detail else ""),
                exit_code=proc.returncode,
            )
        return stdout.decode("utf-8", errors="replace")

    def _remove_workspace(self, workspace: Path) -> None:
        try:
            if sys.version_info >= (3, 12):
                shutil.rmtree(workspace, onexc=_clear_readonly)
            else:
                shutil.rmtree(workspace, onerror=_clear_readonly)
        except OSError as exc:
            logger.warning("Failed to remove workspace %s: %s", workspace, exc)


def _command_for(script: Path) -> list[str]:
    """Return the argv that runs *script* on this platform."""
    if script.suffix == ".ps1":
        shell = "powershell" if os.name == "nt" else shutil.which("pwsh")
        if not shell:
            raise ExecutionError("PowerShell scripts can only be run on Windows or with pwsh installed")
        return [shell, "-NoProfile", "-ExecutionPolicy", "Bypass", "-File", str(script)]
    return [str(script)]


def _clear_readonly(func, path, _exc) -> None:  # type: ignore[no-untyped-def]
    # git marks pack files read-only; Windows refuses to unlink those.
    os.chmod(path, stat.S_IWRITE)
    func(path)


def _kill_process_group(proc: asyncio.subprocess.Process) -> None:
    """Kill *proc* and, on POSIX, every process the script spawned."""
    try:
        if os.name == "nt":
            proc.kill()
        else:
            os.killpg(proc.pid, signal.SIGKILL)
    except ProcessLookupError:
        pass
