"""Git-based baseline snapshot and restore for the benchmark workspace.

The baseline is a git tag plus a branch. Every trial starts from
``git reset --hard <tag>`` followed by ``git clean -fdx``, so untracked
and ignored files (build output, caches, installed dependencies) are
removed as well.
"""

from __future__ import annotations

import logging
import shlex
import subprocess
from dataclasses import dataclass
from collections.abc import Iterable
from pathlib import Path

from pydantic import BaseModel, Field

from ..config import SnapshotSettings, settings

logger = logging.getLogger(__name__)


class MissingBaselineError(RuntimeError):
    """Raised when the baseline tag does not exist."""


class WorkspaceCommandError(RuntimeError):
    """Raised when a git or install command fails."""

    def __init__(self, command: list[str], returncode: int | None, stderr: str):
        self.command = command
        self.returncode = returncode
        self.stderr = stderr
        super().__init__(
            f"{shlex.join(command)} failed (exit {returncode}): {stderr.strip() or 'no output'}"
        )


@dataclass(frozen=True, slots=True)
class BaselineSetup:
    tag_created: bool
    branch_created: bool


class WorkspaceState(BaseModel):
    """Current branch, last commit and cleanliness of the workspace."""

    current_branch: str | None = None
    last_commit: str | None = None
    is_clean: bool = False
    changed_files: list[str] = Field(default_factory=list)
    error: str | None = None


class WorkspaceSnapshotter:
    """Capture and restore the baseline of a git workspace."""

    def __init__(
        self,
        project_path: Path,
        config: SnapshotSettings | None = None,
        *,
        keep_paths: Iterable[Path] = (),
    ):
        self.project_path = project_path
        self.config = config or settings.snapshot
        self.keep_paths = list(keep_paths)

    @property
    def tag(self) -> str:
        return self.config.baseline_tag

    @property
    def branch(self) -> str:
        return self.config.baseline_branch

    def _git(self, *args: str, check: bool = True) -> subprocess.CompletedProcess[str]:
        command = ["git", *args]
        try:
            result = subprocess.run(
                command,
                cwd=self.project_path,
                capture_output=True,
                text=True,
                timeout=self.config.git_timeout,
            )
        except subprocess.TimeoutExpired as exc:
            raise WorkspaceCommandError(command, None, f"timed out after {exc.timeout}s") from exc
        except FileNotFoundError as exc:
            raise WorkspaceCommandError(command, None, str(exc)) from exc

        if check and result.returncode != 0:
            raise WorkspaceCommandError(command, result.returncode, result.stderr)
        return result

    def _ref_exists(self, ref: str) -> bool:
        return self._git("rev-parse", "--verify", "--quiet", ref, check=False).returncode == 0

    def verify_baseline(self) -> bool:
        """Check whether the baseline tag exists."""
        return self._ref_exists(f"refs/tags/{self.tag}")

    def setup_baseline(self) -> BaselineSetup:
        """Create the baseline tag and branch at HEAD if they are missing.

        Existing markers are never moved.
        """
        tag_created = False
        branch_created = False

        if not self.verify_baseline():
            self._git("tag", self.tag)
            tag_created = True
            logger.info("Created baseline tag %s", self.tag)

        if not self._ref_exists(f"refs/heads/{self.branch}"):
            self._git("branch", self.branch, self.tag)
            branch_created = True
            logger.info("Created baseline branch %s", self.branch)

        return BaselineSetup(tag_created=tag_created, branch_created=branch_created)

    def _keep_patterns(self) -> list[str]:
        """Anchored clean exclusions for kept paths inside the workspace."""
        root = self.project_path.resolve()
        patterns = []
        for path in self.keep_paths:
            resolved = path.resolve()
            if resolved != root and resolved.is_relative_to(root):
                patterns.append("/" + resolved.relative_to(root).as_posix())
        return patterns

    def _restore(self) -> None:
        if not self.verify_baseline():
            raise MissingBaselineError(
                f"Baseline tag '{self.tag}' not found in {self.project_path}; run setup first"
            )
        self._git("reset", "--hard", self.tag)
        clean_args = ["clean", "-fdx"]
        for pattern in [*self.config.preserve_patterns, *self._keep_patterns()]:
            clean_args.extend(["-e", pattern])
        self._git(*clean_args)

    def prepare(self) -> None:
        """Restore the workspace to the baseline before a trial."""
        self._restore()
        logger.info("Workspace prepared from %s", self.tag)

    def reset(self) -> None:
        """Restore the workspace to the baseline after a trial."""
        self._restore()
        logger.info("Workspace reset to %s", self.tag)

    def full_reset(self) -> list[Path]:
        """Reset, then reinstall dependencies in each configured directory.

        Install output goes straight to the terminal. Returns the
        directories that were reinstalled.
        """
        self.reset()
        reinstalled = []
        for name in self.config.install_dirs:
            directory = self.project_path / name
            if not directory.is_dir():
                continue
            command = list(self.config.install_command)
            logger.info("Reinstalling dependencies in %s", directory)
            try:
                result = subprocess.run(
                    command,
                    cwd=directory,
                    timeout=self.config.install_timeout,
                )
            except subprocess.TimeoutExpired as exc:
                raise WorkspaceCommandError(
                    command, None, f"timed out after {exc.timeout}s"
                ) from exc
            except FileNotFoundError as exc:
                raise WorkspaceCommandError(command, None, str(exc)) from exc
            if result.returncode != 0:
                raise WorkspaceCommandError(command, result.returncode, "")
            reinstalled.append(directory)
        return reinstalled

    def get_state(self) -> WorkspaceState:
        """Report branch, last commit and changed files; git failures go in ``error``."""
        try:
            branch = self._git("rev-parse", "--abbrev-ref", "HEAD").stdout.strip()
            last_commit = self._git("log", "-1", "--oneline").stdout.strip()
            status = self._git("status", "--short").stdout
        except WorkspaceCommandError as exc:
            return WorkspaceState(error=str(exc))

        changed = [line for line in status.splitlines() if line.strip()]
        return WorkspaceState(
            current_branch=branch,
            last_commit=last_commit,
            is_clean=not changed,
            changed_files=changed,
        )

    def diff_from_baseline(self) -> str:
        """Unified diff of tracked and untracked changes against the baseline tag."""
        self._git("add", "--intent-to-add", "--all")
        try:
            return self._git("diff", self.tag).stdout
        finally:
            self._git("reset", "--quiet", check=False)
