"""Launch the agent for one task under a deadline and capture its output."""

from __future__ import annotations

import json
import logging
import os
import shlex
import subprocess
import sys
import threading
import time
from collections.abc import Callable
from datetime import UTC, datetime
from pathlib import Path
from typing import IO, TextIO

from ..config import AgentSettings, settings
from ..parser.agent_output import parse_agent_output
from ..schemas.outcome import AgentOutcome
from ..schemas.task import Task

logger = logging.getLogger(__name__)

READER_GRACE_SEC = 5


class AgentTimeoutError(RuntimeError):
    """Raised when the agent does not finish before its deadline."""

    def __init__(self, task_id: str, timeout_sec: float, stdout: str = "", stderr: str = ""):
        self.task_id = task_id
        self.timeout_sec = timeout_sec
        self.stdout = stdout
        self.stderr = stderr
        super().__init__(f"Agent timeout exceeded after {timeout_sec:g}s for task {task_id}")


class AgentLaunchError(RuntimeError):
    """Raised when the agent process cannot be started."""


def _pump(stream: IO[str], chunks: list[str], echo: TextIO | None) -> None:
    for line in iter(stream.readline, ""):
        chunks.append(line)
        if echo is not None:
            echo.write(line)
            echo.flush()
    stream.close()


def _join_readers(readers: list[threading.Thread], timeout: float) -> bool:
    """Wait for every reader within one shared timeout; True when all finished."""
    until = time.monotonic() + timeout
    for reader in readers:
        reader.join(timeout=max(until - time.monotonic(), 0))
    return not any(reader.is_alive() for reader in readers)


def write_task_descriptor(task: Task, tasks_dir: Path) -> Path:
    """Write the pending-task file the agent picks up."""
    tasks_dir.mkdir(parents=True, exist_ok=True)
    path = tasks_dir / f"benchmark-{task.id}.json"
    descriptor = {
        "id": task.id,
        "description": task.description,
        "status": "pending",
        "priority": "high",
        "created_at": datetime.now(UTC).isoformat(),
    }
    path.write_text(json.dumps(descriptor, indent=2))
    return path


class AgentInvoker:
    """Runs the agent as a child process and parses what it prints."""

    def __init__(
        self,
        agency_path: Path,
        config: AgentSettings | None = None,
        *,
        echo: bool = True,
        parse: Callable[[str, str, int | None], AgentOutcome] = parse_agent_output,
    ):
        self.agency_path = agency_path
        self.config = config or settings.agent
        self.echo = echo
        self.parse = parse

    @property
    def timeout_sec(self) -> float:
        return self.config.timeout_minutes * 60

    def build_command(self, task: Task) -> list[str]:
        return [*self.config.command, "--task", task.id]

    def invoke(self, task: Task) -> AgentOutcome:
        """Run the agent on ``task`` and return its parsed outcome.

        Raises:
            AgentLaunchError: the process could not be started
            AgentTimeoutError: the deadline passed; the process was killed
        """
        write_task_descriptor(task, self.agency_path / self.config.task_subdir)

        command = self.build_command(task)
        run_env = {**os.environ, self.config.env_flag: "true"}
        logger.info("Launching agent: %s", shlex.join(command))
        try:
            proc = subprocess.Popen(
                command,
                cwd=self.agency_path,
                env=run_env,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
                encoding="utf-8",
                errors="replace",
                bufsize=1,
            )
        except OSError as exc:
            raise AgentLaunchError(f"Could not start agent {command[0]!r}: {exc}") from exc

        stdout_chunks: list[str] = []
        stderr_chunks: list[str] = []
        readers = [
            threading.Thread(
                target=_pump,
                args=(proc.stdout, stdout_chunks, sys.stdout if self.echo else None),
                daemon=True,
            ),
            threading.Thread(
                target=_pump,
                args=(proc.stderr, stderr_chunks, sys.stderr if self.echo else None),
                daemon=True,
            ),
        ]
        for reader in readers:
            reader.start()

        deadline = time.monotonic() + self.timeout_sec
        try:
            exit_code = proc.wait(timeout=self.timeout_sec)
        except subprocess.TimeoutExpired:
            proc.kill()
            proc.wait()
            _join_readers(readers, READER_GRACE_SEC)
            raise AgentTimeoutError(
                task.id,
                self.timeout_sec,
                stdout="".join(stdout_chunks),
                stderr="".join(stderr_chunks),
            ) from None

        # a grandchild may still hold the pipes open after the agent exits
        grace = min(max(deadline - time.monotonic(), 1.0), READER_GRACE_SEC)
        if not _join_readers(readers, grace):
            logger.warning("Agent output pipes still open after exit for task %s", task.id)
        return self.parse("".join(stdout_chunks), "".join(stderr_chunks), exit_code)
