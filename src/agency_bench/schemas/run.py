"""Run records and the persisted results document."""

from datetime import UTC, datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field

from .task import Task


class RunStatus(str, Enum):
    """Lifecycle state of a trial."""

    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"
    ERROR = "error"


class Run(BaseModel):
    """One trial of one task.

    Created ``running`` and transitioned exactly once to a terminal status.
    """

    task_id: str
    task: Task
    start_time: str = Field(default_factory=lambda: datetime.now(UTC).isoformat())
    end_time: str | None = None
    status: RunStatus = RunStatus.RUNNING
    duration_ms: float | None = None
    metrics: dict[str, Any] = Field(default_factory=dict)
    error: str | None = None

    def finish(
        self,
        status: RunStatus,
        *,
        duration_ms: float | None = None,
        error: str | None = None,
    ) -> None:
        """Move the run to a terminal status."""
        if self.status is not RunStatus.RUNNING:
            raise RuntimeError(f"Run {self.task_id} already finished as {self.status.value}")
        if status is RunStatus.RUNNING:
            raise ValueError("Cannot finish a run as running")
        self.status = status
        self.end_time = datetime.now(UTC).isoformat()
        self.duration_ms = duration_ms
        self.error = error


class ResultsFile(BaseModel):
    """Every run so far, the raw metric logs and the latest summary."""

    runs: list[Run] = Field(default_factory=list)
    summary: dict[str, Any] | None = None
    metrics: dict[str, Any] | None = Field(
        default=None,
        description="Exported metric store logs, reloaded on the next invocation",
    )
