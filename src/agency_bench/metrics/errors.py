"""Error, warning and retry tracking."""

from __future__ import annotations

from collections import Counter
from datetime import UTC, datetime
from typing import Any

from ..schemas.measurements import ErrorEntry, RetryEntry, WarningEntry
from .stats import safe_ratio


class ErrorStore:
    """Append-only logs of errors, warnings and retries."""

    def __init__(self):
        self.errors: list[ErrorEntry] = []
        self.warnings: list[WarningEntry] = []
        self.retries: list[RetryEntry] = []

    def record_error(
        self,
        task_id: str,
        *,
        type: str = "unknown",
        message: str = "",
        phase: str = "unknown",
        recoverable: bool = True,
        stack: str | None = None,
    ) -> ErrorEntry:
        entry = ErrorEntry(
            task_id=task_id,
            timestamp=datetime.now(UTC).isoformat(),
            type=type,
            message=message,
            phase=phase,
            recoverable=recoverable,
            stack=stack,
        )
        self.errors.append(entry)
        return entry

    def record_warning(
        self,
        task_id: str,
        *,
        type: str = "unknown",
        message: str = "",
        phase: str = "unknown",
    ) -> WarningEntry:
        entry = WarningEntry(
            task_id=task_id,
            timestamp=datetime.now(UTC).isoformat(),
            type=type,
            message=message,
            phase=phase,
        )
        self.warnings.append(entry)
        return entry

    def record_retry(self, task_id: str, reason: str = "") -> RetryEntry:
        """Record a retry; the attempt number continues from the task's last retry."""
        entry = RetryEntry(
            task_id=task_id,
            timestamp=datetime.now(UTC).isoformat(),
            reason=reason,
            attempt_number=self.get_retry_count(task_id) + 1,
        )
        self.retries.append(entry)
        return entry

    def get_error_count(self, task_id: str) -> int:
        return sum(1 for e in self.errors if e.task_id == task_id)

    def get_retry_count(self, task_id: str) -> int:
        return sum(1 for r in self.retries if r.task_id == task_id)

    def get_error_rate(self) -> dict[str, Any]:
        """Errors and retries per affected task.

        Tasks that only produced warnings do not count as affected.
        """
        affected = {e.task_id for e in self.errors} | {r.task_id for r in self.retries}
        divisor = len(affected) or 1
        return {
            "total_errors": len(self.errors),
            "total_warnings": len(self.warnings),
            "total_retries": len(self.retries),
            "error_rate": round(safe_ratio(len(self.errors), divisor), 2),
            "retry_rate": round(safe_ratio(len(self.retries), divisor), 2),
            "tasks_affected": len(affected),
        }

    def get_errors_by_type(self) -> dict[str, int]:
        return dict(Counter(e.type for e in self.errors))

    def get_errors_by_phase(self) -> dict[str, int]:
        return dict(Counter(e.phase for e in self.errors))

    def get_summary(self) -> dict[str, Any]:
        recoverable = sum(1 for e in self.errors if e.recoverable)
        return {
            **self.get_error_rate(),
            "errors_by_type": self.get_errors_by_type(),
            "errors_by_phase": self.get_errors_by_phase(),
            "recoverable_errors": recoverable,
            "unrecoverable_errors": len(self.errors) - recoverable,
        }

    def export(self) -> dict[str, Any]:
        return {
            "errors": [e.model_dump() for e in self.errors],
            "warnings": [w.model_dump() for w in self.warnings],
            "retries": [r.model_dump() for r in self.retries],
            "summary": self.get_summary(),
        }

    def restore(self, exported: dict[str, Any]) -> None:
        self.errors = [ErrorEntry.model_validate(e) for e in exported.get("errors", [])]
        self.warnings = [WarningEntry.model_validate(w) for w in exported.get("warnings", [])]
        self.retries = [RetryEntry.model_validate(r) for r in exported.get("retries", [])]

    def reset(self) -> None:
        self.errors.clear()
        self.warnings.clear()
        self.retries.clear()
