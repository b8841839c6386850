"""Wall-clock timing of trial phases."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from datetime import UTC, datetime
from typing import Any

from ..schemas.measurements import TimingMeasurement
from .stats import safe_average

logger = logging.getLogger(__name__)

TOTAL_PHASE = "total"
MS_PER_HOUR = 3_600_000


class TimingStore:
    """Named timers keyed by (task_id, phase) plus the measurements they produce."""

    def __init__(self, clock: Callable[[], float] | None = None):
        self._clock = clock or time.monotonic
        self._timers: dict[tuple[str, str], tuple[float, str]] = {}
        self.measurements: list[TimingMeasurement] = []

    def start_timer(self, task_id: str, phase: str = TOTAL_PHASE) -> None:
        """Start (or restart) the timer for a task phase."""
        self._timers[(task_id, phase)] = (self._clock(), datetime.now(UTC).isoformat())

    def stop_timer(self, task_id: str, phase: str = TOTAL_PHASE) -> TimingMeasurement | None:
        """Stop a timer and record its measurement.

        Returns None, with a logged warning, when no such timer is running.
        """
        started = self._timers.pop((task_id, phase), None)
        if started is None:
            logger.warning("No timer found for %s:%s", task_id, phase)
            return None

        start_instant, start_time = started
        elapsed_ms = max(0.0, (self._clock() - start_instant) * 1000)
        measurement = TimingMeasurement(
            task_id=task_id,
            phase=phase,
            start_time=start_time,
            end_time=datetime.now(UTC).isoformat(),
            duration_ms=round(elapsed_ms, 3),
        )
        self.measurements.append(measurement)
        return measurement

    def discard_timers(self, task_id: str) -> None:
        """Drop any still-running timers for a task."""
        for key in [key for key in self._timers if key[0] == task_id]:
            del self._timers[key]

    def has_timer(self, task_id: str, phase: str = TOTAL_PHASE) -> bool:
        return (task_id, phase) in self._timers

    def get_completion_time(self, task_id: str) -> TimingMeasurement | None:
        """Return the latest 'total' measurement for a task."""
        for measurement in reversed(self.measurements):
            if measurement.task_id == task_id and measurement.phase == TOTAL_PHASE:
                return measurement
        return None

    def get_task_measurements(self, task_id: str) -> list[TimingMeasurement]:
        return [m for m in self.measurements if m.task_id == task_id]

    def get_summary(self) -> dict[str, Any] | None:
        """Completion-time statistics over every 'total' measurement."""
        durations = [m.duration_ms for m in self.measurements if m.phase == TOTAL_PHASE]
        if not durations:
            return None

        total_ms = sum(durations)
        avg_ms = safe_average(durations)
        return {
            "total_tasks": len(durations),
            "avg_completion_time_ms": round(avg_ms),
            "min_completion_time_ms": round(min(durations)),
            "max_completion_time_ms": round(max(durations)),
            "avg_completion_time_min": round(avg_ms / 60000, 2),
            "throughput_per_hour": (
                round(len(durations) / (total_ms / MS_PER_HOUR), 2) if total_ms > 0 else 0.0
            ),
        }

    def export(self) -> dict[str, Any]:
        return {
            "measurements": [m.model_dump() for m in self.measurements],
            "summary": self.get_summary(),
        }

    def restore(self, exported: dict[str, Any]) -> None:
        """Reload measurements from a previous ``export()``."""
        self.measurements = [
            TimingMeasurement.model_validate(m) for m in exported.get("measurements", [])
        ]

    def reset(self) -> None:
        self._timers.clear()
        self.measurements.clear()
