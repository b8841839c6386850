"""Quality measurements (lint, type-check, coverage, code-quality)."""

from __future__ import annotations

import logging
from typing import Any

from ..schemas.measurements import CodeQualityScore, QualityMeasurement
from .stats import percent, safe_average, safe_ratio

logger = logging.getLogger(__name__)


class QualityStore:
    """Per-trial quality snapshots."""

    def __init__(self):
        self.measurements: list[QualityMeasurement] = []

    def record_measurement(self, measurement: QualityMeasurement) -> QualityMeasurement:
        self.measurements.append(measurement)
        return measurement

    def get_task_measurement(self, task_id: str) -> QualityMeasurement | None:
        """Return the latest measurement for a task."""
        for measurement in reversed(self.measurements):
            if measurement.task_id == task_id:
                return measurement
        return None

    def set_code_quality_score(
        self,
        task_id: str,
        score: float | None,
        details: dict[str, Any] | None = None,
        error: str | None = None,
    ) -> CodeQualityScore | None:
        """Back-fill the code-quality score of a task's latest measurement."""
        measurement = self.get_task_measurement(task_id)
        if measurement is None:
            logger.warning("No quality measurement for %s; code-quality score dropped", task_id)
            return None
        measurement.code_quality = CodeQualityScore(
            score=score,
            details=details or {},
            error=error,
        )
        return measurement.code_quality

    def get_summary(self) -> dict[str, Any] | None:
        if not self.measurements:
            return None

        lint_scores = [
            m.lint.score for m in self.measurements if m.lint is not None and m.lint.score is not None
        ]
        coverages = [float(m.coverage.average) for m in self.measurements if m.coverage is not None]
        # a type-check that could not run counts as not passed
        ts_passes = sum(
            1 for m in self.measurements if m.typescript is not None and m.typescript.passed
        )
        code_scores = [
            m.code_quality.score
            for m in self.measurements
            if m.code_quality is not None and m.code_quality.score is not None
        ]

        avg_lint = safe_average(lint_scores)
        avg_coverage = safe_average(coverages)
        ts_fraction = safe_ratio(ts_passes, len(self.measurements))
        return {
            "tasks_measured": len(self.measurements),
            "avg_lint_score": round(avg_lint, 1),
            "avg_coverage": round(avg_coverage),
            "type_script_pass_rate": percent(ts_passes, len(self.measurements)),
            "avg_code_quality": round(safe_average(code_scores), 1) if code_scores else None,
            "quality_score": round((avg_lint + avg_coverage / 10 + ts_fraction * 10) / 3, 1),
        }

    def export(self) -> dict[str, Any]:
        return {
            "measurements": [m.model_dump() for m in self.measurements],
            "summary": self.get_summary(),
        }

    def restore(self, exported: dict[str, Any]) -> None:
        self.measurements = [
            QualityMeasurement.model_validate(m) for m in exported.get("measurements", [])
        ]

    def reset(self) -> None:
        self.measurements.clear()
