"""Agent outcome, planning accuracy and file discovery metrics."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import UTC, datetime
from typing import Any

from ..schemas.measurements import AgencyTaskResult, FileDiscoveryEntry, PMAccuracyEntry
from ..schemas.outcome import KPI_NAMES, AgentOutcome, KpiStatus
from .stats import percent, safe_average, safe_ratio


def calculate_kpi_pass_rate(kpis: KpiStatus) -> float:
    """Percentage of the four KPIs that passed."""
    return kpis.passed_count() / len(KPI_NAMES) * 100


def calculate_precision(predicted: Iterable[str], actual: Iterable[str]) -> float:
    """Fraction of predicted items that are correct; 0 when nothing was predicted."""
    predicted_set = {item.lower() for item in predicted}
    actual_set = {item.lower() for item in actual}
    return safe_ratio(len(predicted_set & actual_set), len(predicted_set))


def calculate_recall(predicted: Iterable[str], actual: Iterable[str]) -> float:
    """Fraction of actual items that were predicted; 0 when nothing was expected."""
    predicted_set = {item.lower() for item in predicted}
    actual_set = {item.lower() for item in actual}
    return safe_ratio(len(predicted_set & actual_set), len(actual_set))


def f1_score(precision: float, recall: float) -> float:
    """Harmonic mean of precision and recall; 0 when both are 0."""
    if precision + recall == 0:
        return 0.0
    return 2 * precision * recall / (precision + recall)


def _normalize_path(path: str) -> str:
    return path.strip().removeprefix("./")


class AgencyStore:
    """Agent task results plus optional planning and discovery grading."""

    def __init__(self):
        self.task_results: list[AgencyTaskResult] = []
        self.pm_accuracy: list[PMAccuracyEntry] = []
        self.file_discovery: list[FileDiscoveryEntry] = []

    def record_task_result(self, task_id: str, outcome: AgentOutcome) -> AgencyTaskResult:
        result = AgencyTaskResult(
            task_id=task_id,
            timestamp=datetime.now(UTC).isoformat(),
            success=outcome.success,
            autonomous=outcome.autonomous,
            kpis_passed=outcome.kpis_passed.model_copy(),
            iterations=outcome.iterations or 0,
            pm_output=outcome.pm_output,
            discovery_output=outcome.discovery_output,
        )
        self.task_results.append(result)
        return result

    def calculate_kpi_pass_rate(self, kpis: KpiStatus) -> float:
        return calculate_kpi_pass_rate(kpis)

    def record_pm_accuracy(
        self,
        task_id: str,
        pm_output: dict[str, Any],
        ground_truth: dict[str, Any],
    ) -> PMAccuracyEntry:
        """Grade the planning stage's intent and keywords against ground truth."""
        predicted_intent = pm_output.get("intent")
        actual_intent = ground_truth.get("intent")
        predicted_keywords = pm_output.get("keywords") or []
        actual_keywords = ground_truth.get("keywords") or []

        entry = PMAccuracyEntry(
            task_id=task_id,
            timestamp=datetime.now(UTC).isoformat(),
            predicted_intent=predicted_intent,
            actual_intent=actual_intent,
            intent_match=predicted_intent is not None and predicted_intent == actual_intent,
            keyword_precision=round(calculate_precision(predicted_keywords, actual_keywords) * 100, 1),
            keyword_recall=round(calculate_recall(predicted_keywords, actual_keywords) * 100, 1),
        )
        self.pm_accuracy.append(entry)
        return entry

    def record_file_discovery(
        self,
        task_id: str,
        discovered_files: Iterable[str],
        expected_files: Iterable[str],
    ) -> FileDiscoveryEntry:
        """Grade the set of files the agent found against the expected set."""
        discovered = {_normalize_path(p) for p in discovered_files}
        expected = {_normalize_path(p) for p in expected_files}
        true_positives = len(discovered & expected)

        precision = safe_ratio(true_positives, len(discovered))
        recall = safe_ratio(true_positives, len(expected))
        entry = FileDiscoveryEntry(
            task_id=task_id,
            timestamp=datetime.now(UTC).isoformat(),
            discovered_count=len(discovered),
            expected_count=len(expected),
            true_positives=true_positives,
            false_positives=len(discovered - expected),
            false_negatives=len(expected - discovered),
            precision=round(precision * 100, 1),
            recall=round(recall * 100, 1),
            f1=round(f1_score(precision, recall) * 100, 1),
        )
        self.file_discovery.append(entry)
        return entry

    def get_summary(self) -> dict[str, Any]:
        results = self.task_results
        total = len(results)
        successful = sum(1 for r in results if r.success)
        autonomous = sum(1 for r in results if r.autonomous and r.success)
        kpi_pass_counts = {
            name: sum(1 for r in results if getattr(r.kpis_passed, name)) for name in KPI_NAMES
        }

        pm_summary = None
        if self.pm_accuracy:
            pm_summary = {
                "total": len(self.pm_accuracy),
                "intent_accuracy": percent(
                    sum(1 for e in self.pm_accuracy if e.intent_match), len(self.pm_accuracy)
                ),
                "avg_keyword_precision": round(
                    safe_average([e.keyword_precision for e in self.pm_accuracy]), 1
                ),
                "avg_keyword_recall": round(
                    safe_average([e.keyword_recall for e in self.pm_accuracy]), 1
                ),
            }

        discovery_summary = None
        if self.file_discovery:
            discovery_summary = {
                "total": len(self.file_discovery),
                "avg_precision": round(safe_average([e.precision for e in self.file_discovery]), 1),
                "avg_recall": round(safe_average([e.recall for e in self.file_discovery]), 1),
                "avg_f1": round(safe_average([e.f1 for e in self.file_discovery]), 1),
            }

        return {
            "task_success": {
                "total": total,
                "successful": successful,
                "autonomous": autonomous,
                "success_rate": percent(successful, total),
                "autonomous_rate": percent(autonomous, total),
            },
            "kpi_stats": {
                "first_try_success_rate": percent(
                    sum(1 for r in results if r.first_try_success), total
                ),
                "avg_iterations": round(safe_average([float(r.iterations) for r in results]), 1),
                "kpi_pass_counts": kpi_pass_counts,
                "kpi_pass_rates": {
                    name: percent(count, total) for name, count in kpi_pass_counts.items()
                },
            },
            "pm_accuracy": pm_summary,
            "file_discovery": discovery_summary,
        }

    def export(self) -> dict[str, Any]:
        return {
            "task_results": [r.model_dump() for r in self.task_results],
            "pm_accuracy": [e.model_dump() for e in self.pm_accuracy],
            "file_discovery": [e.model_dump() for e in self.file_discovery],
            "summary": self.get_summary(),
        }

    def restore(self, exported: dict[str, Any]) -> None:
        self.task_results = [
            AgencyTaskResult.model_validate(r) for r in exported.get("task_results", [])
        ]
        self.pm_accuracy = [
            PMAccuracyEntry.model_validate(e) for e in exported.get("pm_accuracy", [])
        ]
        self.file_discovery = [
            FileDiscoveryEntry.model_validate(e) for e in exported.get("file_discovery", [])
        ]

    def reset(self) -> None:
        self.task_results.clear()
        self.pm_accuracy.clear()
        self.file_discovery.clear()
