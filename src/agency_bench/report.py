"""Benchmark summary and Markdown rendering."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

from .metrics import MetricStores
from .metrics.stats import percent, safe_average
from .schemas.run import Run, RunStatus

NA = "N/A"


def build_summary(runs: list[Run], stores: MetricStores) -> dict[str, Any]:
    """Combine run outcomes with every store's summary."""
    completed = sum(1 for run in runs if run.status is RunStatus.COMPLETED)
    durations = [run.duration_ms for run in runs if run.duration_ms is not None]
    return {
        "generated_at": datetime.now(UTC).isoformat(),
        "total_runs": len(runs),
        "success_rate": percent(completed, len(runs)),
        "avg_duration_ms": round(safe_average(durations)) if durations else None,
        "status_counts": {
            status.value: sum(1 for run in runs if run.status is status) for status in RunStatus
        },
        **stores.summaries(),
    }


def _fmt(value: Any, suffix: str = "") -> str:
    if value is None:
        return NA
    return f"{value}{suffix}"


def _table(rows: list[tuple[str, str]]) -> list[str]:
    lines = ["| Metric | Value |", "|--------|-------|"]
    lines.extend(f"| {name} | {value} |" for name, value in rows)
    return lines


def render_markdown(summary: dict[str, Any]) -> str:
    """Render a summary as a Markdown report."""
    timing = summary.get("timing") or {}
    quality = summary.get("quality") or {}
    agency = summary.get("agency") or {}
    tokens = summary.get("tokens") or {}
    errors = summary.get("errors") or {}
    task_success = agency.get("task_success") or {}
    kpi_stats = agency.get("kpi_stats") or {}
    kpi_rates = kpi_stats.get("kpi_pass_rates") or {}

    lines = [
        "# Benchmark Report",
        "",
        f"Generated: {summary.get('generated_at', NA)}",
        "",
        "## Overview",
        "",
        *_table(
            [
                ("Total Runs", _fmt(summary.get("total_runs"))),
                ("Success Rate", _fmt(summary.get("success_rate"), "%")),
                ("Avg Duration", _fmt(summary.get("avg_duration_ms"), " ms")),
            ]
        ),
        "",
        "## Performance",
        "",
        *_table(
            [
                ("Avg Completion Time", _fmt(timing.get("avg_completion_time_min"), " min")),
                ("Min Completion Time", _fmt(timing.get("min_completion_time_ms"), " ms")),
                ("Max Completion Time", _fmt(timing.get("max_completion_time_ms"), " ms")),
                ("Throughput", _fmt(timing.get("throughput_per_hour"), " tasks/hour")),
            ]
        ),
        "",
        "## Quality",
        "",
        *_table(
            [
                ("Tasks Measured", _fmt(quality.get("tasks_measured"))),
                ("Avg Lint Score", _fmt(quality.get("avg_lint_score"), "/10")),
                ("Avg Coverage", _fmt(quality.get("avg_coverage"), "%")),
                ("TypeScript Pass Rate", _fmt(quality.get("type_script_pass_rate"), "%")),
                ("Avg Code Quality", _fmt(quality.get("avg_code_quality"), "/10")),
                ("Overall Quality Score", _fmt(quality.get("quality_score"), "/10")),
            ]
        ),
        "",
        "## Agency Metrics",
        "",
        *_table(
            [
                ("Task Success Rate", _fmt(task_success.get("success_rate"), "%")),
                ("Autonomous Rate", _fmt(task_success.get("autonomous_rate"), "%")),
                ("First-Try Success Rate", _fmt(kpi_stats.get("first_try_success_rate"), "%")),
                ("Avg Iterations", _fmt(kpi_stats.get("avg_iterations"))),
                *((f"KPI: {name}", _fmt(rate, "%")) for name, rate in kpi_rates.items()),
            ]
        ),
    ]

    pm = agency.get("pm_accuracy")
    if pm:
        lines.extend(
            [
                "",
                "### PM Accuracy",
                "",
                *_table(
                    [
                        ("Intent Accuracy", _fmt(pm.get("intent_accuracy"), "%")),
                        ("Keyword Precision", _fmt(pm.get("avg_keyword_precision"), "%")),
                        ("Keyword Recall", _fmt(pm.get("avg_keyword_recall"), "%")),
                    ]
                ),
            ]
        )
    discovery = agency.get("file_discovery")
    if discovery:
        lines.extend(
            [
                "",
                "### File Discovery",
                "",
                *_table(
                    [
                        ("Precision", _fmt(discovery.get("avg_precision"), "%")),
                        ("Recall", _fmt(discovery.get("avg_recall"), "%")),
                        ("F1", _fmt(discovery.get("avg_f1"), "%")),
                    ]
                ),
            ]
        )

    lines.extend(
        [
            "",
            "## Cost",
            "",
            *_table(
                [
                    ("Total Tokens", _fmt(tokens.get("total_tokens"))),
                    ("Total Cost", _fmt(tokens.get("total_cost_formatted"))),
                    ("Avg Tokens/Task", _fmt(tokens.get("avg_tokens_per_task"))),
                    ("Avg Cost/Task", _fmt(tokens.get("avg_cost_per_task_formatted"))),
                ]
            ),
            "",
            "## Errors",
            "",
            *_table(
                [
                    ("Total Errors", _fmt(errors.get("total_errors"))),
                    ("Total Warnings", _fmt(errors.get("total_warnings"))),
                    ("Total Retries", _fmt(errors.get("total_retries"))),
                    ("Error Rate", _fmt(errors.get("error_rate"), " per task")),
                    ("Unrecoverable Errors", _fmt(errors.get("unrecoverable_errors"))),
                ]
            ),
        ]
    )

    by_type = errors.get("errors_by_type") or {}
    if by_type:
        lines.extend(["", "### Errors by Type", "", "| Type | Count |", "|------|-------|"])
        lines.extend(f"| {name} | {count} |" for name, count in sorted(by_type.items()))

    return "\n".join(lines) + "\n"
