"""Tests for summary building and Markdown rendering."""

from agency_bench.metrics import MetricStores
from agency_bench.report import build_summary, render_markdown
from agency_bench.schemas.outcome import AgentOutcome, KpiStatus
from agency_bench.schemas.run import Run, RunStatus
from agency_bench.schemas.task import Task


def _run(task_id, status, duration_ms=None):
    run = Run(task_id=task_id, task=Task(id=task_id))
    run.finish(status, duration_ms=duration_ms)
    return run


class TestBuildSummary:
    """Test the combined summary."""

    def test_empty(self):
        summary = build_summary([], MetricStores())

        assert summary["total_runs"] == 0
        assert summary["success_rate"] == 0.0
        assert summary["avg_duration_ms"] is None
        assert summary["timing"] is None
        assert summary["quality"] is None

    def test_rates_and_durations(self):
        runs = [
            _run("a", RunStatus.COMPLETED, 1000),
            _run("b", RunStatus.FAILED, 2000),
            _run("c", RunStatus.ERROR),
        ]

        summary = build_summary(runs, MetricStores())

        assert summary["total_runs"] == 3
        assert summary["success_rate"] == 33.3
        # the error run has no duration and is left out of the mean
        assert summary["avg_duration_ms"] == 1500
        assert summary["status_counts"] == {
            "running": 0,
            "completed": 1,
            "failed": 1,
            "error": 1,
        }

    def test_includes_store_summaries(self):
        stores = MetricStores()
        stores.agency.record_task_result("a", AgentOutcome(success=True, kpis_passed=KpiStatus(build=True)))
        stores.errors.record_error("a", message="x")

        summary = build_summary([_run("a", RunStatus.COMPLETED, 10)], stores)

        assert set(summary) >= {"timing", "errors", "tokens", "quality", "agency", "generated_at"}
        assert summary["agency"]["task_success"]["successful"] == 1
        assert summary["errors"]["total_errors"] == 1

    def test_pure(self):
        """Building a summary twice yields the same numbers."""
        runs = [_run("a", RunStatus.COMPLETED, 10)]
        stores = MetricStores()

        first = build_summary(runs, stores)
        second = build_summary(runs, stores)
        first.pop("generated_at")
        second.pop("generated_at")

        assert first == second


class TestRenderMarkdown:
    """Test Markdown output."""

    def test_sections_present(self):
        markdown = render_markdown(build_summary([], MetricStores()))

        for heading in (
            "# Benchmark Report",
            "## Overview",
            "## Performance",
            "## Quality",
            "## Agency Metrics",
            "## Cost",
            "## Errors",
        ):
            assert heading in markdown

    def test_missing_values_render_as_na(self):
        markdown = render_markdown(build_summary([], MetricStores()))

        assert "| Avg Completion Time | N/A |" in markdown
        assert "| Avg Lint Score | N/A |" in markdown

    def test_values_and_optional_sections(self):
        stores = MetricStores()
        stores.agency.record_pm_accuracy("a", {"intent": "x"}, {"intent": "x"})
        stores.agency.record_file_discovery("a", ["f.ts"], ["f.ts"])
        stores.errors.record_error("a", type="runtime", message="boom")
        summary = build_summary([_run("a", RunStatus.COMPLETED, 4000)], stores)

        markdown = render_markdown(summary)

        assert "| Success Rate | 100.0% |" in markdown
        assert "| Avg Duration | 4000 ms |" in markdown
        assert "### PM Accuracy" in markdown
        assert "### File Discovery" in markdown
        assert "| runtime | 1 |" in markdown
