"""Trial orchestration: run tasks against the agent and collect metrics."""

from __future__ import annotations

import logging
import traceback
from collections.abc import Callable
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from .config import BenchSettings, settings
from .harness.invoker import AgentInvoker
from .metrics import MetricStores
from .metrics.timing import TOTAL_PHASE
from .metrics.tokens import TokenStore
from .quality.judge import JudgeScore, judge_code_quality
from .quality.probes import QualityProbe
from .report import build_summary
from .schemas.measurements import QualityMeasurement
from .schemas.outcome import AgentOutcome
from .schemas.run import ResultsFile, Run, RunStatus
from .schemas.task import Task
from .storage import ReportFormat, load_results, save_results, write_report
from .workspace.snapshot import MissingBaselineError, WorkspaceCommandError, WorkspaceSnapshotter

logger = logging.getLogger(__name__)

AGENCY_PHASE = "agency"
TASK_SUFFIXES = (".json", ".yaml", ".yml")

Judge = Callable[..., JudgeScore]


def list_task_files(task_dir: Path) -> list[Path]:
    """Task files in a directory, in name order."""
    if not task_dir.is_dir():
        raise FileNotFoundError(f"Task directory not found: {task_dir}")
    return sorted(
        path for path in task_dir.iterdir() if path.is_file() and path.suffix in TASK_SUFFIXES
    )


class TrialOrchestrator:
    """Runs trials one at a time and keeps the results file current."""

    def __init__(
        self,
        config: BenchSettings | None = None,
        *,
        stores: MetricStores | None = None,
        snapshotter: WorkspaceSnapshotter | None = None,
        invoker: AgentInvoker | None = None,
        probe: QualityProbe | None = None,
        judge: Judge | None = None,
    ):
        self.config = config or settings
        paths = self.config.paths
        self.stores = stores or MetricStores(tokens=TokenStore(self.config.pricing))
        self.snapshotter = snapshotter or WorkspaceSnapshotter(
            paths.project_path, self.config.snapshot, keep_paths=paths.harness_files()
        )
        self.invoker = invoker or AgentInvoker(paths.agency_path, self.config.agent)
        self.probe = probe or QualityProbe(paths.project_path, self.config.quality)
        if judge is None and self.config.llm_judge.enabled:
            judge = judge_code_quality
        self.judge = judge
        self.results_path = paths.results_path

        self.results: ResultsFile = load_results(self.results_path)
        if self.results.metrics:
            self.stores.restore(self.results.metrics)

    @property
    def runs(self) -> list[Run]:
        return self.results.runs

    def save(self) -> Path:
        self.results.metrics = self.stores.export()
        return save_results(self.results, self.results_path)

    # ------------------------------------------------------------------
    # Single trial
    # ------------------------------------------------------------------
    def run_trial(self, task: Task | Path) -> Run:
        """Run one task through the agent and record every measurement.

        Never raises for agent or tool failures; those end up in the run's
        status and the error store. The results file is rewritten before
        returning.
        """
        if not isinstance(task, Task):
            task = Task.from_file(task)

        run = Run(task_id=task.id, task=task)
        timing = self.stores.timing
        logger.info("Starting trial %s", task.id)
        try:
            timing.start_timer(task.id, TOTAL_PHASE)
            timing.start_timer(task.id, AGENCY_PHASE)
            outcome = self.invoker.invoke(task)
            agency_timing = timing.stop_timer(task.id, AGENCY_PHASE)
            total_timing = timing.stop_timer(task.id, TOTAL_PHASE)

            result = self.stores.agency.record_task_result(task.id, outcome)
            for error in outcome.errors:
                self.stores.errors.record_error(task.id, **error.model_dump())

            quality = self._measure_quality(task)
            if self.judge is not None:
                self._judge_code_quality(task)

            if outcome.token_usage is not None:
                self.stores.tokens.record_usage(
                    task.id,
                    model=outcome.token_usage.model,
                    input_tokens=outcome.token_usage.input_tokens,
                    output_tokens=outcome.token_usage.output_tokens,
                )
            self._grade_against_ground_truth(task, outcome)

            run.metrics = {
                "timing": [m.model_dump() for m in (total_timing, agency_timing) if m is not None],
                "quality": quality.model_dump(),
                "agency": result.model_dump(),
            }
            run.finish(
                RunStatus.COMPLETED if outcome.success else RunStatus.FAILED,
                duration_ms=total_timing.duration_ms if total_timing else None,
            )
        except Exception as exc:
            timing.discard_timers(task.id)
            self.stores.errors.record_error(
                task.id,
                type="execution",
                message=str(exc),
                phase="agency-invocation",
                recoverable=False,
                stack=traceback.format_exc(),
            )
            run.finish(RunStatus.ERROR, error=str(exc))
            logger.error("Trial %s errored: %s", task.id, exc)

        self.results.runs.append(run)
        self.save()
        logger.info("Trial %s finished: %s", task.id, run.status.value)
        return run

    def _measure_quality(self, task: Task) -> QualityMeasurement:
        measurement = self.stores.quality.record_measurement(self.probe.measure(task.id))
        for name in ("lint", "typescript", "coverage"):
            probe_result = getattr(measurement, name)
            if probe_result is not None and probe_result.error:
                self.stores.errors.record_warning(
                    task.id,
                    type="quality-tool",
                    message=f"{name}: {probe_result.error}",
                    phase="quality",
                )
        return measurement

    def _judge_code_quality(self, task: Task) -> None:
        quality = self.stores.quality
        try:
            diff = self.snapshotter.diff_from_baseline()
        except WorkspaceCommandError as exc:
            quality.set_code_quality_score(task.id, None, error=str(exc))
            return

        verdict = self.judge(task.description, diff, self.config.llm_judge)
        for reason in verdict.retry_reasons:
            self.stores.errors.record_retry(task.id, reason)
        if verdict.input_tokens or verdict.output_tokens:
            self.stores.tokens.record_usage(
                task.id,
                model=verdict.model,
                input_tokens=verdict.input_tokens,
                output_tokens=verdict.output_tokens,
                phase="judge",
            )
        quality.set_code_quality_score(
            task.id,
            verdict.score,
            {"rationale": verdict.rationale, "model": verdict.model},
            error=verdict.error,
        )

    def _grade_against_ground_truth(self, task: Task, outcome: AgentOutcome) -> None:
        truth = task.ground_truth
        if truth is None:
            return
        if outcome.pm_output:
            self.stores.agency.record_pm_accuracy(
                task.id,
                outcome.pm_output,
                {"intent": truth.intent, "keywords": truth.keywords},
            )
        if outcome.discovery_output and truth.files:
            self.stores.agency.record_file_discovery(
                task.id,
                outcome.discovery_output.get("files") or [],
                truth.files,
            )

    def _errored_run(self, task: Task, message: str, phase: str) -> Run:
        self.stores.errors.record_error(
            task.id,
            type="execution",
            message=message,
            phase=phase,
            recoverable=False,
        )
        run = Run(task_id=task.id, task=task)
        run.finish(RunStatus.ERROR, error=message)
        self.results.runs.append(run)
        self.save()
        return run

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------
    def run_single(self, task_file: Path) -> Run:
        """Run one task file, restoring the baseline around it when one exists."""
        has_baseline = self.snapshotter.verify_baseline()
        if has_baseline:
            self.snapshotter.prepare()
        else:
            logger.warning("No baseline found; running against the current workspace")

        run = self.run_trial(task_file)

        if has_baseline:
            self.snapshotter.reset()
        return run

    def run_batch(self, task_dir: Path | None = None) -> list[Run]:
        """Run every task file in a directory, strictly one after another."""
        task_dir = task_dir or self.config.paths.tasks_dir
        task_files = list_task_files(task_dir)
        logger.info("Running batch of %d task(s) from %s", len(task_files), task_dir)

        if not self.snapshotter.verify_baseline():
            logger.info("Baseline missing; creating it from the current HEAD")
            self.snapshotter.setup_baseline()

        runs = []
        for task_file in task_files:
            try:
                task = Task.from_file(task_file)
            except (OSError, ValueError, ValidationError) as exc:
                placeholder = Task(id=task_file.stem, name=task_file.name)
                runs.append(
                    self._errored_run(placeholder, f"Invalid task file: {exc}", "task-load")
                )
                continue

            try:
                self.snapshotter.prepare()
            except (MissingBaselineError, WorkspaceCommandError) as exc:
                runs.append(self._errored_run(task, str(exc), "workspace-prepare"))
                continue

            runs.append(self.run_trial(task))

            try:
                self.snapshotter.reset()
            except (MissingBaselineError, WorkspaceCommandError) as exc:
                self.stores.errors.record_error(
                    task.id,
                    type="execution",
                    message=str(exc),
                    phase="workspace-reset",
                    recoverable=False,
                )
                logger.error("Workspace reset after %s failed: %s", task.id, exc)
            self.save()

        self.generate_summary()
        return runs

    def generate_summary(self) -> dict[str, Any]:
        summary = build_summary(self.results.runs, self.stores)
        self.results.summary = summary
        self.save()
        return summary

    def generate_report(self, fmt: ReportFormat = "all") -> list[Path]:
        summary = self.generate_summary()
        return write_report(summary, self.config.paths.reports_dir, fmt)

    def status(self) -> dict[str, Any]:
        summary = build_summary(self.results.runs, self.stores)
        return {
            "total_runs": summary["total_runs"],
            "success_rate": summary["success_rate"],
            "avg_duration_ms": summary["avg_duration_ms"],
            "status_counts": summary["status_counts"],
        }
