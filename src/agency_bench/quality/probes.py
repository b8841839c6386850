"""Run the project's quality tools and turn their output into measurements.

Tool failures never propagate: each probe records what went wrong in its
result's ``error`` field so the trial can still complete.
"""

from __future__ import annotations

import json
import logging
import re
import shlex
import subprocess
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path

from ..config import QualitySettings, settings
from ..schemas.measurements import CoverageResult, LintResult, QualityMeasurement, TypeCheckResult

logger = logging.getLogger(__name__)

TS_ERROR_PATTERN = re.compile(r"error TS")
ALL_FILES_PATTERN = re.compile(r"All files[|\s]+(\d+\.?\d*)")
GO_COVERAGE_PATTERN = re.compile(r"coverage:\s*(\d+\.?\d*)%")
COVERAGE_SUMMARY_KEYS = ("lines", "statements", "branches", "functions")


class ToolError(RuntimeError):
    """A quality tool could not be run."""


@dataclass(frozen=True, slots=True)
class ToolOutput:
    exit_code: int
    stdout: str
    stderr: str


def run_tool(command: list[str], cwd: Path, timeout: int) -> ToolOutput:
    """Run a tool command, raising ToolError when it cannot run to completion."""
    try:
        result = subprocess.run(
            command,
            cwd=cwd,
            capture_output=True,
            text=True,
            timeout=timeout,
        )
    except subprocess.TimeoutExpired as exc:
        raise ToolError(f"{shlex.join(command)} timed out after {timeout}s") from exc
    except FileNotFoundError as exc:
        raise ToolError(f"{command[0]} not found") from exc
    except OSError as exc:
        raise ToolError(f"{shlex.join(command)} could not start: {exc}") from exc
    return ToolOutput(exit_code=result.returncode, stdout=result.stdout, stderr=result.stderr)


def parse_eslint_json(output: str) -> LintResult:
    """Sum error and warning counts over ESLint's JSON report."""
    files = json.loads(output.strip() or "[]")
    if not isinstance(files, list):
        raise ValueError("ESLint JSON report must be a list")
    return LintResult(
        files_checked=len(files),
        total_errors=sum(int(f.get("errorCount", 0)) for f in files),
        total_warnings=sum(int(f.get("warningCount", 0)) for f in files),
    )


def count_ts_errors(output: str) -> int:
    return len(TS_ERROR_PATTERN.findall(output))


def read_coverage_summary(path: Path) -> float | None:
    """Mean of the total percentages in a coverage-summary.json file."""
    if not path.exists():
        return None
    data = json.loads(path.read_text())
    total = data.get("total", {})
    values = [
        float(total[key]["pct"])
        for key in COVERAGE_SUMMARY_KEYS
        if isinstance(total.get(key), dict) and total[key].get("pct") is not None
    ]
    if not values:
        return None
    return sum(values) / len(values)


def parse_all_files_coverage(output: str) -> float | None:
    match = ALL_FILES_PATTERN.search(output)
    return float(match.group(1)) if match else None


def parse_go_coverage(output: str) -> float | None:
    """Average of every per-package 'coverage: N%' figure."""
    values = [float(v) for v in GO_COVERAGE_PATTERN.findall(output)]
    if not values:
        return None
    return sum(values) / len(values)


class QualityProbe:
    """Measures lint, type-check and coverage for the workspace."""

    def __init__(self, project_path: Path, config: QualitySettings | None = None):
        self.project_path = project_path
        self.config = config or settings.quality

    @property
    def frontend(self) -> Path:
        return self.project_path / self.config.frontend_dir

    @property
    def backend(self) -> Path:
        return self.project_path / self.config.backend_dir

    def measure(self, task_id: str) -> QualityMeasurement:
        return QualityMeasurement(
            task_id=task_id,
            timestamp=datetime.now(UTC).isoformat(),
            lint=self.measure_lint(),
            typescript=self.measure_typescript(),
            coverage=self.measure_coverage(),
        )

    def measure_lint(self) -> LintResult:
        if not self.frontend.is_dir():
            return LintResult(error=f"Frontend directory not found: {self.frontend}")
        try:
            output = run_tool(self.config.lint_command, self.frontend, self.config.tool_timeout)
            return parse_eslint_json(output.stdout)
        except (ToolError, ValueError) as exc:
            logger.warning("Lint measurement failed: %s", exc)
            return LintResult(error=str(exc))

    def measure_typescript(self) -> TypeCheckResult:
        if not (self.frontend / "tsconfig.json").exists():
            return TypeCheckResult(error="No tsconfig.json found")
        try:
            output = run_tool(
                self.config.typecheck_command, self.frontend, self.config.tool_timeout
            )
        except ToolError as exc:
            logger.warning("Type-check failed to run: %s", exc)
            return TypeCheckResult(error=str(exc))

        combined = output.stdout + output.stderr
        return TypeCheckResult(
            error_count=count_ts_errors(combined),
            output=combined[: self.config.output_limit],
        )

    def _frontend_coverage(self) -> float:
        if not self.frontend.is_dir():
            return 0.0
        output = run_tool(
            self.config.frontend_coverage_command, self.frontend, self.config.coverage_timeout
        )
        summary_path = self.frontend / "coverage" / "coverage-summary.json"
        try:
            from_summary = read_coverage_summary(summary_path)
        except (
            json.JSONDecodeError,
            OSError,
            AttributeError,
            KeyError,
            TypeError,
            ValueError,
        ) as exc:
            logger.debug("Unreadable coverage summary %s: %s", summary_path, exc)
            from_summary = None
        if from_summary is not None:
            return from_summary
        return parse_all_files_coverage(output.stdout + output.stderr) or 0.0

    def _backend_coverage(self) -> float:
        if not self.backend.is_dir():
            return 0.0
        output = run_tool(
            self.config.backend_coverage_command, self.backend, self.config.coverage_timeout
        )
        return parse_go_coverage(output.stdout) or 0.0

    def measure_coverage(self) -> CoverageResult:
        problems = []
        frontend = backend = 0.0
        try:
            frontend = self._frontend_coverage()
        except ToolError as exc:
            problems.append(f"frontend: {exc}")
        try:
            backend = self._backend_coverage()
        except ToolError as exc:
            problems.append(f"backend: {exc}")

        if problems:
            logger.warning("Coverage measurement incomplete: %s", "; ".join(problems))
        return CoverageResult(
            frontend=round(frontend, 2),
            backend=round(backend, 2),
            target=self.config.coverage_target,
            error="; ".join(problems) or None,
        )
