"""Measurement records kept by the metric stores.

Every record is append-only once created. The one exception is
``QualityMeasurement.code_quality``, which is back-filled after a trial.
Derived values use @computed_field so they serialize alongside the
raw fields.
"""

from typing import Any

from pydantic import BaseModel, Field, computed_field

from .outcome import KPI_NAMES, KpiStatus


class TimingMeasurement(BaseModel):
    """Elapsed time of one (task, phase) timer."""

    task_id: str
    phase: str
    start_time: str
    end_time: str
    duration_ms: float = Field(ge=0)

    @computed_field
    @property
    def duration_sec(self) -> float:
        return round(self.duration_ms / 1000, 2)

    @computed_field
    @property
    def duration_min(self) -> float:
        return round(self.duration_ms / 60000, 2)


class ErrorEntry(BaseModel):
    """A recorded error."""

    task_id: str
    timestamp: str
    type: str = "unknown"
    message: str = ""
    phase: str = "unknown"
    recoverable: bool = True
    stack: str | None = None


class WarningEntry(BaseModel):
    """A recorded warning."""

    task_id: str
    timestamp: str
    type: str = "unknown"
    message: str = ""
    phase: str = "unknown"


class RetryEntry(BaseModel):
    """A recorded retry; attempt numbers count up per task."""

    task_id: str
    timestamp: str
    reason: str = ""
    attempt_number: int = Field(ge=1)


class TokenUsageEntry(BaseModel):
    """Token usage with cost computed at insertion."""

    task_id: str
    timestamp: str
    model: str = "unknown"
    input_tokens: int = Field(default=0, ge=0)
    output_tokens: int = Field(default=0, ge=0)
    cached_tokens: int = Field(default=0, ge=0)
    phase: str = "total"
    cost: float = Field(default=0.0, ge=0)

    @computed_field
    @property
    def total_tokens(self) -> int:
        return self.input_tokens + self.output_tokens


class LintResult(BaseModel):
    """ESLint totals for the workspace."""

    files_checked: int = 0
    total_errors: int = 0
    total_warnings: int = 0
    error: str | None = Field(default=None, description="Set when the linter could not run")

    @computed_field
    @property
    def score(self) -> float | None:
        """Lint score (0-10): 2 points per error, half a point per warning."""
        if self.error is not None:
            return None
        raw = 10 - self.total_errors * 2 - self.total_warnings * 0.5
        return round(max(0.0, raw), 1)

    @computed_field
    @property
    def passed(self) -> bool:
        return self.error is None and self.total_errors == 0


class TypeCheckResult(BaseModel):
    """TypeScript compiler result."""

    error_count: int = 0
    output: str = ""
    error: str | None = Field(default=None, description="Set when tsc could not run")

    @computed_field
    @property
    def passed(self) -> bool:
        return self.error is None and self.error_count == 0


class CoverageResult(BaseModel):
    """Frontend and backend line coverage percentages."""

    frontend: float = 0.0
    backend: float = 0.0
    target: float = 80.0
    error: str | None = Field(default=None, description="Failures of individual coverage runs")

    @computed_field
    @property
    def average(self) -> int:
        """Rounded mean of the components that reported coverage."""
        values = [value for value in (self.frontend, self.backend) if value > 0]
        if not values:
            return 0
        return round(sum(values) / len(values))

    @computed_field
    @property
    def passed(self) -> bool:
        return self.average >= self.target


class CodeQualityScore(BaseModel):
    """Back-filled code-quality score (0-10)."""

    score: float | None = Field(default=None, ge=0, le=10)
    max_score: int = 10
    details: dict[str, Any] = Field(default_factory=dict)
    error: str | None = None

    @computed_field
    @property
    def passed(self) -> bool:
        return self.score is not None and self.score >= 7


class QualityMeasurement(BaseModel):
    """Quality snapshot of the workspace after one trial."""

    task_id: str
    timestamp: str
    lint: LintResult | None = None
    typescript: TypeCheckResult | None = None
    coverage: CoverageResult | None = None
    code_quality: CodeQualityScore | None = None


class AgencyTaskResult(BaseModel):
    """Agent outcome for one task, with derived KPI statistics."""

    task_id: str
    timestamp: str
    success: bool = False
    autonomous: bool = False
    kpis_passed: KpiStatus = Field(default_factory=KpiStatus)
    iterations: int = 0
    pm_output: dict[str, Any] | None = None
    discovery_output: dict[str, Any] | None = None

    @computed_field
    @property
    def kpi_pass_rate(self) -> float:
        return self.kpis_passed.passed_count() / len(KPI_NAMES) * 100

    @computed_field
    @property
    def first_try_success(self) -> bool:
        return self.kpi_pass_rate == 100 and self.iterations <= 1


class PMAccuracyEntry(BaseModel):
    """How well the planning stage matched the expected intent and keywords."""

    task_id: str
    timestamp: str
    predicted_intent: str | None = None
    actual_intent: str | None = None
    intent_match: bool = False
    keyword_precision: float = 0.0
    keyword_recall: float = 0.0


class FileDiscoveryEntry(BaseModel):
    """Precision and recall of the files the agent chose to touch."""

    task_id: str
    timestamp: str
    discovered_count: int = 0
    expected_count: int = 0
    true_positives: int = 0
    false_positives: int = 0
    false_negatives: int = 0
    precision: float = 0.0
    recall: float = 0.0
    f1: float = 0.0
