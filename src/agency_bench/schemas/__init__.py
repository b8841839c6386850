"""Pydantic schemas for tasks, runs, outcomes and measurements."""

from .measurements import (
    AgencyTaskResult,
    CodeQualityScore,
    CoverageResult,
    ErrorEntry,
    FileDiscoveryEntry,
    LintResult,
    PMAccuracyEntry,
    QualityMeasurement,
    RetryEntry,
    TimingMeasurement,
    TokenUsageEntry,
    TypeCheckResult,
    WarningEntry,
)
from .outcome import AgentError, AgentOutcome, KpiStatus, TokenUsage
from .run import ResultsFile, Run, RunStatus
from .task import GroundTruth, Task

__all__ = [
    "Task",
    "GroundTruth",
    "Run",
    "RunStatus",
    "ResultsFile",
    "AgentOutcome",
    "AgentError",
    "KpiStatus",
    "TokenUsage",
    "TimingMeasurement",
    "ErrorEntry",
    "WarningEntry",
    "RetryEntry",
    "TokenUsageEntry",
    "LintResult",
    "TypeCheckResult",
    "CoverageResult",
    "CodeQualityScore",
    "QualityMeasurement",
    "AgencyTaskResult",
    "PMAccuracyEntry",
    "FileDiscoveryEntry",
]
