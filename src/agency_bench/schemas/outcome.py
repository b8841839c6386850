"""Structured outcome derived from one agent invocation."""

from typing import Any

from pydantic import BaseModel, Field

KPI_NAMES = ("typescript", "lint", "build", "tests")


class KpiStatus(BaseModel):
    """Pass/fail for each of the four agent KPIs."""

    typescript: bool = False
    lint: bool = False
    build: bool = False
    tests: bool = False

    def passed_count(self) -> int:
        return sum(1 for name in KPI_NAMES if getattr(self, name))


class AgentError(BaseModel):
    """An error line reported by the agent in its own output."""

    type: str = "runtime"
    message: str
    phase: str = "execution"
    recoverable: bool = True


class TokenUsage(BaseModel):
    """Token counts reported by the agent."""

    input_tokens: int = 0
    output_tokens: int = 0
    model: str = "unknown"


class AgentOutcome(BaseModel):
    """What one agent run produced, as far as its output reveals."""

    success: bool = False
    autonomous: bool = True
    kpis_passed: KpiStatus = Field(default_factory=KpiStatus)
    iterations: int = 0
    token_usage: TokenUsage | None = None
    errors: list[AgentError] = Field(default_factory=list)
    pm_output: dict[str, Any] | None = None
    discovery_output: dict[str, Any] | None = None
    exit_code: int | None = None
