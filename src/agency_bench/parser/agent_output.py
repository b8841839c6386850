"""Best-effort extraction of outcome signals from agent console output.

The agent has no structured result protocol, so every signal here is a
substring or regex heuristic over what it printed. A KPI is only judged
when its tool is mentioned at all; otherwise it stays False.
"""

import re

from ..schemas.outcome import AgentError, AgentOutcome, KpiStatus, TokenUsage

ITERATION_PATTERN = re.compile(r"iteration|retry|fix loop", re.IGNORECASE)
TOKEN_PATTERN = re.compile(r"tokens:\s*(\d+)\s*input,\s*(\d+)\s*output", re.IGNORECASE)
ERROR_PATTERN = re.compile(r"error[:\s]+([^\n]+)", re.IGNORECASE)


def _typescript_passed(stdout: str, stderr: str) -> bool:
    if "TypeScript" not in stdout and "type-check" not in stdout:
        return False
    return "TS error" not in stdout and "TS error" not in stderr


def _lint_passed(stdout: str) -> bool:
    if "ESLint" not in stdout and "lint" not in stdout:
        return False
    return "✖" not in stdout and "error" not in stdout


def _build_passed(stdout: str) -> bool:
    if "build" not in stdout and "vite build" not in stdout:
        return False
    return "built in" in stdout or "failed" not in stdout


def _tests_passed(stdout: str) -> bool:
    if "test" not in stdout and "vitest" not in stdout:
        return False
    return "passed" in stdout and "failed" not in stdout


def count_iterations(stdout: str) -> int:
    """Count iteration/retry markers; a run with none is one iteration."""
    return len(ITERATION_PATTERN.findall(stdout)) or 1


def parse_token_usage(stdout: str) -> TokenUsage | None:
    match = TOKEN_PATTERN.search(stdout)
    if match is None:
        return None
    return TokenUsage(input_tokens=int(match.group(1)), output_tokens=int(match.group(2)))


def parse_errors(stdout: str) -> list[AgentError]:
    return [AgentError(message=match.group(0)) for match in ERROR_PATTERN.finditer(stdout)]


def parse_agent_output(stdout: str, stderr: str, exit_code: int | None) -> AgentOutcome:
    """Derive an AgentOutcome from captured output and the exit code."""
    return AgentOutcome(
        success=exit_code == 0,
        autonomous=True,
        kpis_passed=KpiStatus(
            typescript=_typescript_passed(stdout, stderr),
            lint=_lint_passed(stdout),
            build=_build_passed(stdout),
            tests=_tests_passed(stdout),
        ),
        iterations=count_iterations(stdout),
        token_usage=parse_token_usage(stdout),
        errors=parse_errors(stdout),
        exit_code=exit_code,
    )
