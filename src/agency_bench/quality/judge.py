"""LLM code-quality judge for a trial's diff against the baseline."""

from __future__ import annotations

import re
from collections.abc import Callable
from dataclasses import dataclass, field

from litellm import completion

from ..config import LLMJudgeSettings, settings


@dataclass
class JudgeScore:
    """Structured result from a code-quality judge response."""

    score: float | None
    rationale: str
    raw_response: str
    model: str = ""
    input_tokens: int = 0
    output_tokens: int = 0
    error: str | None = None
    attempts: int = 1
    retry_reasons: list[str] = field(default_factory=list)


def parse_score_response(response: str) -> tuple[float | None, str]:
    """Parse a judge response into (score, rationale).

    Strategy 1: Look for SCORE: N plus an optional RATIONALE: block
    Strategy 2: Take a leading number on the first line ("7/10", "8.5")
    Strategy 3: Return no score if unparseable
    """
    response = response.strip()

    score_match = re.search(r"SCORE:\s*(\d+(?:\.\d+)?)", response, re.IGNORECASE)
    rationale_match = re.search(
        r"RATIONALE:\s*(.+?)(?=\n\n|\Z)", response, re.IGNORECASE | re.DOTALL
    )
    rationale = rationale_match.group(1).strip() if rationale_match else response[:200]

    if score_match:
        return min(10.0, float(score_match.group(1))), rationale

    first_line = response.split("\n")[0]
    lead_match = re.match(r"\s*(\d+(?:\.\d+)?)\s*(?:/\s*10)?\b", first_line)
    if lead_match:
        return min(10.0, float(lead_match.group(1))), rationale

    return None, f"Could not parse response: {response[:100]}..."


def build_prompt(task_description: str, diff: str, max_chars: int) -> str:
    if len(diff) > max_chars:
        diff = diff[:max_chars] + f"\n... (truncated, {len(diff)} total chars)"
    return f"""You are reviewing a change made by an autonomous coding agent.

## Task
{task_description}

## Diff against baseline
{diff}

Rate the code quality of this change from 0 to 10, considering correctness,
readability, consistency with the surrounding code, and test coverage.

Format:
SCORE: [0-10]
RATIONALE: [1-3 sentences]"""


def judge_code_quality(
    task_description: str,
    diff: str,
    config: LLMJudgeSettings | None = None,
    complete: Callable = completion,
) -> JudgeScore:
    """Ask the judge model to score a diff, retrying failed calls."""
    config = config or settings.llm_judge
    if not diff.strip():
        return JudgeScore(
            score=None,
            rationale="",
            raw_response="",
            model=config.model,
            error="Empty diff; nothing to judge",
            attempts=0,
        )

    prompt = build_prompt(task_description, diff, config.max_diff_chars)
    retry_reasons: list[str] = []
    last_error: Exception | None = None

    for attempt in range(config.max_retries + 1):
        try:
            response = complete(
                model=config.model,
                messages=[{"role": "user", "content": prompt}],
                max_tokens=config.max_tokens,
            )
            result_text = response.choices[0].message.content or ""
            usage = getattr(response, "usage", None)
            score, rationale = parse_score_response(result_text)
            return JudgeScore(
                score=score,
                rationale=rationale,
                raw_response=result_text,
                model=config.model,
                input_tokens=int(getattr(usage, "prompt_tokens", 0) or 0),
                output_tokens=int(getattr(usage, "completion_tokens", 0) or 0),
                error=None if score is not None else rationale,
                attempts=attempt + 1,
                retry_reasons=retry_reasons,
            )
        except Exception as e:
            last_error = e
            if attempt < config.max_retries:
                retry_reasons.append(f"LLM judge call failed: {e}")
                continue

    return JudgeScore(
        score=None,
        rationale="",
        raw_response="",
        model=config.model,
        error=f"LLM judge error after {config.max_retries + 1} attempts: {last_error}",
        attempts=config.max_retries + 1,
        retry_reasons=retry_reasons,
    )
