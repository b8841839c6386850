"""Quality measurement: tool probes and the LLM code-quality judge."""

from .judge import JudgeScore, judge_code_quality, parse_score_response
from .probes import QualityProbe, ToolError

__all__ = [
    "QualityProbe",
    "ToolError",
    "JudgeScore",
    "judge_code_quality",
    "parse_score_response",
]
