"""Token usage and cost accounting."""

from __future__ import annotations

from collections.abc import Mapping
from datetime import UTC, datetime
from typing import Any

from ..config import ModelPrice, settings
from ..schemas.measurements import TokenUsageEntry
from .stats import safe_ratio


def format_usd(amount: float) -> str:
    return f"${amount:.6f}"


class TokenStore:
    """Per-task token usage, priced from a per-model table."""

    def __init__(self, pricing: Mapping[str, ModelPrice] | None = None):
        source = settings.pricing if pricing is None else pricing
        self.pricing: dict[str, ModelPrice] = {
            model: price.model_copy() for model, price in source.items()
        }
        self.usage: list[TokenUsageEntry] = []

    def set_pricing(self, model: str, input_price: float, output_price: float) -> None:
        """Add or replace a model's per-token prices."""
        self.pricing[model] = ModelPrice(input=input_price, output=output_price)

    def calculate_cost(self, model: str, input_tokens: int, output_tokens: int) -> float:
        """USD cost of a call; unknown models cost nothing."""
        price = self.pricing.get(model)
        if price is None:
            return 0.0
        return input_tokens * price.input + output_tokens * price.output

    def record_usage(
        self,
        task_id: str,
        *,
        model: str = "unknown",
        input_tokens: int = 0,
        output_tokens: int = 0,
        cached_tokens: int = 0,
        phase: str = "total",
    ) -> TokenUsageEntry:
        entry = TokenUsageEntry(
            task_id=task_id,
            timestamp=datetime.now(UTC).isoformat(),
            model=model,
            input_tokens=input_tokens,
            output_tokens=output_tokens,
            cached_tokens=cached_tokens,
            phase=phase,
            cost=self.calculate_cost(model, input_tokens, output_tokens),
        )
        self.usage.append(entry)
        return entry

    def get_task_tokens(self, task_id: str) -> dict[str, Any]:
        entries = [u for u in self.usage if u.task_id == task_id]
        return {
            "input_tokens": sum(u.input_tokens for u in entries),
            "output_tokens": sum(u.output_tokens for u in entries),
            "total_tokens": sum(u.total_tokens for u in entries),
            "cost": sum(u.cost for u in entries),
            "entries": len(entries),
        }

    def get_cost_per_loc(self, task_id: str, lines_of_code: int) -> float | None:
        """Cost per line of code produced, or None when no lines were produced."""
        if lines_of_code <= 0:
            return None
        return self.get_task_tokens(task_id)["cost"] / lines_of_code

    def get_summary(self) -> dict[str, Any]:
        total_input = sum(u.input_tokens for u in self.usage)
        total_output = sum(u.output_tokens for u in self.usage)
        total_cost = sum(u.cost for u in self.usage)
        tasks = {u.task_id for u in self.usage}

        by_model: dict[str, dict[str, Any]] = {}
        for entry in self.usage:
            bucket = by_model.setdefault(
                entry.model,
                {"count": 0, "input_tokens": 0, "output_tokens": 0, "cost": 0.0},
            )
            bucket["count"] += 1
            bucket["input_tokens"] += entry.input_tokens
            bucket["output_tokens"] += entry.output_tokens
            bucket["cost"] += entry.cost

        avg_cost = safe_ratio(total_cost, len(tasks))
        return {
            "total_input_tokens": total_input,
            "total_output_tokens": total_output,
            "total_tokens": total_input + total_output,
            "total_cost": total_cost,
            "total_cost_formatted": format_usd(total_cost),
            "tasks_with_usage": len(tasks),
            "avg_tokens_per_task": round(safe_ratio(total_input + total_output, len(tasks))),
            "avg_cost_per_task": avg_cost,
            "avg_cost_per_task_formatted": format_usd(avg_cost),
            "by_model": by_model,
        }

    def export(self) -> dict[str, Any]:
        return {
            "usage": [u.model_dump() for u in self.usage],
            "pricing": {model: price.model_dump() for model, price in self.pricing.items()},
            "summary": self.get_summary(),
        }

    def restore(self, exported: dict[str, Any]) -> None:
        """Reload usage entries; their stored costs are kept as recorded."""
        self.usage = [TokenUsageEntry.model_validate(u) for u in exported.get("usage", [])]

    def reset(self) -> None:
        self.usage.clear()
