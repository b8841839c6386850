"""Metric stores for timing, errors, tokens, quality and agent outcomes."""

from dataclasses import dataclass, field
from typing import Any

from .agency import AgencyStore
from .errors import ErrorStore
from .quality import QualityStore
from .timing import TimingStore
from .tokens import TokenStore


@dataclass(slots=True)
class MetricStores:
    """The five stores shared by one orchestrator."""

    timing: TimingStore = field(default_factory=TimingStore)
    errors: ErrorStore = field(default_factory=ErrorStore)
    tokens: TokenStore = field(default_factory=TokenStore)
    quality: QualityStore = field(default_factory=QualityStore)
    agency: AgencyStore = field(default_factory=AgencyStore)

    def summaries(self) -> dict[str, Any]:
        return {
            "timing": self.timing.get_summary(),
            "errors": self.errors.get_summary(),
            "tokens": self.tokens.get_summary(),
            "quality": self.quality.get_summary(),
            "agency": self.agency.get_summary(),
        }

    def export(self) -> dict[str, Any]:
        return {
            "timing": self.timing.export(),
            "errors": self.errors.export(),
            "tokens": self.tokens.export(),
            "quality": self.quality.export(),
            "agency": self.agency.export(),
        }

    def restore(self, exported: dict[str, Any]) -> None:
        """Reload every store from a previous ``export()``."""
        for name in ("timing", "errors", "tokens", "quality", "agency"):
            if exported.get(name):
                getattr(self, name).restore(exported[name])

    def reset(self) -> None:
        for store in (self.timing, self.errors, self.tokens, self.quality, self.agency):
            store.reset()


__all__ = [
    "MetricStores",
    "TimingStore",
    "ErrorStore",
    "TokenStore",
    "QualityStore",
    "AgencyStore",
]
