"""In-memory usage sink.

Holds every :class:`UsageRecord` written by the LLM providers it was
injected into.  ``src/main.py`` creates one per process; tests create one
per test.
"""

from __future__ import annotations

from collections import defaultdict

from src.interfaces.usage_sink import IUsageSink
from src.models.llm import UsageRecord


class InMemoryUsageSink(IUsageSink):
    """Append-only list of usage records with simple aggregates."""

    def __init__(self) -> None:
        self._records: list[UsageRecord] = []

    def record(self, usage: UsageRecord) -> None:
        self._records.append(usage)

    def records(self) -> list[UsageRecord]:
        return list(self._records)

    def total_cost(self) -> float:
        return sum(r.cost_usd for r in self._records)

    def summary_by_provider(self) -> dict[str, dict[str, float]]:
        """Per-provider call count, token totals, cost and mean latency."""
        totals: dict[str, dict[str, float]] = defaultdict(
            lambda: dict.fromkeys(
                ("calls", "prompt_tokens", "completion_tokens", "cost_usd", "latency_ms"), 0.0
            )
        )
        for r in self._records:
            entry = totals[r.provider]
            entry["calls"] += 1
            entry["prompt_tokens"] += r.prompt_tokens
            entry["completion_tokens"] += r.completion_tokens
            entry["cost_usd"] += r.cost_usd
            entry["latency_ms"] += r.latency_ms
        for entry in totals.values():
            entry["avg_latency_ms"] = entry.pop("latency_ms") / entry["calls"]
        return dict(totals)

    def clear(self) -> None:
        self._records.clear()
