"""Abstract base class for the usage/cost metrics sink.

LLM providers receive a sink at construction time and write one
:class:`~src.models.llm.UsageRecord` per completion.  The sink's lifetime
is whatever the owner chooses (per process in ``src/main.py``, per test in
the test suite).
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from src.models.llm import UsageRecord


# Concrete implementation: InMemoryUsageSink (src/providers/usage/)
class IUsageSink(ABC):
    """Contract for recording provider usage."""

    @abstractmethod
    def record(self, usage: UsageRecord) -> None:
        """Store one usage record.  Must not raise."""

    @abstractmethod
    def records(self) -> list[UsageRecord]:
        """Return all records so far, oldest first."""

    @abstractmethod
    def total_cost(self) -> float:
        """Return summed cost in USD across all records."""
