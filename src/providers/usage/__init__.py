"""Usage sink implementations (see src/interfaces/usage_sink.py)."""

from src.providers.usage.memory_usage_sink import InMemoryUsageSink

__all__ = ["InMemoryUsageSink"]
