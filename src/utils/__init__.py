"""Utility modules for BrainBrawl.

- **errors** -- Exception hierarchy rooted at BrainBrawlError; each pipeline
  stage raises its own subclass and every class says whether a retry can help.
- **logging** -- structlog setup with a dual-renderer pattern: coloured
  console output in development, structured JSON in production.
"""

# -- Domain exception hierarchy --------------------------------------------
from src.utils.errors import (
    BrainBrawlError,
    ConfigurationError,
    EmbeddingProviderError,
    ExtractionFailedError,
    ExtractionStrategyError,
    GenerationFailedError,
    LLMError,
    NoValidOutputError,
    ProviderUnavailableError,
    QuotaExceededError,
    RAGError,
    RateLimitError,
    SchemaViolationError,
    UnsupportedFormatError,
)

# -- Structured logging setup ----------------------------------------------
from src.utils.logging import configure_logging, get_logger

__all__ = [
    "BrainBrawlError",
    "ConfigurationError",
    "EmbeddingProviderError",
    "ExtractionFailedError",
    "ExtractionStrategyError",
    "GenerationFailedError",
    "LLMError",
    "NoValidOutputError",
    "ProviderUnavailableError",
    "QuotaExceededError",
    "RAGError",
    "RateLimitError",
    "SchemaViolationError",
    "UnsupportedFormatError",
    "configure_logging",
    "get_logger",
]
