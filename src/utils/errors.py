"""Custom exception hierarchy for BrainBrawl.

All application exceptions inherit from :class:`BrainBrawlError`, which
carries an optional ``provider_name`` so error handlers can identify which
external service (e.g. "openai", "moonshot", "chromadb") caused the failure.

The hierarchy is organized by pipeline stage:

    BrainBrawlError  (base -- catch-all for any brainbrawl error)
    +-- UnsupportedFormatError   (upload is not a format we can read)
    +-- ExtractionFailedError    (every extraction strategy gave up)
    +-- ExtractionStrategyError  (one strategy gave up; the gateway recovers)
    +-- EmbeddingProviderError   (embedding batch failed as a whole)
    +-- GenerationFailedError    (provider unreachable / timed out)
    +-- SchemaViolationError     (reply parsed but is structurally invalid)
    +-- NoValidOutputError       (quiz reply held zero valid questions)
    +-- LLMError                 (any LLM API call failure)
    +-- RateLimitError           (provider rate-limit exceeded)
    +-- ProviderUnavailableError (external service down / unreachable)
    +-- QuotaExceededError       (owner hit their document allowance)
    +-- ConfigurationError       (startup / missing config)
    +-- RAGError                 (vector-store failure)

Each class declares ``retryable``.  Callers use it to tell a transient
provider problem ("try again") apart from an input that will never work
("this document cannot be processed").
"""


class BrainBrawlError(Exception):
    """Base exception for all BrainBrawl errors.

    Every subclass carries a human-readable ``message`` and an optional
    ``provider_name`` identifying which external service triggered the
    error.  The ``__str__`` method prefixes the provider name in brackets
    for structured log output, e.g. ``[openai] Rate limit exceeded``.
    """

    retryable: bool = False

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        provider_name: str | None = None,
    ) -> None:
        self._message = message
        self._provider_name = provider_name
        super().__init__(self._message)

    @property
    def message(self) -> str:
        return self._message

    @property
    def provider_name(self) -> str | None:
        return self._provider_name

    def __str__(self) -> str:
        if self._provider_name:
            return f"[{self._provider_name}] {self._message}"
        return self._message


# ---------------------------------------------------------------------------
# Extraction errors
# ---------------------------------------------------------------------------

class UnsupportedFormatError(BrainBrawlError):
    """Raised when an upload's extension / media type has no extraction strategy."""

    def __init__(
        self,
        message: str = "Unsupported document format",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class ExtractionFailedError(BrainBrawlError):
    """Raised when every extraction strategy for a document has been exhausted."""

    def __init__(
        self,
        message: str = "Document extraction failed",
        provider_name: str | None = None,
        attempts: list[str] | None = None,
    ) -> None:
        self._attempts = list(attempts or [])
        super().__init__(message=message, provider_name=provider_name)

    @property
    def attempts(self) -> list[str]:
        """Per-strategy failure summaries, in the order they were tried."""
        return list(self._attempts)


class ExtractionStrategyError(BrainBrawlError):
    """Raised by a single extraction strategy; the gateway moves on to the next."""

    def __init__(
        self,
        message: str = "Extraction strategy failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


# ---------------------------------------------------------------------------
# Embedding / generation errors
# ---------------------------------------------------------------------------

class EmbeddingProviderError(BrainBrawlError):
    """Raised when an embedding batch fails.  Batches never partially succeed."""

    retryable = True

    def __init__(
        self,
        message: str = "Embedding provider request failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class GenerationFailedError(BrainBrawlError):
    """Raised when the text-generation provider is unreachable or times out."""

    retryable = True

    def __init__(
        self,
        message: str = "Content generation failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class SchemaViolationError(BrainBrawlError):
    """Raised when a generated reply cannot be parsed or repaired into the schema."""

    retryable = True

    def __init__(
        self,
        message: str = "Generated output violates the schema",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class NoValidOutputError(BrainBrawlError):
    """Raised when quiz generation yields zero valid questions."""

    retryable = True

    def __init__(
        self,
        message: str = "Generation returned no valid questions",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


# ---------------------------------------------------------------------------
# External service / provider errors
# ---------------------------------------------------------------------------

class ProviderUnavailableError(BrainBrawlError):
    """Raised when an external service or provider is unreachable."""

    retryable = True

    def __init__(
        self,
        message: str = "External service is unavailable",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class RateLimitError(BrainBrawlError):
    """Raised when an API rate limit is exceeded.

    Callers should implement backoff; this subsystem does not throttle.
    """

    retryable = True

    def __init__(
        self,
        message: str = "Rate limit exceeded",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class LLMError(BrainBrawlError):
    """Raised when an LLM API call fails or returns an unusable response."""

    retryable = True

    def __init__(
        self,
        message: str = "LLM API call failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class QuotaExceededError(BrainBrawlError):
    """Raised when the quota collaborator refuses another document for an owner."""

    def __init__(
        self,
        message: str = "Document quota exceeded",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


# ---------------------------------------------------------------------------
# Configuration / storage errors
# ---------------------------------------------------------------------------

class ConfigurationError(BrainBrawlError):
    """Raised when configuration is invalid or missing at startup."""

    def __init__(
        self,
        message: str = "Invalid or missing configuration",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class RAGError(BrainBrawlError):
    """Raised when a vector-store operation fails."""

    retryable = True

    def __init__(
        self,
        message: str = "Vector store operation failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)
