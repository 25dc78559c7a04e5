"""Models for the provider abstraction: messages, options, completions, usage.

Every backend returns the same :class:`ChatCompletion` shape, so callers
never look at provider SDK objects.  Usage is always populated; cost is
derived from a :class:`ModelPricing` table loaded from config.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class ChatMessage(BaseModel):
    model_config = ConfigDict(frozen=True)

    role: Literal["system", "user", "assistant"]
    content: str


class CompletionOptions(BaseModel):
    """Per-call overrides.  ``None`` means "use the backend's default"."""

    model_config = ConfigDict(frozen=True)

    model: str | None = None
    temperature: float | None = Field(default=None, ge=0.0, le=2.0)
    max_tokens: int | None = Field(default=None, ge=1)
    json_mode: bool = Field(default=False, description="Request a JSON object reply.")


class TokenUsage(BaseModel):
    model_config = ConfigDict(frozen=True)

    prompt_tokens: int = Field(default=0, ge=0)
    completion_tokens: int = Field(default=0, ge=0)
    total_tokens: int = Field(default=0, ge=0)


class ChatCompletion(BaseModel):
    """Normalized completion returned by every ILLMProvider backend."""

    model_config = ConfigDict(frozen=True)

    content: str
    model: str
    provider: str
    usage: TokenUsage = Field(default_factory=TokenUsage)
    id: str = ""
    latency_ms: float = Field(default=0.0, ge=0.0)


class ModelPricing(BaseModel):
    """USD per one million tokens."""

    model_config = ConfigDict(frozen=True)

    input_per_million: float = Field(default=0.0, ge=0.0)
    output_per_million: float = Field(default=0.0, ge=0.0)

    def cost(self, usage: TokenUsage) -> float:
        return (
            usage.prompt_tokens * self.input_per_million
            + usage.completion_tokens * self.output_per_million
        ) / 1_000_000


class UsageRecord(BaseModel):
    """One completion's usage as written to an IUsageSink."""

    model_config = ConfigDict(frozen=True)

    provider: str
    model: str
    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0
    latency_ms: float = 0.0
    cost_usd: float = 0.0
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(tz=timezone.utc)  # noqa: UP017
    )


class ComparisonSide(BaseModel):
    """One backend's half of a comparison run."""

    model_config = ConfigDict(frozen=True)

    provider: str
    completion: ChatCompletion | None = None
    error: str | None = None
    cost_usd: float = 0.0

    @property
    def succeeded(self) -> bool:
        return self.completion is not None


class ComparisonReport(BaseModel):
    """Deltas are ``secondary - primary``; negative cost delta means savings."""

    model_config = ConfigDict(frozen=True)

    primary: ComparisonSide
    secondary: ComparisonSide
    cost_delta_usd: float | None = None
    latency_delta_ms: float | None = None
    token_delta: int | None = None
    savings_percent: float | None = None
