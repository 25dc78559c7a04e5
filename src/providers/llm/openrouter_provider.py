"""OpenRouter backend.

OpenRouter proxies many vendors behind one OpenAI-compatible API and names
models ``vendor/model``.  Bare Moonshot model names are mapped to their
OpenRouter equivalents so the same ``MOONSHOT_MODEL``-style values keep
working when traffic is moved here.

Thinking models sometimes spend their whole budget on reasoning and return
an empty or stub ``content``.  When that happens and the model clearly
produced output (over 100 completion tokens), the reply is recovered from
the ``reasoning`` / ``thinking`` / ``refusal`` fields OpenRouter adds to the
message.
"""

from __future__ import annotations

from typing import Any

import structlog

from src.config.settings import Settings
from src.interfaces.usage_sink import IUsageSink
from src.models.llm import CompletionOptions, ModelPricing, TokenUsage
from src.providers.llm.openai_provider import OpenAICompatibleLLMProvider

logger = structlog.get_logger(logger_name=__name__)

OPENROUTER_BASE_URL = "https://openrouter.ai/api/v1"
OPENROUTER_DEFAULT_MODEL = "moonshotai/kimi-k2-thinking"
_MAX_TOKENS_CEILING = 32000
_TEXT_MAX_TOKENS = 16000

MODEL_MAPPING: dict[str, str] = {
    "kimi-k2-thinking": "moonshotai/kimi-k2-thinking",
    "kimi-k2-0905-preview": "moonshotai/kimi-k2-0905",
    "kimi-k2-turbo-preview": "moonshotai/kimi-k2",
    "kimi-k2-thinking-turbo": "moonshotai/kimi-k2-thinking",
    "moonshot/moonshot-v1-128k": "moonshotai/kimi-k2-thinking",
    "moonshot/moonshot-v1-32k": "moonshotai/kimi-k2-thinking",
    "moonshot/moonshot-v1-8k": "moonshotai/kimi-k2:free",
}

# Message fields checked, in order, when ``content`` comes back truncated.
_FALLBACK_FIELDS = ("reasoning", "thinking", "refusal")


class OpenRouterLLMProvider(OpenAICompatibleLLMProvider):
    """Chat completions through OpenRouter."""

    def __init__(
        self,
        settings: Settings,
        usage_sink: IUsageSink | None = None,
        pricing: ModelPricing | None = None,
    ) -> None:
        super().__init__(
            api_key=settings.openrouter_api_key,
            provider_name="openrouter",
            base_url=OPENROUTER_BASE_URL,
            default_model=settings.openrouter_model or OPENROUTER_DEFAULT_MODEL,
            default_temperature=0.2,
            default_max_tokens=_TEXT_MAX_TOKENS,
            max_tokens_ceiling=_MAX_TOKENS_CEILING,
            timeout_seconds=120.0,
            default_headers={
                "HTTP-Referer": settings.openrouter_site_url or "http://localhost:8000",
                "X-Title": "BrainBrawl",
            },
            usage_sink=usage_sink,
            pricing=pricing,
        )

    def _resolve_model(self, model: str) -> str:
        mapped = MODEL_MAPPING.get(model, model)
        if mapped != model:
            logger.debug("openrouter_model_mapped", requested=model, mapped=mapped)
        return mapped

    def _resolve_max_tokens(self, options: CompletionOptions) -> int:
        # JSON replies get the full ceiling so long objects are not cut off.
        if options.max_tokens is None:
            return _MAX_TOKENS_CEILING if options.json_mode else _TEXT_MAX_TOKENS
        return min(options.max_tokens, _MAX_TOKENS_CEILING)

    def _extract_content(self, message: Any, usage: TokenUsage) -> str | None:
        content = message.content
        if (content and len(content) >= 50) or usage.completion_tokens <= 100:
            return content

        extra: dict[str, Any] = getattr(message, "model_extra", None) or {}
        for field in _FALLBACK_FIELDS:
            value = extra.get(field)
            if value is None and field == "refusal":
                value = getattr(message, "refusal", None)
            if isinstance(value, str) and len(value) > len(content or ""):
                logger.warning(
                    "openrouter_content_recovered",
                    field=field,
                    content_chars=len(content or ""),
                    recovered_chars=len(value),
                    completion_tokens=usage.completion_tokens,
                )
                return value
        return content
