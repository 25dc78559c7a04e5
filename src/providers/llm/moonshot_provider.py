"""Moonshot (Kimi) backend.

Moonshot serves an OpenAI-compatible API at ``https://api.moonshot.cn/v1``,
so this is :class:`OpenAICompatibleLLMProvider` with Moonshot's defaults.
``kimi-k2-thinking`` accepts up to 32000 output tokens.
"""

from __future__ import annotations

from src.config.settings import Settings
from src.interfaces.usage_sink import IUsageSink
from src.models.llm import ModelPricing
from src.providers.llm.openai_provider import OpenAICompatibleLLMProvider

MOONSHOT_BASE_URL = "https://api.moonshot.cn/v1"
MOONSHOT_DEFAULT_MODEL = "kimi-k2-thinking"


class MoonshotLLMProvider(OpenAICompatibleLLMProvider):
    """Chat completions against the Moonshot API."""

    def __init__(
        self,
        settings: Settings,
        usage_sink: IUsageSink | None = None,
        pricing: ModelPricing | None = None,
    ) -> None:
        super().__init__(
            api_key=settings.moonshot_api_key,
            provider_name="moonshot",
            base_url=MOONSHOT_BASE_URL,
            default_model=settings.moonshot_model or MOONSHOT_DEFAULT_MODEL,
            default_temperature=0.2,
            default_max_tokens=16000,
            max_tokens_ceiling=32000,
            timeout_seconds=120.0,
            usage_sink=usage_sink,
            pricing=pricing,
        )
