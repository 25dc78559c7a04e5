"""Ollama backend for local models.

Ollama exposes an OpenAI-compatible ``/v1`` API, so this adapter reuses
:class:`OpenAICompatibleLLMProvider` pointed at the local server.  Ollama
needs no key; the SDK insists on a non-empty one, hence ``"ollama"``.

Setup: install Ollama, ``ollama pull llama3.1``, and set
OLLAMA_BASE_URL=http://localhost:11434
"""

from __future__ import annotations

import httpx

from src.config.settings import Settings
from src.interfaces.usage_sink import IUsageSink
from src.models.llm import ModelPricing
from src.providers.llm.openai_provider import OpenAICompatibleLLMProvider


class OllamaLLMProvider(OpenAICompatibleLLMProvider):
    """Chat completions against a local Ollama server."""

    def __init__(
        self,
        settings: Settings,
        usage_sink: IUsageSink | None = None,
        pricing: ModelPricing | None = None,
    ) -> None:
        self._base_url = settings.ollama_base_url.rstrip("/")
        super().__init__(
            api_key="ollama",
            provider_name="ollama",
            base_url=f"{self._base_url}/v1",
            default_model=settings.ollama_model or "llama3.1",
            default_temperature=0.2,
            default_max_tokens=4096,
            max_tokens_ceiling=8192,
            timeout_seconds=300.0,
            usage_sink=usage_sink,
            pricing=pricing,
        )

    def is_available(self) -> bool:
        return bool(self._base_url)

    async def validate_credentials(self) -> bool:
        """Check the server is up by hitting its native ``/api/tags`` endpoint."""
        try:
            async with httpx.AsyncClient(timeout=5.0) as client:
                response = await client.get(f"{self._base_url}/api/tags")
                return response.status_code == 200
        except httpx.HTTPError:
            return False
