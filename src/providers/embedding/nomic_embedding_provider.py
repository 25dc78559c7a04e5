"""Nomic embedding provider (local and free via Ollama).

Ollama serves ``nomic-embed-text`` (768 dimensions) on its OpenAI-compatible
``/v1`` endpoint, so batching and error mapping are inherited from
:class:`OpenAIEmbeddingProvider`; only the client, model and reachability
check differ.
"""

from __future__ import annotations

import httpx
import openai

from src.config.settings import Settings
from src.providers.embedding.openai_embedding_provider import OpenAIEmbeddingProvider

_NOMIC_MODEL = "nomic-embed-text"
_NOMIC_DIMENSION = 768


class NomicEmbeddingProvider(OpenAIEmbeddingProvider):
    _batch_limit = 512

    def __init__(self, settings: Settings) -> None:
        self._base_url = settings.ollama_base_url.rstrip("/")
        # Ollama ignores the key but the client requires one.
        self._api_key = "ollama"
        self._client = openai.AsyncOpenAI(base_url=f"{self._base_url}/v1", api_key=self._api_key)
        self._model = _NOMIC_MODEL
        self._dimension = _NOMIC_DIMENSION
        self._provider_label = "nomic_embedding"

    def is_available(self) -> bool:
        """``True`` when the Ollama server answers on ``/api/tags``."""
        if not self._base_url:
            return False
        try:
            response = httpx.get(f"{self._base_url}/api/tags", timeout=3.0)
        except (httpx.ConnectError, httpx.TimeoutException):
            return False
        return response.status_code == 200
