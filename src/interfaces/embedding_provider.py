"""Abstract base class for text-embedding providers.

Implementations wrap OpenAI ``text-embedding-3-small`` or Nomic
``nomic-embed-text`` served by Ollama.  A batch either yields one vector
per input or raises; partial results are never returned.
"""

from __future__ import annotations

from abc import ABC, abstractmethod


# Concrete implementations: OpenAIEmbeddingProvider, NomicEmbeddingProvider
# Located in: src/providers/embedding/
class IEmbeddingProvider(ABC):
    """Contract for text-embedding services used by ingestion and retrieval."""

    @abstractmethod
    async def embed(self, texts: list[str]) -> list[list[float]]:
        """Generate embedding vectors for a batch of texts.

        Parameters
        ----------
        texts:
            Strings to embed, in order.

        Returns
        -------
        list[list[float]]
            One vector per input, same order, each of length
            :meth:`get_dimension`.

        Raises
        ------
        src.utils.errors.EmbeddingProviderError
            If any part of the batch fails.
        """

    @abstractmethod
    async def embed_single(self, text: str) -> list[float]:
        """Embed one string (used for search queries)."""

    @abstractmethod
    def get_dimension(self) -> int:
        """Return the dimensionality of vectors this provider produces."""

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier, e.g. ``"openai"``."""

    @abstractmethod
    def is_available(self) -> bool:
        """Return ``True`` if the provider is configured."""
