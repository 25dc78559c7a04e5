"""Embedding service: one vector per chunk, one provider call per document.

Wraps the configured :class:`IEmbeddingProvider` and enforces the batch
contract: the caller gets exactly ``len(texts)`` vectors of one dimension,
in input order, or a single :class:`EmbeddingProviderError`.
"""

from __future__ import annotations

import structlog

from src.interfaces.embedding_provider import IEmbeddingProvider
from src.utils.errors import EmbeddingProviderError

logger = structlog.get_logger(logger_name=__name__)


class EmbeddingService:
    """All-or-nothing batch embedding."""

    def __init__(self, provider: IEmbeddingProvider) -> None:
        self._provider = provider

    @property
    def provider_name(self) -> str:
        return self._provider.get_provider_name()

    @property
    def dimension(self) -> int:
        return self._provider.get_dimension()

    async def embed(self, texts: list[str]) -> list[list[float]]:
        """Embed *texts* as one batch.

        Raises
        ------
        EmbeddingProviderError
            On any provider failure, a short batch, or mixed dimensions.
        """
        if not texts:
            return []

        provider_name = self._provider.get_provider_name()
        try:
            vectors = await self._provider.embed(texts)
        except EmbeddingProviderError:
            raise
        except Exception as exc:
            raise EmbeddingProviderError(
                message=f"Embedding request failed: {exc}",
                provider_name=provider_name,
            ) from exc

        if len(vectors) != len(texts):
            raise EmbeddingProviderError(
                message=f"Expected {len(texts)} vectors, got {len(vectors)}",
                provider_name=provider_name,
            )
        dimensions = {len(v) for v in vectors}
        if len(dimensions) != 1 or 0 in dimensions:
            raise EmbeddingProviderError(
                message=f"Inconsistent vector dimensions: {sorted(dimensions)}",
                provider_name=provider_name,
            )

        logger.info(
            "embedding_batch_complete",
            provider=provider_name,
            count=len(vectors),
            dimension=dimensions.pop(),
        )
        return vectors

    async def embed_query(self, text: str) -> list[float]:
        """Embed a single search query."""
        vectors = await self.embed([text])
        return vectors[0]
