"""Owner-scoped semantic search over ingested documents."""

from __future__ import annotations

import structlog

from src.interfaces.vector_store_provider import IVectorStoreProvider
from src.models.rag import RetrievedRecord
from src.services.ingestion.embedding_service import EmbeddingService

logger = structlog.get_logger(logger_name=__name__)


class RetrievalService:
    """Embeds a query and asks the vector store for the owner's closest chunks.

    Only records whose ``owner_id`` equals the caller's are ever returned.
    An empty query yields no results without touching either backend.
    """

    def __init__(
        self,
        embedding_service: EmbeddingService,
        vector_store: IVectorStoreProvider,
        default_threshold: float = 0.7,
        default_max_results: int = 10,
    ) -> None:
        self._embedding_service = embedding_service
        self._vector_store = vector_store
        self._default_threshold = default_threshold
        self._default_max_results = default_max_results

    async def search(
        self,
        query: str,
        owner_id: str,
        threshold: float | None = None,
        max_results: int | None = None,
    ) -> list[RetrievedRecord]:
        if not query or not query.strip():
            return []

        threshold = self._default_threshold if threshold is None else threshold
        max_results = self._default_max_results if max_results is None else max_results

        vector = await self._embedding_service.embed_query(query.strip())
        results = await self._vector_store.search(
            vector, owner_scope=owner_id, threshold=threshold, max_results=max_results
        )
        logger.info(
            "search_complete",
            owner_id=owner_id,
            threshold=threshold,
            results=len(results),
            top_score=round(results[0].similarity_score, 4) if results else None,
        )
        return results
