"""In-process vector store using numpy cosine similarity.

Used when ``VECTOR_STORE=memory`` (local runs without a ChromaDB directory)
and by the test suite.  Records live in a plain list for the lifetime of
the instance.
"""

from __future__ import annotations

import numpy as np
import structlog

from src.interfaces.vector_store_provider import IVectorStoreProvider
from src.models.rag import EmbeddingRecord, RetrievedRecord
from src.utils.errors import RAGError

logger = structlog.get_logger(logger_name=__name__)


class InMemoryVectorStore(IVectorStoreProvider):
    """Brute-force cosine search over records held in memory."""

    def __init__(self) -> None:
        self._records: list[EmbeddingRecord] = []

    async def add_records(self, records: list[EmbeddingRecord]) -> int:
        for record in records:
            if not record.vector:
                raise RAGError(
                    message=f"Record {record.record_id} has no vector",
                    provider_name=self.get_provider_name(),
                )
        existing = {r.record_id for r in records}
        self._records = [r for r in self._records if r.record_id not in existing]
        self._records.extend(records)
        logger.debug("memory_records_added", count=len(records), total=len(self._records))
        return len(records)

    async def search(
        self,
        query_vector: list[float],
        owner_scope: str,
        threshold: float = 0.7,
        max_results: int = 10,
    ) -> list[RetrievedRecord]:
        candidates = [r for r in self._records if r.owner_id == owner_scope]
        if not candidates or max_results <= 0:
            return []

        query = np.asarray(query_vector, dtype=float)
        query_norm = np.linalg.norm(query)
        if query_norm == 0:
            return []

        matrix = np.asarray([r.vector for r in candidates], dtype=float)
        if matrix.shape[1] != query.shape[0]:
            logger.warning(
                "memory_search_dimension_mismatch",
                query_dim=query.shape[0],
                stored_dim=matrix.shape[1],
            )
            return []
        norms = np.linalg.norm(matrix, axis=1)
        norms[norms == 0] = 1.0
        scores = np.clip(matrix @ query / (norms * query_norm), 0.0, 1.0)

        # Stable sort keeps insertion order among equal scores.
        order = np.argsort(-scores, kind="stable")
        hits: list[RetrievedRecord] = []
        for idx in order:
            score = float(scores[idx])
            if score < threshold:
                break
            hits.append(RetrievedRecord(record=candidates[idx], similarity_score=score))
            if len(hits) >= max_results:
                break
        return hits

    async def delete_document(self, document_id: str) -> int:
        before = len(self._records)
        self._records = [r for r in self._records if r.document_id != document_id]
        return before - len(self._records)

    def get_provider_name(self) -> str:
        return "memory"

    def is_available(self) -> bool:
        return True

    def __len__(self) -> int:
        return len(self._records)
