"""Abstract base class for the retrieval index.

The vector store persists :class:`~src.models.rag.EmbeddingRecord` objects
and answers owner-scoped nearest-neighbour queries.  Search fails soft: an
unreachable index yields an empty list, never an exception.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from src.models.rag import EmbeddingRecord, RetrievedRecord


# Concrete implementations: ChromaDBProvider, InMemoryVectorStore
# Located in: src/providers/vector_store/
class IVectorStoreProvider(ABC):
    """Contract for storing embedding records and similarity search."""

    @abstractmethod
    async def add_records(self, records: list[EmbeddingRecord]) -> int:
        """Persist records.  Returns the number stored.

        Raises
        ------
        src.utils.errors.RAGError
            If the write fails.
        """

    @abstractmethod
    async def search(
        self,
        query_vector: list[float],
        owner_scope: str,
        threshold: float = 0.7,
        max_results: int = 10,
    ) -> list[RetrievedRecord]:
        """Return records owned by ``owner_scope`` scoring at least ``threshold``.

        Results are sorted by descending similarity and capped at
        ``max_results``.  Returns ``[]`` when the index is unavailable.
        """

    @abstractmethod
    async def delete_document(self, document_id: str) -> int:
        """Delete every record of one ingested document.  Returns the count removed."""

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier, e.g. ``"chromadb"``."""

    @abstractmethod
    def is_available(self) -> bool:
        """Return ``True`` if the store is ready for reads and writes."""
