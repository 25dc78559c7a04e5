"""ChromaDB vector store provider adapter.

Wraps ``chromadb.PersistentClient`` to implement :class:`IVectorStoreProvider`.
The collection uses cosine distance; similarity is reported as
``1 - distance`` clamped to ``[0, 1]``.  Records from every owner share one
collection and are separated with a ``where`` filter on ``owner_id``.
"""

from __future__ import annotations

import os
from datetime import datetime
from typing import Any

# ChromaDB's bundled PostHog client logs capture() errors on some versions;
# telemetry is switched off before chromadb is imported.
os.environ["ANONYMIZED_TELEMETRY"] = "False"

import posthog

posthog.disabled = True

import chromadb
import structlog

from src.interfaces.vector_store_provider import IVectorStoreProvider
from src.models.rag import EmbeddingRecord, RetrievedRecord
from src.utils.errors import RAGError

logger = structlog.get_logger(logger_name=__name__)

_LIST_SEPARATOR = "|"


class _NoopEmbeddingFunction(chromadb.EmbeddingFunction[list[str]]):
    """Stops ChromaDB from loading its default ONNX model.

    Vectors always arrive pre-computed from the embedding service.
    """

    def __call__(self, input: list[str]) -> list[list[float]]:
        raise NotImplementedError(
            "brainbrawl uses pre-computed embeddings; "
            "ChromaDB's built-in embedding should never be called."
        )

    def name(self) -> str:
        return "noop_precomputed"


class ChromaDBProvider(IVectorStoreProvider):
    """Vector store backed by a local persistent ChromaDB collection."""

    def __init__(
        self,
        persist_directory: str = "./data/chromadb",
        collection_name: str = "brainbrawl_chunks",
        client: Any | None = None,
    ) -> None:
        self._persist_directory = persist_directory
        self._collection_name = collection_name
        self._client = client or chromadb.PersistentClient(
            path=persist_directory,
            settings=chromadb.config.Settings(anonymized_telemetry=False),
        )
        # Collections created by older ChromaDB versions reject a different
        # embedding function; reopen without one in that case.
        try:
            self._collection = self._client.get_or_create_collection(
                name=collection_name,
                metadata={"hnsw:space": "cosine"},
                embedding_function=_NoopEmbeddingFunction(),
            )
        except ValueError:
            self._collection = self._client.get_or_create_collection(
                name=collection_name,
                metadata={"hnsw:space": "cosine"},
            )

    # ------------------------------------------------------------------
    # IVectorStoreProvider implementation
    # ------------------------------------------------------------------

    async def add_records(self, records: list[EmbeddingRecord], batch_size: int = 500) -> int:
        """Upsert records in batches of *batch_size* to bound peak memory."""
        if not records:
            return 0

        total_stored = 0
        try:
            for start in range(0, len(records), batch_size):
                batch = records[start : start + batch_size]
                self._collection.upsert(
                    ids=[r.record_id for r in batch],
                    embeddings=[r.vector for r in batch],
                    documents=[r.chunk_text for r in batch],
                    metadatas=[_record_to_metadata(r) for r in batch],
                )
                total_stored += len(batch)
        except Exception as exc:
            raise RAGError(
                message=f"Failed to store records in ChromaDB: {exc}",
                provider_name="chromadb",
            ) from exc

        logger.info(
            "chromadb_records_added",
            collection=self._collection_name,
            count=total_stored,
        )
        return total_stored

    async def search(
        self,
        query_vector: list[float],
        owner_scope: str,
        threshold: float = 0.7,
        max_results: int = 10,
    ) -> list[RetrievedRecord]:
        if max_results <= 0:
            return []
        try:
            available = self._collection.count()
            if available == 0:
                return []
            results = self._collection.query(
                query_embeddings=[query_vector],
                n_results=min(max_results, available),
                where={"owner_id": owner_scope},
                include=["documents", "metadatas", "distances", "embeddings"],
            )
        except Exception as exc:
            logger.warning(
                "chromadb_search_unavailable",
                owner_id=owner_scope,
                error=str(exc),
            )
            return []

        ids = results["ids"][0] if results.get("ids") else []
        documents = results["documents"][0] if results.get("documents") else [""] * len(ids)
        metadatas = results["metadatas"][0] if results.get("metadatas") else [{}] * len(ids)
        distances = results["distances"][0] if results.get("distances") else [1.0] * len(ids)
        embeddings = results.get("embeddings")
        vectors = embeddings[0] if embeddings is not None and len(embeddings) else [None] * len(ids)

        hits: list[RetrievedRecord] = []
        for record_id, doc_text, meta, distance, vector in zip(
            ids, documents, metadatas, distances, vectors, strict=True
        ):
            similarity = max(0.0, min(1.0, 1.0 - distance))
            if similarity < threshold:
                continue
            record = _metadata_to_record(record_id, doc_text or "", meta or {}, vector)
            hits.append(RetrievedRecord(record=record, similarity_score=similarity))

        hits.sort(key=lambda hit: hit.similarity_score, reverse=True)
        logger.debug(
            "chromadb_search",
            owner_id=owner_scope,
            threshold=threshold,
            returned=len(hits),
        )
        return hits[:max_results]

    async def delete_document(self, document_id: str) -> int:
        try:
            existing = self._collection.get(where={"document_id": document_id}, include=[])
            ids = existing.get("ids") or []
            if ids:
                self._collection.delete(ids=ids)
        except Exception as exc:
            raise RAGError(
                message=f"Failed to delete document {document_id}: {exc}",
                provider_name="chromadb",
            ) from exc
        logger.info("chromadb_document_deleted", document_id=document_id, count=len(ids))
        return len(ids)

    def get_provider_name(self) -> str:
        return "chromadb"

    def is_available(self) -> bool:
        try:
            self._collection.count()
            return True
        except Exception:  # noqa: BLE001
            return False


# ------------------------------------------------------------------
# Metadata (de)serialisation: Chroma metadata values must be scalars.
# ------------------------------------------------------------------


def _record_to_metadata(record: EmbeddingRecord) -> dict[str, Any]:
    return {
        "owner_id": record.owner_id,
        "document_id": record.document_id,
        "chunk_index": record.chunk_index,
        "subject_tags": _LIST_SEPARATOR.join(record.subject_tags),
        "topics": _LIST_SEPARATOR.join(record.topics),
        "difficulty": record.difficulty,
        "file_name": record.file_name,
        "file_type": record.file_type,
        "chunk_length": record.chunk_length,
        "total_chunks": record.total_chunks,
        "created_at": record.created_at.isoformat(),
    }


def _split(value: Any) -> list[str]:
    if not value:
        return []
    return [part for part in str(value).split(_LIST_SEPARATOR) if part]


def _metadata_to_record(
    record_id: str,
    text: str,
    meta: dict[str, Any],
    vector: Any,
) -> EmbeddingRecord:
    created_raw = meta.get("created_at")
    extra: dict[str, Any] = {}
    if created_raw:
        extra["created_at"] = datetime.fromisoformat(str(created_raw))
    return EmbeddingRecord(
        record_id=record_id,
        owner_id=str(meta.get("owner_id", "")),
        document_id=str(meta.get("document_id", "")),
        chunk_index=int(meta.get("chunk_index", 0)),
        vector=[float(v) for v in vector] if vector is not None else [],
        chunk_text=text,
        subject_tags=_split(meta.get("subject_tags")),
        topics=_split(meta.get("topics")),
        difficulty=meta.get("difficulty") or "intermediate",
        file_name=str(meta.get("file_name", "")),
        file_type=str(meta.get("file_type", "")),
        chunk_length=int(meta.get("chunk_length", len(text))),
        total_chunks=int(meta.get("total_chunks", 0)),
        **extra,
    )
