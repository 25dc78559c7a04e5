"""Unit tests for vector stores (in-memory, ChromaDB) and the RetrievalService."""

from __future__ import annotations

from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.interfaces.vector_store_provider import IVectorStoreProvider
from src.models.rag import RetrievedRecord
from src.providers.vector_store.chromadb_provider import (
    ChromaDBProvider,
    _metadata_to_record,
    _record_to_metadata,
)
from src.providers.vector_store.memory_vector_store import InMemoryVectorStore
from src.services.ingestion.embedding_service import EmbeddingService
from src.services.retrieval_service import RetrievalService
from src.utils.errors import RAGError

# ======================================================================
# In-memory store
# ======================================================================


class TestInMemoryVectorStore:
    @pytest.mark.asyncio
    async def test_threshold_and_ordering(self, make_record) -> None:
        store = InMemoryVectorStore()
        records = [make_record(record_id=f"far-{i}", vector=[0.3, 1.0], chunk_index=i) for i in range(8)]
        records.insert(3, make_record(record_id="close", vector=[1.0, 0.5]))
        records.insert(6, make_record(record_id="closest", vector=[1.0, 0.1]))
        await store.add_records(records)

        hits = await store.search([1.0, 0.0], owner_scope="owner-1", threshold=0.7, max_results=10)

        assert [h.record.record_id for h in hits] == ["closest", "close"]
        assert hits[0].similarity_score > hits[1].similarity_score >= 0.7

    @pytest.mark.asyncio
    async def test_owner_scoping(self, make_record) -> None:
        store = InMemoryVectorStore()
        await store.add_records(
            [
                make_record(record_id="mine", owner_id="alice", vector=[1.0, 0.0]),
                make_record(record_id="theirs", owner_id="bob", vector=[1.0, 0.0]),
            ]
        )

        hits = await store.search([1.0, 0.0], owner_scope="alice", threshold=0.0)

        assert [h.record.record_id for h in hits] == ["mine"]

    @pytest.mark.asyncio
    async def test_max_results_caps_hits(self, make_record) -> None:
        store = InMemoryVectorStore()
        await store.add_records(
            [make_record(record_id=f"r{i}", vector=[1.0, 0.0], chunk_index=i) for i in range(5)]
        )

        hits = await store.search([1.0, 0.0], owner_scope="owner-1", threshold=0.5, max_results=3)

        assert [h.record.record_id for h in hits] == ["r0", "r1", "r2"]

    @pytest.mark.asyncio
    async def test_opposite_vectors_clamped_to_zero(self, make_record) -> None:
        store = InMemoryVectorStore()
        await store.add_records([make_record(vector=[-1.0, 0.0])])

        hits = await store.search([1.0, 0.0], owner_scope="owner-1", threshold=0.0)

        assert hits[0].similarity_score == 0.0

    @pytest.mark.asyncio
    async def test_dimension_mismatch_returns_nothing(self, make_record) -> None:
        store = InMemoryVectorStore()
        await store.add_records([make_record(vector=[1.0, 0.0, 0.0])])

        assert await store.search([1.0, 0.0], owner_scope="owner-1", threshold=0.0) == []

    @pytest.mark.asyncio
    async def test_upsert_and_delete(self, make_record) -> None:
        store = InMemoryVectorStore()
        await store.add_records([make_record(record_id="a", document_id="d1")])
        await store.add_records(
            [
                make_record(record_id="a", document_id="d1", chunk_text="updated text here"),
                make_record(record_id="b", document_id="d2"),
            ]
        )

        assert len(store) == 2
        assert await store.delete_document("d1") == 1
        assert len(store) == 1

    @pytest.mark.asyncio
    async def test_empty_vector_rejected(self, make_record) -> None:
        with pytest.raises(RAGError):
            await InMemoryVectorStore().add_records([make_record(vector=[])])


# ======================================================================
# ChromaDB store (mocked client)
# ======================================================================


def _chroma(collection: MagicMock) -> ChromaDBProvider:
    client = MagicMock()
    client.get_or_create_collection.return_value = collection
    return ChromaDBProvider(persist_directory="/unused", collection_name="test", client=client)


class TestChromaDBProvider:
    @pytest.mark.asyncio
    async def test_add_records_upserts_in_batches(self, make_record) -> None:
        collection = MagicMock()
        provider = _chroma(collection)
        records = [make_record(record_id=f"r{i}", chunk_index=i) for i in range(5)]

        stored = await provider.add_records(records, batch_size=2)

        assert stored == 5
        assert collection.upsert.call_count == 3
        first = collection.upsert.call_args_list[0].kwargs
        assert first["ids"] == ["r0", "r1"]
        assert first["metadatas"][0]["owner_id"] == "owner-1"

    @pytest.mark.asyncio
    async def test_add_records_failure_is_rag_error(self, make_record) -> None:
        collection = MagicMock()
        collection.upsert.side_effect = RuntimeError("disk full")

        with pytest.raises(RAGError, match="disk full"):
            await _chroma(collection).add_records([make_record()])

    @pytest.mark.asyncio
    async def test_search_filters_by_owner_and_threshold(self) -> None:
        collection = MagicMock()
        collection.count.return_value = 3
        collection.query.return_value = {
            "ids": [["a", "b", "c"]],
            "documents": [["text a", "text b", "text c"]],
            "metadatas": [
                [
                    {"owner_id": "alice", "document_id": "d", "chunk_index": 0},
                    {"owner_id": "alice", "document_id": "d", "chunk_index": 1},
                    {"owner_id": "alice", "document_id": "d", "chunk_index": 2},
                ]
            ],
            "distances": [[0.25, 0.05, 0.6]],
            "embeddings": [[[0.1, 0.2], [0.3, 0.4], [0.5, 0.6]]],
        }

        hits = await _chroma(collection).search([0.1, 0.2], owner_scope="alice", threshold=0.7)

        assert [h.record.record_id for h in hits] == ["b", "a"]
        assert hits[0].similarity_score == pytest.approx(0.95)
        assert hits[0].record.vector == [0.3, 0.4]
        kwargs = collection.query.call_args.kwargs
        assert kwargs["where"] == {"owner_id": "alice"}
        assert kwargs["n_results"] == 3

    @pytest.mark.asyncio
    async def test_search_empty_collection(self) -> None:
        collection = MagicMock()
        collection.count.return_value = 0

        assert await _chroma(collection).search([0.1], owner_scope="alice") == []
        collection.query.assert_not_called()

    @pytest.mark.asyncio
    async def test_search_failure_returns_empty(self) -> None:
        collection = MagicMock()
        collection.count.return_value = 4
        collection.query.side_effect = RuntimeError("index corrupted")

        assert await _chroma(collection).search([0.1], owner_scope="alice") == []

    @pytest.mark.asyncio
    async def test_delete_document(self) -> None:
        collection = MagicMock()
        collection.get.return_value = {"ids": ["x", "y"]}

        assert await _chroma(collection).delete_document("d1") == 2
        collection.delete.assert_called_once_with(ids=["x", "y"])

    def test_is_available(self) -> None:
        collection = MagicMock()
        collection.count.side_effect = RuntimeError("gone")

        assert _chroma(collection).is_available() is False

    def test_metadata_round_trip(self, make_record) -> None:
        record = make_record(
            subject_tags=["Biology", "Chemistry"],
            topics=["Cells"],
            difficulty="advanced",
            file_name="bio.pdf",
            file_type="pdf",
            total_chunks=4,
            created_at=datetime(2026, 1, 2, 3, 4, 5, tzinfo=timezone.utc),  # noqa: UP017
        )

        meta = _record_to_metadata(record)
        restored = _metadata_to_record(record.record_id, record.chunk_text, meta, record.vector)

        assert meta["subject_tags"] == "Biology|Chemistry"
        assert restored == record


# ======================================================================
# RetrievalService
# ======================================================================


def _retrieval(hits: list[RetrievedRecord] | None = None) -> tuple[RetrievalService, MagicMock, MagicMock]:
    embedding = MagicMock(spec=EmbeddingService)
    embedding.embed_query = AsyncMock(return_value=[0.5, 0.5])
    store = MagicMock(spec=IVectorStoreProvider)
    store.search = AsyncMock(return_value=hits or [])
    return RetrievalService(embedding, store), embedding, store


class TestRetrievalService:
    @pytest.mark.asyncio
    async def test_uses_defaults(self) -> None:
        service, embedding, store = _retrieval()

        await service.search("  what is ATP?  ", owner_id="alice")

        embedding.embed_query.assert_awaited_once_with("what is ATP?")
        store.search.assert_awaited_once_with(
            [0.5, 0.5], owner_scope="alice", threshold=0.7, max_results=10
        )

    @pytest.mark.asyncio
    async def test_overrides(self) -> None:
        service, _, store = _retrieval()

        await service.search("ATP", owner_id="alice", threshold=0.2, max_results=3)

        assert store.search.call_args.kwargs["threshold"] == 0.2
        assert store.search.call_args.kwargs["max_results"] == 3

    @pytest.mark.asyncio
    @pytest.mark.parametrize("query", ["", "   "])
    async def test_blank_query_skips_backends(self, query: str) -> None:
        service, embedding, store = _retrieval()

        assert await service.search(query, owner_id="alice") == []
        embedding.embed_query.assert_not_called()
        store.search.assert_not_called()

    @pytest.mark.asyncio
    async def test_end_to_end_with_memory_store(self, keyword_embedder, make_record) -> None:
        store = InMemoryVectorStore()
        embedding = EmbeddingService(keyword_embedder)
        texts = ["Cell energy and photosynthesis", "The treaty ended the war", "DNA encodes protein"]
        vectors = await embedding.embed(texts)
        await store.add_records(
            [
                make_record(record_id=f"r{i}", vector=v, chunk_text=t, chunk_index=i)
                for i, (t, v) in enumerate(zip(texts, vectors, strict=True))
            ]
        )

        hits = await RetrievalService(embedding, store).search("photosynthesis energy", owner_id="owner-1")

        assert hits[0].record.record_id == "r0"
        assert all(h.similarity_score >= 0.7 for h in hits)
