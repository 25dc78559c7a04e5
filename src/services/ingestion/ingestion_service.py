"""Orchestrator for the document ingestion pipeline.

Pipeline stages: **quota -> extract -> chunk -> (embed || analyze) -> store**.

:class:`IngestionService` coordinates its collaborators without any of
them knowing about each other.  Embedding and content analysis run
concurrently: the batch embedding is all-or-nothing and aborts the run,
while analysis is advisory and falls back to a default on failure.

All dependencies are injected via the constructor, so backends can be
swapped (OpenAI -> Nomic embeddings, ChromaDB -> in-memory) without
changing this class.
"""

from __future__ import annotations

import asyncio
import time
import uuid
from datetime import datetime, timezone

import structlog

from src.interfaces.quota_provider import IQuotaProvider
from src.interfaces.vector_store_provider import IVectorStoreProvider
from src.models.document import SourceDocument
from src.models.rag import EmbeddingRecord, IngestionResult
from src.services.extraction.gateway import ExtractionGateway
from src.services.ingestion.chunker import TextChunker
from src.services.ingestion.content_analyzer import ContentAnalyzer
from src.services.ingestion.embedding_service import EmbeddingService
from src.utils.errors import QuotaExceededError

logger = structlog.get_logger(logger_name=__name__)


class IngestionService:
    """Turns an upload into stored, searchable embedding records.

    Parameters
    ----------
    gateway:
        Normalizes uploads into text plus images.
    chunker:
        Splits extracted text into overlapping windows.
    embedding_service:
        One vector per chunk, in a single batch.
    analyzer:
        Subject/topic/difficulty tags from the first chunk.
    vector_store:
        Persists the records, scoped by owner.
    quota:
        Allowance check before any work is done.
    """

    def __init__(
        self,
        gateway: ExtractionGateway,
        chunker: TextChunker,
        embedding_service: EmbeddingService,
        analyzer: ContentAnalyzer,
        vector_store: IVectorStoreProvider,
        quota: IQuotaProvider,
    ) -> None:
        self._gateway = gateway
        self._chunker = chunker
        self._embedding_service = embedding_service
        self._analyzer = analyzer
        self._vector_store = vector_store
        self._quota = quota

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def ingest(self, document: SourceDocument, owner_id: str) -> IngestionResult:
        """Extract, chunk, embed and store one uploaded document.

        Raises
        ------
        QuotaExceededError
            The owner may not ingest more documents.
        UnsupportedFormatError, ExtractionFailedError
            Extraction could not read the upload.
        EmbeddingProviderError
            The embedding batch failed; nothing was stored.
        """
        if not await self._quota.can_ingest(owner_id):
            raise QuotaExceededError(
                message=f"Owner {owner_id} has reached their document allowance"
            )

        started = time.perf_counter()
        extracted = await self._gateway.extract_document(document)
        result = await self.ingest_text(
            extracted.text,
            owner_id=owner_id,
            file_name=document.filename,
            file_type=document.extension or document.media_type,
        )
        return result.model_copy(
            update={
                "image_count": len(extracted.images),
                "page_count": extracted.page_count,
                "ingestion_time": time.perf_counter() - started,
            }
        )

    async def ingest_text(
        self,
        text: str,
        owner_id: str,
        file_name: str,
        file_type: str = "text",
    ) -> IngestionResult:
        """Chunk, embed and store already-extracted text."""
        started = time.perf_counter()
        document_id = str(uuid.uuid4())
        chunks = self._chunker.chunk(text)

        if not chunks:
            logger.warning("ingestion_no_chunks", file_name=file_name, owner_id=owner_id)
            return IngestionResult(
                document_id=document_id,
                owner_id=owner_id,
                file_name=file_name,
                ingestion_time=time.perf_counter() - started,
            )

        vectors, analysis = await asyncio.gather(
            self._embedding_service.embed([c.text for c in chunks]),
            self._analyzer.analyze(chunks[0].text),
        )

        created_at = datetime.now(tz=timezone.utc)  # noqa: UP017
        records = [
            EmbeddingRecord(
                record_id=str(uuid.uuid4()),
                owner_id=owner_id,
                document_id=document_id,
                chunk_index=chunk.index,
                vector=vector,
                chunk_text=chunk.text,
                subject_tags=analysis.subject_tags,
                topics=analysis.course_topics,
                difficulty=analysis.difficulty_level,
                file_name=file_name,
                file_type=file_type,
                chunk_length=chunk.length,
                total_chunks=len(chunks),
                created_at=created_at,
            )
            for chunk, vector in zip(chunks, vectors, strict=True)
        ]

        stored = await self._vector_store.add_records(records)
        await self._quota.record_ingestion(owner_id, document_id)

        elapsed = time.perf_counter() - started
        logger.info(
            "ingestion_complete",
            document_id=document_id,
            owner_id=owner_id,
            file_name=file_name,
            chunks=stored,
            subjects=analysis.subject_tags,
            elapsed_s=round(elapsed, 2),
        )
        return IngestionResult(
            document_id=document_id,
            owner_id=owner_id,
            file_name=file_name,
            chunks_created=stored,
            analysis=analysis,
            ingestion_time=elapsed,
        )

    async def delete_document(self, document_id: str) -> int:
        """Remove every record of ``document_id``; returns how many were deleted."""
        deleted = await self._vector_store.delete_document(document_id)
        logger.info("document_deleted", document_id=document_id, records=deleted)
        return deleted


