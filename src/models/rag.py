"""Retrieval data models: chunks, analysis metadata, stored records, results.

Ingestion flow for one document:

    ExtractedContent.text
        -> TextChunker      -> list[TextChunk]
        -> EmbeddingService -> one vector per chunk (single batch)
        -> ContentAnalyzer  -> ContentAnalysis (first chunk only)
        -> EmbeddingRecord  -> vector store

Records are never updated in place; re-ingesting a document writes a new
set under a new ``document_id``.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

DifficultyLevel = Literal["beginner", "intermediate", "advanced"]


class TextChunk(BaseModel):
    """A bounded slice of extracted text.

    ``start``/``end`` are offsets of the raw window in the source text;
    ``text`` is that window with surrounding whitespace stripped.
    """

    model_config = ConfigDict(frozen=True)

    index: int = Field(ge=0, description="Position in document order.")
    text: str
    length: int = Field(ge=0)
    start: int = Field(default=0, ge=0)
    end: int = Field(default=0, ge=0)


class ContentAnalysis(BaseModel):
    """Subject/topic/difficulty classification of a document's opening chunk."""

    model_config = ConfigDict(frozen=True)

    subject_tags: list[str] = Field(default_factory=list)
    course_topics: list[str] = Field(default_factory=list)
    difficulty_level: DifficultyLevel = "intermediate"


class EmbeddingRecord(BaseModel):
    """One stored chunk: its vector plus the metadata used for filtering."""

    model_config = ConfigDict(frozen=True)

    record_id: str
    owner_id: str
    document_id: str
    chunk_index: int = Field(ge=0)
    vector: list[float] = Field(default_factory=list)
    chunk_text: str = ""
    subject_tags: list[str] = Field(default_factory=list)
    topics: list[str] = Field(default_factory=list)
    difficulty: DifficultyLevel = "intermediate"
    file_name: str = ""
    file_type: str = ""
    chunk_length: int = Field(default=0, ge=0)
    total_chunks: int = Field(default=0, ge=0)
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(tz=timezone.utc)  # noqa: UP017
    )


class RetrievedRecord(BaseModel):
    """A search hit with its cosine similarity to the query."""

    model_config = ConfigDict(frozen=True)

    record: EmbeddingRecord
    similarity_score: float = Field(default=0.0, ge=0.0, le=1.0)


class IngestionResult(BaseModel):
    """Summary of one ingestion run."""

    model_config = ConfigDict(frozen=True)

    document_id: str
    owner_id: str
    file_name: str
    chunks_created: int = Field(default=0, ge=0)
    image_count: int = Field(default=0, ge=0)
    page_count: int = Field(default=0, ge=0)
    analysis: ContentAnalysis = Field(default_factory=ContentAnalysis)
    ingestion_time: float = Field(default=0.0, ge=0.0, description="Wall-clock seconds.")
