"""Pydantic request/response schemas for the BrainBrawl API.

Request schemas end with "Request", response schemas with "Response".
Domain models (StudyNotes, QuizQuestion, ComparisonReport) are returned
as-is inside the responses rather than mirrored here.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from src.models.llm import ChatMessage, TokenUsage
from src.models.notes import ComplexityAnalysis, StudyNotes
from src.models.quiz import QuizQuestion, QuizValidityReport


class ErrorResponse(BaseModel):
    """Standard error response body."""

    error: str
    detail: str | None = None
    retryable: bool = Field(
        default=False, description="True when the same request may succeed later."
    )


class IngestionResponse(BaseModel):
    """Result of ingesting one uploaded document."""

    document_id: str
    file_name: str
    chunks_created: int
    image_count: int
    page_count: int
    subject_tags: list[str] = Field(default_factory=list)
    course_topics: list[str] = Field(default_factory=list)
    difficulty_level: str
    ingestion_time: float


class SearchHit(BaseModel):
    record_id: str
    document_id: str
    file_name: str
    chunk_index: int
    chunk_text: str
    similarity_score: float
    subject_tags: list[str] = Field(default_factory=list)
    topics: list[str] = Field(default_factory=list)


class SearchResponse(BaseModel):
    query: str
    total: int
    results: list[SearchHit]


class NotesResponse(BaseModel):
    """Generated study notes plus how they were produced."""

    notes: StudyNotes
    defaulted_fields: list[str] = Field(default_factory=list)
    extraction_strategy: str
    page_count: int
    image_count: int
    model: str | None = None
    usage: TokenUsage | None = None


class QuizRequest(BaseModel):
    """Quiz generation from source text the caller already has."""

    source_text: str = Field(..., min_length=1)
    topic: str = ""
    difficulty: str = "intermediate"
    count: int = Field(default=5, ge=1, le=50)
    question_types: list[str] = Field(default_factory=list)
    study_focus: str | None = None
    special_instructions: str | None = None
    previous_questions: list[str] = Field(default_factory=list)
    complexity: ComplexityAnalysis | None = None
    source_document: str | None = None


class QuizResponse(BaseModel):
    questions: list[QuizQuestion]
    report: QuizValidityReport
    model: str | None = None
    usage: TokenUsage | None = None


class CompareRequest(BaseModel):
    messages: list[ChatMessage] = Field(..., min_length=1)
    temperature: float | None = Field(default=None, ge=0.0, le=2.0)
    max_tokens: int | None = Field(default=None, ge=1)
    json_mode: bool = False


class HealthResponse(BaseModel):
    """Application health check response."""

    status: str
    version: str
    providers: dict[str, Any]
