"""REST API routes for BrainBrawl.

Thin HTTP layer over the ingestion, retrieval, synthesis and comparison
services.  Services are built once at startup (``src/main.py``) and
resolved from ``app.state`` via FastAPI's ``Depends`` using the
``Annotated`` pattern.

Endpoint                          Method  Description
--------------------------------  ------  -------------------------------------
/api/v1/documents                 POST    Upload -> extract -> chunk -> embed -> store
/api/v1/search                    GET     Owner-scoped semantic search
/api/v1/notes                     POST    Upload -> extract -> study notes
/api/v1/quiz                      POST    Source text -> validated quiz
/api/v1/providers/compare         POST    Same prompt on two backends
/api/v1/health                    GET     Health check + backend names

Library errors (``BrainBrawlError``) propagate to
:class:`~src.api.middleware.ErrorHandlingMiddleware`; failed synthesis
outcomes are converted here so their own ``retryable`` flag is kept.
"""

from __future__ import annotations

from typing import Annotated, Any

import structlog
from fastapi import APIRouter, Depends, Form, HTTPException, Query, Request, UploadFile
from fastapi.responses import JSONResponse

from src.api.middleware import status_for_error
from src.api.schemas import (
    CompareRequest,
    ErrorResponse,
    HealthResponse,
    IngestionResponse,
    NotesResponse,
    QuizRequest,
    QuizResponse,
    SearchHit,
    SearchResponse,
)
from src.config.settings import Settings
from src.models.document import SourceDocument
from src.models.llm import CompletionOptions, ComparisonReport
from src.models.synthesis import GenerationRequest, StudyPreferences, SynthesisFailure
from src.services.extraction.gateway import ExtractionGateway
from src.services.ingestion.ingestion_service import IngestionService
from src.services.provider_comparison import ProviderComparison
from src.services.retrieval_service import RetrievalService
from src.services.synthesis.synthesizer import Synthesizer
from src.utils.logging import get_logger

logger: structlog.BoundLogger = get_logger(__name__)

router = APIRouter(prefix="/api/v1")

_UPLOAD_CHUNK_SIZE = 64 * 1024
_VERSION = "0.1.0"


# ---------------------------------------------------------------------------
# Dependency injection helpers: resolve singletons from app.state
# ---------------------------------------------------------------------------


def _get_settings(request: Request) -> Settings:
    return request.app.state.settings


def _get_gateway(request: Request) -> ExtractionGateway:
    return request.app.state.extraction_gateway


def _get_ingestion(request: Request) -> IngestionService:
    return request.app.state.ingestion_service


def _get_retrieval(request: Request) -> RetrievalService:
    return request.app.state.retrieval_service


def _get_synthesizer(request: Request) -> Synthesizer:
    return request.app.state.synthesizer


def _get_comparison(request: Request) -> ProviderComparison | None:
    return getattr(request.app.state, "provider_comparison", None)


SettingsDep = Annotated[Settings, Depends(_get_settings)]
GatewayDep = Annotated[ExtractionGateway, Depends(_get_gateway)]
IngestionDep = Annotated[IngestionService, Depends(_get_ingestion)]
RetrievalDep = Annotated[RetrievalService, Depends(_get_retrieval)]
SynthesizerDep = Annotated[Synthesizer, Depends(_get_synthesizer)]
ComparisonDep = Annotated[ProviderComparison | None, Depends(_get_comparison)]


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


async def _read_upload(file: UploadFile, max_bytes: int) -> SourceDocument:
    """Read an upload in chunks, rejecting it as soon as it passes *max_bytes*."""
    parts: list[bytes] = []
    total = 0
    while True:
        part = await file.read(_UPLOAD_CHUNK_SIZE)
        if not part:
            break
        total += len(part)
        if total > max_bytes:
            raise HTTPException(
                status_code=413,
                detail=f"File too large: more than {max_bytes} bytes",
            )
        parts.append(part)
    return SourceDocument(
        content=b"".join(parts),
        filename=file.filename or "upload",
        media_type=file.content_type or "application/octet-stream",
    )


def _failure_response(failure: SynthesisFailure) -> JSONResponse:
    """JSON error for a failed synthesis outcome.

    A non-retryable output failure means the input itself cannot work, so it
    is reported as 422 rather than as an upstream error.
    """
    status_code = status_for_error(failure.error_type)
    if not failure.retryable and status_code == 502:
        status_code = 422
    body = ErrorResponse(
        error=failure.error_type,
        detail=failure.message,
        retryable=failure.retryable,
    )
    return JSONResponse(status_code=status_code, content=body.model_dump())


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------


@router.post(
    "/documents",
    response_model=IngestionResponse,
    responses={
        403: {"model": ErrorResponse},
        413: {"model": ErrorResponse},
        415: {"model": ErrorResponse},
        422: {"model": ErrorResponse},
        502: {"model": ErrorResponse},
    },
    summary="Upload a document for chunking, embedding and storage",
)
async def ingest_document(
    file: UploadFile,
    ingestion: IngestionDep,
    settings: SettingsDep,
    owner_id: Annotated[str, Form(min_length=1)],
) -> IngestionResponse:
    document = await _read_upload(file, settings.max_upload_bytes)
    result = await ingestion.ingest(document, owner_id=owner_id)
    return IngestionResponse(
        document_id=result.document_id,
        file_name=result.file_name,
        chunks_created=result.chunks_created,
        image_count=result.image_count,
        page_count=result.page_count,
        subject_tags=result.analysis.subject_tags,
        course_topics=result.analysis.course_topics,
        difficulty_level=result.analysis.difficulty_level,
        ingestion_time=result.ingestion_time,
    )


@router.get(
    "/search",
    response_model=SearchResponse,
    summary="Semantic search over the caller's documents",
)
async def search_documents(
    retrieval: RetrievalDep,
    query: Annotated[str, Query(min_length=1, max_length=2000)],
    owner_id: Annotated[str, Query(min_length=1)],
    threshold: Annotated[float | None, Query(ge=0.0, le=1.0)] = None,
    max_results: Annotated[int | None, Query(ge=1, le=100)] = None,
) -> SearchResponse:
    results = await retrieval.search(
        query, owner_id=owner_id, threshold=threshold, max_results=max_results
    )
    hits = [
        SearchHit(
            record_id=r.record.record_id,
            document_id=r.record.document_id,
            file_name=r.record.file_name,
            chunk_index=r.record.chunk_index,
            chunk_text=r.record.chunk_text,
            similarity_score=r.similarity_score,
            subject_tags=r.record.subject_tags,
            topics=r.record.topics,
        )
        for r in results
    ]
    return SearchResponse(query=query, total=len(hits), results=hits)


@router.post(
    "/notes",
    response_model=NotesResponse,
    responses={415: {"model": ErrorResponse}, 422: {"model": ErrorResponse}, 502: {"model": ErrorResponse}},
    summary="Generate study notes from an uploaded document",
)
async def generate_notes(
    file: UploadFile,
    gateway: GatewayDep,
    synthesizer: SynthesizerDep,
    settings: SettingsDep,
    topic: Annotated[str, Form()] = "",
    difficulty: Annotated[str, Form()] = "intermediate",
    study_focus: Annotated[str | None, Form()] = None,
    special_instructions: Annotated[str | None, Form()] = None,
) -> Any:
    document = await _read_upload(file, settings.max_upload_bytes)
    extracted = await gateway.extract_document(document)

    preferences = None
    if study_focus or special_instructions:
        preferences = StudyPreferences(
            study_focus=study_focus, special_instructions=special_instructions
        )
    outcome = await synthesizer.synthesize(
        GenerationRequest(
            kind="notes",
            source_text=extracted.text,
            topic=topic,
            difficulty=difficulty,
            images=extracted.images,
            preferences=preferences,
            source_document=document.filename,
        )
    )
    if outcome.failure is not None:
        return _failure_response(outcome.failure)
    return NotesResponse(
        notes=outcome.notes,
        defaulted_fields=outcome.defaulted_fields,
        extraction_strategy=extracted.strategy,
        page_count=extracted.page_count,
        image_count=len(extracted.images),
        model=outcome.model,
        usage=outcome.usage,
    )


@router.post(
    "/quiz",
    response_model=QuizResponse,
    responses={502: {"model": ErrorResponse}},
    summary="Generate a validated quiz from source text",
)
async def generate_quiz(body: QuizRequest, synthesizer: SynthesizerDep) -> Any:
    preferences = None
    if body.question_types or body.study_focus or body.special_instructions:
        preferences = StudyPreferences(
            study_focus=body.study_focus,
            question_types=body.question_types,
            special_instructions=body.special_instructions,
        )
    outcome = await synthesizer.synthesize(
        GenerationRequest(
            kind="quiz",
            source_text=body.source_text,
            topic=body.topic,
            difficulty=body.difficulty,
            count=body.count,
            preferences=preferences,
            previous_questions=body.previous_questions,
            complexity=body.complexity,
            source_document=body.source_document,
        )
    )
    if outcome.failure is not None:
        return _failure_response(outcome.failure)
    return QuizResponse(
        questions=outcome.quiz.questions,
        report=outcome.quiz.report,
        model=outcome.model,
        usage=outcome.usage,
    )


@router.post(
    "/providers/compare",
    response_model=ComparisonReport,
    responses={503: {"model": ErrorResponse}},
    summary="Run one prompt on the primary and comparison backends",
)
async def compare_providers(body: CompareRequest, comparison: ComparisonDep) -> ComparisonReport:
    if comparison is None:
        raise HTTPException(
            status_code=503,
            detail="Comparison mode is off; set COMPARISON_PROVIDER to enable it",
        )
    options = CompletionOptions(
        temperature=body.temperature, max_tokens=body.max_tokens, json_mode=body.json_mode
    )
    return await comparison.compare(body.messages, options)


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Application health check",
)
async def health_check(request: Request) -> HealthResponse:
    """Report configured backends and whether the vector store is reachable."""
    state = request.app.state
    providers: dict[str, Any] = dict(getattr(state, "provider_registry", {}))
    vector_store = getattr(state, "vector_store", None)
    store_ok = bool(vector_store is not None and vector_store.is_available())
    providers["vector_store_available"] = store_ok

    status = "healthy" if store_ok and providers.get("llm") else "degraded"
    return HealthResponse(status=status, version=_VERSION, providers=providers)
