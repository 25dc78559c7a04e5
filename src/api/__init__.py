"""BrainBrawl API layer: routes, schemas, and middleware."""

from src.api.middleware import (
    ErrorHandlingMiddleware,
    RequestLoggingMiddleware,
    configure_cors,
    status_for_error,
)
from src.api.routes import router
from src.api.schemas import (
    CompareRequest,
    ErrorResponse,
    HealthResponse,
    IngestionResponse,
    NotesResponse,
    QuizRequest,
    QuizResponse,
    SearchResponse,
)

__all__ = [
    "ErrorHandlingMiddleware",
    "RequestLoggingMiddleware",
    "configure_cors",
    "status_for_error",
    "router",
    "CompareRequest",
    "ErrorResponse",
    "HealthResponse",
    "IngestionResponse",
    "NotesResponse",
    "QuizRequest",
    "QuizResponse",
    "SearchResponse",
]
