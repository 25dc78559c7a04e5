"""BrainBrawl domain models -- re-exports all public model classes.

Submodules by concern:
    - document.py  -- uploaded source document and extraction output
    - rag.py       -- chunks, content analysis, stored embedding records
    - llm.py       -- provider-neutral chat messages, completions, usage
    - notes.py     -- the study notes schema
    - quiz.py      -- quiz reply schema and validated quiz questions
    - synthesis.py -- synthesis requests, outcomes and the state machine
"""

from __future__ import annotations

from src.models.document import ExtractedContent, ExtractedImage, SourceDocument
from src.models.llm import (
    ChatCompletion,
    ChatMessage,
    ComparisonReport,
    ComparisonSide,
    CompletionOptions,
    ModelPricing,
    TokenUsage,
    UsageRecord,
)
from src.models.notes import (
    ComplexityAnalysis,
    ConceptSection,
    Diagram,
    PracticeQuestion,
    ResourceLink,
    Resources,
    StudyNotes,
)
from src.models.quiz import (
    InvalidQuizItem,
    QuizQuestion,
    QuizReply,
    QuizSet,
    QuizValidityReport,
    RawQuizItem,
)
from src.models.rag import (
    ContentAnalysis,
    EmbeddingRecord,
    IngestionResult,
    RetrievedRecord,
    TextChunk,
)
from src.models.synthesis import (
    GenerationRequest,
    StudyPreferences,
    SynthesisFailure,
    SynthesisOutcome,
    SynthesisState,
)

__all__ = [
    "ChatCompletion",
    "ChatMessage",
    "ComparisonReport",
    "ComparisonSide",
    "CompletionOptions",
    "ComplexityAnalysis",
    "ConceptSection",
    "ContentAnalysis",
    "Diagram",
    "EmbeddingRecord",
    "ExtractedContent",
    "ExtractedImage",
    "GenerationRequest",
    "IngestionResult",
    "InvalidQuizItem",
    "ModelPricing",
    "PracticeQuestion",
    "QuizQuestion",
    "QuizReply",
    "QuizSet",
    "QuizValidityReport",
    "RawQuizItem",
    "ResourceLink",
    "Resources",
    "RetrievedRecord",
    "SourceDocument",
    "StudyNotes",
    "StudyPreferences",
    "SynthesisFailure",
    "SynthesisOutcome",
    "SynthesisState",
    "TextChunk",
    "TokenUsage",
    "UsageRecord",
]
