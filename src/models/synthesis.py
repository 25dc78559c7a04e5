"""Synthesis request/outcome models and the synthesizer's state machine.

The synthesizer never raises to its caller.  It returns a
:class:`SynthesisOutcome` whose ``state`` is either DONE (payload present)
or FAILED (``failure`` present).  ``raise_for_failure()`` converts a failed
outcome back into the matching exception for callers that prefer that.
"""

from __future__ import annotations

from enum import Enum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from src.models.document import ExtractedImage
from src.models.llm import TokenUsage
from src.models.notes import ComplexityAnalysis, StudyNotes
from src.models.quiz import QuizSet, QuizValidityReport
from src.utils.errors import (
    BrainBrawlError,
    GenerationFailedError,
    NoValidOutputError,
    SchemaViolationError,
)

SynthesisKind = Literal["notes", "quiz"]


class SynthesisState(str, Enum):  # noqa: UP042
    """Pending -> GeneratingPrompt -> AwaitingProvider -> ParsingResponse
    -> Validating -> Done | Failed."""

    PENDING = "PENDING"
    GENERATING_PROMPT = "GENERATING_PROMPT"
    AWAITING_PROVIDER = "AWAITING_PROVIDER"
    PARSING_RESPONSE = "PARSING_RESPONSE"
    VALIDATING = "VALIDATING"
    DONE = "DONE"
    FAILED = "FAILED"


class StudyPreferences(BaseModel):
    model_config = ConfigDict(frozen=True)

    study_focus: str | None = None
    question_types: list[str] = Field(default_factory=list)
    special_instructions: str | None = None


class GenerationRequest(BaseModel):
    """Everything one synthesize() call needs."""

    model_config = ConfigDict(frozen=True)

    kind: SynthesisKind
    source_text: str = ""
    topic: str = ""
    difficulty: str = "intermediate"
    count: int | None = Field(default=None, ge=1, le=50)
    images: list[ExtractedImage] = Field(default_factory=list)
    preferences: StudyPreferences | None = None
    previous_questions: list[str] = Field(
        default_factory=list, description="Questions already asked on this topic."
    )
    complexity: ComplexityAnalysis | None = None
    source_document: str | None = None


_FAILURE_TYPES: dict[str, type[BrainBrawlError]] = {
    "GenerationFailedError": GenerationFailedError,
    "SchemaViolationError": SchemaViolationError,
    "NoValidOutputError": NoValidOutputError,
}


class SynthesisFailure(BaseModel):
    model_config = ConfigDict(frozen=True)

    error_type: str
    message: str
    retryable: bool
    provider_name: str | None = None

    @classmethod
    def from_error(cls, exc: BrainBrawlError) -> SynthesisFailure:
        return cls(
            error_type=type(exc).__name__,
            message=exc.message,
            retryable=exc.retryable,
            provider_name=exc.provider_name,
        )

    def to_error(self) -> BrainBrawlError:
        error_cls = _FAILURE_TYPES.get(self.error_type, GenerationFailedError)
        return error_cls(message=self.message, provider_name=self.provider_name)


class SynthesisOutcome(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: SynthesisKind
    state: SynthesisState
    transitions: list[SynthesisState] = Field(default_factory=list)
    notes: StudyNotes | None = None
    quiz: QuizSet | None = None
    report: QuizValidityReport | None = None
    failure: SynthesisFailure | None = None
    defaulted_fields: list[str] = Field(
        default_factory=list, description="Advisory note fields filled with defaults."
    )
    usage: TokenUsage | None = None
    model: str | None = None

    @property
    def success(self) -> bool:
        return self.state == SynthesisState.DONE

    def raise_for_failure(self) -> None:
        if self.failure is not None:
            raise self.failure.to_error()
