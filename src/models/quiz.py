"""Quiz models.

Two shapes live here:

* :class:`QuizReply` / :class:`RawQuizItem` -- what the generator is asked
  to emit, and the per-item structure every reply item must pass.
  ``correct`` may be an option index, a letter or the literal answer; the
  loose spellings models produce (``q``, ``correct_answer``, ``answer``,
  ``"MCQ"``) are accepted as aliases.
* :class:`QuizQuestion` -- what callers get back after per-item
  validation, with ``correct_answer`` always the literal option text.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

QuizQuestionType = Literal["multiple_choice", "true_false", "open_ended"]
QUIZ_QUESTION_TYPES: tuple[str, ...] = ("multiple_choice", "true_false", "open_ended")

QUIZ_TYPE_ALIASES: dict[str, str] = {
    "mcq": "multiple_choice",
    "multiple": "multiple_choice",
    "tf": "true_false",
    "true/false": "true_false",
    "boolean": "true_false",
    "short": "open_ended",
    "short_answer": "open_ended",
    "open": "open_ended",
}


def normalize_quiz_type(value: Any) -> Any:
    """Map a loosely spelled question type onto its canonical name.

    Non-strings and unknown spellings are returned unchanged so the
    ``Literal`` check can reject them with the original input.
    """
    if not isinstance(value, str):
        return value
    key = value.strip().lower().replace("-", "_").replace(" ", "_")
    key = QUIZ_TYPE_ALIASES.get(key, key)
    return key if key in QUIZ_QUESTION_TYPES else value


class RawQuizItem(BaseModel):
    question: str = Field(validation_alias=AliasChoices("question", "q"))
    type: QuizQuestionType
    options: list[str] | None = Field(
        default=None, description="Answer choices; required for multiple_choice"
    )
    correct: bool | int | float | str | None = Field(
        default=None,
        validation_alias=AliasChoices("correct", "correct_answer", "answer"),
        description=(
            "Index into options, or the literal correct answer; "
            "open_ended questions may give expected_answers instead"
        ),
    )
    explanation: str
    expected_answers: list[str] | None = Field(
        default=None, description="Acceptable answers for open_ended questions"
    )
    hints: list[str] | None = None
    answer_format: str | None = None

    @field_validator("type", mode="before")
    @classmethod
    def _canonical_type(cls, value: Any) -> Any:
        return normalize_quiz_type(value)

    @field_validator("options", "expected_answers", "hints", mode="before")
    @classmethod
    def _stringify_entries(cls, value: Any) -> Any:
        if not isinstance(value, list):
            return value
        return [
            str(entry) if isinstance(entry, (int, float)) and not isinstance(entry, bool) else entry
            for entry in value
            if entry is not None
        ]


class QuizReply(BaseModel):
    questions: list[RawQuizItem] = Field(min_length=1)


class QuizQuestion(BaseModel):
    """A validated quiz question."""

    model_config = ConfigDict(frozen=True)

    id: int = Field(ge=1)
    question: str
    type: QuizQuestionType
    options: list[str] | None = None
    correct_answer: str
    explanation: str
    expected_answers: list[str] | None = None
    answer_format: str | None = None
    hints: list[str] | None = None
    source_document: str | None = None


class InvalidQuizItem(BaseModel):
    model_config = ConfigDict(frozen=True)

    index: int = Field(ge=0, description="Position in the generator's reply.")
    reasons: list[str]


class QuizValidityReport(BaseModel):
    """Per-item validation tally for one quiz reply."""

    model_config = ConfigDict(frozen=True)

    total_parsed: int = Field(default=0, ge=0)
    valid_count: int = Field(default=0, ge=0)
    invalid_count: int = Field(default=0, ge=0)
    invalid_items: list[InvalidQuizItem] = Field(default_factory=list)
    index_fallbacks: list[int] = Field(
        default_factory=list,
        description="Items whose out-of-range answer index fell back to option 0.",
    )


class QuizSet(BaseModel):
    model_config = ConfigDict(frozen=True)

    questions: list[QuizQuestion]
    report: QuizValidityReport
