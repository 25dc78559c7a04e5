"""Study notes schema.

:class:`StudyNotes` is the one definition of the notes contract.  Its JSON
schema (``StudyNotes.model_json_schema()``) is what the synthesizer embeds
in the system prompt, and ``StudyNotes.model_validate`` is what checks the
reply, unless a subclass is injected through ``OutputSchema``.  Top-level
fields carry no defaults so all of them land in the schema's ``required``
list.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

EducationLevel = Literal[
    "elementary", "middle_school", "high_school", "college", "graduate", "professional"
]
DifficultyLevel = Literal["beginner", "intermediate", "advanced"]
PracticeQuestionType = Literal["multiple_choice", "open_ended", "true_false", "fill_blank"]


class ComplexityAnalysis(BaseModel):
    model_config = ConfigDict(frozen=True)

    vocabulary_level: str = Field(
        default="intermediate", description="basic | intermediate | advanced | expert"
    )
    concept_sophistication: str = Field(
        default="abstract", description="concrete | abstract | theoretical | research"
    )
    prerequisite_knowledge: list[str] = Field(default_factory=list)
    reasoning_level: str = Field(
        default="application",
        description="memorization | comprehension | application | analysis | synthesis | evaluation",
    )


class ConceptSection(BaseModel):
    model_config = ConfigDict(frozen=True)

    heading: str
    bullets: list[str] = Field(default_factory=list)


class Diagram(BaseModel):
    """A figure for the notes, either cut from the upload or found on the web.

    File diagrams may carry ``page`` and ``bbox`` for highlighting; web
    diagrams may carry ``keywords`` for image search.
    """

    model_config = ConfigDict(frozen=True)

    source: Literal["file", "web"]
    title: str
    caption: str
    image_url: str | None = None
    image_data_b64: str | None = Field(default=None, description="Base64 bytes for file images.")
    credit: str | None = Field(default=None, description="Attribution for web images.")
    page: int | None = Field(default=None, ge=1)
    bbox: list[float] | None = Field(
        default=None, min_length=4, max_length=4, description="[x0, y0, x1, y1]"
    )
    keywords: list[str] | None = None


class PracticeQuestion(BaseModel):
    model_config = ConfigDict(frozen=True)

    question: str
    type: PracticeQuestionType
    answer: str
    options: list[str] | None = None
    explanation: str = ""


class ResourceLink(BaseModel):
    model_config = ConfigDict(frozen=True)

    title: str
    url: str
    description: str = ""


class Resources(BaseModel):
    model_config = ConfigDict(frozen=True)

    links: list[ResourceLink] = Field(default_factory=list)
    videos: list[ResourceLink] = Field(default_factory=list)


class StudyNotes(BaseModel):
    """Complete study notes for one generation request."""

    model_config = ConfigDict(frozen=True)

    title: str = Field(min_length=1, description="Main topic or subject title")
    subject: str = Field(description="Academic subject, e.g. Biology")
    education_level: EducationLevel
    difficulty_level: DifficultyLevel
    complexity_analysis: ComplexityAnalysis
    outline: list[str] = Field(description="5-10 bullet points summarizing the main topics")
    key_terms: list[str] = Field(description="6-10 important terms with definitions")
    concepts: list[ConceptSection] = Field(description="3-6 concept sections")
    diagrams: list[Diagram] = Field(description="High-value diagrams and figures")
    practice_questions: list[PracticeQuestion]
    resources: Resources
    study_tips: list[str]
    common_misconceptions: list[str]


# Fields whose absence or malformation is repaired with a default instead of
# failing the request.  Everything else in StudyNotes is a hard requirement.
ADVISORY_NOTE_FIELDS: tuple[str, ...] = (
    "subject",
    "education_level",
    "difficulty_level",
    "complexity_analysis",
    "diagrams",
    "practice_questions",
    "resources",
    "study_tips",
    "common_misconceptions",
)
