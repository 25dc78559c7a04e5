"""Target schemas handed to the synthesizer.

:class:`OutputSchema` carries the pydantic models that define each output
plus the JSON schemas generated from them.  The synthesizer embeds the
JSON schema in the prompt and validates replies with the same models:
``notes_model`` checks a notes reply, ``quiz_item_model`` checks each quiz
item on its own.  ``quiz_model`` only describes the quiz envelope for the
prompt; the envelope is never validated as a whole, so one bad question
cannot sink the rest.
"""

from __future__ import annotations

import json
from typing import Any

from pydantic import BaseModel, ConfigDict

from src.models.notes import StudyNotes
from src.models.quiz import QuizReply, RawQuizItem
from src.models.synthesis import SynthesisKind


class OutputSchema(BaseModel):
    """Read-only target models and their schemas, one per synthesis kind."""

    model_config = ConfigDict(frozen=True)

    notes_model: type[StudyNotes] = StudyNotes
    quiz_model: type[QuizReply] = QuizReply
    quiz_item_model: type[RawQuizItem] = RawQuizItem
    notes: dict[str, Any]
    quiz: dict[str, Any]

    @classmethod
    def from_models(
        cls,
        notes_model: type[StudyNotes] = StudyNotes,
        quiz_model: type[QuizReply] = QuizReply,
        quiz_item_model: type[RawQuizItem] = RawQuizItem,
    ) -> OutputSchema:
        return cls(
            notes_model=notes_model,
            quiz_model=quiz_model,
            quiz_item_model=quiz_item_model,
            notes=notes_model.model_json_schema(),
            quiz=quiz_model.model_json_schema(),
        )

    def for_kind(self, kind: SynthesisKind) -> dict[str, Any]:
        return self.notes if kind == "notes" else self.quiz

    def required_fields(self, kind: SynthesisKind) -> list[str]:
        return list(self.for_kind(kind).get("required", []))

    def render(self, kind: SynthesisKind) -> str:
        """Pretty-printed schema for embedding in a prompt."""
        return json.dumps(self.for_kind(kind), indent=2, sort_keys=True)
