"""Per-item validation of generated quiz questions.

A reply is never accepted or rejected as a whole.  Each item is checked on
its own and either becomes a :class:`QuizQuestion` or an
:class:`InvalidQuizItem` with the reasons, so three good questions survive
two malformed neighbours.

Every item first has to pass the item model (:class:`RawQuizItem` unless
another one is injected), which also maps the alias spellings models
produce.  Answer normalization then runs on the validated fields:

* multiple_choice -- ``correct`` may be an index (int or digit string), a
  letter ``A``-``Z``, or the literal option text; it always resolves to the
  option text.  A letter counts as the index of its position.  An
  out-of-range index falls back to option 0 and is listed in
  ``index_fallbacks``, unless ``strict_answer_index`` is set, in which case
  the item is invalid.
* true_false -- booleans, ``"true"``/``"false"``/``"yes"``/``"no"`` and
  indices 0/1 normalize to ``"True"``/``"False"``.
* open_ended -- ``correct`` or the first of ``expected_answers``.
"""

from __future__ import annotations

from typing import Any

import structlog
from pydantic import ValidationError

from src.models.quiz import (
    InvalidQuizItem,
    QuizQuestion,
    QuizSet,
    QuizValidityReport,
    RawQuizItem,
)

logger = structlog.get_logger(logger_name=__name__)

_TRUE_FALSE_OPTIONS = ["True", "False"]
_TRUE_WORDS = frozenset({"true", "t", "yes", "y"})
_FALSE_WORDS = frozenset({"false", "f", "no", "n"})


class QuizValidator:
    """Classifies raw quiz items as valid or invalid."""

    def __init__(
        self,
        strict_answer_index: bool = False,
        item_model: type[RawQuizItem] = RawQuizItem,
    ) -> None:
        self._strict = strict_answer_index
        self._item_model = item_model

    def validate(
        self,
        items: list[Any],
        source_document: str | None = None,
        limit: int | None = None,
    ) -> QuizSet:
        """Validate every item; keep at most *limit* valid questions.

        The report counts every parsed item, including valid ones dropped
        by *limit*.
        """
        questions: list[QuizQuestion] = []
        invalid: list[InvalidQuizItem] = []
        fallbacks: list[int] = []

        for index, item in enumerate(items):
            reasons: list[str] = []
            fields = self._check_item(item, index, reasons, fallbacks)
            if reasons:
                invalid.append(InvalidQuizItem(index=index, reasons=reasons))
                continue
            questions.append(
                QuizQuestion(
                    id=len(questions) + 1,
                    source_document=source_document,
                    **fields,
                )
            )

        report = QuizValidityReport(
            total_parsed=len(items),
            valid_count=len(questions),
            invalid_count=len(invalid),
            invalid_items=invalid,
            index_fallbacks=fallbacks,
        )
        if invalid or fallbacks:
            logger.warning(
                "quiz_items_rejected",
                total=report.total_parsed,
                invalid=report.invalid_count,
                index_fallbacks=fallbacks,
                reasons=[f"{i.index}: {'; '.join(i.reasons)}" for i in invalid],
            )
        if limit is not None:
            questions = questions[:limit]
        return QuizSet(questions=questions, report=report)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _check_item(
        self,
        item: Any,
        index: int,
        reasons: list[str],
        fallbacks: list[int],
    ) -> dict[str, Any]:
        if not isinstance(item, dict):
            reasons.append(f"item is {type(item).__name__}, not an object")
            return {}

        try:
            raw = self._item_model.model_validate(item)
        except ValidationError as exc:
            reasons.extend(_structure_reasons(exc))
            return {}

        question = raw.question.strip()
        if not question:
            reasons.append("question is empty")

        explanation = raw.explanation.strip()
        if not explanation:
            reasons.append("explanation is empty")

        fields: dict[str, Any] = {
            "question": question,
            "type": raw.type,
            "explanation": explanation,
            "hints": _text_list(raw.hints) or None,
        }

        correct = raw.correct
        if raw.type == "open_ended":
            expected = _text_list(raw.expected_answers)
            answer = correct.strip() if isinstance(correct, str) else ""
            if not answer and expected:
                answer = expected[0]
            if not answer:
                reasons.append("no correct answer or expected_answers")
            fields.update(
                correct_answer=answer,
                expected_answers=expected or ([answer] if answer else None),
                answer_format=(raw.answer_format or "").strip() or "text",
            )
            return fields

        if raw.type == "true_false":
            options = _TRUE_FALSE_OPTIONS
            answer = _resolve_true_false(correct)
            if answer is None:
                reasons.append(f"correct answer {correct!r} is not true or false")
        else:
            options = _text_list(raw.options)
            if len(options) < 2:
                reasons.append("multiple_choice needs at least 2 non-empty options")
                return fields
            answer, fell_back = self._resolve_choice(correct, options)
            if fell_back:
                fallbacks.append(index)
            if answer is None:
                reasons.append(f"correct answer {correct!r} does not match any option")

        fields.update(options=list(options), correct_answer=answer or "")
        return fields

    def _resolve_choice(self, correct: Any, options: list[str]) -> tuple[str | None, bool]:
        """Return the option text and whether the index fell back to option 0."""
        if correct is None or isinstance(correct, bool):
            return None, False
        if isinstance(correct, float):
            if not correct.is_integer():
                return None, False
            correct = int(correct)
        if isinstance(correct, str):
            value = correct.strip()
            for option in options:
                if option.casefold() == value.casefold():
                    return option, False
            if len(value) == 1 and value.isalpha():
                correct = ord(value.upper()) - ord("A")
            elif value.lstrip("-").isdigit():
                correct = int(value)
            else:
                return None, False
        if 0 <= correct < len(options):
            return options[correct], False
        if self._strict:
            return None, False
        return options[0], True


def _structure_reasons(exc: ValidationError) -> list[str]:
    """One reason per offending top-level field."""
    reasons: dict[str, str] = {}
    for error in exc.errors():
        field = str(error["loc"][0]) if error["loc"] else "item"
        if field in reasons:
            continue
        if error["type"] == "missing":
            reasons[field] = f"{field} is missing"
        else:
            reasons[field] = f"{field} {error['input']!r} is invalid: {error['msg']}"
    return list(reasons.values())


def _resolve_true_false(correct: Any) -> str | None:
    if isinstance(correct, bool):
        return "True" if correct else "False"
    if isinstance(correct, int):
        return _TRUE_FALSE_OPTIONS[correct] if correct in (0, 1) else None
    if isinstance(correct, str):
        word = correct.strip().lower()
        if word in _TRUE_WORDS:
            return "True"
        if word in _FALSE_WORDS:
            return "False"
    return None


def _text_list(value: list[str] | None) -> list[str]:
    if not value:
        return []
    return [entry.strip() for entry in value if entry.strip()]
