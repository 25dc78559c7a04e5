"""Schema-constrained synthesis of study notes and quizzes.

:class:`Synthesizer` drives one generation call per request through the
state machine::

    PENDING -> GENERATING_PROMPT -> AWAITING_PROVIDER -> PARSING_RESPONSE
            -> VALIDATING -> DONE | FAILED

It never raises.  Every call returns a :class:`SynthesisOutcome`; a failed
outcome carries a typed :class:`SynthesisFailure` whose ``retryable`` flag
tells "try again" apart from "this input cannot work".  Retries are the
caller's business.

Failure policy differs by kind on purpose:

* **notes** -- required fields (title, outline, key_terms, concepts) must
  validate or the outcome is a ``SchemaViolationError``.  The fields in
  ``ADVISORY_NOTE_FIELDS`` (subject, education_level, difficulty_level,
  complexity_analysis, diagrams, practice_questions, resources,
  study_tips, common_misconceptions) are replaced with defaults when
  missing or malformed and listed in ``defaulted_fields``.  The level
  defaults to ``college`` and the subject to the request topic.
* **quiz** -- an unparseable reply is a ``SchemaViolationError``; a reply
  with zero valid questions is a ``NoValidOutputError``.  An empty question
  set is never returned as success.
"""

from __future__ import annotations

from typing import Any

import structlog
from pydantic import TypeAdapter, ValidationError

from src.interfaces.llm_provider import ILLMProvider
from src.models.document import ExtractedImage
from src.models.llm import ChatCompletion, ChatMessage, CompletionOptions
from src.models.notes import (
    ADVISORY_NOTE_FIELDS,
    ComplexityAnalysis,
    Diagram,
    Resources,
    StudyNotes,
)
from src.models.synthesis import (
    GenerationRequest,
    SynthesisFailure,
    SynthesisKind,
    SynthesisOutcome,
    SynthesisState,
)
from src.services.synthesis.prompts import (
    build_system_prompt,
    build_user_prompt,
    truncate_excerpt,
)
from src.services.synthesis.quiz_validator import QuizValidator
from src.services.synthesis.response_parser import parse_json_reply
from src.services.synthesis.schema import OutputSchema
from src.utils.errors import (
    BrainBrawlError,
    GenerationFailedError,
    NoValidOutputError,
    SchemaViolationError,
)

logger = structlog.get_logger(logger_name=__name__)

_DIFFICULTIES = frozenset({"beginner", "intermediate", "advanced"})
_TEXT_LIST_FIELDS = ("outline", "key_terms", "study_tips", "common_misconceptions")


class _Run:
    """Tracks one request's walk through the state machine."""

    def __init__(self, kind: SynthesisKind) -> None:
        self.kind = kind
        self.state = SynthesisState.PENDING
        self.transitions: list[SynthesisState] = [SynthesisState.PENDING]

    def advance(self, state: SynthesisState) -> None:
        logger.debug("synthesis_state", kind=self.kind, previous=self.state.value, state=state.value)
        self.state = state
        self.transitions.append(state)

    def fail(self, failure: SynthesisFailure, **extra: Any) -> SynthesisOutcome:
        failed_in = self.state.value
        self.advance(SynthesisState.FAILED)
        logger.warning(
            "synthesis_failed",
            kind=self.kind,
            failed_in=failed_in,
            error_type=failure.error_type,
            error=failure.message,
            retryable=failure.retryable,
        )
        return SynthesisOutcome(
            kind=self.kind,
            state=self.state,
            transitions=list(self.transitions),
            failure=failure,
            **extra,
        )

    def fail_with(self, exc: BrainBrawlError, **extra: Any) -> SynthesisOutcome:
        return self.fail(SynthesisFailure.from_error(exc), **extra)

    def done(self, **payload: Any) -> SynthesisOutcome:
        self.advance(SynthesisState.DONE)
        return SynthesisOutcome(
            kind=self.kind,
            state=self.state,
            transitions=list(self.transitions),
            **payload,
        )


class Synthesizer:
    """Generates validated study notes or quizzes from source text.

    Parameters
    ----------
    llm:
        The text-generation backend selected at startup.
    schema:
        Target models.  Their JSON schemas go into the system prompt and
        the models themselves validate the replies.
    excerpt_chars:
        Source text beyond this many characters is cut and marked.
    temperature:
        Kept low to favour well-formed structure over creativity.
    notes_max_tokens, quiz_base_tokens, quiz_tokens_per_question:
        Token ceiling per call: notes get a flat budget, quizzes
        ``base + per_question * count``.
    default_quiz_count:
        Questions requested when the request gives no count.
    strict_answer_index:
        Out-of-range multiple-choice indices invalidate the item instead of
        falling back to option 0.
    allow_image_only_notes:
        Empty text plus images yields diagram-only notes without a provider
        call; when off, the same input is a schema violation.
    """

    def __init__(
        self,
        llm: ILLMProvider,
        schema: OutputSchema,
        *,
        excerpt_chars: int = 6000,
        temperature: float = 0.2,
        notes_max_tokens: int = 8000,
        quiz_base_tokens: int = 500,
        quiz_tokens_per_question: int = 400,
        default_quiz_count: int = 5,
        strict_answer_index: bool = False,
        allow_image_only_notes: bool = True,
    ) -> None:
        self._llm = llm
        self._schema = schema
        self._excerpt_chars = excerpt_chars
        self._temperature = temperature
        self._notes_max_tokens = notes_max_tokens
        self._quiz_base_tokens = quiz_base_tokens
        self._quiz_tokens_per_question = quiz_tokens_per_question
        self._default_quiz_count = default_quiz_count
        self._quiz_validator = QuizValidator(
            strict_answer_index=strict_answer_index,
            item_model=schema.quiz_item_model,
        )
        self._allow_image_only_notes = allow_image_only_notes

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def synthesize(self, request: GenerationRequest) -> SynthesisOutcome:
        """Run one generation request to a DONE or FAILED outcome."""
        run = _Run(request.kind)
        try:
            return await self._run(run, request)
        except Exception as exc:  # noqa: BLE001
            logger.exception("synthesis_unexpected_error", kind=request.kind)
            return run.fail_with(GenerationFailedError(message=f"Unexpected synthesis error: {exc}"))

    async def generate_notes(self, source_text: str, topic: str = "", **kwargs: Any) -> SynthesisOutcome:
        return await self.synthesize(
            GenerationRequest(kind="notes", source_text=source_text, topic=topic, **kwargs)
        )

    async def generate_quiz(
        self, source_text: str, topic: str = "", count: int | None = None, **kwargs: Any
    ) -> SynthesisOutcome:
        return await self.synthesize(
            GenerationRequest(kind="quiz", source_text=source_text, topic=topic, count=count, **kwargs)
        )

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _run(self, run: _Run, request: GenerationRequest) -> SynthesisOutcome:
        if not request.source_text.strip():
            return self._handle_empty_source(run, request)

        run.advance(SynthesisState.GENERATING_PROMPT)
        count = request.count or self._default_quiz_count
        excerpt, truncated = truncate_excerpt(request.source_text, self._excerpt_chars)
        messages = [
            ChatMessage(role="system", content=build_system_prompt(request, self._schema)),
            ChatMessage(role="user", content=build_user_prompt(request, excerpt, count)),
        ]
        options = CompletionOptions(
            temperature=self._temperature,
            max_tokens=self._token_ceiling(request.kind, count),
            json_mode=True,
        )

        run.advance(SynthesisState.AWAITING_PROVIDER)
        logger.info(
            "synthesis_started",
            kind=request.kind,
            provider=self._llm.get_provider_name(),
            source_chars=len(request.source_text),
            truncated=truncated,
            count=count if request.kind == "quiz" else None,
            max_tokens=options.max_tokens,
        )
        try:
            completion = await self._llm.chat_completions(messages, options)
        except BrainBrawlError as exc:
            failure = SynthesisFailure(
                error_type="GenerationFailedError",
                message=exc.message,
                retryable=exc.retryable,
                provider_name=exc.provider_name or self._llm.get_provider_name(),
            )
            return run.fail(failure)

        meta = {"usage": completion.usage, "model": completion.model}
        run.advance(SynthesisState.PARSING_RESPONSE)
        try:
            data = parse_json_reply(completion.content)
        except SchemaViolationError as exc:
            return run.fail_with(
                SchemaViolationError(message=exc.message, provider_name=completion.provider), **meta
            )

        run.advance(SynthesisState.VALIDATING)
        if request.kind == "notes":
            return self._validate_notes(run, request, data, completion)
        return self._validate_quiz(run, request, data, completion, count)

    def _handle_empty_source(self, run: _Run, request: GenerationRequest) -> SynthesisOutcome:
        if request.kind == "notes" and request.images:
            if not self._allow_image_only_notes:
                return run.fail(
                    SynthesisFailure(
                        error_type="SchemaViolationError",
                        message="Source has images but no text; notes require text-derived fields",
                        retryable=False,
                    )
                )
            run.advance(SynthesisState.VALIDATING)
            notes = _image_only_notes(request, self._schema.notes_model)
            logger.info("image_only_notes", diagrams=len(notes.diagrams))
            return run.done(notes=notes, defaulted_fields=list(ADVISORY_NOTE_FIELDS))

        return run.fail(
            SynthesisFailure(
                error_type="SchemaViolationError",
                message="Source text is empty; nothing to generate from",
                retryable=False,
            )
        )

    def _validate_notes(
        self,
        run: _Run,
        request: GenerationRequest,
        data: Any,
        completion: ChatCompletion,
    ) -> SynthesisOutcome:
        meta = {"usage": completion.usage, "model": completion.model}
        if not isinstance(data, dict):
            return run.fail_with(
                SchemaViolationError(
                    message=f"Notes reply must be a JSON object, got {type(data).__name__}",
                    provider_name=completion.provider,
                ),
                **meta,
            )

        notes_model = self._schema.notes_model
        merged = {key: value for key, value in data.items() if key in notes_model.model_fields}
        for name in _TEXT_LIST_FIELDS:
            if name in merged:
                merged[name] = _coerce_text_items(merged[name])

        defaulted: list[str] = []
        defaults = _advisory_defaults(request)
        for name in ADVISORY_NOTE_FIELDS:
            if not _field_is_valid(notes_model, name, merged.get(name)):
                merged[name] = defaults[name]
                defaulted.append(name)

        try:
            notes = notes_model.model_validate(merged)
        except ValidationError as exc:
            missing = sorted({str(err["loc"][0]) for err in exc.errors() if err["loc"]})
            return run.fail_with(
                SchemaViolationError(
                    message=f"Notes reply failed required fields: {', '.join(missing)}",
                    provider_name=completion.provider,
                ),
                **meta,
            )

        if defaulted:
            logger.info("notes_fields_defaulted", fields=defaulted)
        return run.done(notes=notes, defaulted_fields=defaulted, **meta)

    def _validate_quiz(
        self,
        run: _Run,
        request: GenerationRequest,
        data: Any,
        completion: ChatCompletion,
        count: int,
    ) -> SynthesisOutcome:
        meta = {"usage": completion.usage, "model": completion.model}
        items = data.get("questions") if isinstance(data, dict) else data
        if not isinstance(items, list):
            return run.fail_with(
                SchemaViolationError(
                    message='Quiz reply has no "questions" array',
                    provider_name=completion.provider,
                ),
                **meta,
            )

        quiz = self._quiz_validator.validate(
            items, source_document=request.source_document, limit=count
        )
        if not quiz.questions:
            return run.fail_with(
                NoValidOutputError(
                    message=(
                        f"Quiz reply held {quiz.report.total_parsed} items, none valid"
                    ),
                    provider_name=completion.provider,
                ),
                report=quiz.report,
                **meta,
            )

        logger.info(
            "quiz_generated",
            requested=count,
            returned=len(quiz.questions),
            parsed=quiz.report.total_parsed,
            invalid=quiz.report.invalid_count,
        )
        return run.done(quiz=quiz, report=quiz.report, **meta)

    def _token_ceiling(self, kind: SynthesisKind, count: int) -> int:
        if kind == "notes":
            return self._notes_max_tokens
        return self._quiz_base_tokens + self._quiz_tokens_per_question * count


def _advisory_defaults(request: GenerationRequest) -> dict[str, Any]:
    difficulty = request.difficulty if request.difficulty in _DIFFICULTIES else "intermediate"
    return {
        "subject": request.topic.strip() or "General",
        "education_level": "college",
        "difficulty_level": difficulty,
        "complexity_analysis": request.complexity or ComplexityAnalysis(),
        "diagrams": _diagrams_from_images(request.images),
        "practice_questions": [],
        "resources": Resources(),
        "study_tips": [],
        "common_misconceptions": [],
    }


def _field_is_valid(notes_model: type[StudyNotes], name: str, value: Any) -> bool:
    if value is None:
        return False
    try:
        TypeAdapter(notes_model.model_fields[name].annotation).validate_python(value)
    except ValidationError:
        return False
    return True


def _coerce_text_items(value: Any) -> Any:
    """Flatten ``{"term": ..., "definition": ...}`` style objects into strings."""
    if not isinstance(value, list):
        return value
    flattened: list[Any] = []
    for item in value:
        if isinstance(item, dict):
            parts = [str(v).strip() for v in item.values() if isinstance(v, (str, int, float))]
            item = ": ".join(p for p in parts[:2] if p)
        flattened.append(item)
    return flattened


def _diagrams_from_images(images: list[ExtractedImage]) -> list[Diagram]:
    diagrams: list[Diagram] = []
    for number, image in enumerate(images, start=1):
        if image.data is None and image.url is None:
            continue
        where = f" (page {image.page_number})" if image.page_number else ""
        diagrams.append(
            Diagram(
                source="file",
                title=f"Figure {number}",
                caption=image.caption or f"Figure {number} from the document{where}",
                image_url=image.url,
                image_data_b64=image.as_base64(),
                page=image.page_number,
                bbox=list(image.bbox) if image.bbox is not None else None,
            )
        )
    return diagrams


def _image_only_notes(request: GenerationRequest, notes_model: type[StudyNotes]) -> StudyNotes:
    defaults = _advisory_defaults(request)
    return notes_model(
        title=request.topic.strip() or request.source_document or "Document figures",
        outline=[],
        key_terms=[],
        concepts=[],
        **defaults,
    )
