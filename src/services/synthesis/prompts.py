"""Prompt builders for schema-constrained notes and quiz generation.

The system prompt carries the full target schema; the user prompt carries
a length-capped excerpt of the source plus the count and type constraints.
"""

from __future__ import annotations

from src.models.synthesis import GenerationRequest
from src.services.synthesis.schema import OutputSchema

TRUNCATION_MARKER = "\n\n[... content truncated ...]"

_NOTES_SYSTEM = """You are a study material organizer. Turn the document excerpt \
into comprehensive, document-specific study notes.

Rules:
- Use exact terminology and definitions from the document.
- Do NOT use generic filler; every bullet must come from the document.
- Diagrams: use "source": "file" for figures in the document (give "page" \
and "bbox" when known) and "source": "web" with "keywords" for figures \
worth finding online.
- Respond with a single JSON object and nothing else. No Markdown fences.

The JSON object MUST validate against this JSON schema:
{schema}"""

_QUIZ_SYSTEM = """You are an expert quiz generator who creates questions \
based on specific document content. Test specific facts, figures, processes \
and examples from the document, not generic knowledge of the topic.

Rules:
- "type" is one of: multiple_choice, true_false, open_ended.
- multiple_choice: exactly 4 "options"; "correct" is the 0-based index of \
the right option.
- true_false: "correct" is true or false.
- open_ended: list acceptable answers in "expected_answers"; "correct" is \
the best one.
- Every question needs a non-empty "explanation" that references the document.
- Respond with a single JSON object and nothing else. No Markdown fences.

The JSON object MUST validate against this JSON schema:
{schema}"""


def truncate_excerpt(text: str, limit: int) -> tuple[str, bool]:
    """Cap *text* at *limit* characters, appending :data:`TRUNCATION_MARKER`."""
    text = text.strip()
    if len(text) <= limit:
        return text, False
    return text[:limit].rstrip() + TRUNCATION_MARKER, True


def build_system_prompt(request: GenerationRequest, schema: OutputSchema) -> str:
    template = _NOTES_SYSTEM if request.kind == "notes" else _QUIZ_SYSTEM
    return template.format(schema=schema.render(request.kind))


def build_user_prompt(request: GenerationRequest, excerpt: str, count: int | None = None) -> str:
    """Assemble the user turn for *request* around an already-capped *excerpt*."""
    topic = request.topic.strip() or "the document"
    if request.kind == "notes":
        lines = [
            f'Create study notes about "{topic}" at {request.difficulty} difficulty.',
            "Fill every required field of the schema.",
        ]
    else:
        lines = [
            f'Generate exactly {count} quiz questions about "{topic}" '
            f"with {request.difficulty} difficulty.",
            "Base EVERY question on the document content below.",
        ]
        allowed = _allowed_question_types(request)
        if allowed:
            lines.append(f"Use only these question types: {', '.join(allowed)}.")

    lines.extend(_preference_lines(request))
    lines.extend(_complexity_lines(request))

    if request.kind == "quiz" and request.previous_questions:
        lines.append("")
        lines.append("Do NOT repeat or rephrase these previously asked questions:")
        lines.extend(f"- {q}" for q in request.previous_questions)

    lines.append("")
    lines.append("DOCUMENT CONTENT:")
    lines.append(excerpt)
    return "\n".join(lines)


# ------------------------------------------------------------------
# Internals
# ------------------------------------------------------------------


def _allowed_question_types(request: GenerationRequest) -> list[str]:
    if request.preferences is None:
        return []
    valid = {"multiple_choice", "true_false", "open_ended"}
    return [t for t in request.preferences.question_types if t in valid]


def _preference_lines(request: GenerationRequest) -> list[str]:
    prefs = request.preferences
    if prefs is None or not (prefs.study_focus or prefs.special_instructions):
        return []
    lines = ["", "STUDY PREFERENCES:"]
    if prefs.study_focus:
        lines.append(f"- Study Focus: {prefs.study_focus}")
    if prefs.special_instructions:
        lines.append(f"- Special Instructions: {prefs.special_instructions}")
    return lines


def _complexity_lines(request: GenerationRequest) -> list[str]:
    ca = request.complexity
    if ca is None:
        return []
    prerequisites = ", ".join(ca.prerequisite_knowledge) or "None specified"
    return [
        "",
        "COMPLEXITY ANALYSIS (match question difficulty to this level):",
        f"- Vocabulary Level: {ca.vocabulary_level}",
        f"- Concept Sophistication: {ca.concept_sophistication}",
        f"- Reasoning Level Required: {ca.reasoning_level}",
        f"- Prerequisite Knowledge: {prerequisites}",
    ]
