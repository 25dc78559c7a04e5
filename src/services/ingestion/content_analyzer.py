"""Lightweight subject/topic/difficulty classification of a document.

One LLM call per document, on the opening chunk only.  The result is
advisory metadata: any failure (provider error, unparseable reply, junk
values) yields the static default and is logged, never raised.
"""

from __future__ import annotations

import structlog

from src.interfaces.llm_provider import ILLMProvider
from src.models.llm import ChatMessage, CompletionOptions
from src.models.rag import ContentAnalysis
from src.services.synthesis.response_parser import parse_json_reply

logger = structlog.get_logger(logger_name=__name__)

_DIFFICULTY_LEVELS = frozenset({"beginner", "intermediate", "advanced"})
_MAX_TAGS = 10

_SYSTEM_PROMPT = "You are an educational content analyzer. Always respond with valid JSON only."

_USER_PROMPT = """Analyze this educational content and provide:
1. Subject tags (e.g., "Biology", "Chemistry", "Mathematics")
2. Course topics (e.g., "Cell Biology", "Organic Chemistry", "Calculus")
3. Difficulty level (beginner, intermediate, or advanced)

Content: {sample}

Respond with JSON format:
{{
  "subjectTags": ["tag1", "tag2"],
  "courseTopics": ["topic1", "topic2"],
  "difficultyLevel": "intermediate"
}}"""


class ContentAnalyzer:
    """Classifies sample text via a small JSON-mode completion.

    Parameters
    ----------
    llm:
        Any text-generation backend.
    sample_chars:
        Characters of the sample sent to the model (default 2000).
    temperature, max_tokens:
        Completion settings; the reply is tiny, so 500 tokens is plenty.
    """

    def __init__(
        self,
        llm: ILLMProvider,
        sample_chars: int = 2000,
        temperature: float = 0.3,
        max_tokens: int = 500,
    ) -> None:
        self._llm = llm
        self._sample_chars = sample_chars
        self._options = CompletionOptions(
            temperature=temperature, max_tokens=max_tokens, json_mode=True
        )

    async def analyze(self, sample_text: str) -> ContentAnalysis:
        """Return the classification for *sample_text*, or the default on any failure."""
        default = ContentAnalysis()
        sample = sample_text[: self._sample_chars].strip()
        if not sample:
            return default

        messages = [
            ChatMessage(role="system", content=_SYSTEM_PROMPT),
            ChatMessage(role="user", content=_USER_PROMPT.format(sample=sample)),
        ]
        try:
            completion = await self._llm.chat_completions(messages, self._options)
            data = parse_json_reply(completion.content)
        except Exception as exc:  # noqa: BLE001
            logger.warning(
                "content_analysis_failed",
                error=str(exc),
                error_type=type(exc).__name__,
                msg="Using default analysis; ingestion continues.",
            )
            return default

        if not isinstance(data, dict):
            logger.warning("content_analysis_not_object", reply_type=type(data).__name__)
            return default

        difficulty = str(data.get("difficultyLevel", "")).strip().lower()
        analysis = ContentAnalysis(
            subject_tags=_as_str_list(data.get("subjectTags")),
            course_topics=_as_str_list(data.get("courseTopics")),
            difficulty_level=difficulty if difficulty in _DIFFICULTY_LEVELS else "intermediate",
        )
        logger.info(
            "content_analysis_complete",
            subjects=analysis.subject_tags,
            topics=len(analysis.course_topics),
            difficulty=analysis.difficulty_level,
        )
        return analysis


def _as_str_list(value: object) -> list[str]:
    if not isinstance(value, list):
        return []
    seen: list[str] = []
    for item in value:
        if isinstance(item, str) and item.strip() and item.strip() not in seen:
            seen.append(item.strip())
    return seen[:_MAX_TAGS]
