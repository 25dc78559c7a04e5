"""Unit tests for ContentAnalyzer: advisory subject/topic/difficulty tagging."""

from __future__ import annotations

import json

import pytest

from src.models.rag import ContentAnalysis
from src.services.ingestion.content_analyzer import ContentAnalyzer
from src.utils.errors import LLMError
from tests.conftest import ScriptedLLM


class TestContentAnalyzer:
    @pytest.mark.asyncio
    async def test_parses_reply(self) -> None:
        llm = ScriptedLLM(
            [
                json.dumps(
                    {
                        "subjectTags": ["Biology", " Biology ", "Chemistry"],
                        "courseTopics": ["Cell Biology"],
                        "difficultyLevel": "Advanced",
                    }
                )
            ]
        )

        analysis = await ContentAnalyzer(llm).analyze("Mitochondria are the powerhouse of the cell.")

        assert analysis.subject_tags == ["Biology", "Chemistry"]
        assert analysis.course_topics == ["Cell Biology"]
        assert analysis.difficulty_level == "advanced"

    @pytest.mark.asyncio
    async def test_sends_json_mode_and_capped_sample(self) -> None:
        llm = ScriptedLLM(['{"subjectTags": [], "courseTopics": [], "difficultyLevel": "beginner"}'])
        analyzer = ContentAnalyzer(llm, sample_chars=100)

        await analyzer.analyze("a" * 100 + "TAIL")

        messages, options = llm.calls[0]
        assert options is not None
        assert options.json_mode is True
        assert options.max_tokens == 500
        assert "TAIL" not in messages[1].content
        assert messages[0].role == "system"

    @pytest.mark.asyncio
    async def test_fenced_reply_accepted(self) -> None:
        llm = ScriptedLLM(['```json\n{"subjectTags": ["History"], "difficultyLevel": "beginner"}\n```'])

        analysis = await ContentAnalyzer(llm).analyze("The Treaty of Versailles was signed in 1919.")

        assert analysis.subject_tags == ["History"]
        assert analysis.course_topics == []

    @pytest.mark.asyncio
    async def test_provider_failure_returns_default(self) -> None:
        llm = ScriptedLLM([LLMError(message="down", provider_name="scripted")])

        analysis = await ContentAnalyzer(llm).analyze("Some content about chemistry.")

        assert analysis == ContentAnalysis()

    @pytest.mark.asyncio
    async def test_garbage_reply_returns_default(self) -> None:
        llm = ScriptedLLM(["I think this is about biology."])

        assert await ContentAnalyzer(llm).analyze("text") == ContentAnalysis()

    @pytest.mark.asyncio
    async def test_non_object_reply_returns_default(self) -> None:
        llm = ScriptedLLM(['["Biology"]'])

        assert await ContentAnalyzer(llm).analyze("text") == ContentAnalysis()

    @pytest.mark.asyncio
    async def test_unknown_difficulty_defaults(self) -> None:
        llm = ScriptedLLM(['{"subjectTags": "Biology", "difficultyLevel": "expert"}'])

        analysis = await ContentAnalyzer(llm).analyze("text")

        assert analysis.difficulty_level == "intermediate"
        assert analysis.subject_tags == []

    @pytest.mark.asyncio
    async def test_empty_sample_skips_provider(self) -> None:
        llm = ScriptedLLM()

        assert await ContentAnalyzer(llm).analyze("   ") == ContentAnalysis()
        assert llm.calls == []

    @pytest.mark.asyncio
    async def test_tags_capped_at_ten(self) -> None:
        tags = [f"Tag {i}" for i in range(15)]
        llm = ScriptedLLM([json.dumps({"subjectTags": tags, "difficultyLevel": "beginner"})])

        analysis = await ContentAnalyzer(llm).analyze("text")

        assert analysis.subject_tags == tags[:10]
