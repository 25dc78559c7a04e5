"""Shared pytest fixtures for the BrainBrawl test suite."""

from __future__ import annotations

import io
import json
from collections.abc import Callable
from typing import Any

import docx
import fitz
import pptx
import pytest
from pptx.util import Inches

from src.interfaces.embedding_provider import IEmbeddingProvider
from src.interfaces.llm_provider import ILLMProvider
from src.models.llm import ChatCompletion, ChatMessage, CompletionOptions, TokenUsage
from src.models.rag import EmbeddingRecord

# ---------------------------------------------------------------------------
# Fakes
# ---------------------------------------------------------------------------


class ScriptedLLM(ILLMProvider):
    """ILLMProvider that replays canned replies (or raises canned errors) in order.

    Every call is recorded in ``calls`` as ``(messages, options)``.
    """

    def __init__(self, replies: list[str | Exception] | None = None, name: str = "scripted") -> None:
        self._replies = list(replies or [])
        self._name = name
        self.calls: list[tuple[list[ChatMessage], CompletionOptions | None]] = []

    def queue(self, reply: str | Exception) -> None:
        self._replies.append(reply)

    async def chat_completions(
        self,
        messages: list[ChatMessage],
        options: CompletionOptions | None = None,
    ) -> ChatCompletion:
        self.calls.append((messages, options))
        if not self._replies:
            raise AssertionError("ScriptedLLM ran out of replies")
        reply = self._replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return ChatCompletion(
            id=f"cmpl-{len(self.calls)}",
            content=reply,
            model="scripted-model",
            provider=self._name,
            usage=TokenUsage(prompt_tokens=100, completion_tokens=50, total_tokens=150),
            latency_ms=12.5,
        )

    def get_provider_name(self) -> str:
        return self._name

    def get_default_model(self) -> str:
        return "scripted-model"

    def is_available(self) -> bool:
        return True

    async def validate_credentials(self) -> bool:
        return True


class KeywordEmbeddingProvider(IEmbeddingProvider):
    """Deterministic embeddings: one dimension per keyword, counted in the text.

    Texts sharing keywords get high cosine similarity, which is enough to
    exercise retrieval without a real model.
    """

    KEYWORDS = ("cell", "energy", "photosynthesis", "dna", "protein", "war", "treaty", "king")

    def __init__(self) -> None:
        self.batches: list[list[str]] = []

    async def embed(self, texts: list[str]) -> list[list[float]]:
        self.batches.append(list(texts))
        return [self._vector(t) for t in texts]

    async def embed_single(self, text: str) -> list[float]:
        return (await self.embed([text]))[0]

    def get_dimension(self) -> int:
        return len(self.KEYWORDS) + 1

    def get_provider_name(self) -> str:
        return "keyword"

    def is_available(self) -> bool:
        return True

    def _vector(self, text: str) -> list[float]:
        lowered = text.lower()
        counts = [float(lowered.count(k)) for k in self.KEYWORDS]
        # Bias term keeps keyword-free texts off the zero vector.
        return counts + [0.1]


@pytest.fixture
def keyword_embedder() -> KeywordEmbeddingProvider:
    return KeywordEmbeddingProvider()


# ---------------------------------------------------------------------------
# Records
# ---------------------------------------------------------------------------


@pytest.fixture
def make_record() -> Callable[..., EmbeddingRecord]:
    def _make(
        record_id: str = "r1",
        vector: list[float] | None = None,
        owner_id: str = "owner-1",
        document_id: str = "doc-1",
        chunk_index: int = 0,
        chunk_text: str = "Cells convert energy.",
        **extra: Any,
    ) -> EmbeddingRecord:
        return EmbeddingRecord(
            record_id=record_id,
            owner_id=owner_id,
            document_id=document_id,
            chunk_index=chunk_index,
            vector=vector if vector is not None else [1.0, 0.0, 0.0],
            chunk_text=chunk_text,
            chunk_length=len(chunk_text),
            **extra,
        )

    return _make


# ---------------------------------------------------------------------------
# Documents built in-test
# ---------------------------------------------------------------------------


def png_bytes(width: int = 100, height: int = 100, color: tuple[int, int, int] = (200, 30, 30)) -> bytes:
    pix = fitz.Pixmap(fitz.csRGB, fitz.IRect(0, 0, width, height), False)
    pix.set_rect(pix.irect, color)
    return pix.tobytes("png")


def build_pdf(
    pages: list[str],
    image: bytes | None = None,
    encrypt: bool = False,
) -> bytes:
    """A PDF with one page per entry of *pages*; *image* is placed on every page."""
    doc = fitz.open()
    for text in pages:
        page = doc.new_page()
        if text:
            page.insert_text((72, 72), text, fontsize=11)
        if image is not None:
            page.insert_image(fitz.Rect(100, 200, 300, 400), stream=image)
    save_kwargs: dict[str, Any] = {}
    if encrypt:
        save_kwargs = {
            "encryption": fitz.PDF_ENCRYPT_AES_256,
            "owner_pw": "owner-secret",
            "user_pw": "user-secret",
        }
    data = doc.tobytes(**save_kwargs)
    doc.close()
    return data


def build_docx(paragraphs: list[str], table: list[list[str]] | None = None, image: bytes | None = None) -> bytes:
    document = docx.Document()
    for text in paragraphs:
        document.add_paragraph(text)
    if table:
        grid = document.add_table(rows=len(table), cols=len(table[0]))
        for r, row in enumerate(table):
            for c, value in enumerate(row):
                grid.cell(r, c).text = value
    if image is not None:
        document.add_picture(io.BytesIO(image))
    buffer = io.BytesIO()
    document.save(buffer)
    return buffer.getvalue()


def build_pptx(slides: list[list[str]], images: dict[int, bytes] | None = None) -> bytes:
    """A deck of blank-layout slides; *slides* holds one text box per entry, *images* maps slide number to PNG."""
    images = images or {}
    deck = pptx.Presentation()
    blank = deck.slide_layouts[6]
    for number, boxes in enumerate(slides, start=1):
        slide = deck.slides.add_slide(blank)
        for row, text in enumerate(boxes):
            box = slide.shapes.add_textbox(Inches(1), Inches(1 + row), Inches(6), Inches(1))
            box.text_frame.text = text
        if number in images:
            slide.shapes.add_picture(io.BytesIO(images[number]), Inches(1), Inches(4))
    buffer = io.BytesIO()
    deck.save(buffer)
    return buffer.getvalue()


# ---------------------------------------------------------------------------
# Canned generator replies
# ---------------------------------------------------------------------------


@pytest.fixture
def notes_payload() -> dict[str, Any]:
    """A complete, schema-valid notes reply."""
    return {
        "title": "Photosynthesis",
        "subject": "Biology",
        "education_level": "high_school",
        "difficulty_level": "intermediate",
        "complexity_analysis": {
            "vocabulary_level": "intermediate",
            "concept_sophistication": "abstract",
            "prerequisite_knowledge": ["cell structure"],
            "reasoning_level": "comprehension",
        },
        "outline": ["Light reactions", "Calvin cycle"],
        "key_terms": ["Chlorophyll: green pigment that absorbs light"],
        "concepts": [{"heading": "Light reactions", "bullets": ["Occur in the thylakoid"]}],
        "diagrams": [
            {
                "source": "web",
                "title": "Chloroplast",
                "caption": "Structure of a chloroplast",
                "keywords": ["chloroplast diagram"],
            }
        ],
        "practice_questions": [
            {
                "question": "Where does the Calvin cycle occur?",
                "type": "open_ended",
                "answer": "In the stroma",
            }
        ],
        "resources": {"links": [], "videos": []},
        "study_tips": ["Draw the cycle from memory"],
        "common_misconceptions": ["Plants do not respire"],
    }


@pytest.fixture
def quiz_reply_mixed() -> str:
    """Five items: three valid, two malformed."""
    return json.dumps(
        {
            "questions": [
                {
                    "question": "What organelle performs photosynthesis?",
                    "type": "multiple_choice",
                    "options": ["Mitochondrion", "Chloroplast", "Nucleus", "Ribosome"],
                    "correct": 1,
                    "explanation": "Chloroplasts contain chlorophyll.",
                },
                {
                    "question": "Photosynthesis releases oxygen.",
                    "type": "true_false",
                    "correct": True,
                    "explanation": "Water is split, releasing O2.",
                },
                {
                    "question": "Name the sugar produced by the Calvin cycle.",
                    "type": "open_ended",
                    "expected_answers": ["glucose", "G3P"],
                    "explanation": "The cycle fixes CO2 into sugar.",
                },
                {
                    "question": "",
                    "type": "multiple_choice",
                    "options": ["A", "B"],
                    "correct": 0,
                    "explanation": "Missing question text.",
                },
                {
                    "question": "Which pigment is green?",
                    "type": "essay",
                    "correct": "Chlorophyll",
                    "explanation": "Unsupported type.",
                },
            ]
        }
    )


SAMPLE_TEXT = (
    "Photosynthesis is the process by which plants convert light energy into chemical energy. "
    "It takes place in the chloroplast of the cell. The light reactions occur in the thylakoid "
    "membranes and produce ATP and NADPH. The Calvin cycle uses that energy to fix carbon "
    "dioxide into sugar.\n\n"
    "Cellular respiration releases the energy stored in sugar. It occurs in the mitochondria "
    "and produces ATP for the cell. Both processes are linked in the global carbon cycle. "
) * 4


@pytest.fixture
def sample_text() -> str:
    return SAMPLE_TEXT
