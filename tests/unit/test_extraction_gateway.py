"""Unit tests for the extraction gateway and its per-format strategies."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest

from src.interfaces.extraction_strategy import IExtractionStrategy
from src.models.document import ExtractedContent, SourceDocument
from src.services.extraction.gateway import ExtractionGateway
from src.services.extraction.images import ImageCollector
from src.services.extraction.office_strategies import DocxStrategy, PptxStrategy
from src.services.extraction.pdf_strategies import PyMuPDFStrategy, PypdfTextStrategy
from src.services.extraction.text_strategy import PlainTextStrategy
from src.utils.errors import (
    ExtractionFailedError,
    ExtractionStrategyError,
    UnsupportedFormatError,
)
from tests.conftest import build_docx, build_pdf, build_pptx, png_bytes

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


class _StubStrategy(IExtractionStrategy):
    def __init__(self, name: str, result: ExtractedContent | None = None) -> None:
        self._name = name
        self._result = result
        self.calls = 0

    def get_name(self) -> str:
        return self._name

    async def extract(self, document: SourceDocument) -> ExtractedContent:
        self.calls += 1
        if self._result is None:
            raise ExtractionStrategyError(message=f"{self._name} gave up", provider_name=self._name)
        return self._result


def _doc(content: bytes, filename: str = "file.pdf", media_type: str = "application/pdf") -> SourceDocument:
    return SourceDocument(content=content, filename=filename, media_type=media_type)


# ---------------------------------------------------------------------------
# Gateway
# ---------------------------------------------------------------------------


class TestStrategyChain:
    @pytest.mark.asyncio
    async def test_falls_through_to_second_strategy(self) -> None:
        first = _StubStrategy("first")
        second = _StubStrategy("second", ExtractedContent(text="recovered", page_count=2, strategy="second"))
        gateway = ExtractionGateway({"pdf": [first, second]})

        result = await gateway.extract(b"%PDF-1.7", "lecture.pdf", "application/pdf")

        assert result.text == "recovered"
        assert result.strategy == "second"
        assert first.calls == 1
        assert second.calls == 1

    @pytest.mark.asyncio
    async def test_first_success_short_circuits(self) -> None:
        first = _StubStrategy("first", ExtractedContent(text="ok", page_count=1, strategy="first"))
        second = _StubStrategy("second", ExtractedContent(text="never", strategy="second"))
        gateway = ExtractionGateway({"pdf": [first, second]})

        result = await gateway.extract(b"%PDF", "a.pdf")

        assert result.strategy == "first"
        assert second.calls == 0

    @pytest.mark.asyncio
    async def test_exhausted_chain_lists_attempts(self) -> None:
        gateway = ExtractionGateway({"pdf": [_StubStrategy("one"), _StubStrategy("two")]})

        with pytest.raises(ExtractionFailedError) as exc_info:
            await gateway.extract(b"%PDF", "broken.pdf")

        attempts = exc_info.value.attempts
        assert len(attempts) == 2
        assert attempts[0].startswith("one:")
        assert attempts[1].startswith("two:")
        assert exc_info.value.retryable is False


class TestFormatResolution:
    @pytest.mark.asyncio
    async def test_unsupported_extension_and_media_type(self) -> None:
        gateway = ExtractionGateway()

        with pytest.raises(UnsupportedFormatError):
            await gateway.extract(b"\x89PNG", "photo.png", "image/png")

    def test_extension_wins_over_media_type(self) -> None:
        gateway = ExtractionGateway()

        assert gateway.resolve_format(_doc(b"x", "notes.txt", "application/octet-stream")) == "text"
        assert gateway.resolve_format(_doc(b"x", "deck.PPTX", "application/octet-stream")) == "pptx"

    def test_media_type_fallback(self) -> None:
        gateway = ExtractionGateway()

        assert gateway.resolve_format(_doc(b"x", "upload", "application/pdf")) == "pdf"
        assert gateway.resolve_format(_doc(b"x", "upload", "text/markdown; charset=utf-8")) == "text"

    @pytest.mark.asyncio
    async def test_known_format_without_chain_rejected_at_extract(self) -> None:
        gateway = ExtractionGateway({"text": [PlainTextStrategy()]})

        with pytest.raises(UnsupportedFormatError):
            await gateway.extract(b"%PDF", "a.pdf")

    def test_supported_formats(self) -> None:
        assert ExtractionGateway().supported_formats == ["docx", "pdf", "pptx", "text"]


class TestUploadLimits:
    @pytest.mark.asyncio
    async def test_empty_upload(self) -> None:
        with pytest.raises(ExtractionFailedError, match="empty"):
            await ExtractionGateway().extract(b"", "empty.txt", "text/plain")

    @pytest.mark.asyncio
    async def test_oversized_upload(self) -> None:
        gateway = ExtractionGateway(max_upload_bytes=10)

        with pytest.raises(ExtractionFailedError, match="limit"):
            await gateway.extract(b"x" * 11, "big.txt", "text/plain")


# ---------------------------------------------------------------------------
# PDF strategies
# ---------------------------------------------------------------------------


class TestPdfExtraction:
    @pytest.mark.asyncio
    async def test_text_pages_joined(self) -> None:
        pdf = build_pdf(["Mitochondria make ATP.", "Ribosomes build proteins."])

        result = await ExtractionGateway().extract(pdf, "bio.pdf", "application/pdf")

        assert result.strategy == "pymupdf"
        assert result.page_count == 2
        assert "Mitochondria make ATP." in result.text
        assert "Ribosomes build proteins." in result.text
        assert "\n\n" in result.text

    @pytest.mark.asyncio
    async def test_image_only_pdf_is_success(self) -> None:
        pdf = build_pdf([""], image=png_bytes())

        result = await PyMuPDFStrategy().extract(_doc(pdf))

        assert result.text == ""
        assert len(result.images) == 1
        image = result.images[0]
        assert image.page_number == 1
        assert image.bbox is not None
        assert image.data
        assert image.content_hash

    @pytest.mark.asyncio
    async def test_repeated_image_kept_once(self) -> None:
        pdf = build_pdf(["Page one text.", "Page two text."], image=png_bytes())

        result = await PyMuPDFStrategy().extract(_doc(pdf))

        assert len(result.images) == 1
        assert result.images[0].page_number == 1

    @pytest.mark.asyncio
    async def test_encrypted_pdf_exhausts_chain(self) -> None:
        pdf = build_pdf(["Secret notes."], encrypt=True)

        with pytest.raises(ExtractionFailedError) as exc_info:
            await ExtractionGateway().extract(pdf, "locked.pdf", "application/pdf")

        assert len(exc_info.value.attempts) == 2

    @pytest.mark.asyncio
    async def test_zero_page_pdf_rejected(self) -> None:
        fake_doc = MagicMock()
        fake_doc.needs_pass = False
        fake_doc.page_count = 0

        with patch("src.services.extraction.pdf_strategies.fitz.open", return_value=fake_doc):
            with pytest.raises(ExtractionStrategyError, match="no pages"):
                await PyMuPDFStrategy().extract(_doc(b"%PDF-1.7"))
        fake_doc.close.assert_called_once()

    @pytest.mark.asyncio
    async def test_garbage_bytes_rejected_by_both(self) -> None:
        with pytest.raises(ExtractionStrategyError):
            await PyMuPDFStrategy().extract(_doc(b"definitely not a pdf"))
        with pytest.raises(ExtractionStrategyError):
            await PypdfTextStrategy().extract(_doc(b"definitely not a pdf"))

    @pytest.mark.asyncio
    async def test_pypdf_reads_text(self) -> None:
        pdf = build_pdf(["Photosynthesis happens in chloroplasts."])

        result = await PypdfTextStrategy().extract(_doc(pdf))

        assert result.strategy == "pypdf"
        assert result.page_count == 1
        assert "chloroplasts" in result.text
        assert result.images == []


# ---------------------------------------------------------------------------
# Office and text strategies
# ---------------------------------------------------------------------------


class TestOfficeExtraction:
    @pytest.mark.asyncio
    async def test_docx_paragraphs_tables_and_images(self) -> None:
        data = build_docx(
            ["The French Revolution began in 1789.", "The Estates-General met at Versailles."],
            table=[["Year", "Event"], ["1789", "Bastille"]],
            image=png_bytes(),
        )

        result = await DocxStrategy().extract(_doc(data, "history.docx"))

        assert result.page_count == 1
        assert "The French Revolution began in 1789." in result.text
        assert "1789 | Bastille" in result.text
        assert len(result.images) == 1
        assert result.images[0].mime_type == "image/png"

    @pytest.mark.asyncio
    async def test_pptx_slides_are_pages(self) -> None:
        data = build_pptx(
            [["Cell Biology", "Lecture 1"], ["The nucleus stores DNA"]],
            images={2: png_bytes()},
        )

        result = await PptxStrategy().extract(_doc(data, "deck.pptx"))

        assert result.page_count == 2
        assert result.text == "Cell Biology Lecture 1\n\nThe nucleus stores DNA"
        assert len(result.images) == 1
        assert result.images[0].page_number == 2
        assert result.images[0].mime_type == "image/png"
        assert result.images[0].bbox[:2] == pytest.approx((72.0, 288.0))
        assert result.strategy == "python-pptx"

    @pytest.mark.asyncio
    async def test_pptx_rejects_non_zip(self) -> None:
        with pytest.raises(ExtractionStrategyError, match="not a valid PPTX"):
            await PptxStrategy().extract(_doc(b"plain bytes", "deck.pptx"))

    @pytest.mark.asyncio
    async def test_pptx_without_slides(self) -> None:
        data = build_pptx([])

        with pytest.raises(ExtractionStrategyError, match="no slides"):
            await PptxStrategy().extract(_doc(data, "deck.pptx"))


class TestPlainText:
    @pytest.mark.asyncio
    async def test_decodes_and_normalizes_newlines(self) -> None:
        data = "\ufeffLine one\r\nLine two\r\n".encode()

        result = await ExtractionGateway().extract(data, "notes.txt", "text/plain")

        assert result.text == "Line one\nLine two"
        assert result.strategy == "plain-text"
        assert result.page_count == 1

    @pytest.mark.asyncio
    async def test_whitespace_only_fails(self) -> None:
        with pytest.raises(ExtractionFailedError):
            await ExtractionGateway().extract(b"   \n\n  ", "blank.md", "text/markdown")


class TestImageCollector:
    def test_drops_small_and_duplicate_images(self) -> None:
        collector = ImageCollector(min_area=5000)

        assert collector.add(b"icon", mime_type="image/png", width=16, height=16) is False
        assert collector.add(b"figure", mime_type="image/png", width=200, height=100) is True
        assert collector.add(b"figure", mime_type="image/png", width=200, height=100) is False

        assert collector.skipped_small == 1
        assert collector.skipped_duplicate == 1
        assert len(collector.images) == 1

    def test_unknown_dimensions_are_kept(self) -> None:
        collector = ImageCollector()

        assert collector.add(b"blob", mime_type="image/jpeg") is True
