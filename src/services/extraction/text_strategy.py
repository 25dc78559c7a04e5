"""Plain-text extraction (txt, md, csv, json and other text/* uploads)."""

from __future__ import annotations

from src.interfaces.extraction_strategy import IExtractionStrategy
from src.models.document import ExtractedContent, SourceDocument
from src.utils.errors import ExtractionStrategyError


class PlainTextStrategy(IExtractionStrategy):
    """Decodes the upload as UTF-8, replacing undecodable bytes."""

    def get_name(self) -> str:
        return "plain-text"

    async def extract(self, document: SourceDocument) -> ExtractedContent:
        text = document.content.decode("utf-8-sig", errors="replace").replace("\r\n", "\n")
        if not text.strip():
            raise ExtractionStrategyError(
                message=f"{document.filename} contains no text",
                provider_name=self.get_name(),
            )
        return ExtractedContent(text=text.strip(), page_count=1, strategy=self.get_name())
