"""Extraction gateway: any supported upload -> :class:`ExtractedContent`.

The gateway resolves a document's format, then walks that format's ordered
strategy chain.  A strategy that fails (raises) is logged and skipped; the
first strategy to return wins.  Only when the whole chain is exhausted does
the caller see :class:`ExtractionFailedError`, carrying one line per
attempt.

Format resolution looks at the file extension first and falls back to the
declared media type, so ``notes.txt`` sent as ``application/octet-stream``
and ``upload`` sent as ``application/pdf`` both work.
"""

from __future__ import annotations

import time

import structlog

from src.interfaces.extraction_strategy import IExtractionStrategy
from src.models.document import ExtractedContent, SourceDocument
from src.services.extraction.office_strategies import DocxStrategy, PptxStrategy
from src.services.extraction.pdf_strategies import PyMuPDFStrategy, PypdfTextStrategy
from src.services.extraction.text_strategy import PlainTextStrategy
from src.utils.errors import ExtractionFailedError, UnsupportedFormatError

logger = structlog.get_logger(logger_name=__name__)

_EXTENSION_FORMATS: dict[str, str] = {
    "pdf": "pdf",
    "docx": "docx",
    "pptx": "pptx",
    "txt": "text",
    "text": "text",
    "md": "text",
    "markdown": "text",
    "csv": "text",
    "json": "text",
}

_MEDIA_TYPE_FORMATS: dict[str, str] = {
    "application/pdf": "pdf",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document": "docx",
    "application/vnd.openxmlformats-officedocument.presentationml.presentation": "pptx",
    "application/json": "text",
}


def default_strategy_chains() -> dict[str, list[IExtractionStrategy]]:
    """The production strategy chain for every supported format."""
    return {
        "pdf": [PyMuPDFStrategy(), PypdfTextStrategy()],
        "docx": [DocxStrategy()],
        "pptx": [PptxStrategy()],
        "text": [PlainTextStrategy()],
    }


class ExtractionGateway:
    """Normalizes uploads into text plus images via ordered strategy chains."""

    def __init__(
        self,
        strategies: dict[str, list[IExtractionStrategy]] | None = None,
        max_upload_bytes: int | None = None,
    ) -> None:
        self._strategies = strategies if strategies is not None else default_strategy_chains()
        self._max_upload_bytes = max_upload_bytes

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def extract(
        self,
        content: bytes,
        filename: str,
        media_type: str = "application/octet-stream",
    ) -> ExtractedContent:
        """Extract text and images from raw upload bytes.

        Raises
        ------
        UnsupportedFormatError
            No strategy chain exists for the file's format.
        ExtractionFailedError
            The upload is empty or too large, or every strategy failed.
        """
        document = SourceDocument(content=content, filename=filename, media_type=media_type)
        return await self.extract_document(document)

    async def extract_document(self, document: SourceDocument) -> ExtractedContent:
        fmt = self.resolve_format(document)
        chain = self._strategies.get(fmt) or []
        if not chain:
            raise UnsupportedFormatError(
                message=f"No extraction strategy configured for {fmt} ({document.filename})"
            )
        if document.size == 0:
            raise ExtractionFailedError(message=f"{document.filename} is empty")
        if self._max_upload_bytes is not None and document.size > self._max_upload_bytes:
            raise ExtractionFailedError(
                message=(
                    f"{document.filename} is {document.size} bytes; "
                    f"the limit is {self._max_upload_bytes}"
                )
            )

        started = time.perf_counter()
        attempts: list[str] = []
        for strategy in chain:
            name = strategy.get_name()
            try:
                result = await strategy.extract(document)
            except Exception as exc:  # noqa: BLE001
                attempts.append(f"{name}: {exc}")
                logger.warning(
                    "extraction_strategy_failed",
                    filename=document.filename,
                    strategy=name,
                    error=str(exc),
                    error_type=type(exc).__name__,
                )
                continue

            logger.info(
                "extraction_complete",
                filename=document.filename,
                format=fmt,
                strategy=name,
                pages=result.page_count,
                chars=len(result.text),
                images=len(result.images),
                attempts=len(attempts) + 1,
                elapsed_ms=round((time.perf_counter() - started) * 1000, 1),
            )
            return result

        logger.error(
            "extraction_exhausted",
            filename=document.filename,
            format=fmt,
            attempts=attempts,
        )
        raise ExtractionFailedError(
            message=f"Could not extract {document.filename}: all {len(chain)} strategies failed",
            attempts=attempts,
        )

    def resolve_format(self, document: SourceDocument) -> str:
        """Map a document to a format key, or raise :class:`UnsupportedFormatError`."""
        fmt = _EXTENSION_FORMATS.get(document.extension)
        if fmt is None:
            media_type = document.media_type.split(";", 1)[0].strip().lower()
            fmt = _MEDIA_TYPE_FORMATS.get(media_type)
            if fmt is None and media_type.startswith("text/"):
                fmt = "text"
        if fmt is None:
            raise UnsupportedFormatError(
                message=(
                    f"Unsupported file type for {document.filename!r} "
                    f"({document.media_type}); supported: "
                    f"{', '.join(sorted(set(_EXTENSION_FORMATS)))}"
                )
            )
        return fmt

    @property
    def supported_formats(self) -> list[str]:
        return sorted(self._strategies)
