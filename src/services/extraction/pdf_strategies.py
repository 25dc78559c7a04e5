"""PDF extraction strategies.

Two strategies, tried in this order by the gateway:

1. :class:`PyMuPDFStrategy` -- structured parse with PyMuPDF: page text plus
   embedded raster images with their on-page bounding boxes.
2. :class:`PypdfTextStrategy` -- pypdf's page-text scanner.  It recovers
   text from some files PyMuPDF rejects (broken xref tables, odd encodings)
   but extracts no images.

Both run in-process on the calling task and yield to the event loop after
each page.  Neither renders glyphs, so no font files are ever loaded; text
comes from the content streams and embedded font encodings only.
"""

from __future__ import annotations

import asyncio
import io

import fitz  # PyMuPDF -- the "fitz" import name is a PyMuPDF convention
import pypdf
import structlog

from src.interfaces.extraction_strategy import IExtractionStrategy
from src.models.document import ExtractedContent, SourceDocument
from src.services.extraction.images import ImageCollector
from src.utils.errors import ExtractionStrategyError

logger = structlog.get_logger(logger_name=__name__)

PAGE_SEPARATOR = "\n\n"


class PyMuPDFStrategy(IExtractionStrategy):
    """Text and images via PyMuPDF."""

    def __init__(self, extract_images: bool = True) -> None:
        self._extract_images = extract_images

    def get_name(self) -> str:
        return "pymupdf"

    async def extract(self, document: SourceDocument) -> ExtractedContent:
        try:
            doc = fitz.open(stream=document.content, filetype="pdf")
        except Exception as exc:
            raise ExtractionStrategyError(
                message=f"PyMuPDF could not open {document.filename}: {exc}",
                provider_name=self.get_name(),
            ) from exc

        try:
            if doc.needs_pass:
                raise ExtractionStrategyError(
                    message=f"{document.filename} is password protected",
                    provider_name=self.get_name(),
                )
            if doc.page_count == 0:
                raise ExtractionStrategyError(
                    message=f"{document.filename} has no pages",
                    provider_name=self.get_name(),
                )

            collector = ImageCollector()
            page_texts: list[str] = []
            for page_index in range(doc.page_count):
                page_number = page_index + 1
                try:
                    page = doc[page_index]
                    text = page.get_text("text").strip()
                except Exception as exc:  # noqa: BLE001
                    # One unreadable page should not discard the rest.
                    logger.warning(
                        "pdf_page_text_failed",
                        filename=document.filename,
                        page=page_number,
                        error=str(exc),
                    )
                    continue
                if text:
                    page_texts.append(text)
                if self._extract_images:
                    self._collect_page_images(doc, page, page_number, collector)
                await asyncio.sleep(0)

            page_count = doc.page_count
        finally:
            doc.close()

        text = PAGE_SEPARATOR.join(page_texts)
        if not text and not collector.images:
            raise ExtractionStrategyError(
                message=f"No text or images found in {document.filename}",
                provider_name=self.get_name(),
            )

        logger.debug(
            "pymupdf_extracted",
            filename=document.filename,
            pages=page_count,
            chars=len(text),
            images=len(collector.images),
            skipped_small=collector.skipped_small,
            skipped_duplicate=collector.skipped_duplicate,
        )
        return ExtractedContent(
            text=text,
            images=collector.images,
            page_count=page_count,
            strategy=self.get_name(),
        )

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _collect_page_images(
        self,
        doc: fitz.Document,
        page: fitz.Page,
        page_number: int,
        collector: ImageCollector,
    ) -> None:
        try:
            image_refs = page.get_images(full=True)
        except Exception as exc:  # noqa: BLE001
            logger.warning("pdf_image_list_failed", page=page_number, error=str(exc))
            return

        for image_ref in image_refs:
            xref = image_ref[0]
            try:
                info = doc.extract_image(xref)
            except Exception as exc:  # noqa: BLE001
                logger.debug("pdf_image_extract_failed", page=page_number, xref=xref, error=str(exc))
                continue
            if not info or not info.get("image"):
                continue

            bbox: tuple[float, float, float, float] | None = None
            try:
                rects = page.get_image_rects(xref)
            except Exception:  # noqa: BLE001
                rects = []
            if rects:
                rect = rects[0]
                bbox = (float(rect.x0), float(rect.y0), float(rect.x1), float(rect.y1))

            collector.add(
                info["image"],
                mime_type=f"image/{info.get('ext', 'png')}",
                page_number=page_number,
                bbox=bbox,
                width=int(info.get("width", 0)),
                height=int(info.get("height", 0)),
            )


class PypdfTextStrategy(IExtractionStrategy):
    """Page text via pypdf.  No images."""

    def get_name(self) -> str:
        return "pypdf"

    async def extract(self, document: SourceDocument) -> ExtractedContent:
        try:
            reader = pypdf.PdfReader(io.BytesIO(document.content))
            if reader.is_encrypted:
                raise ExtractionStrategyError(
                    message=f"{document.filename} is encrypted",
                    provider_name=self.get_name(),
                )
            page_count = len(reader.pages)
        except ExtractionStrategyError:
            raise
        except Exception as exc:
            raise ExtractionStrategyError(
                message=f"pypdf could not read {document.filename}: {exc}",
                provider_name=self.get_name(),
            ) from exc

        if page_count == 0:
            raise ExtractionStrategyError(
                message=f"{document.filename} has no pages",
                provider_name=self.get_name(),
            )

        page_texts: list[str] = []
        for page_index in range(page_count):
            try:
                text = (reader.pages[page_index].extract_text() or "").strip()
            except Exception as exc:  # noqa: BLE001
                logger.warning(
                    "pdf_page_text_failed",
                    filename=document.filename,
                    page=page_index + 1,
                    error=str(exc),
                )
                text = ""
            if text:
                page_texts.append(text)
            await asyncio.sleep(0)

        text = PAGE_SEPARATOR.join(page_texts)
        if not text:
            raise ExtractionStrategyError(
                message=f"No extractable text in {document.filename}",
                provider_name=self.get_name(),
            )
        return ExtractedContent(text=text, page_count=page_count, strategy=self.get_name())
