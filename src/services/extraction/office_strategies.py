"""Office document extraction strategies (DOCX, PPTX).

* :class:`DocxStrategy` reads paragraphs and table cells with python-docx
  and pulls embedded images from the package relationships.  DOCX has no
  fixed pagination, so the whole body counts as one page.
* :class:`PptxStrategy` walks each slide's shapes with python-pptx.  Slides
  are pages: text frames and tables give the slide text, picture shapes
  give images tagged with the slide number.
"""

from __future__ import annotations

import asyncio
import io

import docx
import pptx
import structlog
from pptx.shapes.group import GroupShape
from pptx.shapes.picture import Picture

from src.interfaces.extraction_strategy import IExtractionStrategy
from src.models.document import ExtractedContent, SourceDocument
from src.services.extraction.images import ImageCollector
from src.utils.errors import ExtractionStrategyError

logger = structlog.get_logger(logger_name=__name__)

_IMAGE_REL_SUFFIX = "/image"
_EMU_PER_POINT = 12700


class DocxStrategy(IExtractionStrategy):
    """Word documents via python-docx."""

    def get_name(self) -> str:
        return "python-docx"

    async def extract(self, document: SourceDocument) -> ExtractedContent:
        try:
            word_doc = docx.Document(io.BytesIO(document.content))
        except Exception as exc:
            raise ExtractionStrategyError(
                message=f"python-docx could not open {document.filename}: {exc}",
                provider_name=self.get_name(),
            ) from exc

        blocks = [para.text.strip() for para in word_doc.paragraphs if para.text.strip()]
        for table in word_doc.tables:
            for row in table.rows:
                cells = [cell.text.strip() for cell in row.cells if cell.text.strip()]
                if cells:
                    blocks.append(" | ".join(cells))
        await asyncio.sleep(0)

        collector = ImageCollector()
        for rel in word_doc.part.rels.values():
            if rel.is_external or not rel.reltype.endswith(_IMAGE_REL_SUFFIX):
                continue
            part = rel.target_part
            collector.add(part.blob, mime_type=part.content_type)

        text = "\n\n".join(blocks)
        if not text and not collector.images:
            raise ExtractionStrategyError(
                message=f"No text or images found in {document.filename}",
                provider_name=self.get_name(),
            )
        return ExtractedContent(
            text=text,
            images=collector.images,
            page_count=1,
            strategy=self.get_name(),
        )


class PptxStrategy(IExtractionStrategy):
    """PowerPoint decks via python-pptx."""

    def get_name(self) -> str:
        return "python-pptx"

    async def extract(self, document: SourceDocument) -> ExtractedContent:
        try:
            deck = pptx.Presentation(io.BytesIO(document.content))
        except Exception as exc:
            raise ExtractionStrategyError(
                message=f"{document.filename} is not a valid PPTX archive: {exc}",
                provider_name=self.get_name(),
            ) from exc

        slides = list(deck.slides)
        if not slides:
            raise ExtractionStrategyError(
                message=f"{document.filename} has no slides",
                provider_name=self.get_name(),
            )

        collector = ImageCollector()
        slide_texts: list[str] = []
        for slide_number, slide in enumerate(slides, start=1):
            lines: list[str] = []
            for shape in _iter_shapes(slide.shapes):
                if shape.has_text_frame:
                    lines.extend(
                        para.text.strip()
                        for para in shape.text_frame.paragraphs
                        if para.text.strip()
                    )
                elif shape.has_table:
                    for row in shape.table.rows:
                        cells = [cell.text.strip() for cell in row.cells if cell.text.strip()]
                        if cells:
                            lines.append(" | ".join(cells))
                elif isinstance(shape, Picture):
                    _collect_picture(shape, slide_number, collector, document.filename)
            if lines:
                slide_texts.append(" ".join(lines))
            await asyncio.sleep(0)

        text = "\n\n".join(slide_texts)
        if not text and not collector.images:
            raise ExtractionStrategyError(
                message=f"No text or images found in {document.filename}",
                provider_name=self.get_name(),
            )
        return ExtractedContent(
            text=text,
            images=collector.images,
            page_count=len(slides),
            strategy=self.get_name(),
        )


def _iter_shapes(shapes):
    # Group shapes nest their members one level down (or more).
    for shape in shapes:
        if isinstance(shape, GroupShape):
            yield from _iter_shapes(shape.shapes)
        else:
            yield shape


def _collect_picture(shape, slide_number: int, collector: ImageCollector, filename: str) -> None:
    try:
        image = shape.image
        width, height = image.size
    except Exception as exc:
        # Linked (not embedded) pictures have no blob to read.
        logger.warning(
            "pptx_picture_unreadable",
            filename=filename,
            slide=slide_number,
            error=str(exc),
        )
        return

    bbox = None
    if None not in (shape.left, shape.top, shape.width, shape.height):
        left, top = shape.left / _EMU_PER_POINT, shape.top / _EMU_PER_POINT
        bbox = (
            left,
            top,
            left + shape.width / _EMU_PER_POINT,
            top + shape.height / _EMU_PER_POINT,
        )
    collector.add(
        image.blob,
        mime_type=image.content_type,
        page_number=slide_number,
        bbox=bbox,
        width=width,
        height=height,
    )
