"""Document models: the uploaded source and what extraction pulls out of it.

A :class:`SourceDocument` lives only as long as the extraction call; the
:class:`ExtractedContent` it yields is what the chunker and the synthesizer
consume.  Images are kept by reference inside ExtractedContent and are
later pointed to (not copied) by file-sourced diagrams in study notes.
"""

from __future__ import annotations

import base64
from pathlib import PurePath

from pydantic import BaseModel, ConfigDict, Field


class SourceDocument(BaseModel):
    """An uploaded document: raw bytes plus what the client said it was."""

    model_config = ConfigDict(frozen=True)

    content: bytes = Field(description="Raw uploaded bytes.")
    filename: str = Field(description="Original filename as sent by the client.")
    media_type: str = Field(
        default="application/octet-stream",
        description="Declared media type (Content-Type of the upload part).",
    )

    @property
    def size(self) -> int:
        return len(self.content)

    @property
    def extension(self) -> str:
        """Lower-cased file extension without the dot, or ``""``."""
        return PurePath(self.filename).suffix.lower().lstrip(".")


class ExtractedImage(BaseModel):
    """An image found inside a document.

    ``bbox`` is ``(x0, y0, x1, y1)`` in page coordinates when the parser can
    place the image on its page; front ends use it for highlighting.
    """

    model_config = ConfigDict(frozen=True)

    page_number: int | None = Field(default=None, ge=1, description="1-based page number.")
    bbox: tuple[float, float, float, float] | None = Field(
        default=None, description="Bounding box (x0, y0, x1, y1) on the page."
    )
    data: bytes | None = Field(default=None, description="Raw image bytes, when embedded.")
    url: str | None = Field(default=None, description="Image URL, when not embedded.")
    mime_type: str = Field(default="image/png")
    width: int = Field(default=0, ge=0)
    height: int = Field(default=0, ge=0)
    caption: str | None = None
    content_hash: str = Field(default="", description="sha256 of the image bytes.")

    def as_base64(self) -> str | None:
        if self.data is None:
            return None
        return base64.b64encode(self.data).decode("ascii")


class ExtractedContent(BaseModel):
    """Normalized output of the extraction gateway."""

    model_config = ConfigDict(frozen=True)

    text: str = Field(default="", description="Page texts joined by blank lines.")
    images: list[ExtractedImage] = Field(default_factory=list)
    page_count: int = Field(default=0, ge=0)
    strategy: str = Field(default="", description="Name of the strategy that succeeded.")

    @property
    def has_text(self) -> bool:
        return bool(self.text.strip())
