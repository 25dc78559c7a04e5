"""Collects images found while parsing a document.

Drops images below a minimum pixel area (icons, bullets, spacer GIFs) when
their dimensions are known, and drops byte-identical repeats such as a logo
printed on every page.  Dedupe is by sha256 of the raw bytes.
"""

from __future__ import annotations

import hashlib

from src.models.document import ExtractedImage

MIN_IMAGE_AREA = 5000


class ImageCollector:
    """Accumulates unique, non-trivial images in document order."""

    def __init__(self, min_area: int = MIN_IMAGE_AREA) -> None:
        self._min_area = min_area
        self._seen: set[str] = set()
        self._images: list[ExtractedImage] = []
        self.skipped_small = 0
        self.skipped_duplicate = 0

    def add(
        self,
        data: bytes,
        *,
        mime_type: str,
        page_number: int | None = None,
        bbox: tuple[float, float, float, float] | None = None,
        width: int = 0,
        height: int = 0,
    ) -> bool:
        """Keep the image unless it is too small or already seen.  Returns whether it was kept."""
        if width and height and width * height < self._min_area:
            self.skipped_small += 1
            return False
        digest = hashlib.sha256(data).hexdigest()
        if digest in self._seen:
            self.skipped_duplicate += 1
            return False
        self._seen.add(digest)
        self._images.append(
            ExtractedImage(
                page_number=page_number,
                bbox=bbox,
                data=data,
                mime_type=mime_type,
                width=width,
                height=height,
                content_hash=digest,
            )
        )
        return True

    @property
    def images(self) -> list[ExtractedImage]:
        return list(self._images)
