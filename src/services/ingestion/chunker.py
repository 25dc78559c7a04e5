"""Character-window text chunking with sentence-boundary preference.

Splits extracted text into :class:`~src.models.rag.TextChunk` objects sized
for embedding (1000 characters, 200 overlap by default).

For each window of ``chunk_size`` characters:

1. If the window reaches the end of the text, it is the last chunk.
2. Otherwise look backward for the last sentence terminator (``.``, ``!``,
   ``?``) or newline.  If it sits in the back half of the window, cut the
   window just after it; otherwise keep the raw edge.
3. The next window starts ``len(window) - overlap`` characters later, and
   always at least one character later.

Windows whose stripped text is shorter than ``min_chunk_length`` are noise
(page numbers, stray headers) and are dropped.  The function is pure: the
same text and parameters always give the same chunks.
"""

from __future__ import annotations

import structlog

from src.models.rag import TextChunk

logger = structlog.get_logger(logger_name=__name__)

_BOUNDARY_CHARS = (".", "!", "?", "\n")


class TextChunker:
    """Splits text into overlapping, boundary-aligned character windows.

    Parameters
    ----------
    chunk_size:
        Maximum window length in characters (default 1000).
    overlap:
        Characters shared between consecutive windows (default 200).
        Values at or above ``chunk_size`` are allowed; the window still
        advances by at least one character.
    min_chunk_length:
        Windows shorter than this after stripping are dropped (default 50).
    boundary_tolerance:
        Fraction of the window, measured from its start, before which a
        boundary is ignored.  0.5 means only the back half is searched.
    """

    def __init__(
        self,
        chunk_size: int = 1000,
        overlap: int = 200,
        min_chunk_length: int = 50,
        boundary_tolerance: float = 0.5,
    ) -> None:
        if chunk_size <= 0:
            raise ValueError("chunk_size must be positive")
        if overlap < 0:
            raise ValueError("overlap must not be negative")
        if not 0.0 <= boundary_tolerance < 1.0:
            raise ValueError("boundary_tolerance must be in [0, 1)")
        self._chunk_size = chunk_size
        self._overlap = overlap
        self._min_chunk_length = min_chunk_length
        self._boundary_tolerance = boundary_tolerance

    @property
    def chunk_size(self) -> int:
        return self._chunk_size

    @property
    def overlap(self) -> int:
        return self._overlap

    @property
    def min_chunk_length(self) -> int:
        return self._min_chunk_length

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def chunk(self, text: str) -> list[TextChunk]:
        """Split *text* into :class:`TextChunk` objects in document order.

        Empty or whitespace-only input returns an empty list.
        """
        if not text or not text.strip():
            return []

        text_length = len(text)
        min_cut = max(1, int(self._chunk_size * self._boundary_tolerance))
        chunks: list[TextChunk] = []
        start = 0

        while start < text_length:
            end = min(start + self._chunk_size, text_length)
            if end < text_length:
                cut = self._find_boundary(text, start, end)
                if cut is not None and cut - start >= min_cut:
                    end = cut

            window = text[start:end]
            piece = window.strip()
            if len(piece) >= self._min_chunk_length:
                chunks.append(
                    TextChunk(
                        index=len(chunks),
                        text=piece,
                        length=len(piece),
                        start=start,
                        end=end,
                    )
                )

            if end >= text_length:
                break
            start += max(len(window) - self._overlap, 1)

        logger.debug(
            "chunking_complete",
            num_chunks=len(chunks),
            text_length=text_length,
            chunk_size=self._chunk_size,
            overlap=self._overlap,
        )
        return chunks

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    @staticmethod
    def _find_boundary(text: str, start: int, end: int) -> int | None:
        """Return the offset just past the last boundary in ``text[start:end]``."""
        best = max(text.rfind(ch, start, end) for ch in _BOUNDARY_CHARS)
        if best < start:
            return None
        return best + 1


def chunk(text: str, size: int = 1000, overlap: int = 200, min_length: int = 50) -> list[TextChunk]:
    """Functional shortcut for ``TextChunker(size, overlap, min_length).chunk(text)``."""
    return TextChunker(chunk_size=size, overlap=overlap, min_chunk_length=min_length).chunk(text)
