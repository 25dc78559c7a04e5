"""Abstract base class for one document-parsing routine.

The extraction gateway holds an ordered chain of strategies per format and
tries them in turn.  A strategy signals "I could not parse this" by raising
:class:`~src.utils.errors.ExtractionStrategyError`; the gateway then moves
on to the next strategy.

Strategies run on the calling task.  Long parses yield to the event loop
between pages (``await asyncio.sleep(0)``) instead of using threads.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from src.models.document import ExtractedContent, SourceDocument


# Concrete implementations: PyMuPDFStrategy, PypdfTextStrategy, DocxStrategy,
# PptxStrategy, PlainTextStrategy
# Located in: src/services/extraction/
class IExtractionStrategy(ABC):
    """Contract for a single extraction strategy."""

    @abstractmethod
    async def extract(self, document: SourceDocument) -> ExtractedContent:
        """Parse ``document`` into text and images.

        Raises
        ------
        src.utils.errors.ExtractionStrategyError
            If this strategy cannot parse the document (corrupt, encrypted,
            zero pages).
        """

    @abstractmethod
    def get_name(self) -> str:
        """Return a short identifier used in logs, e.g. ``"pymupdf"``."""
