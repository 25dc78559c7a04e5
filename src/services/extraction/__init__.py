"""Document extraction: the gateway and its per-format strategy chains."""

from src.services.extraction.gateway import ExtractionGateway, default_strategy_chains
from src.services.extraction.office_strategies import DocxStrategy, PptxStrategy
from src.services.extraction.pdf_strategies import PyMuPDFStrategy, PypdfTextStrategy
from src.services.extraction.text_strategy import PlainTextStrategy

__all__ = [
    "DocxStrategy",
    "ExtractionGateway",
    "PlainTextStrategy",
    "PptxStrategy",
    "PyMuPDFStrategy",
    "PypdfTextStrategy",
    "default_strategy_chains",
]
