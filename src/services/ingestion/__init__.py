"""Document ingestion: chunking, embedding, analysis and storage."""

from src.services.ingestion.chunker import TextChunker, chunk
from src.services.ingestion.content_analyzer import ContentAnalyzer
from src.services.ingestion.embedding_service import EmbeddingService
from src.services.ingestion.ingestion_service import IngestionService

__all__ = ["ContentAnalyzer", "EmbeddingService", "IngestionService", "TextChunker", "chunk"]
