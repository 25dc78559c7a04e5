"""Embedding provider implementations.

Two implementations of IEmbeddingProvider:
    - OpenAIEmbeddingProvider -- text-embedding-3-small (1536 dims), needs a key.
    - NomicEmbeddingProvider  -- nomic-embed-text via Ollama (768 dims), local.

EMBEDDING_PROVIDER picks one at startup (src/main.py).
"""

from src.providers.embedding.nomic_embedding_provider import NomicEmbeddingProvider
from src.providers.embedding.openai_embedding_provider import OpenAIEmbeddingProvider

__all__ = ["OpenAIEmbeddingProvider", "NomicEmbeddingProvider"]
