"""Vector store provider implementations.

- ChromaDBProvider    -- persistent local store at CHROMADB_PERSIST_DIR.
- InMemoryVectorStore -- numpy cosine search held in process memory.

VECTOR_STORE picks one at startup (src/main.py).
"""

from src.providers.vector_store.chromadb_provider import ChromaDBProvider
from src.providers.vector_store.memory_vector_store import InMemoryVectorStore

__all__ = ["ChromaDBProvider", "InMemoryVectorStore"]
