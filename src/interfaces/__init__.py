"""Public interface definitions for all external service providers.

Every external API or service in the BrainBrawl pipeline is reached only
through the abstract base classes defined here.  Concrete adapters live in
``src/providers/`` (extraction strategies in ``src/services/extraction/``)
and are wired together in ``src/main.py`` at startup.

CONCRETE PROVIDER MAP:
    Interface                  ->  Concrete implementations
    ---------------------------------------------------------------------
    ILLMProvider               ->  OpenAILLMProvider, MoonshotLLMProvider,
                                   OpenRouterLLMProvider, AnthropicLLMProvider,
                                   OllamaLLMProvider
    IEmbeddingProvider         ->  OpenAIEmbeddingProvider, NomicEmbeddingProvider
    IVectorStoreProvider       ->  ChromaDBProvider, InMemoryVectorStore
    IExtractionStrategy        ->  PyMuPDFStrategy, PypdfTextStrategy,
                                   DocxStrategy, PptxStrategy, PlainTextStrategy
    IUsageSink                 ->  InMemoryUsageSink
    IQuotaProvider             ->  UnlimitedQuotaProvider
"""

from src.interfaces.embedding_provider import IEmbeddingProvider
from src.interfaces.extraction_strategy import IExtractionStrategy
from src.interfaces.llm_provider import ILLMProvider
from src.interfaces.quota_provider import IQuotaProvider
from src.interfaces.usage_sink import IUsageSink
from src.interfaces.vector_store_provider import IVectorStoreProvider

__all__ = [
    "IEmbeddingProvider",
    "IExtractionStrategy",
    "ILLMProvider",
    "IQuotaProvider",
    "IUsageSink",
    "IVectorStoreProvider",
]
