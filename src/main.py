"""BrainBrawl FastAPI application entry point.

Wires providers and services together via dependency injection.  Loads
configuration from ``.env`` and ``config/config.yaml``, configures
structured logging, and builds every backend once at startup: the
text-generation backend named by ``AI_PROVIDER`` is the only one the
pipeline ever sees, so no code downstream branches on provider names.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any

import structlog
import uvicorn
from fastapi import FastAPI

from src.api.middleware import (
    ErrorHandlingMiddleware,
    RequestLoggingMiddleware,
    configure_cors,
)
from src.api.routes import router as api_router
from src.config.loader import load_config
from src.config.settings import Settings
from src.interfaces.embedding_provider import IEmbeddingProvider
from src.interfaces.llm_provider import ILLMProvider
from src.interfaces.usage_sink import IUsageSink
from src.interfaces.vector_store_provider import IVectorStoreProvider
from src.models.llm import ModelPricing
from src.providers.embedding.nomic_embedding_provider import NomicEmbeddingProvider
from src.providers.embedding.openai_embedding_provider import OpenAIEmbeddingProvider
from src.providers.llm.anthropic_provider import AnthropicLLMProvider
from src.providers.llm.moonshot_provider import MoonshotLLMProvider
from src.providers.llm.ollama_provider import OllamaLLMProvider
from src.providers.llm.openai_provider import OpenAILLMProvider
from src.providers.llm.openrouter_provider import OpenRouterLLMProvider
from src.providers.quota.unlimited_quota_provider import UnlimitedQuotaProvider
from src.providers.usage.memory_usage_sink import InMemoryUsageSink
from src.providers.vector_store.chromadb_provider import ChromaDBProvider
from src.providers.vector_store.memory_vector_store import InMemoryVectorStore
from src.services.extraction.gateway import ExtractionGateway
from src.services.ingestion.chunker import TextChunker
from src.services.ingestion.content_analyzer import ContentAnalyzer
from src.services.ingestion.embedding_service import EmbeddingService
from src.services.ingestion.ingestion_service import IngestionService
from src.services.provider_comparison import ProviderComparison
from src.services.retrieval_service import RetrievalService
from src.services.synthesis.schema import OutputSchema
from src.services.synthesis.synthesizer import Synthesizer
from src.utils.errors import ConfigurationError
from src.utils.logging import configure_logging, get_logger

_VERSION = "0.1.0"

# ---------------------------------------------------------------------------
# Module-level settings & logging
# ---------------------------------------------------------------------------

settings = Settings()
config = load_config(settings=settings)

configure_logging(
    log_level=settings.log_level,
    json_output=(settings.app_env == "production"),
)
_logger: structlog.BoundLogger = get_logger(__name__)

_LLM_BACKENDS: dict[str, Any] = {
    "openai": OpenAILLMProvider,
    "moonshot": MoonshotLLMProvider,
    "openrouter": OpenRouterLLMProvider,
    "anthropic": AnthropicLLMProvider,
    "ollama": OllamaLLMProvider,
}


# ---------------------------------------------------------------------------
# Provider selection
# ---------------------------------------------------------------------------


def _build_pricing(app_config: dict[str, Any]) -> dict[str, ModelPricing]:
    """Per-backend prices from ``llm.pricing`` in config.yaml."""
    table = app_config.get("llm", {}).get("pricing", {}) or {}
    return {
        name: ModelPricing(
            input_per_million=float(prices.get("input", 0.0)),
            output_per_million=float(prices.get("output", 0.0)),
        )
        for name, prices in table.items()
    }


def _build_llm_provider(
    name: str,
    app_settings: Settings,
    usage_sink: IUsageSink | None = None,
    pricing: dict[str, ModelPricing] | None = None,
) -> ILLMProvider:
    """Construct the named text-generation backend.

    Raises
    ------
    ConfigurationError
        For an unknown backend name or one without credentials.
    """
    key = name.strip().lower()
    backend_cls = _LLM_BACKENDS.get(key)
    if backend_cls is None:
        raise ConfigurationError(
            message=f"Unknown AI provider {name!r}; choose one of {', '.join(_LLM_BACKENDS)}"
        )
    provider: ILLMProvider = backend_cls(
        settings=app_settings,
        usage_sink=usage_sink,
        pricing=(pricing or {}).get(key),
    )
    if not provider.is_available():
        raise ConfigurationError(
            message=f"AI provider {key!r} is selected but has no credentials configured",
            provider_name=key,
        )
    return provider


def _build_embedding_provider(app_settings: Settings) -> IEmbeddingProvider:
    """OpenAI (or an OpenAI-compatible gateway), or Nomic served by Ollama."""
    choice = app_settings.embedding_provider.strip().lower()
    if choice == "nomic":
        return NomicEmbeddingProvider(settings=app_settings)
    if choice != "openai":
        raise ConfigurationError(
            message=f"Unknown embedding provider {choice!r}; choose openai or nomic"
        )
    provider = OpenAIEmbeddingProvider(settings=app_settings)
    if not provider.is_available():
        raise ConfigurationError(
            message="EMBEDDING_PROVIDER=openai requires OPENAI_API_KEY",
            provider_name="openai",
        )
    return provider


def _build_vector_store(app_settings: Settings) -> IVectorStoreProvider:
    choice = app_settings.vector_store.strip().lower()
    if choice == "memory":
        return InMemoryVectorStore()
    if choice != "chromadb":
        raise ConfigurationError(
            message=f"Unknown vector store {choice!r}; choose chromadb or memory"
        )
    return ChromaDBProvider(
        persist_directory=app_settings.chromadb_persist_dir,
        collection_name=app_settings.chromadb_collection,
    )


# ---------------------------------------------------------------------------
# Full DI assembly for the FastAPI application
# ---------------------------------------------------------------------------


def _build_all(app_settings: Settings, app_config: dict[str, Any]) -> dict[str, Any]:
    """Construct every provider and service; keys become ``app.state`` attributes."""
    usage_sink = InMemoryUsageSink()
    pricing = _build_pricing(app_config)

    llm = _build_llm_provider(app_settings.ai_provider, app_settings, usage_sink, pricing)
    embedding_provider = _build_embedding_provider(app_settings)
    vector_store = _build_vector_store(app_settings)
    embedding_service = EmbeddingService(embedding_provider)

    analysis_cfg = app_config.get("analysis", {})
    synthesis_cfg = app_config.get("synthesis", {})

    gateway = ExtractionGateway(max_upload_bytes=app_settings.max_upload_bytes)
    chunker = TextChunker(
        chunk_size=app_settings.chunk_size,
        overlap=app_settings.chunk_overlap,
        min_chunk_length=app_settings.min_chunk_length,
    )
    analyzer = ContentAnalyzer(
        llm,
        sample_chars=int(analysis_cfg.get("sample_chars", 2000)),
        temperature=float(analysis_cfg.get("temperature", 0.3)),
        max_tokens=int(analysis_cfg.get("max_tokens", 500)),
    )
    ingestion_service = IngestionService(
        gateway=gateway,
        chunker=chunker,
        embedding_service=embedding_service,
        analyzer=analyzer,
        vector_store=vector_store,
        quota=UnlimitedQuotaProvider(),
    )
    retrieval_service = RetrievalService(
        embedding_service,
        vector_store,
        default_threshold=app_settings.search_threshold,
        default_max_results=app_settings.search_max_results,
    )
    synthesizer = Synthesizer(
        llm,
        OutputSchema.from_models(),
        excerpt_chars=app_settings.synthesis_excerpt_chars,
        temperature=app_settings.synthesis_temperature,
        notes_max_tokens=int(synthesis_cfg.get("notes_max_tokens", 8000)),
        quiz_base_tokens=int(synthesis_cfg.get("quiz_base_tokens", 500)),
        quiz_tokens_per_question=int(synthesis_cfg.get("quiz_tokens_per_question", 400)),
        strict_answer_index=app_settings.strict_answer_index,
        allow_image_only_notes=app_settings.allow_image_only_notes,
    )

    comparison: ProviderComparison | None = None
    comparison_name = app_settings.comparison_provider.strip()
    if comparison_name:
        secondary = _build_llm_provider(comparison_name, app_settings, usage_sink, pricing)
        comparison = ProviderComparison(
            llm,
            secondary,
            primary_pricing=pricing.get(app_settings.ai_provider.strip().lower()),
            secondary_pricing=pricing.get(comparison_name.lower()),
        )

    provider_registry = {
        "llm": llm.get_provider_name(),
        "llm_model": llm.get_default_model(),
        "embedding": embedding_provider.get_provider_name(),
        "vector_store": vector_store.get_provider_name(),
        "comparison": comparison_name or None,
    }

    return {
        "settings": app_settings,
        "config": app_config,
        "usage_sink": usage_sink,
        "primary_llm": llm,
        "vector_store": vector_store,
        "extraction_gateway": gateway,
        "ingestion_service": ingestion_service,
        "retrieval_service": retrieval_service,
        "synthesizer": synthesizer,
        "provider_comparison": comparison,
        "provider_registry": provider_registry,
    }


# ---------------------------------------------------------------------------
# Application lifespan
# ---------------------------------------------------------------------------


@asynccontextmanager
async def _lifespan(application: FastAPI):  # noqa: ANN201
    """Build all providers and services on startup, log usage on shutdown."""
    components = _build_all(settings, config)

    for key, value in components.items():
        setattr(application.state, key, value)

    _logger.info(
        "app_startup",
        version=_VERSION,
        environment=settings.app_env,
        **components["provider_registry"],
    )

    yield

    usage_sink: InMemoryUsageSink = components["usage_sink"]
    _logger.info(
        "app_shutdown",
        llm_calls=len(usage_sink.records()),
        total_cost_usd=round(usage_sink.total_cost(), 6),
    )


# ---------------------------------------------------------------------------
# FastAPI application factory
# ---------------------------------------------------------------------------


def create_app() -> FastAPI:
    """Build and configure the FastAPI application."""
    application = FastAPI(
        title="BrainBrawl API",
        version=_VERSION,
        description=(
            "Upload study documents, search them semantically, and generate "
            "schema-validated study notes and quizzes from their content."
        ),
        lifespan=_lifespan,
    )

    # -- Middleware (order matters: last added = first executed) --
    application.add_middleware(ErrorHandlingMiddleware)
    application.add_middleware(RequestLoggingMiddleware)
    configure_cors(application)

    # -- API routes --
    application.include_router(api_router)

    return application


app = create_app()

# ---------------------------------------------------------------------------
# CLI entry point
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    uvicorn.run(
        "src.main:app",
        host=settings.app_host,
        port=settings.app_port,
        reload=(settings.app_env == "development"),
    )
