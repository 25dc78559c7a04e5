"""Unit tests for the startup factories in src/main.py."""

from __future__ import annotations

from unittest.mock import AsyncMock, patch

import pytest

from src.config.settings import Settings
from src.models.llm import ChatCompletion, ChatMessage, TokenUsage
from src.utils.errors import ConfigurationError


def _settings(**overrides) -> Settings:
    defaults = {
        "ai_provider": "openai",
        "comparison_provider": "",
        "openai_api_key": "sk-test",
        "openai_base_url": "",
        "moonshot_api_key": "",
        "openrouter_api_key": "",
        "anthropic_api_key": "",
        "ollama_base_url": "http://localhost:11434",
        "embedding_provider": "openai",
        "vector_store": "memory",
    }
    defaults.update(overrides)
    return Settings(_env_file=None, **defaults)


_CONFIG = {
    "llm": {"pricing": {"openai": {"input": 2.5, "output": 10.0}, "moonshot": {"input": 0.15}}},
    "synthesis": {"notes_max_tokens": 6000},
}


class TestPricing:
    def test_pricing_table_built_from_config(self) -> None:
        from src.main import _build_pricing

        pricing = _build_pricing(_CONFIG)

        assert pricing["openai"].input_per_million == 2.5
        assert pricing["openai"].output_per_million == 10.0
        assert pricing["moonshot"].output_per_million == 0.0

    def test_missing_pricing_section(self) -> None:
        from src.main import _build_pricing

        assert _build_pricing({}) == {}


class TestLLMProviderFactory:
    @pytest.mark.parametrize(
        ("name", "overrides", "expected"),
        [
            ("openai", {}, "openai"),
            ("moonshot", {"moonshot_api_key": "ms"}, "moonshot"),
            ("openrouter", {"openrouter_api_key": "or"}, "openrouter"),
            ("Anthropic", {"anthropic_api_key": "ak"}, "anthropic"),
            ("ollama", {}, "ollama"),
        ],
    )
    def test_each_backend_selectable(self, name: str, overrides: dict, expected: str) -> None:
        from src.main import _build_llm_provider

        provider = _build_llm_provider(name, _settings(**overrides))

        assert provider.get_provider_name() == expected

    def test_unknown_backend(self) -> None:
        from src.main import _build_llm_provider

        with pytest.raises(ConfigurationError, match="Unknown AI provider"):
            _build_llm_provider("gemini", _settings())

    def test_backend_without_credentials(self) -> None:
        from src.main import _build_llm_provider

        with pytest.raises(ConfigurationError) as exc_info:
            _build_llm_provider("moonshot", _settings())

        assert exc_info.value.provider_name == "moonshot"


class TestEmbeddingAndStoreFactories:
    def test_openai_embeddings_need_key(self) -> None:
        from src.main import _build_embedding_provider

        with pytest.raises(ConfigurationError, match="OPENAI_API_KEY"):
            _build_embedding_provider(_settings(openai_api_key=""))

    def test_nomic_embeddings(self) -> None:
        from src.main import _build_embedding_provider

        provider = _build_embedding_provider(_settings(embedding_provider="nomic"))

        assert provider.get_provider_name() == "nomic_embedding"

    def test_unknown_embedding_provider(self) -> None:
        from src.main import _build_embedding_provider

        with pytest.raises(ConfigurationError):
            _build_embedding_provider(_settings(embedding_provider="fastembed"))

    def test_memory_store(self) -> None:
        from src.main import _build_vector_store

        assert _build_vector_store(_settings()).get_provider_name() == "memory"

    def test_chromadb_store_uses_settings(self) -> None:
        from src.main import _build_vector_store

        with patch("src.main.ChromaDBProvider") as mock_cls:
            _build_vector_store(
                _settings(vector_store="chromadb", chromadb_persist_dir="/tmp/chroma-x")
            )

        assert mock_cls.call_args.kwargs["persist_directory"] == "/tmp/chroma-x"

    def test_unknown_store(self) -> None:
        from src.main import _build_vector_store

        with pytest.raises(ConfigurationError):
            _build_vector_store(_settings(vector_store="pinecone"))


class TestBuildAll:
    def test_components_wired(self) -> None:
        from src.main import _build_all

        components = _build_all(_settings(), _CONFIG)

        for key in (
            "settings",
            "usage_sink",
            "primary_llm",
            "vector_store",
            "extraction_gateway",
            "ingestion_service",
            "retrieval_service",
            "synthesizer",
            "provider_registry",
        ):
            assert components[key] is not None
        assert components["provider_comparison"] is None
        assert components["provider_registry"]["llm"] == "openai"
        assert components["provider_registry"]["vector_store"] == "memory"

    def test_comparison_mode(self) -> None:
        from src.main import _build_all

        components = _build_all(
            _settings(comparison_provider="moonshot", moonshot_api_key="ms"), _CONFIG
        )

        assert components["provider_comparison"] is not None
        assert components["provider_registry"]["comparison"] == "moonshot"

    @pytest.mark.asyncio
    async def test_comparison_prices_by_configured_name(self) -> None:
        from src.main import _build_all

        components = _build_all(
            _settings(
                openai_base_url="https://gateway.example/v1",
                comparison_provider="moonshot",
                moonshot_api_key="ms",
            ),
            _CONFIG,
        )
        usage = TokenUsage(prompt_tokens=1_000_000, completion_tokens=0, total_tokens=1_000_000)
        primary = components["primary_llm"]
        primary.chat_completions = AsyncMock(
            return_value=ChatCompletion(content="a", model="m", provider="openai-compatible", usage=usage)
        )
        secondary = components["provider_comparison"]._secondary
        secondary.chat_completions = AsyncMock(
            return_value=ChatCompletion(content="b", model="k", provider="moonshot", usage=usage)
        )

        report = await components["provider_comparison"].compare(
            [ChatMessage(role="user", content="hi")]
        )

        assert report.primary.provider == "openai-compatible"
        assert report.primary.cost_usd == pytest.approx(2.5)
        assert report.secondary.cost_usd == pytest.approx(0.15)

    def test_comparison_backend_without_credentials(self) -> None:
        from src.main import _build_all

        with pytest.raises(ConfigurationError):
            _build_all(_settings(comparison_provider="anthropic"), _CONFIG)

    def test_create_app_registers_routes(self) -> None:
        from src.main import create_app

        paths = {route.path for route in create_app().routes}

        assert "/api/v1/documents" in paths
        assert "/api/v1/quiz" in paths
        assert "/api/v1/health" in paths
