"""Unit tests for Settings and the YAML config loader."""

from __future__ import annotations

from pathlib import Path

from src.config.loader import load_config
from src.config.settings import Settings


def _settings(**overrides) -> Settings:
    defaults = {
        "ai_provider": "openai",
        "comparison_provider": "",
        "openai_api_key": "sk-test",
        "moonshot_api_key": "",
        "openrouter_api_key": "",
        "anthropic_api_key": "",
        "ollama_base_url": "",
    }
    defaults.update(overrides)
    return Settings(_env_file=None, **defaults)


class TestSettings:
    def test_available_providers_follow_credentials(self) -> None:
        settings = _settings(anthropic_api_key="ak", ollama_base_url="http://localhost:11434")

        assert settings.get_available_llm_providers() == ["openai", "anthropic", "ollama"]

    def test_defaults(self) -> None:
        settings = _settings()

        assert settings.chunk_size == 1000
        assert settings.chunk_overlap == 200
        assert settings.search_threshold == 0.7
        assert settings.allow_image_only_notes is True


class TestLoadConfig:
    def test_yaml_merged_with_settings(self, tmp_path: Path) -> None:
        config_file = tmp_path / "config.yaml"
        config_file.write_text(
            "llm:\n"
            "  pricing:\n"
            "    openai: {input: 2.5, output: 10.0}\n"
            "chunking:\n"
            "  size: 400\n"
            "  tolerance: 0.5\n",
            encoding="utf-8",
        )

        config = load_config(str(config_file), settings=_settings(chunk_size=1200))

        assert config["llm"]["pricing"]["openai"]["output"] == 10.0
        assert config["llm"]["provider"] == "openai"
        # Environment-derived values win; untouched YAML keys survive.
        assert config["chunking"]["size"] == 1200
        assert config["chunking"]["tolerance"] == 0.5

    def test_missing_file_is_empty_base(self, tmp_path: Path) -> None:
        config = load_config(str(tmp_path / "absent.yaml"), settings=_settings())

        assert config["search"] == {"threshold": 0.7, "max_results": 10}
        assert "pricing" not in config["llm"]

    def test_empty_file(self, tmp_path: Path) -> None:
        config_file = tmp_path / "config.yaml"
        config_file.write_text("", encoding="utf-8")

        config = load_config(str(config_file), settings=_settings())

        assert config["llm"]["available_providers"] == ["openai"]
