"""Application settings loaded from environment variables via pydantic-settings.

# ─── HOW SETTINGS WORK ────────────────────────────────────────────────
#
# Two sources, in priority order:
#
#   1. **Environment variables** -- e.g. OPENAI_API_KEY=sk-abc123
#   2. **.env file** -- key=value lines in the project root .env file
#
# Field `moonshot_api_key` maps to env var `MOONSHOT_API_KEY`.
# Defaults apply when neither source sets a value.
#
# The backend named by AI_PROVIDER is built once at startup (src/main.py);
# nothing downstream branches on provider names.
# ──────────────────────────────────────────────────────────────────────
"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """BrainBrawl application settings.

    Environment variables override defaults. Loaded from .env file when present.
    """

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # === Text-generation backends ===
    # Empty string = "not configured".
    ai_provider: str = "openai"  # openai | moonshot | openrouter | anthropic | ollama
    comparison_provider: str = ""  # second backend for comparison mode; empty disables it

    openai_api_key: str = ""
    openai_base_url: str = ""  # Custom base URL for OpenAI-compatible gateways
    openai_text_model: str = ""  # Override text model (default gpt-4o)
    openai_embedding_model: str = ""  # Override embedding model (default text-embedding-3-small)
    moonshot_api_key: str = ""
    moonshot_model: str = ""  # default kimi-k2-thinking
    openrouter_api_key: str = ""
    openrouter_model: str = ""  # default moonshotai/kimi-k2-thinking
    openrouter_site_url: str = ""
    anthropic_api_key: str = ""
    anthropic_model: str = ""
    ollama_base_url: str = "http://localhost:11434"
    ollama_model: str = ""

    # === Embeddings / vector store ===
    embedding_provider: str = "openai"  # openai | nomic
    vector_store: str = "chromadb"  # chromadb | memory
    chromadb_persist_dir: str = "./data/chromadb"
    chromadb_collection: str = "brainbrawl_chunks"

    # === Chunking ===
    chunk_size: int = 1000
    chunk_overlap: int = 200
    min_chunk_length: int = 50

    # === Synthesis ===
    synthesis_excerpt_chars: int = 6000
    synthesis_temperature: float = 0.2
    # Out-of-range multiple-choice answer indices: False = fall back to
    # option 0 and keep the item, True = mark the item invalid.
    strict_answer_index: bool = False
    # Empty text + images: True = diagram-only notes, False = schema violation.
    allow_image_only_notes: bool = True

    # === Retrieval ===
    search_threshold: float = 0.7
    search_max_results: int = 10

    # === Uploads ===
    max_upload_bytes: int = 25 * 1024 * 1024

    # === App Config ===
    app_host: str = "0.0.0.0"
    app_port: int = 8000
    app_env: str = "development"
    log_level: str = "INFO"

    def get_available_llm_providers(self) -> list[str]:
        """Return the text-generation backends that have credentials configured."""
        providers: list[str] = []
        if self.openai_api_key:
            providers.append("openai")
        if self.moonshot_api_key:
            providers.append("moonshot")
        if self.openrouter_api_key:
            providers.append("openrouter")
        if self.anthropic_api_key:
            providers.append("anthropic")
        if self.ollama_base_url:
            providers.append("ollama")
        return providers
