"""Text-generation backends.

Concrete implementations of ILLMProvider (src/interfaces/llm_provider.py):
    - OpenAILLMProvider     -- gpt-4o (also any OpenAI-compatible gateway)
    - MoonshotLLMProvider   -- kimi-k2-thinking on api.moonshot.cn
    - OpenRouterLLMProvider -- moonshotai/kimi-k2-thinking via openrouter.ai
    - AnthropicLLMProvider  -- Claude Sonnet
    - OllamaLLMProvider     -- local models via an Ollama server

main.py builds exactly one of these (AI_PROVIDER) at startup, plus an
optional second one (COMPARISON_PROVIDER) for comparison mode.
"""

from src.providers.llm.anthropic_provider import AnthropicLLMProvider
from src.providers.llm.moonshot_provider import MoonshotLLMProvider
from src.providers.llm.ollama_provider import OllamaLLMProvider
from src.providers.llm.openai_provider import OpenAICompatibleLLMProvider, OpenAILLMProvider
from src.providers.llm.openrouter_provider import OpenRouterLLMProvider

__all__ = [
    "AnthropicLLMProvider",
    "MoonshotLLMProvider",
    "OllamaLLMProvider",
    "OpenAICompatibleLLMProvider",
    "OpenAILLMProvider",
    "OpenRouterLLMProvider",
]
