"""Abstract base class for text-generation providers.

Every backend (OpenAI, Moonshot, OpenRouter, Anthropic, Ollama) exposes the
same single entry point, :meth:`ILLMProvider.chat_completions`.  Which
backend runs is decided once at startup in ``src/main.py``; callers only
ever see this interface.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from src.models.llm import ChatCompletion, ChatMessage, CompletionOptions


# Concrete implementations: OpenAILLMProvider, MoonshotLLMProvider,
# OpenRouterLLMProvider, AnthropicLLMProvider, OllamaLLMProvider
# Located in: src/providers/llm/
class ILLMProvider(ABC):
    """Contract for chat-completion backends.

    Each backend owns its model default, temperature default and token
    ceiling, and reports usage for every call into the usage sink it was
    constructed with.
    """

    @abstractmethod
    async def chat_completions(
        self,
        messages: list[ChatMessage],
        options: CompletionOptions | None = None,
    ) -> ChatCompletion:
        """Run one chat completion.

        Parameters
        ----------
        messages:
            Conversation so far; ``system`` messages carry instructions.
        options:
            Per-call overrides.  Unset fields fall back to the backend's
            defaults; ``max_tokens`` is clamped to the backend's ceiling.

        Returns
        -------
        ChatCompletion
            Reply text, the model that produced it, and token usage.

        Raises
        ------
        src.utils.errors.LLMError
            If the API call fails or returns no content.
        src.utils.errors.RateLimitError
            If the backend refuses the call for rate-limit reasons.
        """

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return the backend identifier, e.g. ``"openai"`` or ``"moonshot"``."""

    @abstractmethod
    def get_default_model(self) -> str:
        """Return the model used when options do not name one."""

    @abstractmethod
    def is_available(self) -> bool:
        """Return ``True`` if credentials are configured (no network call)."""

    @abstractmethod
    async def validate_credentials(self) -> bool:
        """Perform a lightweight API call to confirm credentials are valid."""
