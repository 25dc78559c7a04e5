"""OpenAI-compatible chat-completion backends.

:class:`OpenAICompatibleLLMProvider` wraps the ``openai`` async client and
implements :class:`ILLMProvider` for any endpoint speaking the OpenAI chat
completions protocol.  Moonshot, OpenRouter and Ollama all reuse it with a
different base URL, model default and token ceiling; see the sibling
modules.  :class:`OpenAILLMProvider` is the plain OpenAI configuration.
"""

from __future__ import annotations

import time
from typing import Any

import openai
import structlog

from src.config.settings import Settings
from src.interfaces.llm_provider import ILLMProvider
from src.interfaces.usage_sink import IUsageSink
from src.models.llm import ChatCompletion, ChatMessage, CompletionOptions, ModelPricing, TokenUsage
from src.providers.llm.usage_reporting import report_usage
from src.utils.errors import LLMError, ProviderUnavailableError, RateLimitError

logger = structlog.get_logger(logger_name=__name__)


class OpenAICompatibleLLMProvider(ILLMProvider):
    """Chat completions over the OpenAI wire protocol.

    Parameters
    ----------
    api_key:
        Bearer key; surrounding whitespace is stripped.
    provider_name:
        Identifier used in logs, errors and usage records.
    default_model, default_temperature:
        Used when the call's options leave them unset.
    default_max_tokens, max_tokens_ceiling:
        Token budget when the caller sets none, and the hard upper bound
        any caller-supplied ``max_tokens`` is clamped to.
    """

    def __init__(
        self,
        *,
        api_key: str,
        provider_name: str,
        default_model: str,
        base_url: str | None = None,
        default_temperature: float = 0.2,
        default_max_tokens: int = 4096,
        max_tokens_ceiling: int = 16384,
        timeout_seconds: float = 60.0,
        default_headers: dict[str, str] | None = None,
        usage_sink: IUsageSink | None = None,
        pricing: ModelPricing | None = None,
    ) -> None:
        self._api_key = api_key.strip()
        if self._api_key != api_key:
            logger.warning("api_key_whitespace_trimmed", provider=provider_name)
        self._provider_name = provider_name
        self._default_model = default_model
        self._default_temperature = default_temperature
        self._default_max_tokens = min(default_max_tokens, max_tokens_ceiling)
        self._max_tokens_ceiling = max_tokens_ceiling
        self._usage_sink = usage_sink
        self._pricing = pricing

        client_kwargs: dict[str, Any] = {
            "api_key": self._api_key,
            "timeout": openai.Timeout(timeout_seconds, connect=10.0),
        }
        if base_url:
            client_kwargs["base_url"] = base_url
        if default_headers:
            client_kwargs["default_headers"] = default_headers
        self._client = openai.AsyncOpenAI(**client_kwargs)

    # ------------------------------------------------------------------
    # ILLMProvider implementation
    # ------------------------------------------------------------------

    async def chat_completions(
        self,
        messages: list[ChatMessage],
        options: CompletionOptions | None = None,
    ) -> ChatCompletion:
        options = options or CompletionOptions()
        model = self._resolve_model(options.model or self._default_model)
        temperature = (
            options.temperature if options.temperature is not None else self._default_temperature
        )
        max_tokens = self._resolve_max_tokens(options)

        request: dict[str, Any] = {
            "model": model,
            "messages": [{"role": m.role, "content": m.content} for m in messages],
            "temperature": temperature,
            "max_tokens": max_tokens,
        }
        if options.json_mode:
            request["response_format"] = {"type": "json_object"}

        started = time.perf_counter()
        try:
            response = await self._client.chat.completions.create(**request)
        except openai.RateLimitError as exc:
            raise RateLimitError(
                message=f"{self._provider_name} rate limit: {exc}",
                provider_name=self._provider_name,
            ) from exc
        except openai.APITimeoutError as exc:
            raise LLMError(
                message=f"{self._provider_name} request timed out",
                provider_name=self._provider_name,
            ) from exc
        except openai.APIConnectionError as exc:
            raise ProviderUnavailableError(
                message=f"{self._provider_name} unreachable: {exc}",
                provider_name=self._provider_name,
            ) from exc
        except openai.APIError as exc:
            raise LLMError(
                message=f"{self._provider_name} API error: {exc}",
                provider_name=self._provider_name,
            ) from exc
        latency_ms = (time.perf_counter() - started) * 1000

        if not response.choices:
            raise LLMError(
                message=f"{self._provider_name} returned no choices",
                provider_name=self._provider_name,
            )
        usage = _usage_from(response.usage)
        content = self._extract_content(response.choices[0].message, usage)
        if not content or not content.strip():
            raise LLMError(
                message=f"{self._provider_name} returned empty response",
                provider_name=self._provider_name,
            )

        completion = ChatCompletion(
            id=response.id or "",
            content=content,
            model=response.model or model,
            provider=self._provider_name,
            usage=usage,
            latency_ms=latency_ms,
        )
        logger.info(
            "llm_completion",
            provider=self._provider_name,
            model=completion.model,
            tokens=usage.total_tokens,
            finish_reason=getattr(response.choices[0], "finish_reason", None),
        )
        report_usage(completion, self._usage_sink, self._pricing)
        return completion

    def get_provider_name(self) -> str:
        return self._provider_name

    def get_default_model(self) -> str:
        return self._default_model

    def is_available(self) -> bool:
        """Return ``True`` if an API key is configured (doesn't verify it works)."""
        return bool(self._api_key)

    async def validate_credentials(self) -> bool:
        """List models to verify the key without paying for inference."""
        if not self.is_available():
            return False
        try:
            await self._client.models.list()
            return True
        except openai.APIError:
            return False

    # ------------------------------------------------------------------
    # Hooks for subclasses
    # ------------------------------------------------------------------

    def _resolve_model(self, model: str) -> str:
        return model

    def _resolve_max_tokens(self, options: CompletionOptions) -> int:
        if options.max_tokens is None:
            return self._default_max_tokens
        return min(options.max_tokens, self._max_tokens_ceiling)

    def _extract_content(self, message: Any, usage: TokenUsage) -> str | None:
        return message.content


def _usage_from(raw: Any) -> TokenUsage:
    if raw is None:
        return TokenUsage()
    prompt = raw.prompt_tokens or 0
    completion = raw.completion_tokens or 0
    return TokenUsage(
        prompt_tokens=prompt,
        completion_tokens=completion,
        total_tokens=raw.total_tokens or prompt + completion,
    )


class OpenAILLMProvider(OpenAICompatibleLLMProvider):
    """The OpenAI API itself, or any gateway set via ``OPENAI_BASE_URL``."""

    def __init__(
        self,
        settings: Settings,
        usage_sink: IUsageSink | None = None,
        pricing: ModelPricing | None = None,
    ) -> None:
        super().__init__(
            api_key=settings.openai_api_key,
            provider_name="openai-compatible" if settings.openai_base_url else "openai",
            base_url=settings.openai_base_url or None,
            default_model=settings.openai_text_model or "gpt-4o",
            default_temperature=0.2,
            default_max_tokens=4096,
            max_tokens_ceiling=16384,
            timeout_seconds=60.0,
            usage_sink=usage_sink,
            pricing=pricing,
        )
