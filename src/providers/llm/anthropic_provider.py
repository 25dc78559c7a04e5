"""Anthropic backend.

Wraps the ``anthropic`` async client to implement :class:`ILLMProvider`.

Differences from the OpenAI protocol that this adapter absorbs:
    - ``system`` messages become the top-level ``system`` parameter
    - the reply is a list of content blocks; only text blocks are kept
    - usage is reported as input/output tokens
    - there is no JSON response mode, so ``json_mode`` adds an instruction
"""

from __future__ import annotations

import time

import anthropic
import structlog

from src.config.settings import Settings
from src.interfaces.llm_provider import ILLMProvider
from src.interfaces.usage_sink import IUsageSink
from src.models.llm import ChatCompletion, ChatMessage, CompletionOptions, ModelPricing, TokenUsage
from src.providers.llm.usage_reporting import report_usage
from src.utils.errors import LLMError, ProviderUnavailableError, RateLimitError

logger = structlog.get_logger(logger_name=__name__)

_DEFAULT_MODEL = "claude-sonnet-4-20250514"
_MAX_TOKENS_CEILING = 16000
_DEFAULT_MAX_TOKENS = 4096
_JSON_INSTRUCTION = "Respond with a single JSON object and nothing else."


class AnthropicLLMProvider(ILLMProvider):
    """Chat completions against the Anthropic Messages API."""

    def __init__(
        self,
        settings: Settings,
        usage_sink: IUsageSink | None = None,
        pricing: ModelPricing | None = None,
    ) -> None:
        self._api_key = settings.anthropic_api_key.strip()
        self._client = anthropic.AsyncAnthropic(api_key=self._api_key)
        self._model = settings.anthropic_model or _DEFAULT_MODEL
        self._usage_sink = usage_sink
        self._pricing = pricing

    # ------------------------------------------------------------------
    # ILLMProvider implementation
    # ------------------------------------------------------------------

    async def chat_completions(
        self,
        messages: list[ChatMessage],
        options: CompletionOptions | None = None,
    ) -> ChatCompletion:
        options = options or CompletionOptions()
        model = options.model or self._model
        max_tokens = min(options.max_tokens or _DEFAULT_MAX_TOKENS, _MAX_TOKENS_CEILING)
        temperature = options.temperature if options.temperature is not None else 0.2

        system_parts = [m.content for m in messages if m.role == "system"]
        if options.json_mode:
            system_parts.append(_JSON_INSTRUCTION)
        conversation = [
            {"role": m.role, "content": m.content} for m in messages if m.role != "system"
        ]

        started = time.perf_counter()
        try:
            response = await self._client.messages.create(
                model=model,
                max_tokens=max_tokens,
                system="\n\n".join(system_parts),
                messages=conversation,
                temperature=temperature,
            )
        except anthropic.RateLimitError as exc:
            raise RateLimitError(
                message=f"Anthropic rate limit: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc
        except anthropic.APIConnectionError as exc:
            raise ProviderUnavailableError(
                message=f"Anthropic unreachable: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc
        except anthropic.APIError as exc:
            raise LLMError(
                message=f"Anthropic API error: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc
        latency_ms = (time.perf_counter() - started) * 1000

        text_blocks = [block.text for block in response.content if block.type == "text"]
        if not text_blocks:
            raise LLMError(
                message="Anthropic returned no text content",
                provider_name=self.get_provider_name(),
            )

        input_tokens = response.usage.input_tokens or 0
        output_tokens = response.usage.output_tokens or 0
        completion = ChatCompletion(
            id=response.id or "",
            content="\n".join(text_blocks),
            model=response.model or model,
            provider=self.get_provider_name(),
            usage=TokenUsage(
                prompt_tokens=input_tokens,
                completion_tokens=output_tokens,
                total_tokens=input_tokens + output_tokens,
            ),
            latency_ms=latency_ms,
        )
        logger.info(
            "llm_completion",
            provider="anthropic",
            model=completion.model,
            input_tokens=input_tokens,
            output_tokens=output_tokens,
        )
        report_usage(completion, self._usage_sink, self._pricing)
        return completion

    def get_provider_name(self) -> str:
        return "anthropic"

    def get_default_model(self) -> str:
        return self._model

    def is_available(self) -> bool:
        """Return ``True`` if an Anthropic API key is configured."""
        return bool(self._api_key)

    async def validate_credentials(self) -> bool:
        """Try a minimal completion to verify the API key works."""
        if not self.is_available():
            return False
        try:
            await self._client.messages.create(
                model=self._model,
                max_tokens=10,
                messages=[{"role": "user", "content": "hi"}],
            )
            return True
        except anthropic.APIError:
            return False
