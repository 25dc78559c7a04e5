"""Side-by-side comparison of two text-generation backends.

Sends the same messages to both backends concurrently and reports each
side's completion (or error) together with cost, latency and token deltas.
Used to decide provider migrations; the main pipeline never depends on it.
"""

from __future__ import annotations

import asyncio

import structlog

from src.interfaces.llm_provider import ILLMProvider
from src.models.llm import (
    ChatCompletion,
    ChatMessage,
    ComparisonReport,
    ComparisonSide,
    CompletionOptions,
    ModelPricing,
)

logger = structlog.get_logger(logger_name=__name__)


class ProviderComparison:
    """Runs one prompt against a primary and a secondary backend.

    Parameters
    ----------
    primary, secondary:
        The two backends.  Deltas are reported as ``secondary - primary``.
    primary_pricing, secondary_pricing:
        Prices for each side, resolved by the caller from the configured
        backend name.  A side without pricing costs nothing.
    """

    def __init__(
        self,
        primary: ILLMProvider,
        secondary: ILLMProvider,
        primary_pricing: ModelPricing | None = None,
        secondary_pricing: ModelPricing | None = None,
    ) -> None:
        self._primary = primary
        self._secondary = secondary
        self._primary_pricing = primary_pricing
        self._secondary_pricing = secondary_pricing

    async def compare(
        self,
        messages: list[ChatMessage],
        options: CompletionOptions | None = None,
    ) -> ComparisonReport:
        """Call both backends in parallel.  A failing side is reported, not raised."""
        results = await asyncio.gather(
            self._primary.chat_completions(messages, options),
            self._secondary.chat_completions(messages, options),
            return_exceptions=True,
        )
        primary = self._side(self._primary, results[0], self._primary_pricing)
        secondary = self._side(self._secondary, results[1], self._secondary_pricing)
        report = _build_report(primary, secondary)

        logger.info(
            "provider_comparison",
            primary=primary.provider,
            secondary=secondary.provider,
            primary_ok=primary.succeeded,
            secondary_ok=secondary.succeeded,
            cost_delta_usd=report.cost_delta_usd,
            latency_delta_ms=report.latency_delta_ms,
            savings_percent=report.savings_percent,
        )
        return report

    @staticmethod
    def _side(
        provider: ILLMProvider,
        result: ChatCompletion | BaseException,
        pricing: ModelPricing | None,
    ) -> ComparisonSide:
        name = provider.get_provider_name()
        if isinstance(result, BaseException):
            if not isinstance(result, Exception):
                raise result
            logger.warning("comparison_side_failed", provider=name, error=str(result))
            return ComparisonSide(provider=name, error=str(result))
        cost = pricing.cost(result.usage) if pricing is not None else 0.0
        return ComparisonSide(provider=name, completion=result, cost_usd=cost)


def _build_report(primary: ComparisonSide, secondary: ComparisonSide) -> ComparisonReport:
    if primary.completion is None or secondary.completion is None:
        return ComparisonReport(primary=primary, secondary=secondary)

    cost_delta = secondary.cost_usd - primary.cost_usd
    savings = None
    if primary.cost_usd > 0:
        savings = round((primary.cost_usd - secondary.cost_usd) / primary.cost_usd * 100, 2)
    return ComparisonReport(
        primary=primary,
        secondary=secondary,
        cost_delta_usd=cost_delta,
        latency_delta_ms=secondary.completion.latency_ms - primary.completion.latency_ms,
        token_delta=secondary.completion.usage.total_tokens - primary.completion.usage.total_tokens,
        savings_percent=savings,
    )
