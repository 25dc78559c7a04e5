"""Turns a finished completion into a usage record for the injected sink."""

from __future__ import annotations

import structlog

from src.interfaces.usage_sink import IUsageSink
from src.models.llm import ChatCompletion, ModelPricing, UsageRecord

logger = structlog.get_logger(logger_name=__name__)


def report_usage(
    completion: ChatCompletion,
    sink: IUsageSink | None,
    pricing: ModelPricing | None,
) -> UsageRecord:
    """Build the :class:`UsageRecord` for ``completion`` and hand it to ``sink``.

    Cost is ``0.0`` when no pricing is configured for the backend.  The
    record is returned either way so callers without a sink can still use it.
    """
    cost = pricing.cost(completion.usage) if pricing is not None else 0.0
    record = UsageRecord(
        provider=completion.provider,
        model=completion.model,
        prompt_tokens=completion.usage.prompt_tokens,
        completion_tokens=completion.usage.completion_tokens,
        total_tokens=completion.usage.total_tokens,
        latency_ms=completion.latency_ms,
        cost_usd=cost,
    )
    if sink is not None:
        sink.record(record)
    logger.info(
        "llm_usage",
        provider=record.provider,
        model=record.model,
        prompt_tokens=record.prompt_tokens,
        completion_tokens=record.completion_tokens,
        latency_ms=round(record.latency_ms, 1),
        cost_usd=round(record.cost_usd, 6),
    )
    return record
