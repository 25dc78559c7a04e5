"""Quota provider that never refuses.

Deployments with subscription limits supply their own IQuotaProvider; this
one is the default for local runs and counts ingestions per owner so the
numbers are at least visible in logs.
"""

from __future__ import annotations

from collections import Counter

import structlog

from src.interfaces.quota_provider import IQuotaProvider

logger = structlog.get_logger(logger_name=__name__)


class UnlimitedQuotaProvider(IQuotaProvider):
    def __init__(self) -> None:
        self._counts: Counter[str] = Counter()

    async def can_ingest(self, owner_id: str) -> bool:
        return True

    async def record_ingestion(self, owner_id: str, document_id: str) -> None:
        self._counts[owner_id] += 1
        logger.debug(
            "quota_ingestion_recorded",
            owner_id=owner_id,
            document_id=document_id,
            total=self._counts[owner_id],
        )

    def count(self, owner_id: str) -> int:
        return self._counts[owner_id]
