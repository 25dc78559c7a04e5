"""Abstract base class for the document-quota collaborator.

Subscription state lives outside this service.  Ingestion only asks
"may this owner add another document?" before doing any work.
"""

from __future__ import annotations

from abc import ABC, abstractmethod


# Concrete implementation: UnlimitedQuotaProvider (src/providers/quota/)
class IQuotaProvider(ABC):
    """Contract for per-owner document allowances."""

    @abstractmethod
    async def can_ingest(self, owner_id: str) -> bool:
        """Return ``True`` if ``owner_id`` may ingest another document."""

    @abstractmethod
    async def record_ingestion(self, owner_id: str, document_id: str) -> None:
        """Note a completed ingestion against ``owner_id``'s allowance."""
