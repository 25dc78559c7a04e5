"""Quota provider implementations (see src/interfaces/quota_provider.py)."""

from src.providers.quota.unlimited_quota_provider import UnlimitedQuotaProvider

__all__ = ["UnlimitedQuotaProvider"]
