"""
HostelHub Finance - Services Package

Business logic services.
"""

from app.services.cache_service import CacheService, InMemoryTTLCache, get_cache_service
from app.services.financial_reports_service import FinancialReportsService
from app.services.ledger_repository import LedgerRepository

__all__ = [
    "CacheService",
    "InMemoryTTLCache",
    "get_cache_service",
    "FinancialReportsService",
    "LedgerRepository",
]
