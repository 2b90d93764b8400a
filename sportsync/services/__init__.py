"""Services for the sportsync application."""

from sportsync.services.cache import CacheStore, CacheEntry
from sportsync.services.refresh import RefreshOrchestrator, RefreshState
from sportsync.services.data_service import DataService
from sportsync.services.cache_manager import CacheManager

__all__ = [
    "CacheStore",
    "CacheEntry",
    "RefreshOrchestrator",
    "RefreshState",
    "DataService",
    "CacheManager",
]
