"""
Storage module for freshness bookkeeping.

Provides a unified interface for two backends:
- Memory (default, lives for the process)
- SQLite (single-row upserts, survives restarts)

Usage:
    from sportsync.storage import get_freshness_store

    store = get_freshness_store()  # Uses FRESHNESS_DB_TYPE env var
    store.is_fresh('NFL', timedelta(hours=24))
"""

from .base import FreshnessStore
from .memory_store import MemoryFreshnessStore
from .sqlite_store import SQLiteFreshnessStore
from .factory import get_freshness_store, reset_freshness_store
from .exceptions import (
    StoreError,
    ConnectionError,
    ConfigurationError,
    QueryError
)

__all__ = [
    'FreshnessStore',
    'MemoryFreshnessStore',
    'SQLiteFreshnessStore',
    'get_freshness_store',
    'reset_freshness_store',
    'StoreError',
    'ConnectionError',
    'ConfigurationError',
    'QueryError'
]
