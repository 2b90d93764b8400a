"""
Factory function to create the appropriate freshness store.

Reads configuration from environment variables to determine which
backend to use.
"""

import logging
import os
from typing import Optional

from .base import FreshnessStore
from .exceptions import ConfigurationError

logger = logging.getLogger(__name__)

# Singleton instance
_store_instance: Optional[FreshnessStore] = None


def get_freshness_store() -> FreshnessStore:
    """
    Get or create the freshness store instance.

    Uses the FRESHNESS_DB_TYPE environment variable to determine which
    implementation:
    - "memory" (default): process-lifetime dict
    - "sqlite": single-table SQLite row store under DATA_DIR

    Returns:
        FreshnessStore implementation

    Raises:
        ConfigurationError: If FRESHNESS_DB_TYPE is unknown
    """
    global _store_instance

    if _store_instance is not None:
        return _store_instance

    db_type = os.environ.get('FRESHNESS_DB_TYPE', 'memory').lower()
    logger.info(f"Freshness store type: {db_type}")

    if db_type == 'memory':
        from .memory_store import MemoryFreshnessStore
        store: FreshnessStore = MemoryFreshnessStore()

    elif db_type == 'sqlite':
        from .sqlite_store import SQLiteFreshnessStore

        data_dir = os.environ.get('DATA_DIR') or 'data'
        store = SQLiteFreshnessStore(db_path=os.path.join(data_dir, 'sportsync.db'))

    else:
        raise ConfigurationError(
            f"Unknown FRESHNESS_DB_TYPE: {db_type}. "
            f"Valid options: memory, sqlite"
        )

    store.initialize()
    _store_instance = store

    return _store_instance


def reset_freshness_store() -> None:
    """
    Reset the freshness store singleton.

    Used for testing or when switching configurations.
    """
    global _store_instance
    if _store_instance is not None:
        _store_instance.close()
        _store_instance = None
