"""
Abstract base class defining the freshness store interface.

All freshness store implementations must inherit from this class and
implement all abstract methods. This ensures consistent bookkeeping across
backends. The staleness predicate itself lives here so every backend, and
every caller, shares one definition of "fresh".
"""

from abc import ABC, abstractmethod
from datetime import datetime, timedelta
from typing import Optional, List

from ..models.freshness import FreshnessRecord
from ..utils.clock import Clock, utcnow


class FreshnessStore(ABC):
    """
    Abstract interface for per-source fetch bookkeeping.

    Methods should be thread-safe where applicable. Implementations take
    their timestamps from the injected clock.
    """

    def __init__(self, clock: Optional[Clock] = None):
        self._clock: Clock = clock or utcnow

    def now(self) -> datetime:
        """Current time according to the store's clock."""
        return self._clock()

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    @abstractmethod
    def initialize(self) -> None:
        """
        Initialize the store connection and schema.

        Should be idempotent (safe to call multiple times).
        """
        pass

    @abstractmethod
    def close(self) -> None:
        """Close connections and clean up resources."""
        pass

    @abstractmethod
    def health_check(self) -> bool:
        """
        Check if the store is accessible.

        Returns:
            True if the store is accessible, False otherwise
        """
        pass

    # =========================================================================
    # WRITE OPERATIONS
    # =========================================================================

    @abstractmethod
    def record_attempt(
        self,
        source_key: str,
        success: bool,
        error: Optional[str] = None
    ) -> FreshnessRecord:
        """
        Record the outcome of one fetch attempt.

        Args:
            source_key: The data partition that was fetched
            success: Whether the fetch succeeded
            error: Error message for a failed fetch

        Returns:
            The updated FreshnessRecord

        Behavior:
            - fetch_attempts is incremented on every call
            - last_updated is set to now
            - On success: last_successful_fetch = now, last_error cleared
            - On failure: last_successful_fetch unchanged, last_error = error
        """
        pass

    @abstractmethod
    def clear(self, source_key: str) -> bool:
        """
        Delete the record for a source key.

        Returns:
            True if a record was deleted, False if none existed
        """
        pass

    @abstractmethod
    def clear_all(self) -> None:
        """Delete every record."""
        pass

    # =========================================================================
    # READ OPERATIONS
    # =========================================================================

    @abstractmethod
    def get(self, source_key: str) -> Optional[FreshnessRecord]:
        """Get the record for a source key, or None if never attempted."""
        pass

    @abstractmethod
    def list_records(self) -> List[FreshnessRecord]:
        """Get all records, ordered by source key."""
        pass

    def get_database_size(self) -> int:
        """
        Get the approximate storage size in bytes.

        Returns:
            Size in bytes (0 if not applicable or unknown)
        """
        return 0

    def is_fresh(self, source_key: str, max_age: timedelta) -> bool:
        """
        Check whether a source key was fetched successfully within max_age.

        Returns False when no record exists or no fetch has ever succeeded.
        """
        record = self.get(source_key)
        if record is None:
            return False
        return record.is_fresh_at(self.now(), max_age)

    @staticmethod
    def _error_text(success: bool, error: Optional[str]) -> Optional[str]:
        """Normalize the stored error message for an attempt."""
        if success:
            return None
        return error or "Unknown error"
