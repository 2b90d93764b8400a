"""
Refresh Orchestrator - freshness-gated, single-flight data refresh.

Decides whether a source key is stale, runs at most one fetch at a time
across all keys, publishes successful results to the cache store and
records every attempt in the freshness store.
"""

import logging
import threading
from datetime import datetime, timedelta
from enum import Enum
from typing import Any, Dict, Generic, Iterable, List, Optional, TypeVar

from ..fetchers.base import SourceFetcher
from ..models.freshness import DataStatus, FreshnessRecord
from ..models.result import RefreshResult
from ..storage.base import FreshnessStore
from ..storage.exceptions import StoreError
from .cache import CacheStore

logger = logging.getLogger(__name__)

T = TypeVar("T")


class RefreshState(str, Enum):
    """Orchestrator state; one per process, shared by all source keys."""

    IDLE = "idle"
    REFRESHING = "refreshing"


def _error_message(error: BaseException) -> str:
    return str(error) or type(error).__name__


class RefreshOrchestrator(Generic[T]):
    """
    Coordinates refreshes of cached data against a source fetcher.

    The cache store and the freshness store are written only from here.
    A single in-flight flag covers every source key: while one refresh is
    running, any other refresh request returns "in progress" immediately.
    """

    def __init__(
        self,
        fetcher: SourceFetcher[T],
        cache: CacheStore[T],
        freshness: FreshnessStore,
        max_age: timedelta = timedelta(hours=24),
    ):
        self.fetcher = fetcher
        self.cache = cache
        self.freshness = freshness
        self.max_age = max_age

        # Refresh state
        self._state_lock = threading.Lock()
        self._state = RefreshState.IDLE
        self._current_key: Optional[str] = None

    # =========================================================================
    # STATE
    # =========================================================================

    @property
    def state(self) -> RefreshState:
        return self._state

    @property
    def current_key(self) -> Optional[str]:
        """Source key being refreshed right now, if any."""
        return self._current_key

    def is_refreshing(self) -> bool:
        """Check if a refresh is currently in progress."""
        return self._state is RefreshState.REFRESHING

    def _try_begin(self, source_key: str) -> bool:
        """Move IDLE -> REFRESHING; False if a refresh already holds the flag."""
        with self._state_lock:
            if self._state is RefreshState.REFRESHING:
                return False
            self._state = RefreshState.REFRESHING
            self._current_key = source_key
            return True

    def _finish(self) -> None:
        with self._state_lock:
            self._state = RefreshState.IDLE
            self._current_key = None

    # =========================================================================
    # REFRESH OPERATIONS
    # =========================================================================

    def _is_fresh(self, source_key: str, max_age: timedelta) -> bool:
        """Freshness check that treats an unreadable store as stale."""
        try:
            return self.freshness.is_fresh(source_key, max_age)
        except StoreError as e:
            logger.warning(f"Freshness store unavailable for {source_key}, treating as stale: {e}")
            return False

    async def refresh_if_stale(
        self,
        source_key: str,
        max_age: Optional[timedelta] = None
    ) -> RefreshResult:
        """
        Refresh a source key unless its data is still fresh.

        Args:
            source_key: The data partition to refresh
            max_age: Freshness window (defaults to the orchestrator's max_age)

        Returns:
            RefreshResult; skipped=True when the data was fresh,
            reason "in_progress" when another refresh holds the lock
        """
        window = self.max_age if max_age is None else max_age
        if self._is_fresh(source_key, window):
            logger.debug(f"Data for {source_key} is already fresh, skipping refresh")
            return RefreshResult.fresh(source_key)

        return await self._refresh(source_key)

    async def force_refresh(self, source_key: str) -> RefreshResult:
        """
        Refresh a source key regardless of freshness.

        Still fails fast with "in_progress" if another refresh is running.
        """
        logger.info(f"Force refreshing data for {source_key}")
        return await self._refresh(source_key)

    async def refresh_all(
        self,
        source_keys: Iterable[str],
        force: bool = False
    ) -> List[RefreshResult]:
        """
        Refresh several source keys one after another.

        Args:
            source_keys: Keys to refresh, in order
            force: Skip the freshness check for every key

        Returns:
            One RefreshResult per key; a failure never stops later keys
        """
        results = []
        for source_key in source_keys:
            if force:
                result = await self.force_refresh(source_key)
            else:
                result = await self.refresh_if_stale(source_key)
            results.append(result)

        refreshed = sum(1 for r in results if r.success and not r.skipped)
        logger.info(f"Refresh pass completed: {refreshed}/{len(results)} keys fetched")
        return results

    async def _refresh(self, source_key: str) -> RefreshResult:
        if not self._try_begin(source_key):
            logger.info(
                f"Refresh already in progress ({self._current_key}), skipping {source_key}"
            )
            return RefreshResult.busy(source_key)

        try:
            logger.info(f"Starting data refresh for {source_key}")
            try:
                records = list(await self.fetcher.fetch(source_key))
                # the snapshot is built before it is published
                entry = self.cache.replace(source_key, records)
            except Exception as e:
                message = _error_message(e)
                logger.error(f"Error refreshing data for {source_key}: {message}")
                self._record(source_key, success=False, error=message)
                return RefreshResult.failed(source_key, message)

            self._record(source_key, success=True)
            logger.info(f"Saved {len(entry)} records for {source_key}")
            return RefreshResult.refreshed(source_key, len(entry))
        finally:
            self._finish()

    def _record(self, source_key: str, success: bool, error: Optional[str] = None) -> None:
        try:
            self.freshness.record_attempt(source_key, success, error)
        except StoreError as e:
            # the key reads as stale next time, which triggers a new fetch
            logger.error(f"Could not record refresh outcome for {source_key}: {e}")

    # =========================================================================
    # STATUS & MAINTENANCE
    # =========================================================================

    def get_freshness(self, source_key: str) -> Optional[FreshnessRecord]:
        """Get the freshness record for a source key."""
        return self.freshness.get(source_key)

    def get_last_update_time(self, source_key: str) -> Optional[datetime]:
        """Get the time of the last successful fetch for a source key."""
        try:
            record = self.freshness.get(source_key)
        except StoreError as e:
            logger.warning(f"Freshness store unavailable for {source_key}: {e}")
            return None
        return record.last_successful_fetch if record else None

    def get_data_status(
        self,
        source_key: str,
        max_age: Optional[timedelta] = None
    ) -> DataStatus:
        """Classify a source key as fresh, stale, or empty (never fetched)."""
        window = self.max_age if max_age is None else max_age
        if self._is_fresh(source_key, window):
            return DataStatus.FRESH
        if self.cache.get_entry(source_key) is None and self.get_last_update_time(source_key) is None:
            return DataStatus.EMPTY
        return DataStatus.STALE

    def clear_source_data(self, source_key: str) -> None:
        """Drop cached records and freshness bookkeeping for a source key."""
        self.cache.clear(source_key)
        self.freshness.clear(source_key)
        logger.info(f"Cleared data for {source_key}")

    def get_status(self) -> Dict[str, Any]:
        """Get refresh state, cache statistics and freshness records."""
        try:
            records = [
                r.model_dump(mode="json", by_alias=True)
                for r in self.freshness.list_records()
            ]
        except StoreError as e:
            logger.warning(f"Freshness store unavailable: {e}")
            records = []

        return {
            "is_refreshing": self.is_refreshing(),
            "current_key": self._current_key,
            "cache": self.cache.stats(),
            "freshness": records,
        }
