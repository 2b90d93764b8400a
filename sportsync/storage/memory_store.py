"""In-memory freshness store."""

import threading
from typing import Dict, List, Optional

from .base import FreshnessStore
from ..models.freshness import FreshnessRecord
from ..utils.clock import Clock


class MemoryFreshnessStore(FreshnessStore):
    """Freshness records kept in a dict for the lifetime of the process."""

    def __init__(self, clock: Optional[Clock] = None):
        super().__init__(clock)
        self._records: Dict[str, FreshnessRecord] = {}
        self._lock = threading.Lock()

    def initialize(self) -> None:
        pass

    def close(self) -> None:
        pass

    def health_check(self) -> bool:
        return True

    def record_attempt(
        self,
        source_key: str,
        success: bool,
        error: Optional[str] = None
    ) -> FreshnessRecord:
        now = self.now()
        with self._lock:
            previous = self._records.get(source_key)
            last_success = previous.last_successful_fetch if previous else None
            if success:
                # never move backwards if the clock does
                last_success = now if last_success is None else max(last_success, now)

            record = FreshnessRecord(
                source_key=source_key,
                last_updated=now,
                last_successful_fetch=last_success,
                fetch_attempts=(previous.fetch_attempts if previous else 0) + 1,
                last_error=self._error_text(success, error),
            )
            self._records[source_key] = record
            return record

    def clear(self, source_key: str) -> bool:
        with self._lock:
            return self._records.pop(source_key, None) is not None

    def clear_all(self) -> None:
        with self._lock:
            self._records.clear()

    def get(self, source_key: str) -> Optional[FreshnessRecord]:
        with self._lock:
            return self._records.get(source_key)

    def list_records(self) -> List[FreshnessRecord]:
        with self._lock:
            return [self._records[key] for key in sorted(self._records)]
