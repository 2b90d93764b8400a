"""In-memory snapshot cache keyed by source key."""

import threading
from dataclasses import dataclass
from datetime import datetime
from operator import attrgetter
from types import MappingProxyType
from typing import Any, Callable, Dict, Generic, Hashable, Iterable, List, Mapping, Optional, TypeVar

from ..utils.clock import Clock, utcnow

T = TypeVar("T")

RecordFilter = Callable[[Any], bool]


@dataclass(frozen=True)
class CacheEntry(Generic[T]):
    """Immutable snapshot of the records cached for one source key."""

    source_key: str
    records: Mapping[Hashable, T]
    updated_at: datetime

    def __len__(self) -> int:
        return len(self.records)


class CacheStore(Generic[T]):
    """Last-known-good records per source key.

    Writers build a complete new CacheEntry and publish it with a single
    reference swap, so readers see either the old snapshot or the new one.
    """

    def __init__(
        self,
        record_id: Callable[[T], Hashable] = attrgetter("record_id"),
        clock: Optional[Clock] = None,
    ) -> None:
        self._record_id = record_id
        self._clock: Clock = clock or utcnow
        self._entries: Dict[str, CacheEntry[T]] = {}

        # Lock for thread safety
        self._lock = threading.RLock()

    def replace(self, source_key: str, records: Iterable[T]) -> CacheEntry[T]:
        """Swap the entire record set for a source key.

        Args:
            source_key: The data partition to replace
            records: The complete new record set; later duplicates win

        Returns:
            The published snapshot
        """
        snapshot: Dict[Hashable, T] = {}
        for record in records:
            snapshot[self._record_id(record)] = record

        entry = CacheEntry(
            source_key=source_key,
            records=MappingProxyType(snapshot),
            updated_at=self._clock(),
        )
        with self._lock:
            self._entries[source_key] = entry
        return entry

    def read(self, source_key: str, filter: Optional[RecordFilter] = None) -> List[T]:
        """Read the current snapshot for a source key.

        Args:
            source_key: The data partition to read
            filter: Optional predicate narrowing the result

        Returns:
            Records in insertion order, or an empty list if nothing is cached
        """
        entry = self.get_entry(source_key)
        if entry is None:
            return []
        if filter is None:
            return list(entry.records.values())
        return [record for record in entry.records.values() if filter(record)]

    def get_entry(self, source_key: str) -> Optional[CacheEntry[T]]:
        """Get the published snapshot for a source key."""
        with self._lock:
            return self._entries.get(source_key)

    def get_updated_at(self, source_key: str) -> Optional[datetime]:
        """Get when the snapshot for a source key was last replaced."""
        entry = self.get_entry(source_key)
        return entry.updated_at if entry else None

    def keys(self) -> List[str]:
        """Source keys that currently have a snapshot."""
        with self._lock:
            return sorted(self._entries)

    def clear(self, source_key: str) -> bool:
        """Remove the snapshot for a source key.

        Returns:
            True if a snapshot was removed, False if none existed
        """
        with self._lock:
            return self._entries.pop(source_key, None) is not None

    def clear_all(self) -> None:
        """Remove every snapshot."""
        with self._lock:
            self._entries.clear()

    def stats(self) -> dict[str, dict[str, Any]]:
        """Get cache statistics.

        Returns:
            Dictionary with record count and update time per source key
        """
        with self._lock:
            return {
                key: {
                    "records": len(entry),
                    "updated_at": entry.updated_at.isoformat(),
                }
                for key, entry in sorted(self._entries.items())
            }


# =============================================================================
# FILTER HELPERS
# =============================================================================

def by_season(season: str) -> RecordFilter:
    """Match records whose season equals the given season."""
    return lambda record: getattr(record, "season", None) == season


def by_kind(kind: str) -> RecordFilter:
    """Match records of one kind (team, game, ...)."""
    return lambda record: getattr(record, "kind", None) == kind


def all_of(*predicates: Optional[RecordFilter]) -> Optional[RecordFilter]:
    """Combine predicates with AND, skipping None entries."""
    active = [p for p in predicates if p is not None]
    if not active:
        return None
    return lambda record: all(p(record) for p in active)
