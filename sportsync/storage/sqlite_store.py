"""
SQLite Freshness Store for sportsync.

Keeps one row per source key with:
- Single-statement upserts for each fetch attempt
- Atomic transactions for data safety
- Concurrent read access via WAL mode

This is the SQLite implementation of the FreshnessStore interface.
"""

import sqlite3
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, List, Optional

from .base import FreshnessStore
from .exceptions import ConnectionError, QueryError
from ..models.freshness import FreshnessRecord
from ..utils.clock import Clock, parse_timestamp


def _format_timestamp(value) -> str:
    return value.isoformat(timespec='microseconds')


class SQLiteFreshnessStore(FreshnessStore):
    """
    SQLite row store for freshness records.
    Thread-safe with connection per thread.
    """

    SCHEMA_VERSION = 1

    def __init__(self, db_path: str = "data/sportsync.db", clock: Optional[Clock] = None):
        """
        Create SQLite store instance.

        Args:
            db_path: Path to the SQLite database file
            clock: Source of timestamps (defaults to UTC now)
        """
        super().__init__(clock)
        self.db_path = Path(db_path)
        self._local = threading.local()
        self._initialized = False

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    def initialize(self) -> None:
        """Initialize the database connection and schema."""
        if self._initialized:
            return

        self.db_path.parent.mkdir(parents=True, exist_ok=True)

        self._init_schema()
        self._initialized = True

    def close(self) -> None:
        """Close database connections and clean up resources."""
        if getattr(self._local, 'conn', None) is not None:
            self._local.conn.close()
            self._local.conn = None

    def health_check(self) -> bool:
        """Check if the database connection is healthy."""
        try:
            conn = self._get_connection()
            conn.execute("SELECT 1")
            return True
        except (sqlite3.Error, ConnectionError):
            return False

    # =========================================================================
    # CONNECTION MANAGEMENT
    # =========================================================================

    def _get_connection(self) -> sqlite3.Connection:
        """Get thread-local database connection."""
        if getattr(self._local, 'conn', None) is None:
            conn = None
            try:
                conn = sqlite3.connect(
                    str(self.db_path),
                    check_same_thread=False,
                    timeout=30.0
                )
                conn.row_factory = sqlite3.Row
                # Enable WAL mode for better concurrent access
                conn.execute("PRAGMA journal_mode=WAL")
                conn.execute("PRAGMA synchronous=NORMAL")
            except sqlite3.Error as e:
                if conn is not None:
                    conn.close()
                raise ConnectionError(f"Cannot open {self.db_path}: {e}") from e
            self._local.conn = conn
        return self._local.conn

    @contextmanager
    def transaction(self) -> Iterator[sqlite3.Connection]:
        """Context manager for database transactions."""
        conn = self._get_connection()
        try:
            yield conn
            conn.commit()
        except sqlite3.Error as e:
            conn.rollback()
            raise QueryError(str(e)) from e
        except Exception:
            conn.rollback()
            raise

    def _init_schema(self) -> None:
        """Initialize database schema."""
        with self.transaction() as conn:
            conn.executescript('''
                -- Metadata table
                CREATE TABLE IF NOT EXISTS metadata (
                    key TEXT PRIMARY KEY,
                    value TEXT
                );

                -- One row per source key
                CREATE TABLE IF NOT EXISTS data_freshness (
                    source_key TEXT PRIMARY KEY,
                    last_updated TEXT NOT NULL,
                    last_successful_fetch TEXT,
                    fetch_attempts INTEGER NOT NULL DEFAULT 0,
                    last_error TEXT
                );
            ''')

            conn.execute(
                "INSERT OR REPLACE INTO metadata (key, value) VALUES (?, ?)",
                ('schema_version', str(self.SCHEMA_VERSION))
            )

    # =========================================================================
    # WRITE OPERATIONS
    # =========================================================================

    def record_attempt(
        self,
        source_key: str,
        success: bool,
        error: Optional[str] = None
    ) -> FreshnessRecord:
        """Upsert the row for source_key with the outcome of one attempt."""
        now = _format_timestamp(self.now())
        with self.transaction() as conn:
            conn.execute('''
                INSERT INTO data_freshness
                (source_key, last_updated, last_successful_fetch, fetch_attempts, last_error)
                VALUES (?, ?, ?, 1, ?)
                ON CONFLICT(source_key) DO UPDATE SET
                    last_updated = excluded.last_updated,
                    last_successful_fetch = CASE
                        WHEN excluded.last_successful_fetch IS NULL
                            THEN data_freshness.last_successful_fetch
                        WHEN data_freshness.last_successful_fetch IS NULL
                            THEN excluded.last_successful_fetch
                        ELSE MAX(data_freshness.last_successful_fetch,
                                 excluded.last_successful_fetch)
                    END,
                    fetch_attempts = data_freshness.fetch_attempts + 1,
                    last_error = excluded.last_error
            ''', (
                source_key,
                now,
                now if success else None,
                self._error_text(success, error),
            ))
            row = conn.execute(
                'SELECT * FROM data_freshness WHERE source_key = ?',
                (source_key,)
            ).fetchone()
        return self._row_to_record(row)

    def clear(self, source_key: str) -> bool:
        """Delete the row for a source key."""
        with self.transaction() as conn:
            cursor = conn.execute(
                'DELETE FROM data_freshness WHERE source_key = ?',
                (source_key,)
            )
            return cursor.rowcount > 0

    def clear_all(self) -> None:
        """Delete every row."""
        with self.transaction() as conn:
            conn.execute('DELETE FROM data_freshness')

    # =========================================================================
    # READ OPERATIONS
    # =========================================================================

    def get(self, source_key: str) -> Optional[FreshnessRecord]:
        """Get the row for a source key."""
        try:
            row = self._get_connection().execute(
                'SELECT * FROM data_freshness WHERE source_key = ?',
                (source_key,)
            ).fetchone()
        except sqlite3.Error as e:
            raise QueryError(str(e)) from e
        return self._row_to_record(row) if row else None

    def list_records(self) -> List[FreshnessRecord]:
        """Get all rows ordered by source key."""
        try:
            rows = self._get_connection().execute(
                'SELECT * FROM data_freshness ORDER BY source_key'
            ).fetchall()
        except sqlite3.Error as e:
            raise QueryError(str(e)) from e
        return [self._row_to_record(row) for row in rows]

    def get_database_size(self) -> int:
        """Get database file size in bytes."""
        if self.db_path.exists():
            return self.db_path.stat().st_size
        return 0

    def _row_to_record(self, row: sqlite3.Row) -> FreshnessRecord:
        last_success = row['last_successful_fetch']
        return FreshnessRecord(
            source_key=row['source_key'],
            last_updated=parse_timestamp(row['last_updated']),
            last_successful_fetch=parse_timestamp(last_success) if last_success else None,
            fetch_attempts=row['fetch_attempts'],
            last_error=row['last_error'],
        )
