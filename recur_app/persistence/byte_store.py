"""Opaque key/blob stores backing the persisted anchor record."""

import sqlite3
import threading
from abc import ABC, abstractmethod
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path

from ..errors import KeyNotFoundError, StoreIOError
from ..logging.config import get_store_logger


class ByteStore(ABC):
    """
    Key/blob service consumed by PersistedAnchorState.

    ``get`` must fail with KeyNotFoundError for a missing key and with
    StoreIOError for any other failure, so callers can tell them apart.
    """

    @abstractmethod
    def get(self, key: str) -> bytes:
        """Return the blob stored under ``key``."""

    @abstractmethod
    def set(self, key: str, data: bytes) -> None:
        """Store ``data`` under ``key``, replacing any previous value."""

    @abstractmethod
    def delete(self, key: str) -> None:
        """Remove ``key`` if present."""

    @abstractmethod
    def clear(self) -> None:
        """Remove every key."""


class InMemoryByteStore(ByteStore):
    """Dict-backed store with switchable read/write failures for tests."""

    def __init__(self, initial: dict[str, bytes] | None = None):
        self._data: dict[str, bytes] = dict(initial or {})
        self.fail_reads = False
        self.fail_writes = False
        self.write_count = 0

    def get(self, key: str) -> bytes:
        if self.fail_reads:
            raise StoreIOError("simulated read failure", operation="get", target=key)
        try:
            return self._data[key]
        except KeyError:
            raise KeyNotFoundError(f"key not found: {key}", key=key) from None

    def set(self, key: str, data: bytes) -> None:
        if self.fail_writes:
            raise StoreIOError("simulated write failure", operation="set", target=key)
        self._data[key] = bytes(data)
        self.write_count += 1

    def delete(self, key: str) -> None:
        self._data.pop(key, None)

    def clear(self) -> None:
        self._data.clear()

    def __contains__(self, key: str) -> bool:
        return key in self._data


class SqliteByteStore(ByteStore):
    """SQLite-based key/blob store, durable across process restarts."""

    def __init__(self, db_path: str = "anchor_state.db"):
        self.db_path = Path(db_path)
        self.logger = get_store_logger(__name__)
        self._lock = threading.Lock()

        self._init_database()

    def _init_database(self) -> None:
        """Initialize database schema."""
        try:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            with self._get_connection() as conn:
                conn.execute("""
                    CREATE TABLE IF NOT EXISTS blobs (
                        key TEXT PRIMARY KEY,
                        value BLOB NOT NULL,
                        updated_at TEXT NOT NULL
                    )
                """)
                conn.commit()
        except (OSError, sqlite3.Error) as e:
            raise StoreIOError(
                f"Failed to initialise store: {e}",
                operation="init",
                target=str(self.db_path)
            ) from e

    @contextmanager
    def _get_connection(self):
        """Get database connection with proper error handling."""
        conn = None
        try:
            conn = sqlite3.connect(self.db_path, timeout=30.0)
            yield conn
        except sqlite3.Error as e:
            if conn:
                conn.rollback()
            self.logger.error("Database error", db_path=str(self.db_path), error=str(e))
            raise
        finally:
            if conn:
                conn.close()

    def get(self, key: str) -> bytes:
        with self._lock:
            try:
                with self._get_connection() as conn:
                    row = conn.execute(
                        "SELECT value FROM blobs WHERE key = ?", (key,)
                    ).fetchone()
            except sqlite3.Error as e:
                raise StoreIOError(str(e), operation="get", target=key) from e

        if row is None:
            raise KeyNotFoundError(f"key not found: {key}", key=key)
        return bytes(row[0])

    def set(self, key: str, data: bytes) -> None:
        with self._lock:
            try:
                with self._get_connection() as conn:
                    conn.execute("""
                        INSERT INTO blobs (key, value, updated_at) VALUES (?, ?, ?)
                        ON CONFLICT(key) DO UPDATE SET
                            value = excluded.value,
                            updated_at = excluded.updated_at
                    """, (key, sqlite3.Binary(data), datetime.now(timezone.utc).isoformat()))
                    conn.commit()
            except sqlite3.Error as e:
                raise StoreIOError(str(e), operation="set", target=key) from e

        self.logger.debug("Blob stored", store_key=key, size=len(data))

    def delete(self, key: str) -> None:
        with self._lock:
            try:
                with self._get_connection() as conn:
                    conn.execute("DELETE FROM blobs WHERE key = ?", (key,))
                    conn.commit()
            except sqlite3.Error as e:
                raise StoreIOError(str(e), operation="delete", target=key) from e

    def clear(self) -> None:
        with self._lock:
            try:
                with self._get_connection() as conn:
                    removed = conn.execute("DELETE FROM blobs").rowcount
                    conn.commit()
            except sqlite3.Error as e:
                raise StoreIOError(str(e), operation="clear", target=str(self.db_path)) from e

        self.logger.info("Store cleared", db_path=str(self.db_path), removed=removed)
