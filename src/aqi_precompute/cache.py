# file: src/aqi_precompute/cache.py
"""
Time-boxed key/value cache.

Two namespaces share one TTL: raw daily records and derived annual series.
Prefixes carry a format version so a format change orphans old entries
instead of misreading them. Every storage failure is logged and swallowed;
a broken cache only ever costs a live fetch.
"""

from __future__ import annotations

import json
import logging
import sqlite3
import threading
import time
from pathlib import Path
from typing import Any, Callable, Optional, Protocol

from .errors import CacheIOError

logger = logging.getLogger(__name__)

DAILY_CACHE_PREFIX = "aqi-cache-v2"
SERIES_CACHE_PREFIX = "aqi-series-v2"
CACHE_TTL_SECONDS = 60 * 60 * 6


class ByteStore(Protocol):
    def get(self, key: str) -> Optional[bytes]: ...

    def set(self, key: str, value: bytes) -> None: ...

    def delete(self, key: str) -> None: ...


class MemoryStore:
    """Process-local store; lives as long as the object that owns it."""

    def __init__(self):
        self._data: dict[str, bytes] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[bytes]:
        with self._lock:
            return self._data.get(key)

    def set(self, key: str, value: bytes) -> None:
        with self._lock:
            self._data[key] = value

    def delete(self, key: str) -> None:
        with self._lock:
            self._data.pop(key, None)

    def __len__(self) -> int:
        return len(self._data)


class SQLiteStore:
    """Single-table sqlite store, one short-lived connection per call."""

    def __init__(self, db_path: str):
        self.db_path = db_path
        con = self._connect()
        con.execute("""
        CREATE TABLE IF NOT EXISTS kv (
            key TEXT PRIMARY KEY,
            value BLOB NOT NULL
        );
        """)
        con.commit()
        con.close()

    def _connect(self) -> sqlite3.Connection:
        Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
        con = sqlite3.connect(self.db_path, timeout=30)
        con.execute("PRAGMA journal_mode=WAL;")
        con.execute("PRAGMA synchronous=NORMAL;")
        return con

    def _execute(self, sql: str, params: tuple, *, fetch: bool = False):
        try:
            con = self._connect()
            try:
                cur = con.execute(sql, params)
                row = cur.fetchone() if fetch else None
                con.commit()
            finally:
                con.close()
        except (sqlite3.Error, OSError) as exc:
            raise CacheIOError(f"sqlite cache {self.db_path}: {exc}") from exc
        return row

    def get(self, key: str) -> Optional[bytes]:
        row = self._execute("SELECT value FROM kv WHERE key = ?", (key,), fetch=True)
        return bytes(row[0]) if row else None

    def set(self, key: str, value: bytes) -> None:
        self._execute("INSERT OR REPLACE INTO kv (key, value) VALUES (?, ?)", (key, value))

    def delete(self, key: str) -> None:
        self._execute("DELETE FROM kv WHERE key = ?", (key,))


class TTLCache:
    """
    One cache namespace over a ByteStore.

    Entries are JSON `{"timestamp": <epoch seconds>, "data": <payload>}`.
    A `None` key disables the cache for that call.
    """

    def __init__(
        self,
        store: ByteStore,
        prefix: str,
        *,
        ttl_seconds: float = CACHE_TTL_SECONDS,
        clock: Callable[[], float] = time.time,
    ):
        self.store = store
        self.prefix = prefix
        self.ttl_seconds = ttl_seconds
        self.clock = clock

    def storage_key(self, key: str) -> str:
        return f"{self.prefix}:{key}"

    def _evict(self, full_key: str) -> None:
        try:
            self.store.delete(full_key)
        except Exception as exc:
            logger.debug("[cache] evict failed key=%s: %s", full_key, exc)

    def read(self, key: Optional[str]) -> Optional[Any]:
        if not key:
            return None
        full_key = self.storage_key(key)
        try:
            raw = self.store.get(full_key)
        except Exception as exc:
            logger.debug("[cache] read failed key=%s: %s", full_key, exc)
            return None
        if raw is None:
            return None

        try:
            entry = json.loads(raw)
        except ValueError:
            self._evict(full_key)
            return None

        if not isinstance(entry, dict) or not entry.get("timestamp") or entry.get("data") is None:
            self._evict(full_key)
            return None

        if self.clock() - float(entry["timestamp"]) > self.ttl_seconds:
            logger.debug("[cache] expired key=%s", full_key)
            self._evict(full_key)
            return None

        return entry["data"]

    def write(self, key: Optional[str], data: Any) -> None:
        if not key:
            return
        full_key = self.storage_key(key)
        try:
            payload = json.dumps({"timestamp": self.clock(), "data": data})
            self.store.set(full_key, payload.encode("utf-8"))
        except Exception as exc:
            logger.debug("[cache] write failed key=%s: %s", full_key, exc)


def open_store(db_path: Optional[str] = None) -> ByteStore:
    """sqlite-backed store when a path is given, otherwise in-memory."""
    if db_path:
        return SQLiteStore(db_path)
    return MemoryStore()
