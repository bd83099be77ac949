from __future__ import annotations

import json
import threading
import time
from typing import Callable, Optional

from insider_lookup.cache.base import CacheBackend
from insider_lookup.db import connect, init_db, is_sqlite_memory
from insider_lookup.models import LookupResult
from insider_lookup.util.time import from_epoch_iso


def _debug(msg: str) -> None:
    print(f"[store] {msg}")


class StoreCache(CacheBackend):
    """Persisted LookupResult cache (table insider_lookup_cache, one row per ticker).

    Expiry belongs to the store: rows past `expires_at` are invisible to reads
    and purged on writes. A row that comes back from `get` is valid as-is.

    Database failures never escape. A failed read is a miss and a failed write
    is a no-op, because this tier only saves work.
    """

    name = "store"

    def __init__(
        self,
        db_dsn: str,
        ttl_seconds: float,
        *,
        clock: Callable[[], float] = time.time,
    ):
        if is_sqlite_memory(db_dsn):
            # connect() opens a fresh database each time, so nothing written would survive
            raise RuntimeError("StoreCache needs a file or Postgres DSN, not :memory:; set ENABLE_STORE_CACHE=0 instead")
        self.db_dsn = db_dsn
        self.ttl_seconds = float(ttl_seconds)
        self._clock = clock
        self._init_lock = threading.Lock()
        self._initialized = False

    def _ensure_schema(self) -> None:
        if self._initialized:
            return
        with self._init_lock:
            if not self._initialized:
                init_db(self.db_dsn)
                self._initialized = True

    def get(self, key: str) -> Optional[LookupResult]:
        try:
            self._ensure_schema()
            with connect(self.db_dsn) as conn:
                row = conn.execute(
                    "SELECT payload_json FROM insider_lookup_cache WHERE ticker=? AND expires_at > ?",
                    (key, from_epoch_iso(self._clock())),
                ).fetchone()
            if row is None:
                return None
            return LookupResult.from_dict(json.loads(row["payload_json"]))
        except Exception as e:
            _debug(f"Read failed for ticker={key}; treating as miss: {e}")
            return None

    def put(self, key: str, value: LookupResult) -> None:
        now = self._clock()
        now_iso = from_epoch_iso(now)
        try:
            self._ensure_schema()
            with connect(self.db_dsn) as conn:
                conn.execute("DELETE FROM insider_lookup_cache WHERE expires_at <= ?", (now_iso,))
                conn.execute(
                    """
                    INSERT INTO insider_lookup_cache (ticker, cik, payload_json, fetched_at, expires_at)
                    VALUES (?,?,?,?,?)
                    ON CONFLICT(ticker) DO UPDATE SET
                        cik=excluded.cik,
                        payload_json=excluded.payload_json,
                        fetched_at=excluded.fetched_at,
                        expires_at=excluded.expires_at
                    """,
                    (
                        key,
                        value.cik,
                        json.dumps(value.to_dict(), ensure_ascii=False),
                        now_iso,
                        from_epoch_iso(now + self.ttl_seconds),
                    ),
                )
        except Exception as e:
            _debug(f"Write failed for ticker={key}; skipping persisted cache: {e}")

    def invalidate(self, key: str) -> None:
        try:
            self._ensure_schema()
            with connect(self.db_dsn) as conn:
                conn.execute("DELETE FROM insider_lookup_cache WHERE ticker=?", (key,))
        except Exception as e:
            _debug(f"Invalidate failed for ticker={key}: {e}")
