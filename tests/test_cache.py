import sqlite3

import pytest

from insider_lookup.cache import MemoryCache, StoreCache, TieredCache
from insider_lookup.compute.aggregate import summarize_transactions
from insider_lookup.db import connect, detect_dialect, init_db, is_sqlite_memory, _qmark_to_pct
from insider_lookup.models import LookupResult, ParsedTransaction


class Clock:
    def __init__(self, now: float = 1_760_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


def _result(ticker: str = "AAPL", shares: float = 500) -> LookupResult:
    txs = [
        ParsedTransaction(
            date="2025-11-03",
            insider="LEVINSON ARTHUR D",
            form_type="4",
            transaction_code="S",
            type="sell",
            shares=shares,
            price=245.89,
            security_title="Common Stock",
            source="Form 4",
            note=None,
        )
    ]
    return LookupResult(ticker=ticker, cik="0000320193", summary=summarize_transactions(txs), transactions=txs)


def test_memory_cache_expires_after_ttl():
    clock = Clock()
    cache = MemoryCache(300, clock=clock)
    cache.put("AAPL", "value")

    clock.now += 299
    assert cache.get("AAPL") == "value"
    clock.now += 1
    assert cache.get("AAPL") is None
    assert len(cache) == 0


def test_memory_cache_invalidate_and_zero_ttl():
    cache = MemoryCache(60)
    cache.put("AAPL", 1)
    cache.invalidate("AAPL")
    assert cache.get("AAPL") is None

    disabled = MemoryCache(0)
    disabled.put("AAPL", 1)
    assert disabled.get("AAPL") is None


def test_store_cache_round_trips_and_upserts(tmp_path):
    store = StoreCache(str(tmp_path / "cache.sqlite"), 86400)

    assert store.get("AAPL") is None
    store.put("AAPL", _result(shares=500))
    store.put("AAPL", _result(shares=750))

    got = store.get("AAPL")
    assert got == _result(shares=750)
    with connect(store.db_dsn) as conn:
        rows = conn.execute("SELECT ticker FROM insider_lookup_cache").fetchall()
    assert [r["ticker"] for r in rows] == ["AAPL"]


def test_store_cache_hides_and_purges_expired_rows(tmp_path):
    clock = Clock()
    store = StoreCache(str(tmp_path / "cache.sqlite"), 86400, clock=clock)
    store.put("AAPL", _result("AAPL"))

    clock.now += 86400
    assert store.get("AAPL") is None

    store.put("MSFT", _result("MSFT"))
    with connect(store.db_dsn) as conn:
        tickers = [r["ticker"] for r in conn.execute("SELECT ticker FROM insider_lookup_cache").fetchall()]
    assert tickers == ["MSFT"]


def test_store_cache_invalidate(tmp_path):
    store = StoreCache(str(tmp_path / "cache.sqlite"), 86400)
    store.put("AAPL", _result())
    store.invalidate("AAPL")
    assert store.get("AAPL") is None


def test_store_cache_failures_are_misses_not_errors(tmp_path):
    # A directory is not a database file: every operation fails underneath.
    store = StoreCache(str(tmp_path), 86400)
    store.put("AAPL", _result())
    assert store.get("AAPL") is None
    store.invalidate("AAPL")


def test_store_cache_treats_corrupt_payload_as_miss(tmp_path):
    store = StoreCache(str(tmp_path / "cache.sqlite"), 86400)
    store.put("AAPL", _result())
    with connect(store.db_dsn) as conn:
        conn.execute("UPDATE insider_lookup_cache SET payload_json='{broken' WHERE ticker='AAPL'")
    assert store.get("AAPL") is None


def test_tiered_cache_promotes_slow_hits(tmp_path):
    memory = MemoryCache(300)
    store = StoreCache(str(tmp_path / "cache.sqlite"), 86400)
    cache = TieredCache([memory, store])

    store.put("AAPL", _result())
    assert memory.get("AAPL") is None

    assert cache.get("AAPL") == _result()
    assert memory.get("AAPL") == _result()


def test_tiered_cache_writes_through_and_invalidates_all(tmp_path):
    memory = MemoryCache(300)
    store = StoreCache(str(tmp_path / "cache.sqlite"), 86400)
    cache = TieredCache([memory, store])

    cache.put("AAPL", _result())
    assert memory.get("AAPL") is not None
    assert store.get("AAPL") is not None

    cache.invalidate("AAPL")
    assert cache.get("AAPL") is None
    assert store.get("AAPL") is None


def test_tiered_cache_requires_a_tier():
    with pytest.raises(RuntimeError):
        TieredCache([])


def test_init_db_is_idempotent(tmp_path):
    dsn = f"sqlite:///{tmp_path / 'nested' / 'db.sqlite'}"
    init_db(dsn)
    init_db(dsn)
    with connect(dsn) as conn:
        assert isinstance(conn, sqlite3.Connection)
        assert conn.execute("SELECT COUNT(*) AS n FROM insider_lookup_cache").fetchone()["n"] == 0


def test_dialect_detection_and_placeholder_conversion():
    assert detect_dialect("postgresql://u:p@localhost/db") == "postgres"
    assert detect_dialect("./insider_lookup.sqlite") == "sqlite"
    assert detect_dialect("") == "sqlite"
    assert _qmark_to_pct("SELECT ? FROM t WHERE a='?' AND b=?") == "SELECT %s FROM t WHERE a='?' AND b=%s"
    assert _qmark_to_pct("WHERE a='it''s ?' AND b=?") == "WHERE a='it''s ?' AND b=%s"


@pytest.mark.parametrize("dsn", [":memory:", " :memory: ", "sqlite:///:memory:"])
def test_store_cache_rejects_in_memory_sqlite(dsn):
    assert is_sqlite_memory(dsn)
    with pytest.raises(RuntimeError):
        StoreCache(dsn, 86400)


def test_file_and_postgres_dsns_are_not_in_memory(tmp_path):
    assert not is_sqlite_memory(str(tmp_path / "cache.sqlite"))
    assert not is_sqlite_memory("sqlite:///./cache.sqlite")
    assert not is_sqlite_memory("postgresql://u:p@localhost/db")
