from __future__ import annotations

import re
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterator, Sequence
from urllib.parse import urlparse

from insider_lookup.schema import get_schema_sql

_SQLITE_URL_PREFIX = "sqlite:///"

# Quoted SQL literals ('' and "" escapes included); '?' inside them is data.
_QUOTED_LITERAL = re.compile(r"('(?:[^']|'')*'|\"(?:[^\"]|\"\")*\")")


def _debug(msg: str) -> None:
    print(f"[db] {msg}")


def detect_dialect(dsn: str) -> str:
    """'postgres' for postgres:// and postgresql:// URLs, otherwise 'sqlite'."""
    scheme = urlparse((dsn or "").strip()).scheme.lower()
    return "postgres" if scheme in ("postgres", "postgresql") else "sqlite"


def _qmark_to_pct(sql: str) -> str:
    """Rewrite sqlite-style '?' placeholders as psycopg2 '%s'.

    Statements in this package are written once, in qmark style.
    """
    parts = _QUOTED_LITERAL.split(sql)
    # re.split with one capture group: odd indexes are the quoted literals
    return "".join(p if i % 2 else p.replace("?", "%s") for i, p in enumerate(parts))


def _sqlite_path(dsn: str) -> str:
    if dsn.lower().startswith(_SQLITE_URL_PREFIX):
        return dsn[len(_SQLITE_URL_PREFIX) :]
    return dsn


def is_sqlite_memory(dsn: str) -> bool:
    """True for :memory: (bare or sqlite:///), which is a new empty database per connect()."""
    d = (dsn or "").strip()
    return detect_dialect(d) == "sqlite" and _sqlite_path(d) == ":memory:"


class PGConnection:
    """psycopg2 connection with the sqlite3 `conn.execute(sql, params)` shorthand."""

    dialect = "postgres"

    def __init__(self, raw: Any):
        self._raw = raw

    def execute(self, sql: str, params: Sequence[Any] | None = None) -> Any:
        cur = self._raw.cursor()
        cur.execute(_qmark_to_pct(sql), tuple(params or ()))
        return cur

    def commit(self) -> None:
        self._raw.commit()

    def rollback(self) -> None:
        self._raw.rollback()

    def close(self) -> None:
        self._raw.close()


def _open_postgres(dsn: str) -> PGConnection:
    try:
        import psycopg2
        import psycopg2.extras
    except ImportError as e:
        raise RuntimeError(
            "DB_DSN points at Postgres but psycopg2 is not installed "
            "(pip install 'insider-lookup[postgres]')."
        ) from e
    # RealDictCursor: rows support row["column"] like sqlite3.Row
    return PGConnection(psycopg2.connect(dsn, cursor_factory=psycopg2.extras.RealDictCursor))


def _open_sqlite(path: str) -> sqlite3.Connection:
    in_memory = path == ":memory:"
    if not in_memory:
        Path(path).parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(path, timeout=30, check_same_thread=False)
    conn.row_factory = sqlite3.Row
    if not in_memory:
        # API workers and CLI runs may share one file
        conn.execute("PRAGMA journal_mode=WAL;")
    conn.execute("PRAGMA synchronous=NORMAL;")
    conn.execute("PRAGMA busy_timeout=5000;")
    return conn


@contextmanager
def connect(db_dsn: str) -> Iterator[Any]:
    """Open a connection for one unit of work.

    Commits when the block exits cleanly, rolls back when it raises, and
    always closes. Rows are addressable by column name on both backends.
    """
    dsn = (db_dsn or "").strip()
    if detect_dialect(dsn) == "postgres":
        conn: Any = _open_postgres(dsn)
    else:
        conn = _open_sqlite(_sqlite_path(dsn))

    try:
        yield conn
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


def init_db(db_dsn: str) -> None:
    """Create the lookup cache table and index. Idempotent."""
    dialect = detect_dialect(db_dsn)
    _debug(f"Ensuring schema ({dialect}) at {db_dsn}")
    statements = [s.strip() for s in get_schema_sql(dialect).split(";")]
    with connect(db_dsn) as conn:
        for stmt in statements:
            if stmt:
                conn.execute(stmt)
