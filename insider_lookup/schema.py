"""Database schema for the persisted insider lookup cache.

One row per ticker. Timestamps are ISO-8601 TEXT (UTC, with 'Z'); ISO strings
sort lexicographically in time order, so `expires_at > now_iso` is a valid
freshness filter on both SQLite and Postgres.
"""

from __future__ import annotations


SCHEMA_SQL = r"""
CREATE TABLE IF NOT EXISTS insider_lookup_cache (
    ticker TEXT PRIMARY KEY,
    cik TEXT NOT NULL,
    payload_json TEXT NOT NULL,
    fetched_at TEXT NOT NULL,
    expires_at TEXT NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_insider_lookup_cache_expires ON insider_lookup_cache (expires_at);
"""


def get_schema_sql(dialect: str) -> str:
    # The DDL above is portable; dialect is kept so callers don't need to care.
    return SCHEMA_SQL
