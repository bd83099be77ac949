import os
from dataclasses import dataclass
from typing import Optional

# A local .env is a convenience for development; the real environment wins.
try:
    from dotenv import load_dotenv

    load_dotenv()
except Exception:
    pass

_TRUE_WORDS = frozenset({"1", "true", "yes", "y", "on"})
_FALSE_WORDS = frozenset({"0", "false", "no", "n", "off"})


def _env_bool(name: str, default: Optional[bool] = None) -> Optional[bool]:
    """1/true/yes/y/on or 0/false/no/n/off (any case); unset or anything else gives `default`."""
    raw = (os.environ.get(name) or "").strip().lower()
    if raw in _TRUE_WORDS:
        return True
    if raw in _FALSE_WORDS:
        return False
    return default


def _env_int(name: str, default: int) -> int:
    raw = (os.environ.get(name) or "").strip()
    return int(raw) if raw else default


def _env_float(name: str, default: float) -> float:
    raw = (os.environ.get(name) or "").strip()
    return float(raw) if raw else default


@dataclass(frozen=True)
class Config:
    """Process configuration, read from the environment at import time.

    Tests and embedders build Config(...) with explicit values instead.
    """

    # Persisted lookup cache. A postgres:// URL in INSIDER_DATABASE_URL or
    # DATABASE_URL selects Postgres; otherwise INSIDER_DB_PATH is a SQLite file.
    DB_DSN: str = (
        os.environ.get("INSIDER_DATABASE_URL")
        or os.environ.get("DATABASE_URL")
        or os.environ.get("INSIDER_DB_PATH", "./insider_lookup.sqlite")
    )
    ENABLE_STORE_CACHE: bool = _env_bool("ENABLE_STORE_CACHE", True) is True

    # EDGAR rejects anonymous clients; include a contact address.
    SEC_USER_AGENT: str = os.environ.get("SEC_USER_AGENT", "InsiderLookup/0.1 (contact: you@example.com)")
    SEC_TICKERS_URL: str = os.environ.get("SEC_TICKERS_URL", "https://www.sec.gov/files/company_tickers.json")
    SEC_SUBMISSIONS_URL: str = os.environ.get("SEC_SUBMISSIONS_URL", "https://data.sec.gov/submissions")
    SEC_ARCHIVES_URL: str = os.environ.get("SEC_ARCHIVES_URL", "https://www.sec.gov/Archives/edgar/data")

    # Minimum gap between any two SEC requests made by this process.
    SEC_MIN_INTERVAL_SECONDS: float = _env_float("SEC_MIN_INTERVAL_SECONDS", 0.25)
    SEC_TIMEOUT_SECONDS: float = _env_float("SEC_TIMEOUT_SECONDS", 30.0)

    SUBMISSIONS_CACHE_SECONDS: int = _env_int("SUBMISSIONS_CACHE_SECONDS", 15 * 60)
    LOOKUP_MEMORY_TTL_SECONDS: int = _env_int("LOOKUP_MEMORY_TTL_SECONDS", 5 * 60)
    LOOKUP_STORE_TTL_SECONDS: int = _env_int("LOOKUP_STORE_TTL_SECONDS", 24 * 60 * 60)

    # Each filing costs one rate-limited document fetch.
    MAX_FILINGS_TO_PROCESS: int = _env_int("MAX_FILINGS_TO_PROCESS", 3)

    # Comma-separated; empty disables the CORS middleware.
    CORS_ALLOW_ORIGINS: str = os.environ.get(
        "CORS_ALLOW_ORIGINS",
        "http://localhost:5173,http://127.0.0.1:5173,http://localhost:3000",
    )


def load_config() -> Config:
    return Config()
