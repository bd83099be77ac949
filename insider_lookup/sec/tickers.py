from __future__ import annotations

from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional

from insider_lookup.errors import SecRequestError
from insider_lookup.models import TickerRecord
from insider_lookup.sec.http import SecClient
from insider_lookup.util.concurrency import LazyValue
from insider_lookup.util.validation import normalize_ticker


def _debug(msg: str) -> None:
    print(f"[tickers] {msg}")


def build_ticker_directory(data: Any) -> Mapping[str, TickerRecord]:
    """Return read-only mapping {TICKER -> TickerRecord} from company_tickers.json.

    Format is typically { "0": {"cik_str": 320193, "ticker": "AAPL", "title": "Apple Inc."}, ... }
    """
    out: Dict[str, TickerRecord] = {}

    for _, obj in (data or {}).items():
        if not isinstance(obj, dict):
            continue

        ticker = normalize_ticker(obj.get("ticker"))
        title = str(obj.get("title") or "").strip()
        cik_str = obj.get("cik_str")

        if not ticker or cik_str is None:
            continue

        try:
            cik10 = str(int(cik_str)).zfill(10)
        except (TypeError, ValueError):
            continue

        # First entry wins (the SEC file lists the primary listing first).
        if ticker not in out:
            out[ticker] = TickerRecord(cik10=cik10, ticker=ticker, title=title)

    return MappingProxyType(out)


def lookup_ticker(mapping: Mapping[str, TickerRecord], ticker: str) -> Optional[TickerRecord]:
    """Resolve a ticker to a record, also trying dot/dash class-share variants."""

    t = normalize_ticker(ticker)
    if not t:
        return None

    if t in mapping:
        return mapping[t]

    if "." in t:
        t2 = t.replace(".", "-")
        if t2 in mapping:
            return mapping[t2]
    if "-" in t:
        t2 = t.replace("-", ".")
        if t2 in mapping:
            return mapping[t2]

    return None


class TickerResolver:
    """Ticker -> CIK directory, downloaded once per process on first use."""

    def __init__(self, client: SecClient, tickers_url: str):
        self._client = client
        self._tickers_url = tickers_url
        self._directory: LazyValue[Mapping[str, TickerRecord]] = LazyValue(self._load)

    def _load(self) -> Mapping[str, TickerRecord]:
        _debug(f"Loading SEC ticker directory: {self._tickers_url}")
        directory = build_ticker_directory(self._client.get_json(self._tickers_url))
        if not directory:
            # Never memoize this: every ticker would read as not found until restart
            raise SecRequestError(f"SEC ticker directory had no usable rows: {self._tickers_url}", url=self._tickers_url)
        _debug(f"Loaded {len(directory)} tickers")
        return directory

    def directory(self) -> Mapping[str, TickerRecord]:
        return self._directory.get()

    def resolve(self, ticker: str) -> Optional[TickerRecord]:
        """Missing tickers resolve to None; that is a normal 'no data' outcome."""
        return lookup_ticker(self.directory(), ticker)

    def resolve_cik(self, ticker: str) -> Optional[str]:
        rec = self.resolve(ticker)
        return rec.cik10 if rec is not None else None

    def company_name(self, ticker: str) -> Optional[str]:
        rec = self.resolve(ticker)
        if rec is None or not rec.title:
            return None
        return rec.title

    def reset(self) -> None:
        """Drop the loaded directory; the next resolve downloads it again."""
        self._directory.reset()
