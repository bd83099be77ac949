from __future__ import annotations

from typing import List, Optional

from insider_lookup.cache import CacheBackend, MemoryCache, StoreCache, TieredCache
from insider_lookup.compute.aggregate import summarize_transactions
from insider_lookup.config import Config
from insider_lookup.errors import SecRequestError
from insider_lookup.models import FilingReference, LookupResult, PlaceholderTransaction, Transaction
from insider_lookup.sec.edgar import build_filing_document_url, fetch_ownership_document
from insider_lookup.sec.http import RateLimiter, SecClient
from insider_lookup.sec.parser import parse_ownership_xml
from insider_lookup.sec.submissions import SubmissionsClient, select_recent_filings
from insider_lookup.sec.tickers import TickerResolver
from insider_lookup.util.concurrency import KeyedLocks
from insider_lookup.util.validation import normalize_ticker


def _debug(msg: str) -> None:
    print(f"[lookup] {msg}")


class InsiderLookupService:
    """ticker -> LookupResult (or None when the ticker isn't in the SEC directory).

    Read path: tiered cache -> CIK -> filing index -> newest N ownership
    documents -> summary -> write-through to every cache tier.
    """

    def __init__(
        self,
        cfg: Config,
        *,
        client: SecClient,
        resolver: TickerResolver,
        submissions: SubmissionsClient,
        cache: CacheBackend,
    ):
        self.cfg = cfg
        self.client = client
        self.resolver = resolver
        self.submissions = submissions
        self.cache = cache
        self._inflight = KeyedLocks()

    @classmethod
    def from_config(cls, cfg: Config, *, session: object = None) -> "InsiderLookupService":
        client = SecClient(
            cfg.SEC_USER_AGENT,
            RateLimiter(cfg.SEC_MIN_INTERVAL_SECONDS),
            timeout_seconds=cfg.SEC_TIMEOUT_SECONDS,
            session=session,
        )
        tiers: List[CacheBackend] = [MemoryCache(cfg.LOOKUP_MEMORY_TTL_SECONDS)]
        if cfg.ENABLE_STORE_CACHE:
            tiers.append(StoreCache(cfg.DB_DSN, cfg.LOOKUP_STORE_TTL_SECONDS))
        return cls(
            cfg,
            client=client,
            resolver=TickerResolver(client, cfg.SEC_TICKERS_URL),
            submissions=SubmissionsClient(
                client,
                cfg.SEC_SUBMISSIONS_URL,
                MemoryCache(cfg.SUBMISSIONS_CACHE_SECONDS),
            ),
            cache=TieredCache(tiers),
        )

    def lookup(self, ticker: str) -> Optional[LookupResult]:
        t = normalize_ticker(ticker)
        if not t:
            return None

        cached = self.cache.get(t)
        if cached is not None:
            return cached

        # Concurrent lookups for the same uncached ticker share one fetch.
        with self._inflight.hold(t):
            cached = self.cache.get(t)
            if cached is not None:
                return cached

            result = self._build(t)
            if result is not None:
                self.cache.put(t, result)
            return result

    def invalidate(self, ticker: str) -> None:
        self.cache.invalidate(normalize_ticker(ticker))

    def _build(self, ticker: str) -> Optional[LookupResult]:
        cik = self.resolver.resolve_cik(ticker)
        if not cik:
            _debug(f"Ticker not found in SEC directory: {ticker}")
            return None

        filings = select_recent_filings(self.submissions.recent_filings(cik), self.cfg.MAX_FILINGS_TO_PROCESS)
        _debug(f"ticker={ticker} cik={cik} processing {len(filings)} filings")

        transactions: List[Transaction] = []
        for filing in filings:
            transactions.extend(self._transactions_for_filing(cik, filing))

        return LookupResult(
            ticker=ticker,
            cik=cik,
            summary=summarize_transactions(transactions),
            transactions=transactions,
        )

    def _transactions_for_filing(self, cik: str, filing: FilingReference) -> List[Transaction]:
        try:
            xml_text = fetch_ownership_document(self.client, self.cfg.SEC_ARCHIVES_URL, cik, filing)
        except SecRequestError as e:
            _debug(f"Ownership document unavailable accession={filing.accession_number}: {e}")
            xml_text = None

        if xml_text is not None:
            parsed = parse_ownership_xml(xml_text, filing, cik)
            if parsed:
                return list(parsed)

        return [
            PlaceholderTransaction(
                date=filing.filing_date or None,
                form_type=filing.form,
                source=build_filing_document_url(self.cfg.SEC_ARCHIVES_URL, cik, filing),
            )
        ]
