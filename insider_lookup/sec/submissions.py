from __future__ import annotations

from typing import Any, Dict, List, Optional

from insider_lookup.cache.memory import MemoryCache
from insider_lookup.models import OWNERSHIP_FORMS, FilingReference
from insider_lookup.sec.http import SecClient


def _debug(msg: str) -> None:
    print(f"[submissions] {msg}")


def _at(values: List[Any], i: int) -> Optional[str]:
    if i >= len(values) or values[i] is None:
        return None
    s = str(values[i]).strip()
    return s if s else None


def normalize_recent_filings(data: Dict[str, Any] | None) -> List[FilingReference]:
    """Zip the columnar `filings.recent` block into Forms 3/4/5 FilingReferences.

    The SEC ships parallel arrays (accessionNumber[i], form[i], ...), not rows.
    Upstream order (newest first) is preserved; callers sort/limit as needed.
    """
    recent = ((data or {}).get("filings") or {}).get("recent") or {}

    accs = recent.get("accessionNumber") or []
    forms = recent.get("form") or []
    filing_dates = recent.get("filingDate") or []
    report_dates = recent.get("reportDate") or []
    primary_docs = recent.get("primaryDocument") or []

    out: List[FilingReference] = []
    for i in range(len(accs)):
        form = _at(forms, i)
        if form not in OWNERSHIP_FORMS:
            continue
        acc = _at(accs, i)
        primary_doc = _at(primary_docs, i)
        if not acc or not primary_doc:
            continue
        out.append(
            FilingReference(
                accession_number=acc,
                form=form,
                filing_date=_at(filing_dates, i) or "",
                report_date=_at(report_dates, i),
                primary_document=primary_doc,
            )
        )
    return out


def select_recent_filings(filings: List[FilingReference], limit: int) -> List[FilingReference]:
    """Newest filing_date first (stable for ties), capped at `limit`."""
    ordered = sorted(filings, key=lambda f: f.filing_date or "", reverse=True)
    return ordered[: max(0, int(limit))]


class SubmissionsClient:
    """Fetch data.sec.gov/submissions/CIK##########.json with a short-lived cache.

    Filing indices change rarely but new filings do appear, so this cache is
    deliberately much shorter than the lookup result cache.
    """

    def __init__(self, client: SecClient, submissions_url: str, cache: MemoryCache):
        self._client = client
        self._base_url = submissions_url.rstrip("/")
        self._cache = cache

    def url_for(self, cik10: str) -> str:
        return f"{self._base_url}/CIK{str(cik10).zfill(10)}.json"

    def fetch(self, cik10: str) -> Dict[str, Any]:
        key = str(cik10).zfill(10)
        cached = self._cache.get(key)
        if cached is not None:
            _debug(f"Submissions cache hit cik={key}")
            return cached
        data = self._client.get_json(self.url_for(key))
        self._cache.put(key, data)
        return data

    def recent_filings(self, cik10: str) -> List[FilingReference]:
        return normalize_recent_filings(self.fetch(cik10))
