from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, List, Tuple

import pytest
import requests

from insider_lookup.config import Config
from insider_lookup.models import FilingReference

FIXTURES = Path(__file__).parent / "fixtures"

TICKERS_URL = "https://sec.test/files/company_tickers.json"
SUBMISSIONS_URL = "https://data.sec.test/submissions"
ARCHIVES_URL = "https://sec.test/Archives/edgar/data"


def load_fixture(name: str) -> str:
    return (FIXTURES / name).read_text(encoding="utf-8")


class FakeResponse:
    def __init__(self, status_code: int = 200, body: Any = ""):
        self.status_code = status_code
        self.text = body if isinstance(body, str) else json.dumps(body)

    def json(self) -> Any:
        return json.loads(self.text)


class FakeSession:
    """Stands in for requests.Session: canned responses per URL, records every call.

    A route value may be a body (str/dict -> 200), a (status, body) tuple, or an
    exception instance to raise. Unknown URLs answer 404.
    """

    def __init__(self, routes: Dict[str, Any] | None = None):
        self.routes: Dict[str, Any] = dict(routes or {})
        self.calls: List[Tuple[str, Dict[str, str], Any]] = []

    def get(self, url: str, headers: Dict[str, str] | None = None, timeout: Any = None) -> FakeResponse:
        self.calls.append((url, dict(headers or {}), timeout))
        route = self.routes.get(url)
        if route is None:
            return FakeResponse(404, "Not Found")
        if isinstance(route, Exception):
            raise route
        if isinstance(route, tuple):
            return FakeResponse(route[0], route[1])
        return FakeResponse(200, route)

    def urls(self) -> List[str]:
        return [c[0] for c in self.calls]


def make_config(tmp_path: Path | None = None, **overrides: Any) -> Config:
    values: Dict[str, Any] = dict(
        DB_DSN=str((tmp_path or Path(".")) / "lookup_cache.sqlite"),
        SEC_USER_AGENT="InsiderLookupTests/1.0 (tests@example.com)",
        SEC_TICKERS_URL=TICKERS_URL,
        SEC_SUBMISSIONS_URL=SUBMISSIONS_URL,
        SEC_ARCHIVES_URL=ARCHIVES_URL,
        SEC_MIN_INTERVAL_SECONDS=0.0,
        SEC_TIMEOUT_SECONDS=5.0,
        ENABLE_STORE_CACHE=tmp_path is not None,
        MAX_FILINGS_TO_PROCESS=3,
    )
    values.update(overrides)
    return Config(**values)


def submissions_payload(rows: List[Dict[str, Any]]) -> Dict[str, Any]:
    """Build the columnar `filings.recent` block from row dicts."""
    cols = ["accessionNumber", "form", "filingDate", "reportDate", "primaryDocument"]
    return {
        "cik": "320193",
        "name": "Apple Inc.",
        "filings": {"recent": {c: [r.get(c) for r in rows] for c in cols}},
    }


TICKERS_PAYLOAD = {
    "0": {"cik_str": 320193, "ticker": "AAPL", "title": "Apple Inc."},
    "1": {"cik_str": 1067983, "ticker": "BRK-B", "title": "Berkshire Hathaway Inc"},
    "2": {"cik_str": 789019, "ticker": "msft", "title": "Microsoft Corp"},
}


@pytest.fixture
def filing() -> FilingReference:
    return FilingReference(
        accession_number="0002050912-25-000004",
        form="4",
        filing_date="2025-10-17",
        report_date="2025-10-15",
        primary_document="xslF345X05/wk-form4_1760739604.xml",
    )


@pytest.fixture
def network_error() -> Exception:
    return requests.ConnectionError("connection refused")
