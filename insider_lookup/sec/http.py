from __future__ import annotations

import threading
import time
from typing import Any, Callable, Dict, Optional

import requests

from insider_lookup.errors import SecHttpError, SecNetworkError, SecRequestError

ACCEPT_JSON = "application/json"
ACCEPT_XML = "application/xml, text/xml, */*"


def _debug(msg: str) -> None:
    print(f"[sec] {msg}")


class RateLimiter:
    """Polite throttling: enforce a minimum gap between outbound requests.

    A single instance is shared by every SEC call in the process, so it paces
    the aggregate call rate, not each ticker or host separately. The lock is
    held while sleeping so concurrent callers queue up instead of computing
    the same ready time and bursting.
    """

    def __init__(
        self,
        min_interval_seconds: float | None,
        *,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.min_interval_seconds = float(min_interval_seconds or 0.0)
        self._clock = clock
        self._sleep = sleep
        self._lock = threading.Lock()
        self._last_request: float | None = None

    def wait(self) -> None:
        if self.min_interval_seconds <= 0:
            return
        with self._lock:
            now = self._clock()
            if self._last_request is not None:
                dt = now - self._last_request
                if dt < self.min_interval_seconds:
                    self._sleep(self.min_interval_seconds - dt)
            self._last_request = self._clock()


class SecClient:
    """Thin requests wrapper for SEC endpoints (User-Agent + throttle + timeout)."""

    def __init__(
        self,
        user_agent: str,
        rate_limiter: RateLimiter,
        *,
        timeout_seconds: float = 30.0,
        session: Any = None,
    ):
        if not (user_agent or "").strip():
            raise RuntimeError("SEC_USER_AGENT is blank; EDGAR requires a descriptive User-Agent")
        self.user_agent = user_agent
        self.rate_limiter = rate_limiter
        self.timeout_seconds = timeout_seconds
        self._session = session if session is not None else requests.Session()

    def fetch(self, url: str, *, accept: str = ACCEPT_JSON, headers: Optional[Dict[str, str]] = None) -> Any:
        req_headers = {"User-Agent": self.user_agent, "Accept": accept}
        if headers:
            req_headers.update(headers)

        self.rate_limiter.wait()
        _debug(f"GET {url}")
        try:
            r = self._session.get(url, headers=req_headers, timeout=self.timeout_seconds)
        except requests.RequestException as e:
            _debug(f"Network error for GET {url}: {e}")
            raise SecNetworkError(f"SEC request failed (network): {url}: {e}", url=url) from e

        _debug(f"GET {url} -> {r.status_code}")
        if not (200 <= r.status_code < 300):
            raise SecHttpError(r.status_code, url, r.text or "")
        return r

    def get_json(self, url: str) -> Dict[str, Any]:
        r = self.fetch(url, accept=ACCEPT_JSON)
        if not (r.text or "").strip():
            # A 200 with nothing in it is an outage, not an empty result
            raise SecRequestError(f"SEC returned an empty body: {url}", url=url)
        try:
            return r.json()
        except ValueError as e:
            raise SecRequestError(f"SEC returned invalid JSON: {url}: {e}", url=url) from e

    def get_text(self, url: str, *, accept: str = ACCEPT_XML) -> str:
        return self.fetch(url, accept=accept).text
