import threading
import time

import pytest

from insider_lookup.errors import SecHttpError, SecRequestError
from insider_lookup.sec.http import RateLimiter, SecClient
from insider_lookup.sec.tickers import TickerResolver, build_ticker_directory

from conftest import TICKERS_PAYLOAD, TICKERS_URL, FakeSession


def _resolver(session):
    return TickerResolver(SecClient("ua", RateLimiter(0), session=session), TICKERS_URL)


def test_directory_pads_ciks_and_uppercases_tickers():
    directory = build_ticker_directory(TICKERS_PAYLOAD)
    assert directory["AAPL"].cik10 == "0000320193"
    assert directory["MSFT"].cik10 == "0000789019"
    assert "msft" not in directory


def test_directory_is_read_only():
    directory = build_ticker_directory(TICKERS_PAYLOAD)
    with pytest.raises(TypeError):
        directory["NEW"] = directory["AAPL"]  # type: ignore[index]


def test_directory_skips_bad_rows():
    directory = build_ticker_directory(
        {
            "0": {"cik_str": "abc", "ticker": "BAD"},
            "1": {"ticker": "NOCIK"},
            "2": "not a dict",
            "3": {"cik_str": 1, "ticker": ""},
            "4": {"cik_str": 2, "ticker": "OK"},
        }
    )
    assert list(directory) == ["OK"]


def test_resolve_is_case_insensitive_and_loads_once():
    session = FakeSession({TICKERS_URL: TICKERS_PAYLOAD})
    resolver = _resolver(session)

    assert resolver.resolve_cik("aapl") == "0000320193"
    assert resolver.resolve_cik(" AAPL ") == "0000320193"
    assert resolver.company_name("AAPL") == "Apple Inc."
    assert session.urls() == [TICKERS_URL]


def test_unknown_ticker_resolves_to_none():
    resolver = _resolver(FakeSession({TICKERS_URL: TICKERS_PAYLOAD}))
    assert resolver.resolve("ZZZZ") is None
    assert resolver.resolve_cik("ZZZZ") is None
    assert resolver.company_name("ZZZZ") is None


def test_class_share_variants():
    resolver = _resolver(FakeSession({TICKERS_URL: TICKERS_PAYLOAD}))
    assert resolver.resolve_cik("BRK.B") == "0001067983"
    assert resolver.resolve_cik("BRK-B") == "0001067983"


def test_concurrent_first_calls_share_one_download():
    gate = threading.Event()

    class SlowSession(FakeSession):
        def get(self, url, headers=None, timeout=None):
            gate.wait(timeout=5)
            return super().get(url, headers=headers, timeout=timeout)

    session = SlowSession({TICKERS_URL: TICKERS_PAYLOAD})
    resolver = _resolver(session)
    results = []

    def worker():
        results.append(resolver.resolve_cik("AAPL"))

    threads = [threading.Thread(target=worker) for _ in range(5)]
    for t in threads:
        t.start()
    time.sleep(0.05)
    gate.set()
    for t in threads:
        t.join()

    assert results == ["0000320193"] * 5
    assert session.urls() == [TICKERS_URL]


def test_failed_load_is_retried_on_next_call():
    session = FakeSession({TICKERS_URL: (503, "busy")})
    resolver = _resolver(session)

    with pytest.raises(SecHttpError):
        resolver.resolve("AAPL")

    session.routes[TICKERS_URL] = TICKERS_PAYLOAD
    assert resolver.resolve_cik("AAPL") == "0000320193"
    assert len(session.calls) == 2


def test_reset_forces_reload():
    session = FakeSession({TICKERS_URL: TICKERS_PAYLOAD})
    resolver = _resolver(session)
    resolver.resolve("AAPL")
    resolver.reset()
    resolver.resolve("AAPL")
    assert len(session.calls) == 2


@pytest.mark.parametrize("body", ["", "   ", {}, {"0": {"ticker": "NOCIK"}}])
def test_unusable_directory_is_an_error_and_is_retried(body):
    session = FakeSession({TICKERS_URL: body})
    resolver = _resolver(session)

    with pytest.raises(SecRequestError):
        resolver.resolve("AAPL")

    session.routes[TICKERS_URL] = TICKERS_PAYLOAD
    assert resolver.resolve_cik("AAPL") == "0000320193"
    assert len(session.calls) == 2
