"""Look up recent insider Forms 3/4/5 for a ticker from the command line.

Usage:
  python scripts/lookup_insiders.py AAPL
  python scripts/lookup_insiders.py BRK.B --refresh --json

Notes:
  - Results are cached (memory + database) exactly like the API path.
  - --refresh drops the cached result for the ticker before looking it up.
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from insider_lookup.config import load_config
from insider_lookup.service import InsiderLookupService
from insider_lookup.util.validation import is_valid_ticker, normalize_ticker


def _fmt_shares(v: float) -> str:
    return f"{v:,.0f}" if float(v).is_integer() else f"{v:,.2f}"


def main() -> int:
    parser = argparse.ArgumentParser()
    parser.add_argument("ticker", help="Ticker symbol, e.g. AAPL or BRK.B")
    parser.add_argument("--refresh", action="store_true", help="Ignore cached results")
    parser.add_argument("--json", action="store_true", help="Print the raw JSON result")
    args = parser.parse_args()

    ticker = normalize_ticker(args.ticker)
    if not is_valid_ticker(ticker):
        print(f"Invalid ticker: {args.ticker!r}")
        return 2

    cfg = load_config()
    service = InsiderLookupService.from_config(cfg)
    if args.refresh:
        service.invalidate(ticker)

    result = service.lookup(ticker)
    if result is None:
        print(f"Ticker {ticker} not found in SEC data.")
        return 1

    if args.json:
        print(json.dumps(result.to_dict(), indent=2))
        return 0

    s = result.summary
    print(f"{result.ticker} (CIK {result.cik})")
    print(
        f"  bought={_fmt_shares(s.total_buy_shares)} sold={_fmt_shares(s.total_sell_shares)} "
        f"net={_fmt_shares(s.net_shares)}"
    )
    for tx in result.transactions:
        price = f"@ {tx.price:,.2f}" if tx.price is not None else ""
        print(
            f"  {tx.date or '-':<10} {tx.type:<8} {_fmt_shares(tx.shares):>12} {price:<12} "
            f"{tx.insider} [{tx.source}]" + (f" - {tx.note}" if tx.note else "")
        )
    return 0


if __name__ == "__main__":
    sys.exit(main())
