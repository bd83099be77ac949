from __future__ import annotations

import re

# 1-5 uppercase letters with an optional class suffix (BRK.B, RDS.A, ...)
TICKER_REGEX = re.compile(r"^[A-Z]{1,5}(\.[A-Z0-9]{1,4})?$")


def normalize_ticker(ticker: str | None) -> str:
    return (ticker or "").strip().upper()


def is_valid_ticker(ticker: str | None) -> bool:
    return bool(ticker) and TICKER_REGEX.match(str(ticker)) is not None
