from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple, Union

OWNERSHIP_FORMS = ("3", "4", "5")

UNAVAILABLE_NOTE = "Transaction details unavailable"


def _share_count(v: float) -> float | int:
    # 500.0 goes on the wire as 500; fractional counts stay as they are
    return int(v) if float(v).is_integer() else v


@dataclass(frozen=True)
class TickerRecord:
    cik10: str
    ticker: str
    title: str


@dataclass(frozen=True)
class FilingReference:
    """One row of an issuer's filing index (Forms 3/4/5 only)."""

    accession_number: str
    form: str
    filing_date: str
    report_date: str | None
    primary_document: str


@dataclass(frozen=True)
class ParsedTransaction:
    date: str | None
    insider: str
    form_type: str
    transaction_code: str | None
    type: str
    shares: float
    price: float | None
    security_title: str | None
    source: str
    note: str | None = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "date": self.date,
            "insider": self.insider,
            "formType": self.form_type,
            "transactionCode": self.transaction_code,
            "type": self.type,
            "shares": _share_count(self.shares),
            "price": self.price,
            "securityTitle": self.security_title,
            "source": self.source,
            "note": self.note,
        }


@dataclass(frozen=True)
class PlaceholderTransaction:
    """Stands in for a filing we know exists but could not extract.

    Carries shares=0 on the wire and is never counted by the aggregator.
    """

    date: str | None
    form_type: str
    source: str
    insider: str = "Unknown"
    note: str = UNAVAILABLE_NOTE

    type = "other"
    shares = 0.0
    price = None
    transaction_code = None
    security_title = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "date": self.date,
            "insider": self.insider,
            "formType": self.form_type,
            "transactionCode": None,
            "type": self.type,
            "shares": 0,
            "price": None,
            "securityTitle": None,
            "source": self.source,
            "note": self.note,
        }


Transaction = Union[ParsedTransaction, PlaceholderTransaction]


def transaction_from_dict(d: Dict[str, Any]) -> Transaction:
    shares = float(d.get("shares") or 0)
    if shares <= 0:
        return PlaceholderTransaction(
            date=d.get("date"),
            form_type=str(d.get("formType") or ""),
            source=str(d.get("source") or ""),
            insider=str(d.get("insider") or "Unknown"),
            note=str(d.get("note") or UNAVAILABLE_NOTE),
        )
    price = d.get("price")
    return ParsedTransaction(
        date=d.get("date"),
        insider=str(d.get("insider") or "Unknown"),
        form_type=str(d.get("formType") or ""),
        transaction_code=d.get("transactionCode"),
        type=str(d.get("type") or "other"),
        shares=shares,
        price=float(price) if price is not None else None,
        security_title=d.get("securityTitle"),
        source=str(d.get("source") or ""),
        note=d.get("note"),
    )


@dataclass(frozen=True)
class Summary:
    total_buy_shares: float = 0.0
    total_sell_shares: float = 0.0
    net_shares: float = 0.0

    def to_dict(self) -> Dict[str, float]:
        return {
            "totalBuyShares": self.total_buy_shares,
            "totalSellShares": self.total_sell_shares,
            "netShares": self.net_shares,
        }


@dataclass(frozen=True)
class LookupResult:
    """Unit of caching and the unit returned to callers."""

    ticker: str
    cik: str
    summary: Summary
    transactions: Tuple[Transaction, ...] = ()

    def __post_init__(self) -> None:
        # Cached instances are shared between callers; the ledger must not be mutable.
        object.__setattr__(self, "transactions", tuple(self.transactions))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "ticker": self.ticker,
            "cik": self.cik,
            "summary": self.summary.to_dict(),
            "transactions": [tx.to_dict() for tx in self.transactions],
        }

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "LookupResult":
        # Summary is always rebuilt from the rows so it can never drift from them.
        from insider_lookup.compute.aggregate import summarize_transactions

        txs = tuple(transaction_from_dict(t) for t in (d.get("transactions") or []) if isinstance(t, dict))
        return cls(
            ticker=str(d.get("ticker") or ""),
            cik=str(d.get("cik") or ""),
            summary=summarize_transactions(txs),
            transactions=txs,
        )


def is_placeholder(tx: Optional[Transaction]) -> bool:
    return isinstance(tx, PlaceholderTransaction)
