from __future__ import annotations

from typing import Iterable

from insider_lookup.models import Summary, Transaction, is_placeholder


def summarize_transactions(transactions: Iterable[Transaction]) -> Summary:
    """Fold transactions into buy/sell/net share totals.

    Only `buy` and `sell` rows count. Exercises, `other` rows and placeholders
    are carried in the ledger but never move the totals. net_shares is
    recomputed after every row so a partially consumed stream is still
    internally consistent.
    """
    total_buy = 0.0
    total_sell = 0.0
    net = 0.0
    for tx in transactions:
        if is_placeholder(tx):
            continue
        if tx.type == "buy":
            total_buy += tx.shares
        elif tx.type == "sell":
            total_sell += tx.shares
        net = total_buy - total_sell

    return Summary(total_buy_shares=total_buy, total_sell_shares=total_sell, net_shares=net)
