from __future__ import annotations

from decimal import Decimal

from price_sentinel.types import AlertAction


def evaluate(current: Decimal, sell: Decimal, buy: Decimal) -> AlertAction:
    # Buy is checked first so it wins if the thresholds ever overlap.
    if current <= buy:
        return "BUY"
    if current >= sell:
        return "SELL"
    return "NONE"
