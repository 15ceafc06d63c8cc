from __future__ import annotations

import re
from collections.abc import Sequence
from decimal import Decimal, InvalidOperation

from price_sentinel.errors import ArgumentError
from price_sentinel.types import MonitorRequest

USAGE = "Usage: price-sentinel SYMBOL SELL_PRICE BUY_PRICE"

# Invariant number format: optional sign, digits with optional "," grouping, optional fraction.
_PRICE_RE = re.compile(r"[+-]?(?:\d{1,3}(?:,\d{3})+|\d+)(?:\.\d*)?|[+-]?\.\d+")


def sanitize_symbol(raw: str) -> str:
    return raw.strip().replace("\n", "").replace("\r", "")


def parse_price(raw: str) -> Decimal:
    text = raw.strip()
    if not _PRICE_RE.fullmatch(text):
        raise ArgumentError("invalid price", detail=repr(raw))
    try:
        value = Decimal(text.replace(",", ""))
    except InvalidOperation as e:
        raise ArgumentError("invalid price", detail=repr(raw)) from e
    if not value.is_finite():
        raise ArgumentError("invalid price", detail=repr(raw))
    return value


def parse_monitor_request(args: Sequence[str]) -> MonitorRequest:
    if len(args) != 3:
        raise ArgumentError("wrong arity", detail=f"expected 3 arguments, got {len(args)}")
    for arg in args:
        if not arg or not arg.strip():
            raise ArgumentError("empty argument")

    symbol = sanitize_symbol(args[0])
    if not symbol:
        raise ArgumentError("empty argument")
    sell_price = parse_price(args[1])
    buy_price = parse_price(args[2])
    if buy_price >= sell_price:
        raise ArgumentError(
            "buy >= sell",
            detail=f"buy price {buy_price} must be lower than sell price {sell_price}",
        )
    return MonitorRequest(symbol=symbol, sell_price=sell_price, buy_price=buy_price)
