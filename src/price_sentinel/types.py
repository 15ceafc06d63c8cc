from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Literal, Optional, Protocol

AlertAction = Literal["BUY", "SELL", "NONE"]

# Present when a fetch (possibly after retries) succeeded.
PriceReading = Optional[Decimal]


@dataclass(frozen=True)
class MonitorRequest:
    symbol: str
    sell_price: Decimal
    buy_price: Decimal


class PriceFetcher(Protocol):
    async def get_price(self, symbol: str) -> Decimal: ...


class AlertNotifier(Protocol):
    async def send(self, *, to: str, subject: str, body: str) -> None: ...
