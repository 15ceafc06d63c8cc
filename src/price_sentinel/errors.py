from __future__ import annotations

from typing import Literal

FetchErrorKind = Literal["network", "invalid_response", "timeout"]
DeliveryErrorKind = Literal["auth", "network", "protocol", "other"]


class ArgumentError(ValueError):
    def __init__(self, reason: str, *, detail: str = "") -> None:
        super().__init__(f"{reason}: {detail}" if detail else reason)
        self.reason = reason
        self.detail = detail


class ConfigurationError(RuntimeError):
    pass


class OperationError(RuntimeError):
    pass


class PriceFetchError(RuntimeError):
    def __init__(self, *, kind: FetchErrorKind, symbol: str, message: str = "") -> None:
        super().__init__(f"price fetch failed: kind={kind} symbol={symbol!r} {message}".rstrip())
        self.kind = kind
        self.symbol = symbol


class EmailDeliveryError(RuntimeError):
    def __init__(self, *, kind: DeliveryErrorKind, recipient: str, message: str = "") -> None:
        super().__init__(f"email delivery failed: kind={kind} {message}".rstrip())
        self.kind = kind
        self.recipient = recipient
