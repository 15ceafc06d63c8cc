from __future__ import annotations

import logging
from decimal import Decimal, InvalidOperation
from typing import Any

import httpx

from price_sentinel.errors import OperationError, PriceFetchError
from price_sentinel.logging_utils import sanitize_for_logging

logger = logging.getLogger("price_sentinel.twelvedata")

_DEFAULT_BASE_URL = "https://api.twelvedata.com"
_DEFAULT_TIMEOUT_SECONDS = 15.0


class TwelveDataClient:
    def __init__(
        self,
        *,
        api_key: str,
        base_url: str = _DEFAULT_BASE_URL,
        timeout_seconds: float = _DEFAULT_TIMEOUT_SECONDS,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._api_key = api_key.strip()
        if not self._api_key:
            raise OperationError("TWELVEDATA_API_KEY is not configured")
        self._client = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            timeout=httpx.Timeout(timeout_seconds),
            transport=transport,
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def get_price(self, symbol: str) -> Decimal:
        payload = await self._request("/price", symbol=symbol)
        return _parse_price(payload, symbol=symbol)

    async def _request(self, path: str, *, symbol: str) -> Any:
        try:
            response = await self._client.get(
                path,
                params={"symbol": symbol, "apikey": self._api_key},
            )
        except httpx.TimeoutException as e:
            logger.error("price_request_timeout", extra={"symbol": symbol})
            raise PriceFetchError(kind="timeout", symbol=symbol, message=str(e)) from e
        except httpx.TransportError as e:
            logger.error("price_request_failed", extra={"symbol": symbol})
            raise PriceFetchError(kind="network", symbol=symbol, message=str(e)) from e

        if response.status_code >= 400:
            logger.error(
                "price_request_http_error",
                extra={"symbol": symbol, "kind": str(response.status_code)},
            )
            raise PriceFetchError(
                kind="network",
                symbol=symbol,
                message=f"status={response.status_code}",
            )

        try:
            return response.json()
        except ValueError as e:
            logger.error("price_response_not_json", extra={"symbol": symbol})
            raise PriceFetchError(
                kind="invalid_response",
                symbol=symbol,
                message="response is not JSON",
            ) from e


def _parse_price(payload: Any, *, symbol: str) -> Decimal:
    if not isinstance(payload, dict):
        raise PriceFetchError(kind="invalid_response", symbol=symbol, message="unexpected payload")
    # Twelve Data reports API errors with HTTP 200 and {"status": "error", ...}.
    if payload.get("status") == "error":
        raise PriceFetchError(
            kind="invalid_response",
            symbol=symbol,
            message=sanitize_for_logging(str(payload.get("message", ""))),
        )
    raw = str(payload.get("price") or "").strip()
    try:
        price = Decimal(raw)
    except InvalidOperation as e:
        raise PriceFetchError(
            kind="invalid_response",
            symbol=symbol,
            message=f"invalid price {sanitize_for_logging(raw)!r}",
        ) from e
    if not price.is_finite():
        raise PriceFetchError(
            kind="invalid_response",
            symbol=symbol,
            message=f"invalid price {raw!r}",
        )
    return price
