from __future__ import annotations

import asyncio
import logging
from decimal import Decimal

from price_sentinel.strategies.thresholds import evaluate
from price_sentinel.types import (
    AlertAction,
    AlertNotifier,
    MonitorRequest,
    PriceFetcher,
    PriceReading,
)

logger = logging.getLogger("price_sentinel.monitor")

POLL_INTERVAL_SECONDS = 15.0
MAX_FETCH_ATTEMPTS = 3
RETRY_DELAY_STEP_SECONDS = 2.0


async def wait_or_stop(stop: asyncio.Event, seconds: float) -> bool:
    """Sleep up to `seconds`, waking early when `stop` is set.

    Returns True when the wait ended because of `stop`.
    """
    if stop.is_set():
        return True
    try:
        await asyncio.wait_for(stop.wait(), timeout=max(0.0, seconds))
    except asyncio.TimeoutError:
        return False
    return True


async def fetch_with_retry(
    fetcher: PriceFetcher,
    symbol: str,
    *,
    stop: asyncio.Event,
    max_attempts: int = MAX_FETCH_ATTEMPTS,
    retry_delay_step_seconds: float = RETRY_DELAY_STEP_SECONDS,
) -> PriceReading:
    """Fetch the current price, retrying with a linear backoff.

    Attempt k failing waits `retry_delay_step_seconds * k` before attempt k+1.
    Persistent failure is logged once and reported as no reading.
    """
    for attempt in range(1, max_attempts + 1):
        if stop.is_set():
            return None
        try:
            return await fetcher.get_price(symbol)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            if attempt >= max_attempts:
                logger.error(
                    "price_fetch_failed",
                    exc_info=True,
                    extra={"symbol": symbol, "attempt": attempt, "kind": _error_kind(e)},
                )
                return None
            delay_s = retry_delay_step_seconds * attempt
            logger.warning(
                "price_fetch_retry",
                extra={
                    "symbol": symbol,
                    "attempt": attempt,
                    "delay_s": delay_s,
                    "kind": _error_kind(e),
                },
            )
            if await wait_or_stop(stop, delay_s):
                return None
    return None


def format_alert(action: AlertAction, request: MonitorRequest, price: Decimal) -> tuple[str, str]:
    subject = f"Price alert for {request.symbol}: {action}"
    body = "\n".join(
        [
            f"A {action} operation is suggested for {request.symbol}.",
            f"Current price: {price}",
            f"Sell threshold: {request.sell_price}",
            f"Buy threshold: {request.buy_price}",
        ]
    )
    return subject, body


def _error_kind(error: Exception) -> str:
    return str(getattr(error, "kind", type(error).__name__))


class Monitor:
    def __init__(
        self,
        *,
        request: MonitorRequest,
        fetcher: PriceFetcher,
        notifier: AlertNotifier,
        destination_email: str,
        poll_interval_seconds: float = POLL_INTERVAL_SECONDS,
        max_fetch_attempts: int = MAX_FETCH_ATTEMPTS,
        retry_delay_step_seconds: float = RETRY_DELAY_STEP_SECONDS,
    ) -> None:
        self._request = request
        self._fetcher = fetcher
        self._notifier = notifier
        self._destination_email = destination_email
        self._poll_interval_seconds = poll_interval_seconds
        self._max_fetch_attempts = max_fetch_attempts
        self._retry_delay_step_seconds = retry_delay_step_seconds

    async def run(self, stop: asyncio.Event) -> None:
        symbol = self._request.symbol
        logger.info(
            "monitor_started",
            extra={
                "symbol": symbol,
                "sell_price": str(self._request.sell_price),
                "buy_price": str(self._request.buy_price),
            },
        )
        # First evaluation runs immediately, then once per interval.
        while not stop.is_set():
            await self._tick(stop)
            if await wait_or_stop(stop, self._poll_interval_seconds):
                break
        logger.info("monitor_stopped", extra={"symbol": symbol})

    async def _tick(self, stop: asyncio.Event) -> None:
        symbol = self._request.symbol
        try:
            price = await fetch_with_retry(
                self._fetcher,
                symbol,
                stop=stop,
                max_attempts=self._max_fetch_attempts,
                retry_delay_step_seconds=self._retry_delay_step_seconds,
            )
            if price is None:
                logger.info("no_reading", extra={"symbol": symbol})
                return

            action = evaluate(price, self._request.sell_price, self._request.buy_price)
            if action == "NONE":
                logger.info(
                    "no_alert",
                    extra={"symbol": symbol, "price": str(price), "action": action},
                )
                return
            await self._dispatch(action=action, price=price)
        except asyncio.CancelledError:
            raise
        except Exception:
            logger.exception("tick_failed", extra={"symbol": symbol})

    async def _dispatch(self, *, action: AlertAction, price: Decimal) -> None:
        symbol = self._request.symbol
        logger.info(
            "alert_triggered",
            extra={"symbol": symbol, "price": str(price), "action": action},
        )
        subject, body = format_alert(action, self._request, price)
        try:
            await self._notifier.send(to=self._destination_email, subject=subject, body=body)
        except asyncio.CancelledError:
            raise
        except Exception:
            logger.exception(
                "alert_dispatch_failed",
                extra={"symbol": symbol, "email": self._destination_email, "action": action},
            )
            return
        logger.info(
            "alert_sent",
            extra={"symbol": symbol, "email": self._destination_email, "action": action},
        )
