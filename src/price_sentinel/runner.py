from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence

from price_sentinel.engine.monitor import (
    MAX_FETCH_ATTEMPTS,
    POLL_INTERVAL_SECONDS,
    RETRY_DELAY_STEP_SECONDS,
    Monitor,
)
from price_sentinel.errors import ArgumentError, ConfigurationError, OperationError
from price_sentinel.notifications.email import EmailNotifier, validate_recipient
from price_sentinel.quotes.twelvedata import TwelveDataClient
from price_sentinel.settings import Settings
from price_sentinel.types import AlertNotifier, PriceFetcher
from price_sentinel.validation import USAGE, parse_monitor_request

logger = logging.getLogger("price_sentinel.runner")

EXIT_OK = 0
EXIT_WRONG_ARITY = 1
EXIT_INVALID_PRICE = 2
EXIT_MISSING_DESTINATION = 3
EXIT_ARGUMENT_ERROR = 4
EXIT_OPERATION_ERROR = 5
EXIT_UNEXPECTED_ERROR = 6


def exit_code_for(error: BaseException) -> int:
    if isinstance(error, ArgumentError):
        if error.reason == "wrong arity":
            return EXIT_WRONG_ARITY
        if error.reason == "invalid price":
            return EXIT_INVALID_PRICE
        return EXIT_ARGUMENT_ERROR
    if isinstance(error, ConfigurationError):
        return EXIT_MISSING_DESTINATION
    if isinstance(error, OperationError):
        return EXIT_OPERATION_ERROR
    return EXIT_UNEXPECTED_ERROR


async def run_monitor(
    args: Sequence[str],
    *,
    settings: Settings,
    stop: asyncio.Event,
    fetcher: PriceFetcher | None = None,
    notifier: AlertNotifier | None = None,
    poll_interval_seconds: float = POLL_INTERVAL_SECONDS,
    max_fetch_attempts: int = MAX_FETCH_ATTEMPTS,
    retry_delay_step_seconds: float = RETRY_DELAY_STEP_SECONDS,
) -> int:
    """Validate the CLI arguments and monitor until `stop` is set.

    Wrong arity and a missing destination address are reported through the
    returned exit code; every other argument error propagates to the caller.
    Collaborators not passed in are built from `settings` and closed on exit.
    """
    logger.info("app_started")
    try:
        request = parse_monitor_request(args)
    except ArgumentError as e:
        if e.reason != "wrong arity":
            raise
        logger.warning(USAGE, extra={"exit_code": EXIT_WRONG_ARITY})
        return EXIT_WRONG_ARITY

    try:
        destination_email = settings.require_destination_email()
    except ConfigurationError:
        logger.error("destination_email_missing", extra={"exit_code": EXIT_MISSING_DESTINATION})
        return EXIT_MISSING_DESTINATION
    validate_recipient(destination_email)

    logger.debug(
        "request_validated",
        extra={
            "symbol": request.symbol,
            "sell_price": str(request.sell_price),
            "buy_price": str(request.buy_price),
        },
    )

    owned_client: TwelveDataClient | None = None
    if fetcher is None:
        owned_client = TwelveDataClient(api_key=settings.twelvedata_api_key)
        fetcher = owned_client
    try:
        if notifier is None:
            notifier = EmailNotifier.from_settings(settings)
        monitor = Monitor(
            request=request,
            fetcher=fetcher,
            notifier=notifier,
            destination_email=destination_email,
            poll_interval_seconds=poll_interval_seconds,
            max_fetch_attempts=max_fetch_attempts,
            retry_delay_step_seconds=retry_delay_step_seconds,
        )
        await monitor.run(stop)
    finally:
        if owned_client is not None:
            await owned_client.aclose()

    logger.info("app_stopped", extra={"exit_code": EXIT_OK})
    return EXIT_OK
