from __future__ import annotations

import asyncio
import logging
import signal
from contextlib import suppress
from typing import Optional

import typer
from pydantic import ValidationError

from price_sentinel.errors import ArgumentError, ConfigurationError, OperationError
from price_sentinel.logging_utils import configure_logging
from price_sentinel.runner import EXIT_OK, exit_code_for, run_monitor
from price_sentinel.settings import Settings

app = typer.Typer(add_completion=False)
logger = logging.getLogger("price_sentinel")


def load_settings() -> Settings:
    try:
        return Settings()
    except ValidationError as e:
        fields = ", ".join(str(err["loc"][0]) for err in e.errors() if err.get("loc"))
        raise OperationError(f"invalid settings: {fields}") from e


def _install_stop_handlers(stop: asyncio.Event) -> None:
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        # Not available on every platform; KeyboardInterrupt still ends the run there.
        with suppress(NotImplementedError, RuntimeError, ValueError):
            loop.add_signal_handler(sig, stop.set)


@app.command(context_settings={"ignore_unknown_options": True})
def monitor(
    args: Optional[list[str]] = typer.Argument(
        None,
        metavar="SYMBOL SELL_PRICE BUY_PRICE",
        help="Asset symbol, sell threshold and buy threshold.",
        show_default=False,
    ),
) -> None:
    """
    Watch SYMBOL and email an alert when it reaches SELL_PRICE or BUY_PRICE.
    """

    async def _run(settings: Settings) -> int:
        stop = asyncio.Event()
        _install_stop_handlers(stop)
        return await run_monitor(args or [], settings=settings, stop=stop)

    # Errors before the settings are known are still logged as JSON.
    configure_logging("INFO")
    try:
        settings = load_settings()
        configure_logging(settings.log_level)
        logger.debug("loaded_config", extra={"settings": settings.redacted()})
        code = asyncio.run(_run(settings))
    except KeyboardInterrupt:
        logger.info("interrupted", extra={"exit_code": EXIT_OK})
        code = EXIT_OK
    except (ArgumentError, ConfigurationError, OperationError) as e:
        code = exit_code_for(e)
        logger.error("run_failed", extra={"exit_code": code, "kind": type(e).__name__})
        typer.echo(f"error: {e}", err=True)
    except Exception as e:
        code = exit_code_for(e)
        logger.exception("unexpected_error", extra={"exit_code": code})
        typer.echo(f"unexpected error: {type(e).__name__}: {e}", err=True)
    raise typer.Exit(code=code)


def main() -> None:
    app()
