from __future__ import annotations

import json
import logging
import sys
from typing import Any

_MAX_FIELD_CHARS = 100
_EXTRA_KEYS = (
    "symbol",
    "price",
    "action",
    "sell_price",
    "buy_price",
    "email",
    "attempt",
    "delay_s",
    "kind",
    "exit_code",
    "settings",
)


def sanitize_for_logging(value: str) -> str:
    """Make user-controlled text safe to embed in a single log line."""
    if not value or not value.strip():
        return "[EMPTY]"
    value = value[:_MAX_FIELD_CHARS].strip()
    return "".join(ch for ch in value if ord(ch) >= 32 and ord(ch) != 127)


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": self.formatTime(record, datefmt="%Y-%m-%dT%H:%M:%S%z"),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        for key in _EXTRA_KEYS:
            if hasattr(record, key):
                value = getattr(record, key)
                payload[key] = sanitize_for_logging(value) if isinstance(value, str) else value
        if record.exc_info:
            payload["exc"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False, default=str)


def configure_logging(level: str) -> None:
    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(level.upper())

    # Hide per-request logs by default; keep them available via DEBUG if needed.
    logging.getLogger("httpx").setLevel(logging.WARNING)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JsonFormatter())
    root.addHandler(handler)
