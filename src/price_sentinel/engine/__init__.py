__all__ = ["Monitor", "fetch_with_retry", "format_alert"]

from price_sentinel.engine.monitor import Monitor, fetch_with_retry, format_alert
