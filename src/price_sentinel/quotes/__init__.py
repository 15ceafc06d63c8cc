__all__ = ["TwelveDataClient"]

from price_sentinel.quotes.twelvedata import TwelveDataClient
