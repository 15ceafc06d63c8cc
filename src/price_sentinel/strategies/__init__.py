__all__ = ["evaluate"]

from price_sentinel.strategies.thresholds import evaluate
