"""Email alerts when an asset's price crosses a sell or buy threshold."""

__version__ = "0.1.0"
