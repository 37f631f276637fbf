"""deployhistory -- release and scale history for deployed applications."""

__version__ = "0.3.1"
