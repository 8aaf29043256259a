"""minvar: global minimum-variance portfolios from CoinGecko price history."""

__version__ = "0.1.0"
