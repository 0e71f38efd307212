"""Analytics operator repository: access-controlled catalogue of operator records."""

__version__ = "0.1.0"
