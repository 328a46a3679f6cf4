"""Monobank to YNAB bridge with interactive Telegram corrections."""
__version__ = "1.0.0"
