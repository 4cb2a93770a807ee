"""Stooq provider for daily closing prices (free CSV export, no key)."""

from treasurylens.providers.stooq.client import StooqPriceClient, parse_stooq_csv
from treasurylens.providers.stooq.models import OhlcRow, PricePoint

__all__ = [
    "StooqPriceClient",
    "OhlcRow",
    "PricePoint",
    "parse_stooq_csv",
]
