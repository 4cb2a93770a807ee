"""Pydantic models for Stooq price data."""

from __future__ import annotations

from datetime import date

from pydantic import BaseModel, ConfigDict


class PricePoint(BaseModel):
    """One day's closing price."""

    model_config = ConfigDict(frozen=True)

    day: date
    close: float


class OhlcRow(BaseModel):
    """A single row of Stooq's daily CSV export."""

    day: date
    open: float
    high: float
    low: float
    close: float
    volume: float | None = None
