"""Pydantic models for reconstructed treasury data."""

from __future__ import annotations

from datetime import date

from pydantic import BaseModel, ConfigDict, Field


class TreasurySnapshot(BaseModel):
    """Reconciled treasury facts from one filing."""

    model_config = ConfigDict(frozen=True)

    company: str
    symbol: str
    accession_number: str
    form: str
    as_of_label: str | None  # as disclosed, e.g. "August 2, 2024"
    filed_date: date | None
    resolved_date: date  # parsed as-of date, else filing date
    source_url: str
    holdings_btc: int = Field(gt=0)
    total_cost_usd: float = Field(gt=0)
    avg_cost_usd: float = Field(gt=0)


class SeriesPoint(BaseModel):
    """One point of a line series."""

    model_config = ConfigDict(frozen=True)

    x: date
    y: float


class TreasuryChart(BaseModel):
    """Everything the chart page needs: two series plus display metadata."""

    company: str
    symbol: str
    price_symbol: str
    price_series: list[SeriesPoint]
    cost_basis_series: list[SeriesPoint] = Field(default_factory=list)
    snapshots: list[TreasurySnapshot] = Field(default_factory=list)
    latest_snapshot: TreasurySnapshot | None = None
    latest_price: SeriesPoint | None = None
    source_url: str | None = None
    as_of_label: str | None = None
    staleness_days: int | None = None
    premium_usd: float | None = None
    premium_pct: float | None = None
    treasury_warning: str | None = None
