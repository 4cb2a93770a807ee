"""Treasury cost-basis reconstruction from regulatory filings."""

from treasurylens.treasury.aggregator import (
    TreasuryAggregator,
    dedupe_snapshots,
    resolve_as_of_date,
)
from treasurylens.treasury.chart import TreasuryChartService
from treasurylens.treasury.extractor import (
    ExtractedFacts,
    ExtractionPolicy,
    extract_treasury_facts,
)
from treasurylens.treasury.models import SeriesPoint, TreasuryChart, TreasurySnapshot
from treasurylens.treasury.series import build_step_series, staleness_days, step_value_at

__all__ = [
    "ExtractedFacts",
    "ExtractionPolicy",
    "SeriesPoint",
    "TreasuryAggregator",
    "TreasuryChart",
    "TreasuryChartService",
    "TreasurySnapshot",
    "build_step_series",
    "dedupe_snapshots",
    "extract_treasury_facts",
    "resolve_as_of_date",
    "staleness_days",
    "step_value_at",
]
