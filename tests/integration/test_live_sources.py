"""Integration tests against the live SEC EDGAR and Stooq endpoints.

These tests call REAL APIs with no mocking and no cache.
Run with: pytest tests/integration -m integration -v
"""

from __future__ import annotations

from datetime import date, timedelta

import pytest

from treasurylens.config import Settings
from treasurylens.providers.sec_edgar.client import SECEdgarClient
from treasurylens.providers.stooq.client import StooqPriceClient
from treasurylens.treasury.aggregator import TreasuryAggregator
from treasurylens.treasury.chart import TreasuryChartService

MSTR_CIK = "0001050446"


@pytest.mark.integration
class TestSECEdgarLive:
    async def test_submissions_index(self) -> None:
        client = SECEdgarClient()
        try:
            index = await client.get_submissions(MSTR_CIK)
            assert index.recent
            assert index.recent[0].accession_number
            print(f"  {index.name}: {len(index.recent)} recent, {len(index.files)} history pages")
        finally:
            await client.close()

    async def test_recent_snapshot_history(self) -> None:
        """A short window keeps the number of filings fetched small."""
        today = date.today()
        settings = Settings(
            treasury_start_date=today - timedelta(days=365),
            treasury_max_candidates=8,
        )
        client = SECEdgarClient()
        try:
            aggregator = TreasuryAggregator(client, settings=settings)
            snapshots = await aggregator.collect_snapshots(today)
        finally:
            await client.close()

        assert snapshots
        dates = [s.resolved_date for s in snapshots]
        assert dates == sorted(dates)
        assert len(set(dates)) == len(dates)
        for s in snapshots:
            assert s.holdings_btc > 0
            assert 1_000 <= s.avg_cost_usd <= 2_000_000
            print(f"  {s.resolved_date}: {s.holdings_btc:,} BTC @ ${s.avg_cost_usd:,.0f}")


@pytest.mark.integration
class TestChartLive:
    async def test_build_chart(self) -> None:
        today = date.today()
        settings = Settings(
            treasury_start_date=today - timedelta(days=120),
            treasury_max_candidates=6,
        )
        sec = SECEdgarClient()
        prices = StooqPriceClient()
        try:
            service = TreasuryChartService(
                TreasuryAggregator(sec, settings=settings), prices, settings=settings
            )
            chart = await service.build(today)
        finally:
            await sec.close()
            await prices.close()

        assert chart.price_series
        assert chart.price_series[0].x >= settings.treasury_start_date
        if chart.treasury_warning is None:
            assert chart.latest_snapshot is not None
