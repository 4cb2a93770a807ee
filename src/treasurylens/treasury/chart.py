"""Chart assembly: daily price series alongside the cost-basis step series."""

from __future__ import annotations

import asyncio
from datetime import date

from treasurylens.config import Settings, get_settings
from treasurylens.core.exceptions import PriceDataUnavailableError, TreasuryLensError
from treasurylens.core.logging import get_logger
from treasurylens.providers.stooq.client import StooqPriceClient
from treasurylens.providers.stooq.models import PricePoint
from treasurylens.treasury.aggregator import TreasuryAggregator
from treasurylens.treasury.models import SeriesPoint, TreasuryChart, TreasurySnapshot
from treasurylens.treasury.series import build_step_series, staleness_days

logger = get_logger(__name__)


class TreasuryChartService:
    """Loads both halves of the chart independently.

    The price series is required; the treasury series is best effort and
    degrades to a warning on the chart.
    """

    def __init__(
        self,
        aggregator: TreasuryAggregator,
        prices: StooqPriceClient,
        settings: Settings | None = None,
    ) -> None:
        self._aggregator = aggregator
        self._prices = prices
        self._settings = settings or get_settings()

    async def _load_prices(self, today: date) -> list[PricePoint]:
        settings = self._settings
        try:
            return await self._prices.get_daily_closes(
                settings.price_symbol, settings.treasury_start_date, today
            )
        except TreasuryLensError as e:
            raise PriceDataUnavailableError(e.message) from e

    async def build(self, today: date | None = None) -> TreasuryChart:
        """Build chart data.

        Raises:
            PriceDataUnavailableError: Price series could not be loaded
        """
        settings = self._settings
        today = today or date.today()

        price_result, treasury_result = await asyncio.gather(
            self._load_prices(today),
            self._aggregator.collect_snapshots(today),
            return_exceptions=True,
        )

        for result in (price_result, treasury_result):
            if isinstance(result, BaseException) and not isinstance(result, Exception):
                raise result

        if isinstance(price_result, Exception):
            logger.warning("Price series unavailable", error=str(price_result))
            if isinstance(price_result, PriceDataUnavailableError):
                raise price_result
            raise PriceDataUnavailableError("Failed to load Bitcoin price data.") from price_result

        snapshots: list[TreasurySnapshot] = []
        warning: str | None = None
        if isinstance(treasury_result, Exception):
            logger.warning("Treasury series unavailable", error=str(treasury_result))
            warning = (
                treasury_result.message
                if isinstance(treasury_result, TreasuryLensError)
                else f"Failed to load {settings.treasury_company_name} treasury data."
            )
        else:
            snapshots = treasury_result

        price_series = [SeriesPoint(x=p.day, y=p.close) for p in price_result]
        chart = TreasuryChart(
            company=settings.treasury_company_name,
            symbol=settings.treasury_symbol,
            price_symbol=settings.price_symbol,
            price_series=price_series,
            snapshots=snapshots,
            treasury_warning=warning,
        )
        if price_series:
            chart.latest_price = price_series[-1]

        if snapshots and price_series:
            chart.cost_basis_series = build_step_series(
                snapshots, price_series[0].x, price_series[-1].x
            )

        if snapshots:
            latest = snapshots[-1]
            chart.latest_snapshot = latest
            chart.source_url = latest.source_url
            chart.as_of_label = latest.as_of_label or latest.resolved_date.isoformat()
            chart.staleness_days = staleness_days(latest, today)
            if chart.latest_price is not None:
                chart.premium_usd = chart.latest_price.y - latest.avg_cost_usd
                chart.premium_pct = chart.premium_usd / latest.avg_cost_usd * 100

        return chart
