"""FastAPI dependencies for dependency injection."""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends
from redis.asyncio import Redis

from treasurylens.config import Settings, get_settings
from treasurylens.providers.sec_edgar import SECEdgarClient
from treasurylens.providers.stooq import StooqPriceClient
from treasurylens.storage.redis import get_redis
from treasurylens.treasury.aggregator import TreasuryAggregator
from treasurylens.treasury.chart import TreasuryChartService


# Module-level singletons (initialised lazily on first use)
_sec_edgar_client: SECEdgarClient | None = None
_price_client: StooqPriceClient | None = None


async def get_sec_edgar_client(redis: Redis | None = Depends(get_redis)) -> SECEdgarClient:
    """Get or create singleton SEC EDGAR client."""
    global _sec_edgar_client
    if _sec_edgar_client is None:
        _sec_edgar_client = SECEdgarClient(redis=redis)
    return _sec_edgar_client


async def get_price_client(redis: Redis | None = Depends(get_redis)) -> StooqPriceClient:
    """Get or create singleton Stooq price client."""
    global _price_client
    if _price_client is None:
        _price_client = StooqPriceClient(redis=redis)
    return _price_client


def get_treasury_aggregator(
    client: SECEdgarClient = Depends(get_sec_edgar_client),
    settings: Settings = Depends(get_settings),
) -> TreasuryAggregator:
    return TreasuryAggregator(client, settings=settings)


def get_chart_service(
    aggregator: TreasuryAggregator = Depends(get_treasury_aggregator),
    prices: StooqPriceClient = Depends(get_price_client),
    settings: Settings = Depends(get_settings),
) -> TreasuryChartService:
    return TreasuryChartService(aggregator, prices, settings=settings)


async def close_clients() -> None:
    """Close singleton clients (called on shutdown)."""
    global _sec_edgar_client, _price_client
    if _sec_edgar_client is not None:
        await _sec_edgar_client.close()
        _sec_edgar_client = None
    if _price_client is not None:
        await _price_client.close()
        _price_client = None


# Annotated dependencies for use in route handlers
TreasuryAggregatorDep = Annotated[TreasuryAggregator, Depends(get_treasury_aggregator)]
TreasuryChartServiceDep = Annotated[TreasuryChartService, Depends(get_chart_service)]
