"""Treasury cost-basis API endpoints."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, HTTPException

from treasurylens.core.dependencies import TreasuryAggregatorDep, TreasuryChartServiceDep
from treasurylens.core.exceptions import (
    PriceDataUnavailableError,
    TreasuryDataUnavailableError,
    UpstreamError,
)
from treasurylens.core.logging import get_logger

logger = get_logger(__name__)

router = APIRouter()


@router.get("/snapshots")
async def get_snapshots(aggregator: TreasuryAggregatorDep) -> dict[str, Any]:
    """Deduplicated treasury snapshots, oldest first."""
    try:
        snapshots = await aggregator.collect_snapshots()
    except (TreasuryDataUnavailableError, UpstreamError) as e:
        logger.warning("Treasury snapshots unavailable", error=e.message)
        raise HTTPException(status_code=503, detail=e.message)
    return {
        "snapshots": [s.model_dump(mode="json") for s in snapshots],
        "count": len(snapshots),
    }


@router.get("/latest")
async def get_latest_snapshot(aggregator: TreasuryAggregatorDep) -> dict[str, Any]:
    """Most recent treasury snapshot."""
    try:
        snapshot = await aggregator.latest_snapshot()
    except (TreasuryDataUnavailableError, UpstreamError) as e:
        logger.warning("Latest treasury snapshot unavailable", error=e.message)
        raise HTTPException(status_code=503, detail=e.message)
    return snapshot.model_dump(mode="json")


@router.get("/chart")
async def get_chart(service: TreasuryChartServiceDep) -> dict[str, Any]:
    """Bitcoin price series and average-cost step series for the chart page."""
    try:
        chart = await service.build()
    except PriceDataUnavailableError as e:
        raise HTTPException(status_code=502, detail=e.message)
    return chart.model_dump(mode="json")
