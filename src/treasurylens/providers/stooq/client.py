"""Stooq daily price client.

Free CSV export, no key required:
    https://stooq.com/q/d/l/?s={symbol}&i=d&d1={YYYYMMDD}&d2={YYYYMMDD}
"""

from __future__ import annotations

import math
import re
from datetime import date
from typing import TYPE_CHECKING

import httpx
import orjson

from treasurylens.config import get_settings
from treasurylens.core.exceptions import UnparseableResponseError, UpstreamUnavailableError
from treasurylens.core.logging import get_logger
from treasurylens.providers.stooq.models import OhlcRow, PricePoint

if TYPE_CHECKING:
    from redis.asyncio import Redis

logger = get_logger(__name__)

CACHE_PREFIX = "treasurylens:stooq"
_ISO_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def parse_stooq_csv(csv_text: str) -> list[OhlcRow]:
    """Parse Stooq's daily OHLC CSV.

    Rows with a non-ISO date or a non-finite open/high/low/close are skipped.

    Raises:
        UnparseableResponseError: Header doesn't look like a Stooq OHLC export
    """
    lines = csv_text.strip().splitlines()
    if not lines or not lines[0].lower().startswith("date,open,high,low,close"):
        raise UnparseableResponseError("Unexpected CSV format")

    rows: list[OhlcRow] = []
    for line in lines[1:]:
        line = line.strip()
        if not line:
            continue
        parts = line.split(",")
        if len(parts) < 5 or not _ISO_DATE_RE.match(parts[0]):
            continue
        try:
            ohlc = [float(p) for p in parts[1:5]]
        except ValueError:
            continue
        if not all(math.isfinite(v) for v in ohlc):
            continue
        volume: float | None = None
        if len(parts) > 5 and parts[5]:
            try:
                volume = float(parts[5])
            except ValueError:
                volume = None
        rows.append(
            OhlcRow(
                day=date.fromisoformat(parts[0]),
                open=ohlc[0],
                high=ohlc[1],
                low=ohlc[2],
                close=ohlc[3],
                volume=volume,
            )
        )
    return rows


class StooqPriceClient:
    """Client for Stooq's daily CSV export.

    Usage:
        client = StooqPriceClient(redis=redis_client)
        points = await client.get_daily_closes("btcusd", date(2020, 8, 1), date.today())
        await client.close()
    """

    def __init__(self, redis: Redis | None = None) -> None:
        self._redis = redis
        self._http_client: httpx.AsyncClient | None = None

    def _get_http_client(self) -> httpx.AsyncClient:
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(
                timeout=30.0,
                follow_redirects=True,
                headers={"User-Agent": "crypto-portfolio-tracker.app"},
            )
        return self._http_client

    async def _fetch_csv(self, symbol: str, start: date, end: date) -> str:
        settings = get_settings()
        url = f"{settings.stooq_base_url}/q/d/l/"
        params = {
            "s": symbol,
            "i": "d",
            "d1": start.strftime("%Y%m%d"),
            "d2": end.strftime("%Y%m%d"),
        }
        try:
            resp = await self._get_http_client().get(url, params=params)
            resp.raise_for_status()
        except httpx.HTTPStatusError as exc:
            status = exc.response.status_code
            raise UpstreamUnavailableError(
                f"Bitcoin price request failed ({status})", url=url, status_code=status
            ) from exc
        except httpx.HTTPError as exc:
            raise UpstreamUnavailableError(f"Bitcoin price request failed ({exc})", url=url) from exc
        return resp.text

    async def get_daily_closes(self, symbol: str, start: date, end: date) -> list[PricePoint]:
        """Get daily closing prices for a symbol.

        Args:
            symbol: Stooq symbol (e.g. "btcusd")
            start: First day requested; also the floor applied to the result
            end: Last day requested

        Returns:
            PricePoints sorted ascending by day

        Raises:
            UpstreamUnavailableError: Request failed
            UnparseableResponseError: Malformed CSV or no rows for the range
        """
        settings = get_settings()
        cache_key = f"{CACHE_PREFIX}:{symbol.lower()}:{start.isoformat()}:{end.isoformat()}"

        if self._redis is not None:
            cached = await self._redis.get(cache_key)
            if cached:
                try:
                    return [PricePoint.model_validate(p) for p in orjson.loads(cached)]
                except Exception as e:
                    logger.warning("Cache deserialization failed", key=cache_key, error=str(e))

        rows = parse_stooq_csv(await self._fetch_csv(symbol, start, end))
        if not rows:
            raise UnparseableResponseError("No rows returned for the requested range")

        points = sorted(
            (PricePoint(day=row.day, close=row.close) for row in rows if row.day >= start),
            key=lambda p: p.day,
        )
        if not points:
            raise UnparseableResponseError("No rows returned for the requested range")

        if self._redis is not None:
            await self._redis.set(
                cache_key,
                orjson.dumps([p.model_dump(mode="json") for p in points]),
                ex=settings.price_cache_ttl,
            )

        logger.debug("Fetched daily closes", symbol=symbol, count=len(points))
        return points

    async def close(self) -> None:
        """Clean up resources."""
        if self._http_client:
            await self._http_client.aclose()
            self._http_client = None
        logger.debug("StooqPriceClient closed")
