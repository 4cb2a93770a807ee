"""FastAPI application entry point."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from treasurylens.api import api_router
from treasurylens.config import get_settings
from treasurylens.core.dependencies import close_clients
from treasurylens.core.logging import get_logger, setup_logging
from treasurylens.storage.redis import close_redis, init_redis

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan: optional Redis cache and HTTP client cleanup."""
    settings = get_settings()
    setup_logging(settings)

    if settings.redis_url:
        try:
            await init_redis(settings.redis_url)
        except Exception as e:
            logger.warning("Redis unavailable, running without cache", error=str(e))

    logger.info("TreasuryLens ready", env=settings.env, cik=settings.treasury_cik)
    try:
        yield
    finally:
        await close_clients()
        await close_redis()


app = FastAPI(
    title="TreasuryLens",
    description="Corporate Bitcoin treasury cost basis reconstructed from SEC filings",
    version="0.1.0",
    lifespan=lifespan,
)


@app.get("/health")
async def health() -> dict[str, str]:
    """Liveness check, always ok if process is running."""
    return {"status": "ok"}


# Domain API
app.include_router(api_router, prefix="/api/v1")
