"""Optional Redis connection used as a response cache."""

from redis.asyncio import Redis

from treasurylens.core.logging import get_logger

logger = get_logger(__name__)

# Global Redis instance (initialized in lifespan when configured)
_redis: Redis | None = None


def get_redis() -> Redis | None:
    """Get the global Redis instance, or None when caching is disabled."""
    return _redis


async def init_redis(redis_url: str) -> Redis:
    """Initialize the global Redis instance."""
    global _redis
    redis = Redis.from_url(redis_url, decode_responses=False)
    pong = redis.ping()
    if hasattr(pong, "__await__"):
        await pong
    _redis = redis
    logger.info("Redis connected")
    return _redis


async def close_redis() -> None:
    """Close the global Redis instance."""
    global _redis
    if _redis:
        await _redis.aclose()
        logger.info("Redis disconnected")
        _redis = None
