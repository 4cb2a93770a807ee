"""Storage layer (optional Redis cache)."""

from treasurylens.storage.redis import close_redis, get_redis, init_redis

__all__ = ["close_redis", "get_redis", "init_redis"]
