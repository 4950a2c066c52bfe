"""Redis client for query cache invalidation fan-out.

Nothing is stored in Redis: it only carries `cache:invalidate` messages
between workers, so every cached value can be rebuilt from PostgreSQL.
"""

import redis.asyncio as aioredis

from config.settings import settings

_redis_pool: aioredis.Redis | None = None

# a silent pub/sub connection is health-checked this often so a dead link is noticed
HEALTH_CHECK_SECONDS = 30


async def get_redis() -> aioredis.Redis:
    global _redis_pool  # noqa: PLW0603
    if _redis_pool is None:
        _redis_pool = aioredis.from_url(
            settings.REDIS_URL,
            decode_responses=True,
            health_check_interval=HEALTH_CHECK_SECONDS,
        )
    return _redis_pool


async def ping_redis() -> bool:
    return bool(await (await get_redis()).ping())


async def close_redis() -> None:
    global _redis_pool  # noqa: PLW0603
    if _redis_pool is not None:
        await _redis_pool.aclose()
        _redis_pool = None
