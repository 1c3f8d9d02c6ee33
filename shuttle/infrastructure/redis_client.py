"""
Shared Redis connection pool.

One pool serves the wizard draft store, the per-session locks and the
status event publisher.  Responses are decoded to ``str`` because every
value we keep there is JSON or a lock token.
"""

import redis.asyncio as aioredis
from redis.exceptions import RedisError

from shuttle.config import settings

_pool = aioredis.ConnectionPool.from_url(
    settings.redis_url, decode_responses=True
)


async def get_redis() -> aioredis.Redis:
    return aioredis.Redis(connection_pool=_pool)


async def redis_available(client: aioredis.Redis) -> bool:
    """Health probe: drafts cannot be stored while this is False."""
    try:
        return bool(await client.ping())
    except RedisError:
        return False


async def close_redis() -> None:
    await _pool.disconnect()
