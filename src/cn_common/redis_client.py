"""Shared redis.asyncio pool for notification inboxes and the live channel.

Balances and stock live in PostgreSQL only; nothing here is authoritative.
Socket timeouts follow NOTIFY_TIMEOUT_SECONDS so a stalled Redis can never
hold a request longer than the notification timeout.
"""

import redis.asyncio as aioredis
from redis.exceptions import RedisError

from config.settings import settings

_redis_pool: aioredis.Redis | None = None


async def get_redis() -> aioredis.Redis:
    global _redis_pool  # noqa: PLW0603
    if _redis_pool is None:
        _redis_pool = aioredis.from_url(
            settings.REDIS_URL,
            decode_responses=True,
            max_connections=settings.REDIS_MAX_CONNECTIONS,
            socket_timeout=settings.NOTIFY_TIMEOUT_SECONDS,
            socket_connect_timeout=settings.NOTIFY_TIMEOUT_SECONDS,
        )
    return _redis_pool


async def ping_redis() -> bool:
    """Startup check; False when Redis is unreachable (notifications degrade)."""
    try:
        return bool(await (await get_redis()).ping())
    except (RedisError, OSError):
        return False


async def close_redis() -> None:
    global _redis_pool  # noqa: PLW0603
    if _redis_pool is not None:
        await _redis_pool.aclose()
        _redis_pool = None
