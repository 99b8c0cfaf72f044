"""Redis-backed NotificationSink.

Each event is pushed onto the recipient's capped inbox list
(``notifications:<recipient>``, newest first) and published on the shared
channel for live listeners. Both happen in one MULTI/EXEC pipeline.
"""

import json
from collections.abc import Awaitable, Callable

import redis.asyncio as aioredis

from config.settings import settings
from src.cn_common.redis_client import get_redis
from src.cn_notification.domain.models import NotificationEvent


def inbox_key(recipient: str) -> str:
    return f"notifications:{recipient}"


class RedisNotificationSink:
    def __init__(
        self,
        redis_factory: Callable[[], Awaitable[aioredis.Redis]] = get_redis,
        channel: str | None = None,
        inbox_limit: int | None = None,
    ) -> None:
        self._redis_factory = redis_factory
        self._channel = channel or settings.NOTIFICATION_CHANNEL
        self._inbox_limit = inbox_limit or settings.NOTIFICATION_INBOX_LIMIT

    async def publish(self, event: NotificationEvent) -> None:
        redis = await self._redis_factory()
        message = json.dumps(event.to_payload())
        key = inbox_key(event.recipient)
        async with redis.pipeline(transaction=True) as pipe:
            pipe.lpush(key, message)
            pipe.ltrim(key, 0, self._inbox_limit - 1)
            pipe.publish(self._channel, message)
            await pipe.execute()
