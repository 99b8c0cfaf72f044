"""NotificationSink Protocol and the fire-and-forget publish helper."""

import asyncio
import logging
from typing import Protocol

from src.cn_notification.domain.models import NotificationEvent

logger = logging.getLogger(__name__)


class NotificationSinkProtocol(Protocol):
    async def publish(self, event: NotificationEvent) -> None: ...


async def publish_quietly(
    sink: NotificationSinkProtocol, event: NotificationEvent, timeout: float
) -> bool:
    """Publish with a time bound. Failures are logged, never raised."""
    try:
        await asyncio.wait_for(sink.publish(event), timeout=timeout)
    except Exception as exc:  # noqa: BLE001
        logger.warning(
            "Notification %s for %s dropped: %r", event.type.value, event.recipient, exc
        )
        return False
    return True
