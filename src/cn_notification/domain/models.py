"""Notification event: the payload handed to a NotificationSink."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from src.cn_common.datetime_utils import utc_now
from src.cn_common.enums import NotificationType


@dataclass(frozen=True)
class NotificationEvent:
    recipient: str              # "admin" or a user id
    actor: str | None
    type: NotificationType
    title: str
    body: str
    data: dict[str, Any] | None = None
    created_at: datetime = field(default_factory=utc_now)

    def to_payload(self) -> dict[str, Any]:
        return {
            "for": self.recipient,
            "actor": self.actor,
            "type": self.type.value,
            "title": self.title,
            "body": self.body,
            "data": self.data,
            "createdAt": self.created_at.isoformat(),
        }
