"""Append-only audit trail for reservation side effects (reservation_events).

Written inside the caller's transaction, except for INCONSISTENCY_DETECTED
which the engine writes in a fresh transaction after rolling back.
"""

import json
from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.cn_common.enums import ReservationEventType

_INSERT_EVENT_SQL = text("""
    INSERT INTO reservation_events (reservation_id, event_type, payload)
    VALUES (:reservation_id, :event_type, CAST(:payload AS JSONB))
""")


class ReservationAuditLog:
    async def write(
        self,
        db: AsyncSession,
        event_type: ReservationEventType,
        reservation_id: str,
        payload: dict[str, Any],
    ) -> None:
        await db.execute(
            _INSERT_EVENT_SQL,
            {
                "reservation_id": reservation_id,
                "event_type": event_type.value,
                "payload": json.dumps(payload, default=str),
            },
        )
