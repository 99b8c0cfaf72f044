"""Repository Protocols for cn_reservation.

The reservation aggregate is read and written one row at a time inside the
caller's database transaction; ``get_by_id(for_update=True)`` takes the row
lock that serialises concurrent transitions of the same reservation.
"""

from typing import Any, Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.cn_common.enums import ReservationEventType, ReservationStatus
from src.cn_reservation.domain.models import Reservation


class ReservationRepositoryProtocol(Protocol):
    async def insert(self, db: AsyncSession, reservation: Reservation) -> None: ...

    async def get_by_id(
        self, db: AsyncSession, reservation_id: str, for_update: bool = False
    ) -> Reservation | None: ...

    async def update(self, db: AsyncSession, reservation: Reservation) -> None: ...

    async def list_for_user(
        self, db: AsyncSession, user_id: str, identities: set[str]
    ) -> list[Reservation]:
        """Reservations owned by ``user_id``, plus owner-less rows whose
        lower-cased student field is one of ``identities``. Newest first."""
        ...

    async def list_by_student(self, db: AsyncSession, student: str) -> list[Reservation]: ...

    async def list_all(
        self, db: AsyncSession, status: ReservationStatus | None
    ) -> list[Reservation]: ...


class AuditLogProtocol(Protocol):
    async def write(
        self,
        db: AsyncSession,
        event_type: ReservationEventType,
        reservation_id: str,
        payload: dict[str, Any],
    ) -> None: ...
