"""ReservationApplicationService: thin layer between the API and the engine.

Writes go through the process-wide ReservationEngine (it owns the per-
reservation locks). Reads run plain SELECTs and take no locks.
"""

from sqlalchemy.ext.asyncio import AsyncSession

from src.cn_common.actor import Actor
from src.cn_common.errors import ValidationError
from src.cn_menu.infrastructure.persistence import MenuCatalogRepository
from src.cn_notification.infrastructure.redis_sink import RedisNotificationSink
from src.cn_reservation.application.schemas import (
    CreateReservationRequest,
    ReservationListResponse,
    ReservationResponse,
    SetStatusResponse,
)
from src.cn_reservation.domain.repository import ReservationRepositoryProtocol
from src.cn_reservation.domain.state_machine import parse_status
from src.cn_reservation.engine.engine import ReservationEngine
from src.cn_reservation.infrastructure.audit import ReservationAuditLog
from src.cn_reservation.infrastructure.persistence import ReservationRepository
from src.cn_wallet.domain.ledger import WalletLedger
from src.cn_wallet.domain.repository import UserDirectoryProtocol
from src.cn_wallet.infrastructure.persistence import UserDirectory, WalletRepository

_engine: ReservationEngine | None = None


def get_reservation_engine() -> ReservationEngine:
    global _engine  # noqa: PLW0603
    if _engine is None:
        _engine = ReservationEngine(
            reservations=ReservationRepository(),
            catalog=MenuCatalogRepository(),
            users=UserDirectory(),
            ledger=WalletLedger(WalletRepository()),
            audit=ReservationAuditLog(),
            sink=RedisNotificationSink(),
        )
    return _engine


class ReservationApplicationService:
    def __init__(
        self,
        engine: ReservationEngine | None = None,
        reservations: ReservationRepositoryProtocol | None = None,
        users: UserDirectoryProtocol | None = None,
    ) -> None:
        self._engine = engine
        self._reservations: ReservationRepositoryProtocol = (
            reservations or ReservationRepository()
        )
        self._users: UserDirectoryProtocol = users or UserDirectory()

    @property
    def engine(self) -> ReservationEngine:
        return self._engine or get_reservation_engine()

    async def create_reservation(
        self, db: AsyncSession, req: CreateReservationRequest, actor: Actor | None
    ) -> ReservationResponse:
        reservation = await self.engine.create(db, req.to_draft(), actor)
        return ReservationResponse.from_domain(reservation)

    async def list_mine(
        self, db: AsyncSession, actor: Actor | None, student: str | None
    ) -> ReservationListResponse:
        """The caller's reservations, or a guest lookup by student name.

        Owner-less (legacy/guest) rows are included when their student field
        matches the caller's name, email or id.
        """
        if actor is not None and actor.user_id:
            identities = {actor.user_id.strip().lower()}
            me = await self._users.find_by_id(db, actor.user_id)
            if me is not None:
                identities |= me.identities()
            rows = await self._reservations.list_for_user(db, actor.user_id, identities)
        elif student and student.strip():
            rows = await self._reservations.list_by_student(db, student)
        else:
            raise ValidationError("Missing identity")
        return ReservationListResponse(items=[ReservationResponse.from_domain(r) for r in rows])

    async def list_admin(
        self, db: AsyncSession, status: str | None
    ) -> ReservationListResponse:
        status_filter = parse_status(status) if status else None
        rows = await self._reservations.list_all(db, status_filter)
        return ReservationListResponse(items=[ReservationResponse.from_domain(r) for r in rows])

    async def set_status(
        self, db: AsyncSession, reservation_id: str, status: str, actor: Actor
    ) -> SetStatusResponse:
        result = await self.engine.transition(db, reservation_id, status, actor)
        return SetStatusResponse.from_result(result)
