"""ReservationEngine: stateful orchestrator for reservation create/transition.

Every mutation of one reservation runs under a per-reservation asyncio lock
and inside one database transaction: the reservation row is read FOR UPDATE,
wallet and stock effects are applied with atomic conditional UPDATEs, and the
whole unit of work is committed or rolled back together. Notifications are
published only after commit, outside the lock, and can never fail the call.
"""

import asyncio
import logging
import math
import re
from collections import defaultdict
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.cn_common.actor import Actor
from src.cn_common.centavos import centavos_to_display
from src.cn_common.datetime_utils import utc_now
from src.cn_common.enums import (
    NotificationType,
    ReservationEventType,
    ReservationStatus,
    StockDirection,
    TransactionDirection,
)
from src.cn_common.errors import (
    InsufficientBalanceError,
    InsufficientStockError,
    InternalInconsistencyError,
    MenuItemNotFoundError,
    ReservationNotFoundError,
    UnresolvedUserError,
    UserNotFoundError,
    ValidationError,
)
from src.cn_common.id_generator import generate_id
from src.cn_menu.domain.lookup import resolve_menu_item
from src.cn_menu.domain.models import UNTRACKED_STOCK
from src.cn_menu.domain.repository import MenuCatalogProtocol
from src.cn_menu.domain.stock import StockAdjustmentCoordinator, StockProblem
from src.cn_notification.domain.models import NotificationEvent
from src.cn_notification.domain.sink import NotificationSinkProtocol, publish_quietly
from src.cn_reservation.domain.models import (
    Reservation,
    ReservationDraft,
    ReservationLine,
    TransitionResult,
    compute_total,
)
from src.cn_reservation.domain.repository import (
    AuditLogProtocol,
    ReservationRepositoryProtocol,
)
from src.cn_reservation.domain.state_machine import check_transition, parse_status
from src.cn_reservation.domain.user_resolution import match_student
from src.cn_wallet.domain.ledger import WalletLedger
from src.cn_wallet.domain.models import Transaction, WalletUser
from src.cn_wallet.domain.repository import UserDirectoryProtocol

logger = logging.getLogger(__name__)

_DEFAULT_STUDENT = "Student"
_WHOLE_NUMBER = re.compile(r"[+-]?\d{1,9}")


class ReservationEngine:
    def __init__(
        self,
        reservations: ReservationRepositoryProtocol,
        catalog: MenuCatalogProtocol,
        users: UserDirectoryProtocol,
        ledger: WalletLedger,
        audit: AuditLogProtocol,
        sink: NotificationSinkProtocol,
        notify_timeout: float | None = None,
    ) -> None:
        self._reservations = reservations
        self._catalog = catalog
        self._users = users
        self._ledger = ledger
        self._audit = audit
        self._sink = sink
        self._stock = StockAdjustmentCoordinator(catalog)
        self._notify_timeout = (
            notify_timeout if notify_timeout is not None else settings.NOTIFY_TIMEOUT_SECONDS
        )
        self._reservation_locks: dict[str, asyncio.Lock] = {}
        self._lock_users: dict[str, int] = defaultdict(int)

    @asynccontextmanager
    async def _reservation_lock(self, reservation_id: str) -> AsyncIterator[None]:
        """Serialise work on one reservation; the lock is dropped once nobody holds or awaits it."""
        key = _lock_key(reservation_id)
        lock = self._reservation_locks.get(key)
        if lock is None:
            lock = self._reservation_locks[key] = asyncio.Lock()
        self._lock_users[key] += 1
        try:
            async with lock:
                yield
        finally:
            self._lock_users[key] -= 1
            if not self._lock_users[key]:
                del self._lock_users[key]
                del self._reservation_locks[key]

    # ------------------------------------------------------------------
    # create
    # ------------------------------------------------------------------

    async def create(
        self, db: AsyncSession, draft: ReservationDraft, actor: Actor | None
    ) -> Reservation:
        """Validate the draft, snapshot prices and persist a Pending reservation."""
        try:
            reservation = await self._create_inner(db, draft, actor)
            await db.commit()
        except Exception:
            await db.rollback()
            raise

        logger.info(
            "Reservation created: id=%s student=%r user=%s total=%d",
            reservation.id, reservation.student, reservation.user_id, reservation.total,
        )
        await self._notify(
            NotificationEvent(
                recipient=settings.ADMIN_INBOX,
                actor=actor.label if actor else reservation.student,
                type=NotificationType.RESERVATION_CREATED,
                title="New reservation",
                body=(
                    f"{reservation.student} reserved {len(reservation.items)} item(s) "
                    f"for {reservation.slot} ({centavos_to_display(reservation.total)})"
                ),
                data={"reservation_id": reservation.id, "total": reservation.total},
            )
        )
        return reservation

    async def _create_inner(
        self, db: AsyncSession, draft: ReservationDraft, actor: Actor | None
    ) -> Reservation:
        if not draft.items:
            raise ValidationError("No items")
        slot = (draft.slot or "").strip()
        if not slot:
            raise ValidationError("Missing pickup slot")

        lines: list[ReservationLine] = []
        for draft_line in draft.items:
            item = await resolve_menu_item(self._catalog, db, draft_line.item_id)
            qty = _parse_qty(draft_line.qty, item.id)
            if item.stock is not None and item.stock < 0 and item.stock != UNTRACKED_STOCK:
                raise ValidationError(f"Invalid stock for {item.name}")
            lines.append(
                ReservationLine(item_id=item.id, name=item.name, unit_price=item.price, qty=qty)
            )

        student = (draft.student or "").strip()
        if not student:
            student = (actor.name if actor and actor.name else None) or _DEFAULT_STUDENT

        user_id = actor.user_id if actor else None
        if user_id is None:
            match = await match_student(self._users, db, student)
            if match.user is not None:
                user_id = match.user.id

        now = utc_now()
        reservation = Reservation(
            id=generate_id("RES"),
            user_id=user_id,
            student=student,
            grade=draft.grade or "",
            section=draft.section or "",
            slot=slot,
            note=draft.note or "",
            items=tuple(lines),
            total=compute_total(lines),
            status=ReservationStatus.PENDING,
            created_at=now,
            updated_at=now,
        )
        await self._reservations.insert(db, reservation)
        await self._audit.write(
            db,
            ReservationEventType.CREATED,
            reservation.id,
            {
                "actor": actor.label if actor else None,
                "user_id": reservation.user_id,
                "total": reservation.total,
                "items": [line.to_document() for line in reservation.items],
            },
        )
        return reservation

    # ------------------------------------------------------------------
    # transition
    # ------------------------------------------------------------------

    async def transition(
        self, db: AsyncSession, reservation_id: str, target: Any, actor: Actor
    ) -> TransitionResult:
        """Main entry point for status changes. Returns the applied effects."""
        async with self._reservation_lock(str(reservation_id)):
            try:
                result, previous = await self._transition_inner(
                    db, str(reservation_id), target, actor
                )
                await db.commit()
            except InternalInconsistencyError as exc:
                await db.rollback()
                await self._record_inconsistency(db, exc, actor)
                raise
            except Exception:
                await db.rollback()
                raise

        reservation = result.reservation
        await self._notify(
            NotificationEvent(
                recipient=reservation.user_id or settings.ADMIN_INBOX,
                actor=actor.label,
                type=NotificationType.RESERVATION_STATUS,
                title=f"Reservation {reservation.status.value}",
                body=f"Reservation {reservation.id} is now {reservation.status.value}",
                data={
                    "reservation_id": reservation.id,
                    "from": previous.value,
                    "to": reservation.status.value,
                },
            )
        )
        return result

    async def _transition_inner(
        self, db: AsyncSession, reservation_id: str, target: Any, actor: Actor
    ) -> tuple[TransitionResult, ReservationStatus]:
        reservation = await self._reservations.get_by_id(db, reservation_id, for_update=True)
        if reservation is None:
            raise ReservationNotFoundError(reservation_id)

        target_status = parse_status(target)
        previous = reservation.status
        check_transition(reservation.id, previous, target_status)

        if target_status is ReservationStatus.APPROVED:
            result = await self._approve(db, reservation)
            event_type = ReservationEventType.APPROVED
        elif target_status is ReservationStatus.REJECTED:
            result = await self._reject(db, reservation, previous, actor)
            event_type = ReservationEventType.REJECTED
        else:
            reservation.status = target_status
            result = TransitionResult(reservation=reservation)
            event_type = ReservationEventType.STATUS_CHANGED

        reservation.updated_at = utc_now()
        await self._reservations.update(db, reservation)
        await self._audit.write(
            db,
            event_type,
            reservation.id,
            {
                "actor": actor.label,
                "from": previous.value,
                "to": reservation.status.value,
                "transaction_id": result.transaction.id if result.transaction else None,
            },
        )
        logger.info(
            "Reservation %s: %s -> %s by %s",
            reservation.id, previous.value, reservation.status.value, actor.label,
        )
        return result, previous

    # ------------------------------------------------------------------
    # Approve
    # ------------------------------------------------------------------

    async def _approve(self, db: AsyncSession, reservation: Reservation) -> TransitionResult:
        existing = await self._ledger.find_transaction_by_ref(
            db, reservation.id, TransactionDirection.DEBIT
        )
        if existing is not None:
            return await self._adopt_existing_debit(db, reservation, existing)

        await self._check_stock(db, reservation)
        user = await self._resolve_charge_user(db, reservation)

        total = reservation.total
        balance = user.balance
        tx: Transaction | None = None
        if total > 0:
            if user.balance < total:
                raise InsufficientBalanceError(total, user.balance)
            balance, tx = await self._ledger.debit(db, user.id, total, reservation.id)

        problems = await self._stock.adjust(db, reservation, StockDirection.DEDUCT)
        if problems:
            raise InternalInconsistencyError(
                reservation.id,
                "; ".join(p.detail for p in problems),
                incident={
                    "user_id": user.id,
                    "amount": total,
                    "transaction_id": tx.id if tx else None,
                    "problems": [p.as_dict() for p in problems],
                },
            )

        reservation.user_id = user.id
        reservation.stock_deducted = True
        if tx is not None:
            reservation.charged = True
            reservation.charged_at = tx.created_at or utc_now()
            reservation.transaction_id = tx.id
        reservation.status = ReservationStatus.APPROVED
        return TransitionResult(reservation=reservation, transaction=tx, balance=balance)

    async def _adopt_existing_debit(
        self, db: AsyncSession, reservation: Reservation, tx: Transaction
    ) -> TransitionResult:
        """A debit for this reservation already exists: mark it approved, never re-charge."""
        logger.info(
            "Reservation %s already charged by %s; not debiting again", reservation.id, tx.id
        )
        reservation.transaction_id = reservation.transaction_id or tx.id
        reservation.user_id = reservation.user_id or tx.user_id
        reservation.charged = True
        reservation.charged_at = reservation.charged_at or tx.created_at or utc_now()
        if not reservation.stock_deducted:
            problems = await self._stock.adjust(db, reservation, StockDirection.DEDUCT)
            await self._report_stock_problems(db, reservation, StockDirection.DEDUCT, problems)
            reservation.stock_deducted = True
        reservation.status = ReservationStatus.APPROVED

        owner = await self._users.find_by_id(db, tx.user_id)
        return TransitionResult(
            reservation=reservation,
            transaction=tx,
            balance=owner.balance if owner else None,
        )

    async def _check_stock(self, db: AsyncSession, reservation: Reservation) -> None:
        for item_id, qty in reservation.quantities_by_item():
            item = await self._catalog.find(db, item_id)
            if item is None:
                raise MenuItemNotFoundError(item_id)
            if item.is_tracked and (item.stock or 0) < qty:
                raise InsufficientStockError(item.name, qty, item.stock or 0)

    async def _resolve_charge_user(
        self, db: AsyncSession, reservation: Reservation
    ) -> WalletUser:
        if reservation.user_id:
            user = await self._users.find_by_id(db, reservation.user_id)
            if user is None:
                raise UserNotFoundError(reservation.user_id)
            return user

        match = await match_student(self._users, db, reservation.student)
        if match.ambiguous:
            raise UnresolvedUserError(
                reservation.id,
                f"{len(match.candidates)} users matching {reservation.student!r}",
            )
        if match.user is None:
            raise UnresolvedUserError(reservation.id)
        return match.user

    # ------------------------------------------------------------------
    # Reject
    # ------------------------------------------------------------------

    async def _reject(
        self,
        db: AsyncSession,
        reservation: Reservation,
        previous: ReservationStatus,
        actor: Actor,
    ) -> TransitionResult:
        refund: Transaction | None = None
        balance: int | None = None

        debit = await self._ledger.find_transaction_by_ref(
            db, reservation.id, TransactionDirection.DEBIT
        )
        if debit is not None:
            refund = await self._ledger.find_transaction_by_ref(
                db, reservation.id, TransactionDirection.CREDIT
            )
            if refund is not None:
                logger.info(
                    "Reservation %s already refunded by %s", reservation.id, refund.id
                )
            else:
                refund, balance = await self._refund(db, reservation, debit, actor)

        if previous is ReservationStatus.APPROVED and reservation.stock_deducted:
            problems = await self._stock.adjust(db, reservation, StockDirection.RESTORE)
            await self._report_stock_problems(db, reservation, StockDirection.RESTORE, problems)
            reservation.stock_deducted = False

        reservation.status = ReservationStatus.REJECTED
        return TransitionResult(reservation=reservation, transaction=refund, balance=balance)

    async def _refund(
        self, db: AsyncSession, reservation: Reservation, debit: Transaction, actor: Actor
    ) -> tuple[Transaction | None, int | None]:
        user_id = reservation.user_id or debit.user_id
        if not user_id:
            match = await match_student(self._users, db, reservation.student)
            user_id = match.user.id if match.user else None
        if not user_id:
            logger.warning(
                "Reservation %s: debit %s has no resolvable owner; refund skipped",
                reservation.id, debit.id,
            )
            return None, None
        if debit.amount <= 0:
            return None, None

        balance, credit = await self._ledger.credit(db, user_id, debit.amount, reservation.id)
        await self._audit.write(
            db,
            ReservationEventType.REFUNDED,
            reservation.id,
            {
                "actor": actor.label,
                "user_id": user_id,
                "amount": debit.amount,
                "debit_id": debit.id,
                "credit_id": credit.id,
            },
        )
        return credit, balance

    # ------------------------------------------------------------------
    # Side channels: audit of problems, incidents, notifications
    # ------------------------------------------------------------------

    async def _report_stock_problems(
        self,
        db: AsyncSession,
        reservation: Reservation,
        direction: StockDirection,
        problems: list[StockProblem],
    ) -> None:
        """Non-fatal stock problems: logged and kept in the audit trail."""
        if not problems:
            return
        logger.warning(
            "Stock %s for %s had problems: %s",
            direction.value, reservation.id, "; ".join(p.detail for p in problems),
        )
        await self._audit.write(
            db,
            ReservationEventType.STOCK_PROBLEM,
            reservation.id,
            {"direction": direction.value, "problems": [p.as_dict() for p in problems]},
        )

    async def _record_inconsistency(
        self, db: AsyncSession, exc: InternalInconsistencyError, actor: Actor
    ) -> None:
        logger.error(
            "Inconsistency on reservation %s (rolled back): user=%s amount=%s problems=%s",
            exc.reservation_id,
            exc.incident.get("user_id"),
            exc.incident.get("amount"),
            exc.incident.get("problems"),
        )
        try:
            await self._audit.write(
                db,
                ReservationEventType.INCONSISTENCY_DETECTED,
                exc.reservation_id,
                {"actor": actor.label, "detail": exc.detail, **exc.incident},
            )
            await db.commit()
        except Exception:
            await db.rollback()
            logger.exception("Could not record inconsistency for %s", exc.reservation_id)

    async def _notify(self, event: NotificationEvent) -> None:
        await publish_quietly(self._sink, event, self._notify_timeout)


def _lock_key(reservation_id: str) -> str:
    return reservation_id.strip().lower()


def _parse_qty(raw: object, item_id: str) -> int:
    """Whole, positive quantities only; 2, 2.0 and "2" are accepted, 1.9 is not."""
    qty: int | None = None
    if isinstance(raw, int) and not isinstance(raw, bool):
        qty = raw
    elif isinstance(raw, float):
        if math.isfinite(raw) and raw.is_integer():
            qty = int(raw)
    elif isinstance(raw, str) and _WHOLE_NUMBER.fullmatch(raw.strip()):
        qty = int(raw.strip())
    if qty is None:
        raise ValidationError(f"Invalid quantity for {item_id}")
    if qty <= 0:
        raise ValidationError("Invalid quantity")
    return qty
