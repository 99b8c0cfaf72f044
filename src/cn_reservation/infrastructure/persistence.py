"""ReservationRepository: raw SQL persistence implementation.

The line-item snapshot and total are written once on insert; ``update`` only
touches lifecycle columns, so the price snapshot can never be rewritten.
"""

import json
from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.cn_common.enums import ReservationStatus
from src.cn_reservation.domain.models import Reservation, ReservationLine

# ---------------------------------------------------------------------------
# SQL statements
# ---------------------------------------------------------------------------

_SELECT_COLUMNS = """
    id, user_id, student, grade, section, slot, note, items, total, status,
    stock_deducted, charged, charged_at, transaction_id, created_at, updated_at
"""

_INSERT_RESERVATION_SQL = text("""
    INSERT INTO reservations (id, user_id, student, grade, section, slot, note,
        items, total, status, stock_deducted, charged, created_at, updated_at)
    VALUES (:id, :user_id, :student, :grade, :section, :slot, :note,
        CAST(:items AS JSONB), :total, :status, FALSE, FALSE, :created_at, :updated_at)
""")

_UPDATE_RESERVATION_SQL = text("""
    UPDATE reservations
    SET user_id = :user_id,
        status = :status,
        stock_deducted = :stock_deducted,
        charged = :charged,
        charged_at = :charged_at,
        transaction_id = :transaction_id,
        updated_at = :updated_at
    WHERE id = :id
""")

_GET_BY_ID_SQL = text(f"""
    SELECT {_SELECT_COLUMNS}
    FROM reservations WHERE lower(id) = lower(:id)
""")

_GET_BY_ID_FOR_UPDATE_SQL = text(f"""
    SELECT {_SELECT_COLUMNS}
    FROM reservations WHERE lower(id) = lower(:id)
    FOR UPDATE
""")

_LIST_FOR_USER_SQL = text(f"""
    SELECT {_SELECT_COLUMNS}
    FROM reservations
    WHERE user_id = :user_id
       OR (user_id IS NULL
           AND lower(trim(student)) = ANY(CAST(:identities AS TEXT[])))
    ORDER BY created_at DESC, id DESC
""")

_LIST_BY_STUDENT_SQL = text(f"""
    SELECT {_SELECT_COLUMNS}
    FROM reservations
    WHERE lower(trim(student)) = :student
    ORDER BY created_at DESC, id DESC
""")

_LIST_ALL_SQL = text(f"""
    SELECT {_SELECT_COLUMNS}
    FROM reservations
    WHERE (CAST(:status AS TEXT) IS NULL OR status = :status)
    ORDER BY created_at DESC, id DESC
""")


# ---------------------------------------------------------------------------
# Row mapper
# ---------------------------------------------------------------------------


def _row_to_reservation(row: Any) -> Reservation:
    """Convert a DB result row to a Reservation domain object."""
    raw_items = row.items
    if isinstance(raw_items, str):
        raw_items = json.loads(raw_items)
    return Reservation(
        id=row.id,
        user_id=row.user_id,
        student=row.student,
        grade=row.grade,
        section=row.section,
        slot=row.slot,
        note=row.note,
        items=tuple(ReservationLine.from_document(doc) for doc in raw_items or []),
        total=row.total,
        status=ReservationStatus(row.status),
        stock_deducted=row.stock_deducted,
        charged=row.charged,
        charged_at=row.charged_at,
        transaction_id=row.transaction_id,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class ReservationRepository:
    """Concrete implementation of ReservationRepositoryProtocol using raw SQL."""

    async def insert(self, db: AsyncSession, reservation: Reservation) -> None:
        await db.execute(
            _INSERT_RESERVATION_SQL,
            {
                "id": reservation.id,
                "user_id": reservation.user_id,
                "student": reservation.student,
                "grade": reservation.grade,
                "section": reservation.section,
                "slot": reservation.slot,
                "note": reservation.note,
                "items": json.dumps([line.to_document() for line in reservation.items]),
                "total": reservation.total,
                "status": reservation.status.value,
                "created_at": reservation.created_at,
                "updated_at": reservation.updated_at,
            },
        )

    async def get_by_id(
        self, db: AsyncSession, reservation_id: str, for_update: bool = False
    ) -> Reservation | None:
        sql = _GET_BY_ID_FOR_UPDATE_SQL if for_update else _GET_BY_ID_SQL
        result = await db.execute(sql, {"id": reservation_id})
        row = result.fetchone()
        return _row_to_reservation(row) if row else None

    async def update(self, db: AsyncSession, reservation: Reservation) -> None:
        await db.execute(
            _UPDATE_RESERVATION_SQL,
            {
                "id": reservation.id,
                "user_id": reservation.user_id,
                "status": reservation.status.value,
                "stock_deducted": reservation.stock_deducted,
                "charged": reservation.charged,
                "charged_at": reservation.charged_at,
                "transaction_id": reservation.transaction_id,
                "updated_at": reservation.updated_at,
            },
        )

    async def list_for_user(
        self, db: AsyncSession, user_id: str, identities: set[str]
    ) -> list[Reservation]:
        result = await db.execute(
            _LIST_FOR_USER_SQL,
            {"user_id": user_id, "identities": sorted(identities)},
        )
        return [_row_to_reservation(row) for row in result.fetchall()]

    async def list_by_student(self, db: AsyncSession, student: str) -> list[Reservation]:
        result = await db.execute(
            _LIST_BY_STUDENT_SQL, {"student": student.strip().lower()}
        )
        return [_row_to_reservation(row) for row in result.fetchall()]

    async def list_all(
        self, db: AsyncSession, status: ReservationStatus | None
    ) -> list[Reservation]:
        result = await db.execute(
            _LIST_ALL_SQL, {"status": status.value if status else None}
        )
        return [_row_to_reservation(row) for row in result.fetchall()]
