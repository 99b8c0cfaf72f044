"""Pydantic schemas for the cn_reservation API."""

from typing import Any

from pydantic import BaseModel, Field

from src.cn_common.centavos import centavos_to_display
from src.cn_common.datetime_utils import to_iso
from src.cn_reservation.domain.models import (
    DraftLine,
    Reservation,
    ReservationDraft,
    ReservationLine,
    TransitionResult,
)
from src.cn_wallet.application.schemas import TransactionItem

# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------


class ReservationItemIn(BaseModel):
    # Loosely typed on purpose: ids and quantities from older clients arrive
    # as strings or numbers and are validated by the engine.
    id: Any = None
    qty: Any = None


class CreateReservationRequest(BaseModel):
    items: list[ReservationItemIn] = Field(default_factory=list)
    slot: str = Field("", max_length=64)
    grade: str = Field("", max_length=64)
    section: str = Field("", max_length=64)
    note: str = Field("", max_length=1000)
    student: str = Field("", max_length=255)

    def to_draft(self) -> ReservationDraft:
        return ReservationDraft(
            items=[DraftLine(item_id=it.id, qty=it.qty) for it in self.items],
            slot=self.slot,
            grade=self.grade,
            section=self.section,
            note=self.note,
            student=self.student,
        )


class SetStatusRequest(BaseModel):
    status: str = ""


# ---------------------------------------------------------------------------
# Responses
# ---------------------------------------------------------------------------


class ReservationLineResponse(BaseModel):
    item_id: str
    name: str
    unit_price_centavos: int
    qty: int
    line_total_centavos: int

    @classmethod
    def from_domain(cls, line: ReservationLine) -> "ReservationLineResponse":
        return cls(
            item_id=line.item_id,
            name=line.name,
            unit_price_centavos=line.unit_price,
            qty=line.qty,
            line_total_centavos=line.line_total,
        )


class ReservationResponse(BaseModel):
    id: str
    user_id: str | None
    student: str
    grade: str
    section: str
    slot: str
    note: str
    items: list[ReservationLineResponse]
    total_centavos: int
    total_display: str
    status: str
    stock_deducted: bool
    charged: bool
    charged_at: str | None
    transaction_id: str | None
    created_at: str | None
    updated_at: str | None

    @classmethod
    def from_domain(cls, r: Reservation) -> "ReservationResponse":
        return cls(
            id=r.id,
            user_id=r.user_id,
            student=r.student,
            grade=r.grade,
            section=r.section,
            slot=r.slot,
            note=r.note,
            items=[ReservationLineResponse.from_domain(line) for line in r.items],
            total_centavos=r.total,
            total_display=centavos_to_display(r.total),
            status=r.status.value,
            stock_deducted=r.stock_deducted,
            charged=r.charged,
            charged_at=to_iso(r.charged_at),
            transaction_id=r.transaction_id,
            created_at=to_iso(r.created_at),
            updated_at=to_iso(r.updated_at),
        )


class SetStatusResponse(BaseModel):
    reservation: ReservationResponse
    transaction: TransactionItem | None = None
    balance_centavos: int | None = None

    @classmethod
    def from_result(cls, result: TransitionResult) -> "SetStatusResponse":
        return cls(
            reservation=ReservationResponse.from_domain(result.reservation),
            transaction=(
                TransactionItem.from_domain(result.transaction) if result.transaction else None
            ),
            balance_centavos=result.balance,
        )


class ReservationListResponse(BaseModel):
    items: list[ReservationResponse]
