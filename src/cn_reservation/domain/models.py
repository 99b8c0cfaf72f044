"""Domain models for cn_reservation: pure dataclasses, no SQLAlchemy dependency."""

from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from src.cn_common.centavos import line_total as centavos_line_total
from src.cn_common.enums import ReservationStatus


@dataclass(frozen=True)
class ReservationLine:
    """Immutable line snapshot: price and name are locked at order time."""

    item_id: str
    name: str
    unit_price: int  # centavos
    qty: int

    @property
    def line_total(self) -> int:
        return centavos_line_total(self.unit_price, self.qty)

    def to_document(self) -> dict[str, Any]:
        return {
            "item_id": self.item_id,
            "name": self.name,
            "unit_price": self.unit_price,
            "qty": self.qty,
        }

    @classmethod
    def from_document(cls, doc: dict[str, Any]) -> "ReservationLine":
        # Older rows stored {id, price}
        return cls(
            item_id=str(doc.get("item_id", doc.get("id", ""))),
            name=str(doc.get("name", "")),
            unit_price=int(doc.get("unit_price", doc.get("price", 0))),
            qty=int(doc.get("qty", 0)),
        )


def compute_total(lines: Iterable[ReservationLine]) -> int:
    return sum(line.line_total for line in lines)


@dataclass
class Reservation:
    id: str
    user_id: str | None
    student: str
    grade: str
    section: str
    slot: str
    note: str
    items: tuple[ReservationLine, ...]
    total: int  # centavos, computed once from the snapshot
    status: ReservationStatus = ReservationStatus.PENDING
    stock_deducted: bool = False
    charged: bool = False
    charged_at: datetime | None = None
    transaction_id: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    def quantities_by_item(self) -> list[tuple[str, int]]:
        """Requested quantity per catalog item, ordered by item id.

        The stable order keeps row locks on menu_items acquired in the same
        sequence by every transaction.
        """
        totals: dict[str, int] = {}
        for line in self.items:
            totals[line.item_id] = totals.get(line.item_id, 0) + line.qty
        return sorted(totals.items())

    def item_name(self, item_id: str) -> str:
        for line in self.items:
            if line.item_id == item_id:
                return line.name
        return item_id


@dataclass(frozen=True)
class DraftLine:
    item_id: Any
    qty: Any


@dataclass
class ReservationDraft:
    """Unvalidated client input for create()."""

    items: list[DraftLine] = field(default_factory=list)
    slot: str = ""
    grade: str = ""
    section: str = ""
    note: str = ""
    student: str = ""


@dataclass
class TransitionResult:
    reservation: Reservation
    transaction: Any = None     # cn_wallet Transaction, when one was created or found
    balance: int | None = None  # wallet balance after the effect, when known
