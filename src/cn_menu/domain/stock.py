"""Stock adjustment coordinator: deduct/restore catalog stock for a reservation.

Problems are collected, never raised: the caller decides whether they are
fatal (approval) or only worth logging (legacy repair, refunds).
"""

import logging
from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession

from src.cn_common.enums import StockDirection, StockProblemKind
from src.cn_menu.domain.repository import MenuCatalogProtocol
from src.cn_reservation.domain.models import Reservation

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StockProblem:
    item_id: str
    kind: StockProblemKind
    detail: str

    def as_dict(self) -> dict[str, str]:
        return {"item_id": self.item_id, "kind": self.kind.value, "detail": self.detail}


class StockAdjustmentCoordinator:
    def __init__(self, catalog: MenuCatalogProtocol) -> None:
        self._catalog = catalog

    async def adjust(
        self, db: AsyncSession, reservation: Reservation, direction: StockDirection
    ) -> list[StockProblem]:
        problems: list[StockProblem] = []
        for item_id, qty in reservation.quantities_by_item():
            delta = -qty if direction is StockDirection.DEDUCT else qty
            change = await self._catalog.adjust_stock(db, item_id, delta)
            if change is None:
                problems.append(
                    StockProblem(
                        item_id,
                        StockProblemKind.MISSING_ITEM,
                        f"{reservation.item_name(item_id)} is no longer in the catalog",
                    )
                )
                continue
            if not change.tracked:
                continue
            before = change.stock_before or 0
            if direction is StockDirection.DEDUCT and before < qty:
                problems.append(
                    StockProblem(
                        item_id,
                        StockProblemKind.SHORTFALL,
                        f"{reservation.item_name(item_id)}: needed {qty}, had {before}",
                    )
                )
            logger.debug(
                "Stock %s %s: %s -> %s (%s)",
                direction.value, item_id, change.stock_before, change.stock_after,
                reservation.id,
            )
        return problems
