"""Domain models for cn_menu: pure dataclasses, no SQLAlchemy dependency."""

from dataclasses import dataclass
from datetime import datetime

UNTRACKED_STOCK = -1  # legacy sentinel; NULL also means untracked


def is_tracked_stock(stock: int | None) -> bool:
    return stock is not None and stock != UNTRACKED_STOCK


@dataclass
class MenuItem:
    id: str
    name: str
    category: str
    price: int                  # centavos
    stock: int | None = None    # None / -1 = untracked
    is_active: bool = True
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def is_tracked(self) -> bool:
        return is_tracked_stock(self.stock)


@dataclass(frozen=True)
class StockChange:
    """Result of one atomic stock adjustment on a catalog row."""

    item_id: str
    stock_before: int | None
    stock_after: int | None

    @property
    def tracked(self) -> bool:
        return is_tracked_stock(self.stock_before)
