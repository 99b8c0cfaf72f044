"""MenuCatalogRepository: concrete implementation of MenuCatalogProtocol.

Stock changes lock the catalog row (SELECT ... FOR UPDATE) and apply an atomic
UPDATE clamped at zero, so concurrent approvals of the same item serialise on
the row and stock can never go negative.

Transaction ownership: the CALLER commits or rolls back.
"""

from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.cn_menu.domain.models import MenuItem, StockChange, is_tracked_stock

_SELECT_COLUMNS = "id, name, category, price, stock, is_active, created_at, updated_at"

_GET_ITEM_SQL = text(f"""
    SELECT {_SELECT_COLUMNS}
    FROM menu_items
    WHERE id = :item_id
""")

_FIND_BY_SUFFIX_SQL = text(f"""
    SELECT {_SELECT_COLUMNS}
    FROM menu_items
    WHERE id = :suffix OR id LIKE :pattern ESCAPE '\\'
    ORDER BY id
""")

_LOCK_STOCK_SQL = text("""
    SELECT id, stock
    FROM menu_items
    WHERE id = :item_id
    FOR UPDATE
""")

_ADJUST_STOCK_SQL = text("""
    UPDATE menu_items
    SET stock = GREATEST(stock + :delta, 0),
        updated_at = NOW()
    WHERE id = :item_id
    RETURNING stock
""")


def _row_to_item(row: Any) -> MenuItem:
    return MenuItem(
        id=row.id,
        name=row.name,
        category=row.category,
        price=row.price,
        stock=row.stock,
        is_active=row.is_active,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def _like_escape(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class MenuCatalogRepository:
    """Concrete catalog repository using raw SQL."""

    async def find(self, db: AsyncSession, item_id: str) -> MenuItem | None:
        result = await db.execute(_GET_ITEM_SQL, {"item_id": item_id})
        row = result.fetchone()
        return _row_to_item(row) if row else None

    async def find_by_suffix(self, db: AsyncSession, suffix: str) -> list[MenuItem]:
        result = await db.execute(
            _FIND_BY_SUFFIX_SQL,
            {"suffix": suffix, "pattern": f"%-{_like_escape(suffix)}"},
        )
        return [_row_to_item(row) for row in result.fetchall()]

    async def adjust_stock(
        self, db: AsyncSession, item_id: str, delta: int
    ) -> StockChange | None:
        locked = (await db.execute(_LOCK_STOCK_SQL, {"item_id": item_id})).fetchone()
        if locked is None:
            return None
        before = locked.stock
        if not is_tracked_stock(before):
            return StockChange(item_id=item_id, stock_before=before, stock_after=before)

        updated = (
            await db.execute(_ADJUST_STOCK_SQL, {"item_id": item_id, "delta": delta})
        ).fetchone()
        after = updated.stock if updated is not None else before
        return StockChange(item_id=item_id, stock_before=before, stock_after=after)
