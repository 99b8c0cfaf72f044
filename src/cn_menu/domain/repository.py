"""MenuCatalog Protocol: the engine's only view of the catalog.

Unit tests inject a fake that conforms to this Protocol.
Infrastructure layer provides the real implementation.
"""

from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.cn_menu.domain.models import MenuItem, StockChange


class MenuCatalogProtocol(Protocol):
    async def find(self, db: AsyncSession, item_id: str) -> MenuItem | None: ...

    async def find_by_suffix(self, db: AsyncSession, suffix: str) -> list[MenuItem]: ...

    async def adjust_stock(
        self, db: AsyncSession, item_id: str, delta: int
    ) -> StockChange | None:
        """Add ``delta`` to a tracked item's stock, clamped at zero.

        Returns None when the item does not exist. Untracked items are
        returned unchanged (stock_before == stock_after).
        """
        ...
