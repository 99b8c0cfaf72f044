"""Menu item resolution for incoming reservation lines.

Exact id match first. Older clients sent ids in other formats (``abc-3``
for ``ITM-3``), so a fallback compares the segment after the last ``-``.
The fallback must be unambiguous: two catalog rows sharing a suffix is a
ValidationError, never a silent first-match.
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from src.cn_common.errors import MenuItemNotFoundError, ValidationError
from src.cn_menu.domain.models import MenuItem
from src.cn_menu.domain.repository import MenuCatalogProtocol

logger = logging.getLogger(__name__)


def id_suffix(item_id: str) -> str:
    return item_id.strip().split("-")[-1]


async def resolve_menu_item(
    catalog: MenuCatalogProtocol, db: AsyncSession, raw_id: object
) -> MenuItem:
    incoming = str(raw_id if raw_id is not None else "").strip()
    if not incoming:
        raise ValidationError("Item id is required")

    item = await catalog.find(db, incoming)
    if item is not None:
        return item

    suffix = id_suffix(incoming)
    if not suffix:
        raise MenuItemNotFoundError(incoming)

    candidates = [
        c for c in await catalog.find_by_suffix(db, suffix) if id_suffix(c.id) == suffix
    ]
    if not candidates:
        raise MenuItemNotFoundError(incoming)
    if len(candidates) > 1:
        ids = ", ".join(sorted(c.id for c in candidates))
        raise ValidationError(f"Item id {incoming} is ambiguous (matches {ids})")

    logger.info("Legacy item id %s resolved to %s", incoming, candidates[0].id)
    return candidates[0]
