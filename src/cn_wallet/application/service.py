"""WalletApplicationService: read-only wallet views.

Balance changes only happen inside the reservation engine; this service
exposes the balance and the ledger to the wallet holder.
"""

from sqlalchemy.ext.asyncio import AsyncSession

from src.cn_common.centavos import centavos_to_display
from src.cn_common.errors import UserNotFoundError
from src.cn_wallet.application.schemas import (
    TransactionItem,
    TransactionListResponse,
    WalletResponse,
    cursor_decode,
    cursor_encode,
)
from src.cn_wallet.domain.repository import UserDirectoryProtocol, WalletRepositoryProtocol
from src.cn_wallet.infrastructure.persistence import UserDirectory, WalletRepository


class WalletApplicationService:
    def __init__(
        self,
        users: UserDirectoryProtocol | None = None,
        repo: WalletRepositoryProtocol | None = None,
    ) -> None:
        self._users: UserDirectoryProtocol = users or UserDirectory()
        self._repo: WalletRepositoryProtocol = repo or WalletRepository()

    async def get_wallet(self, db: AsyncSession, user_id: str) -> WalletResponse:
        user = await self._users.find_by_id(db, user_id)
        if user is None:
            raise UserNotFoundError(user_id)
        return WalletResponse(
            user_id=user.id,
            name=user.name,
            email=user.email,
            balance_centavos=user.balance,
            balance_display=centavos_to_display(user.balance),
        )

    async def list_transactions(
        self, db: AsyncSession, user_id: str, cursor: str | None, limit: int
    ) -> TransactionListResponse:
        cursor_id = cursor_decode(cursor)
        # Fetch limit+1 to detect has_more without a COUNT(*) query
        rows = await self._repo.list_transactions(db, user_id, cursor_id, limit + 1)
        has_more = len(rows) > limit
        page = rows[:limit]
        next_cursor = cursor_encode(page[-1].id) if has_more and page else None
        return TransactionListResponse(
            items=[TransactionItem.from_domain(tx) for tx in page],
            next_cursor=next_cursor,
            has_more=has_more,
        )
