"""WalletLedger: debit/credit a user's balance with an append-only trail.

Every balance change produces exactly one Transaction tied to a reference
(the reservation id). Corrections are new transactions; existing rows are
never touched. ``find_transaction_by_ref`` is the keyed lookup behind the
engine's idempotency guards.
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from src.cn_common.enums import TransactionDirection
from src.cn_common.errors import ValidationError
from src.cn_wallet.domain.models import Transaction
from src.cn_wallet.domain.repository import WalletRepositoryProtocol

logger = logging.getLogger(__name__)


class WalletLedger:
    def __init__(self, repo: WalletRepositoryProtocol) -> None:
        self._repo = repo

    async def debit(
        self,
        db: AsyncSession,
        user_id: str,
        amount: int,
        ref: str,
        title: str = "Reservation",
    ) -> tuple[int, Transaction]:
        _require_positive(amount)
        balance, tx = await self._repo.debit(db, user_id, amount, ref, title)
        logger.info(
            "Wallet debit: user=%s amount=%d ref=%s tx=%s balance=%d",
            user_id, amount, ref, tx.id, balance,
        )
        return balance, tx

    async def credit(
        self,
        db: AsyncSession,
        user_id: str,
        amount: int,
        ref: str,
        title: str = "Refund",
    ) -> tuple[int, Transaction]:
        _require_positive(amount)
        balance, tx = await self._repo.credit(db, user_id, amount, ref, title)
        logger.info(
            "Wallet credit: user=%s amount=%d ref=%s tx=%s balance=%d",
            user_id, amount, ref, tx.id, balance,
        )
        return balance, tx

    async def find_transaction_by_ref(
        self, db: AsyncSession, ref: str, direction: TransactionDirection
    ) -> Transaction | None:
        return await self._repo.find_transaction_by_ref(db, ref, direction)


def _require_positive(amount: int) -> None:
    if amount <= 0:
        raise ValidationError(f"Amount must be positive, got {amount}")
