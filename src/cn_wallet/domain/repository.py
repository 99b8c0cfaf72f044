"""Repository Protocols: dependency inversion for testability.

Unit tests inject fakes or mocks that conform to these Protocols.
Infrastructure layer provides the real implementations.
"""

from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.cn_common.enums import TransactionDirection
from src.cn_wallet.domain.models import Transaction, WalletUser


class UserDirectoryProtocol(Protocol):
    async def find_by_id(self, db: AsyncSession, user_id: str) -> WalletUser | None: ...

    async def find_by_name_email_or_id(
        self, db: AsyncSession, text: str
    ) -> list[WalletUser]:
        """All users whose name, email or id equals ``text`` case-insensitively."""
        ...


class WalletRepositoryProtocol(Protocol):
    async def debit(
        self, db: AsyncSession, user_id: str, amount: int, ref: str, title: str
    ) -> tuple[int, Transaction]: ...

    async def credit(
        self, db: AsyncSession, user_id: str, amount: int, ref: str, title: str
    ) -> tuple[int, Transaction]: ...

    async def find_transaction_by_ref(
        self, db: AsyncSession, ref: str, direction: TransactionDirection
    ) -> Transaction | None: ...

    async def list_transactions(
        self, db: AsyncSession, user_id: str, cursor_id: str | None, limit: int
    ) -> list[Transaction]: ...
