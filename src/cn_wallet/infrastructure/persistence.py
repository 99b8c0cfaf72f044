"""WalletRepository and UserDirectory: concrete implementations of the cn_wallet Protocols.

Balance mutations use atomic PostgreSQL UPDATE ... RETURNING.
A result of 0 rows means a business constraint was violated (insufficient
funds) or the user does not exist.

wallet_transactions carries UNIQUE (ref, direction): a second debit or credit
for the same reservation cannot be inserted, whatever the caller checked first.

Transaction ownership: The CALLER (engine or application service) is
responsible for committing or rolling back.
"""

from typing import Any

from sqlalchemy import text
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from src.cn_common.enums import TransactionDirection
from src.cn_common.errors import (
    DuplicateTransactionError,
    InsufficientBalanceError,
    UserNotFoundError,
)
from src.cn_common.id_generator import generate_id
from src.cn_wallet.domain.models import Transaction, WalletUser

# ---------------------------------------------------------------------------
# SQL: users (wallet holders)
# ---------------------------------------------------------------------------

_USER_COLUMNS = "id, name, email, role, balance, version, created_at, updated_at"

_GET_USER_SQL = text(f"""
    SELECT {_USER_COLUMNS}
    FROM users
    WHERE id = :user_id
""")

_MATCH_USERS_SQL = text(f"""
    SELECT {_USER_COLUMNS}
    FROM users
    WHERE lower(trim(name)) = :needle
       OR lower(trim(email)) = :needle
       OR lower(trim(id)) = :needle
    ORDER BY id
""")

_DEBIT_SQL = text("""
    UPDATE users
    SET balance = balance - :amount,
        version = version + 1,
        updated_at = NOW()
    WHERE id = :user_id AND balance >= :amount
    RETURNING balance
""")

_CREDIT_SQL = text("""
    UPDATE users
    SET balance = balance + :amount,
        version = version + 1,
        updated_at = NOW()
    WHERE id = :user_id
    RETURNING balance
""")

_GET_BALANCE_SQL = text("SELECT balance FROM users WHERE id = :user_id")

# ---------------------------------------------------------------------------
# SQL: wallet_transactions (append-only)
# ---------------------------------------------------------------------------

_TX_COLUMNS = "id, user_id, direction, amount, ref, title, status, balance_after, created_at"

_INSERT_TX_SQL = text(f"""
    INSERT INTO wallet_transactions
        (id, user_id, direction, amount, ref, title, status, balance_after)
    VALUES
        (:id, :user_id, :direction, :amount, :ref, :title, 'Success', :balance_after)
    RETURNING {_TX_COLUMNS}
""")

_GET_TX_BY_REF_SQL = text(f"""
    SELECT {_TX_COLUMNS}
    FROM wallet_transactions
    WHERE ref = :ref AND direction = :direction
""")

_LIST_TX_SQL = text(f"""
    SELECT {_TX_COLUMNS}
    FROM wallet_transactions
    WHERE user_id = :user_id
      AND (CAST(:cursor_id AS TEXT) IS NULL OR id < :cursor_id)
    ORDER BY id DESC
    LIMIT :limit
""")


def _row_to_user(row: Any) -> WalletUser:
    return WalletUser(
        id=row.id,
        name=row.name,
        email=row.email,
        role=row.role,
        balance=row.balance,
        version=row.version,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def _row_to_transaction(row: Any) -> Transaction:
    return Transaction(
        id=row.id,
        user_id=row.user_id,
        direction=row.direction,
        amount=row.amount,
        ref=row.ref,
        title=row.title,
        status=row.status,
        balance_after=row.balance_after,
        created_at=row.created_at,
    )


class UserDirectory:
    """Read-only lookups on the users table."""

    async def find_by_id(self, db: AsyncSession, user_id: str) -> WalletUser | None:
        result = await db.execute(_GET_USER_SQL, {"user_id": user_id})
        row = result.fetchone()
        return _row_to_user(row) if row else None

    async def find_by_name_email_or_id(
        self, db: AsyncSession, text: str
    ) -> list[WalletUser]:
        needle = text.strip().lower()
        if not needle:
            return []
        result = await db.execute(_MATCH_USERS_SQL, {"needle": needle})
        return [_row_to_user(row) for row in result.fetchall()]


class WalletRepository:
    """Concrete wallet repository; every balance change is one atomic UPDATE."""

    async def debit(
        self, db: AsyncSession, user_id: str, amount: int, ref: str, title: str
    ) -> tuple[int, Transaction]:
        row = (
            await db.execute(_DEBIT_SQL, {"user_id": user_id, "amount": amount})
        ).fetchone()
        if row is None:
            balance_row = (
                await db.execute(_GET_BALANCE_SQL, {"user_id": user_id})
            ).fetchone()
            if balance_row is None:
                raise UserNotFoundError(user_id)
            raise InsufficientBalanceError(amount, balance_row.balance)
        tx = await self._insert(
            db, user_id, TransactionDirection.DEBIT, amount, ref, title, row.balance
        )
        return row.balance, tx

    async def credit(
        self, db: AsyncSession, user_id: str, amount: int, ref: str, title: str
    ) -> tuple[int, Transaction]:
        row = (
            await db.execute(_CREDIT_SQL, {"user_id": user_id, "amount": amount})
        ).fetchone()
        if row is None:
            raise UserNotFoundError(user_id)
        tx = await self._insert(
            db, user_id, TransactionDirection.CREDIT, amount, ref, title, row.balance
        )
        return row.balance, tx

    async def find_transaction_by_ref(
        self, db: AsyncSession, ref: str, direction: TransactionDirection
    ) -> Transaction | None:
        result = await db.execute(
            _GET_TX_BY_REF_SQL, {"ref": ref, "direction": direction.value}
        )
        row = result.fetchone()
        return _row_to_transaction(row) if row else None

    async def list_transactions(
        self, db: AsyncSession, user_id: str, cursor_id: str | None, limit: int
    ) -> list[Transaction]:
        result = await db.execute(
            _LIST_TX_SQL, {"user_id": user_id, "cursor_id": cursor_id, "limit": limit}
        )
        return [_row_to_transaction(row) for row in result.fetchall()]

    async def _insert(
        self,
        db: AsyncSession,
        user_id: str,
        direction: TransactionDirection,
        amount: int,
        ref: str,
        title: str,
        balance_after: int,
    ) -> Transaction:
        try:
            result = await db.execute(
                _INSERT_TX_SQL,
                {
                    "id": generate_id("TX"),
                    "user_id": user_id,
                    "direction": direction.value,
                    "amount": amount,
                    "ref": ref,
                    "title": title,
                    "balance_after": balance_after,
                },
            )
        except IntegrityError as exc:
            raise DuplicateTransactionError(ref, direction.value) from exc
        return _row_to_transaction(result.fetchone())
