"""In-memory canteen for engine and service tests.

The fakes honour the same contracts as the SQL repositories: stock is
clamped at zero, debits refuse to overdraw, (ref, direction) is unique.
``FakeSession`` mimics the unit-of-work: commit() checkpoints the whole
store, rollback() restores the last checkpoint.
"""

import asyncio
import copy
from dataclasses import dataclass, field
from typing import Any

import pytest

from src.cn_common.actor import Actor
from src.cn_common.datetime_utils import utc_now
from src.cn_common.enums import ReservationEventType, ReservationStatus, TransactionDirection
from src.cn_common.errors import (
    DuplicateTransactionError,
    InsufficientBalanceError,
    UserNotFoundError,
)
from src.cn_menu.domain.models import MenuItem, StockChange, is_tracked_stock
from src.cn_notification.domain.models import NotificationEvent
from src.cn_reservation.domain.models import Reservation
from src.cn_reservation.engine.engine import ReservationEngine
from src.cn_wallet.domain.ledger import WalletLedger
from src.cn_wallet.domain.models import Transaction, WalletUser


@dataclass
class Store:
    users: dict[str, WalletUser] = field(default_factory=dict)
    menu: dict[str, MenuItem] = field(default_factory=dict)
    reservations: dict[str, Reservation] = field(default_factory=dict)
    transactions: list[Transaction] = field(default_factory=list)
    events: list[tuple[str, str, dict[str, Any]]] = field(default_factory=list)
    _snapshot: Any = None

    _TABLES = ("users", "menu", "reservations", "transactions", "events")

    def checkpoint(self) -> None:
        self._snapshot = copy.deepcopy({t: getattr(self, t) for t in self._TABLES})

    def restore(self) -> None:
        for table, value in copy.deepcopy(self._snapshot).items():
            setattr(self, table, value)

    def event_types(self, reservation_id: str | None = None) -> list[str]:
        return [e[0] for e in self.events if reservation_id in (None, e[1])]


class FakeSession:
    def __init__(self, store: Store) -> None:
        self.store = store
        self.commits = 0
        self.rollbacks = 0

    async def commit(self) -> None:
        self.commits += 1
        self.store.checkpoint()

    async def rollback(self) -> None:
        self.rollbacks += 1
        self.store.restore()


class FakeReservationRepository:
    def __init__(self, store: Store) -> None:
        self.store = store

    async def insert(self, db: Any, reservation: Reservation) -> None:
        self.store.reservations[reservation.id] = copy.deepcopy(reservation)

    async def get_by_id(
        self, db: Any, reservation_id: str, for_update: bool = False
    ) -> Reservation | None:
        for rid, r in self.store.reservations.items():
            if rid.lower() == reservation_id.lower():
                return copy.deepcopy(r)
        return None

    async def update(self, db: Any, reservation: Reservation) -> None:
        self.store.reservations[reservation.id] = copy.deepcopy(reservation)

    async def list_for_user(
        self, db: Any, user_id: str, identities: set[str]
    ) -> list[Reservation]:
        rows = [
            r for r in self.store.reservations.values()
            if r.user_id == user_id
            or (r.user_id is None and r.student.strip().lower() in identities)
        ]
        return _newest_first(rows)

    async def list_by_student(self, db: Any, student: str) -> list[Reservation]:
        needle = student.strip().lower()
        rows = [r for r in self.store.reservations.values() if r.student.strip().lower() == needle]
        return _newest_first(rows)

    async def list_all(
        self, db: Any, status: ReservationStatus | None
    ) -> list[Reservation]:
        rows = [
            r for r in self.store.reservations.values() if status is None or r.status is status
        ]
        return _newest_first(rows)


def _newest_first(rows: list[Reservation]) -> list[Reservation]:
    return [copy.deepcopy(r) for r in sorted(rows, key=lambda r: (r.created_at, r.id), reverse=True)]


class FakeCatalog:
    def __init__(self, store: Store) -> None:
        self.store = store
        # Items that disappear between the pre-check and the stock update
        self.vanish_on_adjust: set[str] = set()
        self.adjust_calls: list[tuple[str, int]] = []
        # Yield after reading, so a concurrent approval can act on the same row
        self.stale_reads = False

    async def find(self, db: Any, item_id: str) -> MenuItem | None:
        item = self.store.menu.get(item_id)
        found = copy.deepcopy(item) if item else None
        if self.stale_reads:
            await asyncio.sleep(0)
        return found

    async def find_by_suffix(self, db: Any, suffix: str) -> list[MenuItem]:
        return [
            copy.deepcopy(m) for m in self.store.menu.values()
            if m.id == suffix or m.id.endswith(f"-{suffix}")
        ]

    async def adjust_stock(self, db: Any, item_id: str, delta: int) -> StockChange | None:
        self.adjust_calls.append((item_id, delta))
        item = self.store.menu.get(item_id)
        if item is None or item_id in self.vanish_on_adjust:
            return None
        before = item.stock
        if not is_tracked_stock(before):
            return StockChange(item_id, before, before)
        item.stock = max((before or 0) + delta, 0)
        return StockChange(item_id, before, item.stock)


class FakeUserDirectory:
    def __init__(self, store: Store) -> None:
        self.store = store

    async def find_by_id(self, db: Any, user_id: str) -> WalletUser | None:
        user = self.store.users.get(user_id)
        return copy.deepcopy(user) if user else None

    async def find_by_name_email_or_id(self, db: Any, text: str) -> list[WalletUser]:
        needle = text.strip().lower()
        return [
            copy.deepcopy(u) for u in sorted(self.store.users.values(), key=lambda u: u.id)
            if needle in u.identities()
        ]


class FakeWalletRepository:
    def __init__(self, store: Store) -> None:
        self.store = store

    async def debit(
        self, db: Any, user_id: str, amount: int, ref: str, title: str
    ) -> tuple[int, Transaction]:
        user = self.store.users.get(user_id)
        if user is None:
            raise UserNotFoundError(user_id)
        if user.balance < amount:
            raise InsufficientBalanceError(amount, user.balance)
        user.balance -= amount
        return user.balance, self._append(user, TransactionDirection.DEBIT, amount, ref, title)

    async def credit(
        self, db: Any, user_id: str, amount: int, ref: str, title: str
    ) -> tuple[int, Transaction]:
        user = self.store.users.get(user_id)
        if user is None:
            raise UserNotFoundError(user_id)
        user.balance += amount
        return user.balance, self._append(user, TransactionDirection.CREDIT, amount, ref, title)

    async def find_transaction_by_ref(
        self, db: Any, ref: str, direction: TransactionDirection
    ) -> Transaction | None:
        for tx in self.store.transactions:
            if tx.ref == ref and tx.direction == direction.value:
                return copy.deepcopy(tx)
        return None

    async def list_transactions(
        self, db: Any, user_id: str, cursor_id: str | None, limit: int
    ) -> list[Transaction]:
        rows = sorted(
            (t for t in self.store.transactions if t.user_id == user_id),
            key=lambda t: t.id,
            reverse=True,
        )
        if cursor_id is not None:
            rows = [t for t in rows if t.id < cursor_id]
        return rows[:limit]

    def _append(
        self,
        user: WalletUser,
        direction: TransactionDirection,
        amount: int,
        ref: str,
        title: str,
    ) -> Transaction:
        if any(t.ref == ref and t.direction == direction.value for t in self.store.transactions):
            raise DuplicateTransactionError(ref, direction.value)
        tx = Transaction(
            id=f"TX-{len(self.store.transactions) + 1:04d}",
            user_id=user.id,
            direction=direction.value,
            amount=amount,
            ref=ref,
            title=title,
            balance_after=user.balance,
            created_at=utc_now(),
        )
        self.store.transactions.append(tx)
        return copy.deepcopy(tx)


class FakeAuditLog:
    def __init__(self, store: Store) -> None:
        self.store = store
        self.fail = False

    async def write(
        self,
        db: Any,
        event_type: ReservationEventType,
        reservation_id: str,
        payload: dict[str, Any],
    ) -> None:
        if self.fail:
            raise RuntimeError("audit table unavailable")
        self.store.events.append((event_type.value, reservation_id, copy.deepcopy(payload)))


class FakeSink:
    def __init__(self) -> None:
        self.published: list[NotificationEvent] = []
        self.fail = False
        self.delay = 0.0

    async def publish(self, event: NotificationEvent) -> None:
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.fail:
            raise ConnectionError("redis down")
        self.published.append(event)


class Canteen:
    """A wired engine over an in-memory store."""

    def __init__(self) -> None:
        self.store = Store()
        self.reservations = FakeReservationRepository(self.store)
        self.catalog = FakeCatalog(self.store)
        self.users = FakeUserDirectory(self.store)
        self.wallet = FakeWalletRepository(self.store)
        self.audit = FakeAuditLog(self.store)
        self.sink = FakeSink()
        self.engine = ReservationEngine(
            reservations=self.reservations,
            catalog=self.catalog,
            users=self.users,
            ledger=WalletLedger(self.wallet),
            audit=self.audit,
            sink=self.sink,
            notify_timeout=0.05,
        )
        self.store.checkpoint()

    def session(self) -> FakeSession:
        return FakeSession(self.store)

    def add_user(
        self, user_id: str, name: str, balance: int, email: str = "", role: str = "student"
    ) -> WalletUser:
        user = WalletUser(
            id=user_id,
            name=name,
            email=email or f"{user_id}@school.test",
            role=role,
            balance=balance,
        )
        self.store.users[user_id] = user
        self.store.checkpoint()
        return user

    def add_item(self, item_id: str, name: str, price: int, stock: int | None) -> MenuItem:
        item = MenuItem(id=item_id, name=name, category="Meals", price=price, stock=stock)
        self.store.menu[item_id] = item
        self.store.checkpoint()
        return item

    def balance(self, user_id: str) -> int:
        return self.store.users[user_id].balance

    def stock(self, item_id: str) -> int | None:
        return self.store.menu[item_id].stock

    def reservation(self, reservation_id: str) -> Reservation:
        return self.store.reservations[reservation_id]

    def transactions(self, direction: TransactionDirection | None = None) -> list[Transaction]:
        return [
            t for t in self.store.transactions
            if direction is None or t.direction == direction.value
        ]


@pytest.fixture
def canteen() -> Canteen:
    return Canteen()


@pytest.fixture
def student() -> Actor:
    return Actor(user_id="U-1", name="Juan Dela Cruz", email="juan@school.test")


@pytest.fixture
def admin() -> Actor:
    return Actor(user_id="U-ADMIN", name="Canteen Staff", role="admin")
