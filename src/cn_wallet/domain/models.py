"""Domain models for cn_wallet: pure dataclasses, no SQLAlchemy dependency."""

from dataclasses import dataclass
from datetime import datetime


@dataclass
class WalletUser:
    id: str
    name: str
    email: str
    role: str
    balance: int        # centavos, never negative
    version: int = 0
    created_at: datetime | None = None
    updated_at: datetime | None = None

    def identities(self) -> set[str]:
        """Lower-cased name/email/id, for legacy student-field matching."""
        return {
            v.strip().lower()
            for v in (self.name, self.email, self.id)
            if v and v.strip()
        }


@dataclass
class Transaction:
    id: str
    user_id: str
    direction: str          # TransactionDirection value
    amount: int             # centavos, always positive
    ref: str                # reservation id
    title: str
    status: str = "Success"
    balance_after: int | None = None
    created_at: datetime | None = None
    # NOTE: no updated_at, wallet_transactions is append-only
