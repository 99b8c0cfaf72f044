"""Pydantic schemas and cursor utilities for cn_wallet API."""

import base64
import json

from pydantic import BaseModel

from src.cn_common.centavos import centavos_to_display
from src.cn_common.datetime_utils import to_iso
from src.cn_wallet.domain.models import Transaction

# ---------------------------------------------------------------------------
# Cursor-based pagination utilities
# ---------------------------------------------------------------------------


def cursor_encode(last_id: str) -> str:
    """Encode the last seen transaction id into an opaque Base64 cursor string."""
    payload = json.dumps({"id": last_id})
    return base64.b64encode(payload.encode()).decode()


def cursor_decode(cursor: str | None) -> str | None:
    """Decode a cursor string back to the last seen id. Returns None on error."""
    if cursor is None:
        return None
    try:
        payload = json.loads(base64.b64decode(cursor.encode()).decode())
        return str(payload["id"])
    except Exception:
        return None


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class WalletResponse(BaseModel):
    user_id: str
    name: str
    email: str
    balance_centavos: int
    balance_display: str


class TransactionItem(BaseModel):
    id: str
    direction: str
    title: str
    ref: str
    status: str
    amount_centavos: int
    amount_display: str
    balance_after_centavos: int | None
    created_at: str | None

    @classmethod
    def from_domain(cls, tx: Transaction) -> "TransactionItem":
        return cls(
            id=tx.id,
            direction=tx.direction,
            title=tx.title,
            ref=tx.ref,
            status=tx.status,
            amount_centavos=tx.amount,
            amount_display=centavos_to_display(tx.amount),
            balance_after_centavos=tx.balance_after,
            created_at=to_iso(tx.created_at),
        )


class TransactionListResponse(BaseModel):
    items: list[TransactionItem]
    next_cursor: str | None
    has_more: bool
