"""005: create wallet_transactions table

Revision ID: 005
Revises: 004
Create Date: 2026-10-17
"""
from typing import Sequence, Union
from alembic import op

revision: str = "005"
down_revision: Union[str, None] = "004"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE wallet_transactions (
            id              VARCHAR(64)     PRIMARY KEY,
            user_id         VARCHAR(64)     NOT NULL REFERENCES users (id),
            direction       VARCHAR(10)     NOT NULL,
            amount          BIGINT          NOT NULL,
            ref             VARCHAR(64)     NOT NULL,
            title           VARCHAR(128)    NOT NULL DEFAULT '',
            status          VARCHAR(20)     NOT NULL DEFAULT 'Success',
            balance_after   BIGINT,
            created_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_wallet_tx_direction CHECK (direction IN ('debit', 'credit')),
            CONSTRAINT ck_wallet_tx_amount CHECK (amount > 0),
            CONSTRAINT uq_wallet_tx_ref_direction UNIQUE (ref, direction)
        );
    """)
    op.execute(
        "CREATE INDEX idx_wallet_tx_user ON wallet_transactions (user_id, id DESC);"
    )
    op.execute(
        "COMMENT ON TABLE wallet_transactions IS"
        " 'Wallet ledger, Append-Only: at most one debit and one credit per reservation';"
    )


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS wallet_transactions CASCADE;")
