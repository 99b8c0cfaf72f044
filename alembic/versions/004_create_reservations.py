"""004: create reservations table

Revision ID: 004
Revises: 003
Create Date: 2026-10-17
"""
from typing import Sequence, Union
from alembic import op

revision: str = "004"
down_revision: Union[str, None] = "003"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE reservations (
            id              VARCHAR(64)     PRIMARY KEY,
            user_id         VARCHAR(64),
            student         VARCHAR(255)    NOT NULL DEFAULT 'Student',
            grade           VARCHAR(64)     NOT NULL DEFAULT '',
            section         VARCHAR(64)     NOT NULL DEFAULT '',
            slot            VARCHAR(64)     NOT NULL,
            note            TEXT            NOT NULL DEFAULT '',
            items           JSONB           NOT NULL,
            total           BIGINT          NOT NULL,
            status          VARCHAR(20)     NOT NULL DEFAULT 'Pending',
            stock_deducted  BOOLEAN         NOT NULL DEFAULT FALSE,
            charged         BOOLEAN         NOT NULL DEFAULT FALSE,
            charged_at      TIMESTAMPTZ,
            transaction_id  VARCHAR(64),
            created_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_reservations_status CHECK (
                status IN ('Pending', 'Approved', 'Preparing', 'Ready', 'Claimed', 'Rejected')
            ),
            CONSTRAINT ck_reservations_total CHECK (total >= 0)
        );
    """)
    op.execute("CREATE UNIQUE INDEX uq_reservations_lower_id ON reservations (lower(id));")
    op.execute("CREATE INDEX idx_reservations_user ON reservations (user_id, created_at DESC);")
    op.execute(
        "CREATE INDEX idx_reservations_student ON reservations (lower(trim(student)))"
        " WHERE user_id IS NULL;"
    )
    op.execute("CREATE INDEX idx_reservations_status ON reservations (status, created_at DESC);")
    op.execute("""
        CREATE TRIGGER trg_reservations_updated_at
            BEFORE UPDATE ON reservations
            FOR EACH ROW EXECUTE FUNCTION fn_touch_updated_at();
    """)
    op.execute(
        "COMMENT ON COLUMN reservations.items IS"
        " 'Line snapshot [{item_id, name, unit_price, qty}] locked at order time';"
    )


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS reservations CASCADE;")
