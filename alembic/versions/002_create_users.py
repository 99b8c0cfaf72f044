"""002: create users table

Revision ID: 002
Revises: 001
Create Date: 2026-10-17
"""
from typing import Sequence, Union
from alembic import op

revision: str = "002"
down_revision: Union[str, None] = "001"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Accounts are issued by the school auth service; this table mirrors the
    # fields the canteen needs and holds the prepaid wallet balance.
    op.execute("""
        CREATE TABLE users (
            id              VARCHAR(64)     PRIMARY KEY,
            name            VARCHAR(255)    NOT NULL DEFAULT '',
            email           VARCHAR(255)    NOT NULL DEFAULT '',
            role            VARCHAR(20)     NOT NULL DEFAULT 'student',
            balance         BIGINT          NOT NULL DEFAULT 0,
            version         BIGINT          NOT NULL DEFAULT 0,
            created_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_users_balance_non_negative CHECK (balance >= 0)
        );
    """)
    op.execute("CREATE INDEX idx_users_lower_name ON users (lower(trim(name)));")
    op.execute("CREATE INDEX idx_users_lower_email ON users (lower(trim(email)));")
    op.execute("""
        CREATE TRIGGER trg_users_updated_at
            BEFORE UPDATE ON users
            FOR EACH ROW EXECUTE FUNCTION fn_touch_updated_at();
    """)
    op.execute("COMMENT ON TABLE users IS 'Wallet holders; balance in centavos';")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS users CASCADE;")
