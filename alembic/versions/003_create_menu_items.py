"""003: create menu_items table

Revision ID: 003
Revises: 002
Create Date: 2026-10-17
"""
from typing import Sequence, Union
from alembic import op

revision: str = "003"
down_revision: Union[str, None] = "002"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE menu_items (
            id              VARCHAR(64)     PRIMARY KEY,
            name            VARCHAR(255)    NOT NULL,
            category        VARCHAR(64)     NOT NULL DEFAULT '',
            price           BIGINT          NOT NULL,
            stock           INTEGER,
            is_active       BOOLEAN         NOT NULL DEFAULT TRUE,
            created_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_menu_items_price CHECK (price >= 0),
            CONSTRAINT ck_menu_items_stock CHECK (stock IS NULL OR stock >= -1)
        );
    """)
    op.execute("""
        CREATE TRIGGER trg_menu_items_updated_at
            BEFORE UPDATE ON menu_items
            FOR EACH ROW EXECUTE FUNCTION fn_touch_updated_at();
    """)
    op.execute(
        "COMMENT ON COLUMN menu_items.stock IS 'NULL or -1 = untracked; otherwise units on hand';"
    )


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS menu_items CASCADE;")
