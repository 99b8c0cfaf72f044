"""006: create reservation_events table

Revision ID: 006
Revises: 005
Create Date: 2026-10-17
"""
from typing import Sequence, Union
from alembic import op

revision: str = "006"
down_revision: Union[str, None] = "005"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE reservation_events (
            id              BIGSERIAL       PRIMARY KEY,
            reservation_id  VARCHAR(64)     NOT NULL,
            event_type      VARCHAR(40)     NOT NULL,
            payload         JSONB           NOT NULL,
            created_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_reservation_event_type CHECK (
                event_type IN (
                    'RESERVATION_CREATED',
                    'RESERVATION_APPROVED',
                    'RESERVATION_REJECTED',
                    'RESERVATION_REFUNDED',
                    'RESERVATION_STATUS_CHANGED',
                    'STOCK_PROBLEM',
                    'INCONSISTENCY_DETECTED'
                )
            )
        );
    """)
    op.execute(
        "CREATE INDEX idx_reservation_events_res ON reservation_events (reservation_id, created_at);"
    )
    op.execute(
        "COMMENT ON TABLE reservation_events IS"
        " 'Reservation side-effect audit trail, Append-Only';"
    )


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS reservation_events CASCADE;")
