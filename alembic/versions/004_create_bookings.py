"""004: create bookings table

Revision ID: 004
Revises: 003
Create Date: 2026-10-18
"""
from typing import Sequence, Union
from alembic import op

revision: str = "004"
down_revision: Union[str, None] = "003"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE bookings (
            id              VARCHAR(64)     PRIMARY KEY,
            box_id          VARCHAR(64)     NOT NULL REFERENCES boxes (id),
            payment_id      VARCHAR(64)     NOT NULL REFERENCES payments (id),
            start_date      TIMESTAMPTZ     NOT NULL,
            end_date        TIMESTAMPTZ     NOT NULL,
            status          VARCHAR(20)     NOT NULL DEFAULT 'PENDING',
            total_amount    BIGINT          NOT NULL,
            returned_at     TIMESTAMPTZ,
            extension_count INT             NOT NULL DEFAULT 0,
            created_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT uq_bookings_payment      UNIQUE (payment_id),
            CONSTRAINT ck_bookings_dates        CHECK (start_date <= end_date),
            CONSTRAINT ck_bookings_amount       CHECK (total_amount >= 0),
            CONSTRAINT ck_bookings_extensions   CHECK (extension_count >= 0),
            CONSTRAINT ck_bookings_status       CHECK (
                status IN ('PENDING', 'UPCOMING', 'ACTIVE', 'OVERDUE', 'COMPLETED', 'CANCELLED')
            )
        );
    """)
    # Blocked-range derivation only ever reads blocking statuses
    op.execute("""
        CREATE INDEX idx_bookings_box_blocking
        ON bookings (box_id, start_date)
        WHERE status IN ('PENDING', 'UPCOMING', 'ACTIVE', 'OVERDUE');
    """)
    op.execute("""
        CREATE INDEX idx_bookings_non_terminal
        ON bookings (start_date)
        WHERE status NOT IN ('COMPLETED', 'CANCELLED');
    """)
    op.execute("""
        CREATE TRIGGER trg_bookings_updated_at
            BEFORE UPDATE ON bookings
            FOR EACH ROW EXECUTE FUNCTION fn_update_timestamp();
    """)


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS bookings CASCADE;")
