"""005: create notifications table

Revision ID: 005
Revises: 004
Create Date: 2026-10-18
"""
from typing import Sequence, Union
from alembic import op

revision: str = "005"
down_revision: Union[str, None] = "004"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE notifications (
            id              BIGSERIAL       PRIMARY KEY,
            recipient_id    VARCHAR(64)     NOT NULL,
            recipient_type  VARCHAR(20)     NOT NULL,
            booking_id      VARCHAR(64)     REFERENCES bookings (id),
            title           VARCHAR(200)    NOT NULL,
            message         TEXT            NOT NULL,
            is_read         BOOLEAN         NOT NULL DEFAULT FALSE,
            created_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_notifications_recipient_type CHECK (
                recipient_type IN ('CUSTOMER', 'OPERATOR')
            )
        );
    """)
    op.execute("""
        CREATE INDEX idx_notifications_recipient
        ON notifications (recipient_id, created_at DESC);
    """)


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS notifications CASCADE;")
