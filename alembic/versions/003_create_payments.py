"""003: create payments table

Revision ID: 003
Revises: 002
Create Date: 2026-10-18
"""
from typing import Sequence, Union
from alembic import op

revision: str = "003"
down_revision: Union[str, None] = "002"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE payments (
            id              VARCHAR(64)     PRIMARY KEY,
            user_id         VARCHAR(64)     NOT NULL,
            amount          BIGINT          NOT NULL,
            currency        VARCHAR(3)      NOT NULL DEFAULT 'SEK',
            status          VARCHAR(20)     NOT NULL DEFAULT 'PENDING',
            charge_ref      VARCHAR(255),
            created_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_payments_amount   CHECK (amount >= 0),
            CONSTRAINT ck_payments_status   CHECK (
                status IN ('PENDING', 'COMPLETED', 'FAILED', 'REFUNDED')
            )
        );
    """)
    op.execute("CREATE INDEX idx_payments_user ON payments (user_id, created_at DESC);")
    op.execute("""
        CREATE TRIGGER trg_payments_updated_at
            BEFORE UPDATE ON payments
            FOR EACH ROW EXECUTE FUNCTION fn_update_timestamp();
    """)
    op.execute("COMMENT ON COLUMN payments.amount IS 'Minor units (öre)';")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS payments CASCADE;")
