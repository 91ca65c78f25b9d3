"""002: create locations, stands and boxes tables

Revision ID: 002
Revises: 001
Create Date: 2026-10-18
"""
from typing import Sequence, Union
from alembic import op

revision: str = "002"
down_revision: Union[str, None] = "001"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE locations (
            id              VARCHAR(64)     PRIMARY KEY,
            name            VARCHAR(200)    NOT NULL,
            created_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW()
        );
    """)
    op.execute("""
        CREATE TABLE stands (
            id              VARCHAR(64)     PRIMARY KEY,
            location_id     VARCHAR(64)     NOT NULL REFERENCES locations (id),
            operator_id     VARCHAR(64)     NOT NULL,
            name            VARCHAR(200)    NOT NULL,
            created_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW()
        );
    """)
    op.execute("CREATE INDEX idx_stands_location ON stands (location_id);")
    op.execute("""
        CREATE TABLE boxes (
            id              VARCHAR(64)     PRIMARY KEY,
            stand_id        VARCHAR(64)     NOT NULL REFERENCES stands (id),
            display_id      VARCHAR(32)     NOT NULL,
            model           VARCHAR(20)     NOT NULL,
            status          VARCHAR(20)     NOT NULL DEFAULT 'ACTIVE',
            score           BIGINT          NOT NULL DEFAULT 0,
            created_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT uq_boxes_stand_display   UNIQUE (stand_id, display_id),
            CONSTRAINT ck_boxes_model           CHECK (model IN ('CLASSIC', 'PRO')),
            CONSTRAINT ck_boxes_status          CHECK (status IN ('ACTIVE', 'MAINTENANCE', 'INACTIVE'))
        );
    """)
    # Ranked listing reads active boxes of a stand in score order
    op.execute("""
        CREATE INDEX idx_boxes_stand_score
        ON boxes (stand_id, score, display_id)
        WHERE status = 'ACTIVE';
    """)
    for table in ("locations", "stands", "boxes"):
        op.execute(f"""
            CREATE TRIGGER trg_{table}_updated_at
                BEFORE UPDATE ON {table}
                FOR EACH ROW EXECUTE FUNCTION fn_update_timestamp();
        """)
    op.execute("COMMENT ON COLUMN boxes.score IS 'Utilization score: booked hours, net of cancellations';")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS boxes CASCADE;")
    op.execute("DROP TABLE IF EXISTS stands CASCADE;")
    op.execute("DROP TABLE IF EXISTS locations CASCADE;")
