"""008: create goldsmiths table

Revision ID: 008
Revises: 007
Create Date: 2026-10-19
"""
from typing import Sequence, Union
from alembic import op

revision: str = "008"
down_revision: Union[str, None] = "007"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE goldsmiths (
            id              VARCHAR(64)     PRIMARY KEY DEFAULT gen_random_uuid()::text,
            user_id         VARCHAR(64)     NOT NULL,
            shop_name       VARCHAR(255)    NOT NULL,
            status          VARCHAR(16)     NOT NULL DEFAULT 'pending',
            admin_notes     TEXT,
            approved_at     TIMESTAMPTZ,
            created_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_goldsmiths_status
                CHECK (status IN ('pending', 'approved', 'rejected', 'suspended'))
        );
    """)
    op.execute("CREATE INDEX idx_goldsmiths_status ON goldsmiths (status, created_at DESC);")
    op.execute("""
        CREATE TRIGGER trg_goldsmiths_updated_at
            BEFORE UPDATE ON goldsmiths
            FOR EACH ROW EXECUTE FUNCTION fn_update_timestamp();
    """)


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS goldsmiths CASCADE;")
