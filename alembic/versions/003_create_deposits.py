"""003: create deposits table

Revision ID: 003
Revises: 002
Create Date: 2026-10-19
"""
from typing import Sequence, Union
from alembic import op

revision: str = "003"
down_revision: Union[str, None] = "002"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE deposits (
            id                  VARCHAR(64)     PRIMARY KEY DEFAULT gen_random_uuid()::text,
            user_id             VARCHAR(64)     NOT NULL,
            amount              BIGINT          NOT NULL,
            status              VARCHAR(16)     NOT NULL DEFAULT 'pending',
            payment_method      VARCHAR(64),
            provider            VARCHAR(32),
            payment_proof_url   TEXT,
            idempotency_key     VARCHAR(64),
            notes               TEXT,
            approved_at         TIMESTAMPTZ,
            created_at          TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at          TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_deposits_amount_positive CHECK (amount > 0),
            CONSTRAINT ck_deposits_status CHECK (status IN ('pending', 'approved', 'rejected')),
            CONSTRAINT uq_deposits_idempotency_key UNIQUE (idempotency_key)
        );
    """)
    op.execute("CREATE INDEX idx_deposits_user_created ON deposits (user_id, created_at DESC);")
    op.execute("CREATE INDEX idx_deposits_status ON deposits (status);")
    op.execute("""
        CREATE TRIGGER trg_deposits_updated_at
            BEFORE UPDATE ON deposits
            FOR EACH ROW EXECUTE FUNCTION fn_update_timestamp();
    """)
    op.execute("COMMENT ON COLUMN deposits.amount IS 'piastres (1/100 EGP)';")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS deposits CASCADE;")
