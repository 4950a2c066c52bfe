"""004: create withdrawals table

Revision ID: 004
Revises: 003
Create Date: 2026-10-19
"""
from typing import Sequence, Union
from alembic import op

revision: str = "004"
down_revision: Union[str, None] = "003"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # net_amount, fee_percentage_bps and fee_amount are written by the
    # approve_withdrawal_request procedure, never by this application
    op.execute("""
        CREATE TABLE withdrawals (
            id                  VARCHAR(64)     PRIMARY KEY DEFAULT gen_random_uuid()::text,
            user_id             VARCHAR(64)     NOT NULL,
            withdrawal_type     VARCHAR(16)     NOT NULL DEFAULT 'gold',
            grams_mg            BIGINT          NOT NULL,
            amount              BIGINT          NOT NULL,
            net_amount          BIGINT,
            fee_percentage_bps  INTEGER,
            fee_amount          BIGINT,
            status              VARCHAR(16)     NOT NULL DEFAULT 'pending',
            notes               TEXT,
            proof_image_url     TEXT,
            processed_at        TIMESTAMPTZ,
            created_at          TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at          TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_withdrawals_grams_positive CHECK (grams_mg > 0),
            CONSTRAINT ck_withdrawals_amount_non_negative CHECK (amount >= 0),
            CONSTRAINT ck_withdrawals_net_le_amount CHECK (net_amount IS NULL OR net_amount <= amount),
            CONSTRAINT ck_withdrawals_type CHECK (withdrawal_type IN ('gold', 'silver')),
            CONSTRAINT ck_withdrawals_status CHECK (status IN ('pending', 'completed', 'rejected'))
        );
    """)
    op.execute("CREATE INDEX idx_withdrawals_user_created ON withdrawals (user_id, created_at DESC);")
    op.execute("CREATE INDEX idx_withdrawals_status ON withdrawals (status);")
    op.execute("""
        CREATE TRIGGER trg_withdrawals_updated_at
            BEFORE UPDATE ON withdrawals
            FOR EACH ROW EXECUTE FUNCTION fn_update_timestamp();
    """)


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS withdrawals CASCADE;")
