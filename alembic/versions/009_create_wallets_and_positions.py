"""009: create wallet_accounts and gold_positions tables

Revision ID: 009
Revises: 008
Create Date: 2026-10-19
"""
from typing import Sequence, Union
from alembic import op

revision: str = "009"
down_revision: Union[str, None] = "008"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE wallet_accounts (
            user_id             VARCHAR(64)     PRIMARY KEY,
            available_balance   BIGINT          NOT NULL DEFAULT 0,
            locked_balance      BIGINT          NOT NULL DEFAULT 0,
            currency            VARCHAR(3)      NOT NULL DEFAULT 'EGP',
            created_at          TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at          TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_wallet_available_non_negative CHECK (available_balance >= 0),
            CONSTRAINT ck_wallet_locked_non_negative CHECK (locked_balance >= 0)
        );
    """)
    op.execute("""
        CREATE TRIGGER trg_wallet_accounts_updated_at
            BEFORE UPDATE ON wallet_accounts
            FOR EACH ROW EXECUTE FUNCTION fn_update_timestamp();
    """)

    op.execute("""
        CREATE TABLE gold_positions (
            id              VARCHAR(64)     PRIMARY KEY DEFAULT gen_random_uuid()::text,
            user_id         VARCHAR(64)     NOT NULL,
            metal_type      VARCHAR(16)     NOT NULL DEFAULT 'gold',
            grams_mg        BIGINT          NOT NULL,
            buy_amount      BIGINT          NOT NULL,
            buy_price_ask   BIGINT          NOT NULL,
            duration_days   INT,
            snapshot_id     VARCHAR(64)     REFERENCES gold_price_snapshots(id),
            status          VARCHAR(16)     NOT NULL DEFAULT 'pending',
            lock_until      TIMESTAMPTZ,
            created_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_positions_type CHECK (metal_type IN ('gold', 'silver')),
            CONSTRAINT ck_positions_grams_positive CHECK (grams_mg > 0),
            CONSTRAINT ck_positions_status
                CHECK (status IN ('pending', 'active', 'selling', 'sold'))
        );
    """)
    op.execute(
        "CREATE INDEX idx_positions_user_status ON gold_positions (user_id, status, created_at DESC);"
    )
    op.execute("CREATE INDEX idx_positions_status ON gold_positions (status, created_at DESC);")
    op.execute("""
        CREATE TRIGGER trg_gold_positions_updated_at
            BEFORE UPDATE ON gold_positions
            FOR EACH ROW EXECUTE FUNCTION fn_update_timestamp();
    """)


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS gold_positions CASCADE;")
    op.execute("DROP TABLE IF EXISTS wallet_accounts CASCADE;")
