"""005: create metal_prices and gold_price_snapshots tables

Revision ID: 005
Revises: 004
Create Date: 2026-10-19
"""
from typing import Sequence, Union
from alembic import op

revision: str = "005"
down_revision: Union[str, None] = "004"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE metal_prices (
            id                      BIGSERIAL       PRIMARY KEY,
            metal_type              VARCHAR(16)     NOT NULL,
            buy_price_per_gram      BIGINT          NOT NULL,
            sell_price_per_gram     BIGINT          NOT NULL,
            buy_price_per_ounce     BIGINT          NOT NULL,
            sell_price_per_ounce    BIGINT          NOT NULL,
            source                  VARCHAR(32)     NOT NULL DEFAULT 'manual',
            created_at              TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_metal_prices_type CHECK (metal_type IN ('gold', 'silver')),
            CONSTRAINT ck_metal_prices_positive CHECK (sell_price_per_gram > 0),
            CONSTRAINT ck_metal_prices_spread CHECK (sell_price_per_gram < buy_price_per_gram)
        );
    """)
    op.execute(
        "CREATE INDEX idx_metal_prices_latest ON metal_prices (metal_type, created_at DESC);"
    )

    op.execute("""
        CREATE TABLE gold_price_snapshots (
            id                  VARCHAR(64)     PRIMARY KEY DEFAULT gen_random_uuid()::text,
            user_id             VARCHAR(64)     NOT NULL,
            metal_type          VARCHAR(16)     NOT NULL DEFAULT 'gold',
            buy_price_gram      BIGINT          NOT NULL,
            sell_price_gram     BIGINT          NOT NULL,
            currency            VARCHAR(3)      NOT NULL DEFAULT 'EGP',
            source              VARCHAR(32)     NOT NULL,
            valid_until         TIMESTAMPTZ     NOT NULL,
            created_at          TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_snapshots_type CHECK (metal_type IN ('gold', 'silver'))
        );
    """)
    op.execute("COMMENT ON TABLE gold_price_snapshots IS 'Prices frozen for one buy or sell request';")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS gold_price_snapshots CASCADE;")
    op.execute("DROP TABLE IF EXISTS metal_prices CASCADE;")
