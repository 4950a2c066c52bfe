"""006: create fee_rules table

Revision ID: 006
Revises: 005
Create Date: 2026-10-19
"""
from typing import Sequence, Union
from alembic import op

revision: str = "006"
down_revision: Union[str, None] = "005"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE fee_rules (
            fee_type        VARCHAR(32)     PRIMARY KEY,
            percent_bps     INTEGER         NOT NULL,
            created_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_fee_rules_bps CHECK (percent_bps BETWEEN 0 AND 10000)
        );
    """)
    op.execute("""
        CREATE TRIGGER trg_fee_rules_updated_at
            BEFORE UPDATE ON fee_rules
            FOR EACH ROW EXECUTE FUNCTION fn_update_timestamp();
    """)
    # Rules read by the withdrawal and sell procedures
    op.execute("""
        INSERT INTO fee_rules (fee_type, percent_bps) VALUES
            ('withdrawal', 150),
            ('sell', 100),
            ('buy', 0);
    """)


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS fee_rules CASCADE;")
