"""007: create activity_log table

Revision ID: 007
Revises: 006
Create Date: 2026-10-19
"""
from typing import Sequence, Union
from alembic import op

revision: str = "007"
down_revision: Union[str, None] = "006"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Append-only: no updated_at, no UPDATE trigger
    op.execute("""
        CREATE TABLE activity_log (
            id              BIGSERIAL       PRIMARY KEY,
            user_id         VARCHAR(64)     NOT NULL,
            action_type     VARCHAR(64)     NOT NULL,
            entity_type     VARCHAR(32)     NOT NULL,
            entity_id       VARCHAR(64),
            description     TEXT,
            metadata        JSONB           NOT NULL DEFAULT '{}'::jsonb,
            created_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW()
        );
    """)
    op.execute("CREATE INDEX idx_activity_log_created ON activity_log (created_at DESC);")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS activity_log CASCADE;")
