"""002: create discounts table

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
        CREATE TABLE IF NOT EXISTS discounts (
            discount_id         VARCHAR(50)     PRIMARY KEY,
            code                VARCHAR(100)    NOT NULL,
            balance             NUMERIC(10, 2)  NOT NULL,
            is_full_discount    BOOLEAN         NOT NULL DEFAULT FALSE,
            status              VARCHAR(20)     NOT NULL DEFAULT 'active',
            description         TEXT,
            usage_count         INT             NOT NULL DEFAULT 0,
            max_usage           INT,
            min_amount          NUMERIC(10, 2),
            created_at          TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT discounts_code_key               UNIQUE (code),
            CONSTRAINT ck_discounts_balance_gte_0       CHECK (balance >= 0),
            CONSTRAINT ck_discounts_usage_count_gte_0   CHECK (usage_count >= 0),
            CONSTRAINT ck_discounts_status              CHECK (
                status IN ('active', 'used', 'expired', 'disabled')
            )
        );
    """)
    op.execute("CREATE INDEX IF NOT EXISTS ix_discounts_status ON discounts (status);")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS discounts;")
