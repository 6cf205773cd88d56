"""001: create orders table

Revision ID: 001
Revises:
Create Date: 2026-10-18
"""
from typing import Sequence, Union
from alembic import op

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE IF NOT EXISTS orders (
            order_id        VARCHAR(50)     PRIMARY KEY,
            payment_id      VARCHAR(50)     NOT NULL,
            amount          NUMERIC(10, 2)  NOT NULL,
            balance         NUMERIC(10, 2)  NOT NULL,
            status          VARCHAR(20)     NOT NULL DEFAULT 'pending',
            payment_method  VARCHAR(50)     NOT NULL DEFAULT 'pending',
            description     TEXT,
            user_id         VARCHAR(50)     NOT NULL,
            created_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at      TIMESTAMPTZ,
            CONSTRAINT ck_orders_amount_gt_0    CHECK (amount > 0),
            CONSTRAINT ck_orders_balance_gte_0  CHECK (balance >= 0),
            CONSTRAINT ck_orders_status         CHECK (status IN ('pending', 'paid', 'cancelled'))
        );
    """)
    op.execute("CREATE INDEX IF NOT EXISTS ix_orders_status ON orders (status);")
    op.execute("CREATE INDEX IF NOT EXISTS ix_orders_user_id ON orders (user_id);")
    op.execute("CREATE INDEX IF NOT EXISTS ix_orders_created_at ON orders (created_at);")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS orders;")
