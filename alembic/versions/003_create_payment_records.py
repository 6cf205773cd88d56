"""003: create payment_records table (append-only)

Revision ID: 003
Revises: 002
Create Date: 2026-10-18
"""
from typing import Sequence, Union
from alembic import op

revision: str = "003"
down_revision: Union[str, None] = "002"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE IF NOT EXISTS payment_records (
            record_id           VARCHAR(50)     PRIMARY KEY,
            payment_id          VARCHAR(50)     NOT NULL,
            order_id            VARCHAR(50)     NOT NULL,
            amount              NUMERIC(10, 2)  NOT NULL,
            paid_amount         NUMERIC(10, 2)  NOT NULL,
            discount_amount     NUMERIC(10, 2)  NOT NULL,
            payment_method      VARCHAR(50)     NOT NULL,
            user_id             VARCHAR(50)     NOT NULL,
            discount_id         VARCHAR(50)     NOT NULL DEFAULT '',
            discount_code       VARCHAR(100)    NOT NULL DEFAULT '',
            order_description   TEXT,
            paid_at             TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_payment_records_conservation      CHECK (paid_amount + discount_amount = amount),
            CONSTRAINT ck_payment_records_paid_gte_0        CHECK (paid_amount >= 0),
            CONSTRAINT ck_payment_records_discount_gte_0    CHECK (discount_amount >= 0)
        );
    """)
    op.execute("CREATE INDEX IF NOT EXISTS ix_payment_records_order_id ON payment_records (order_id);")
    op.execute("CREATE INDEX IF NOT EXISTS ix_payment_records_user_id ON payment_records (user_id);")
    op.execute("CREATE INDEX IF NOT EXISTS ix_payment_records_paid_at ON payment_records (paid_at);")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS payment_records;")
