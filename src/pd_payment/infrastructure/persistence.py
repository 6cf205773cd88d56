# src/pd_payment/infrastructure/persistence.py
"""PaymentRecordRepository: append-only raw SQL persistence.

payment_records has no UPDATE or DELETE statement.
"""
from decimal import Decimal
from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.pd_common.errors import InternalError
from src.pd_common.money import ZERO, to_money
from src.pd_payment.domain.models import PaymentRecord

# ---------------------------------------------------------------------------
# SQL statements
# ---------------------------------------------------------------------------

_COLUMNS = """
    record_id, payment_id, order_id, amount, paid_amount, discount_amount,
    payment_method, user_id, discount_id, discount_code, order_description, paid_at
"""

_INSERT_RECORD_SQL = text(f"""
    INSERT INTO payment_records (record_id, payment_id, order_id, amount, paid_amount,
        discount_amount, payment_method, user_id, discount_id, discount_code,
        order_description, paid_at)
    VALUES (:record_id, :payment_id, :order_id, :amount, :paid_amount,
        :discount_amount, :payment_method, :user_id, :discount_id, :discount_code,
        :order_description, :paid_at)
    RETURNING {_COLUMNS}
""")

_LIST_RECORDS_SQL = text(f"""
    SELECT {_COLUMNS}
    FROM payment_records
    WHERE (CAST(:order_id AS TEXT) IS NULL OR order_id = :order_id)
      AND (CAST(:user_id AS TEXT) IS NULL OR user_id = :user_id)
    ORDER BY paid_at DESC, record_id DESC
    LIMIT :limit
""")

_TOTALS_SQL = text("""
    SELECT COUNT(*) AS total_payments, COALESCE(SUM(paid_amount), 0) AS total_revenue
    FROM payment_records
""")


# ---------------------------------------------------------------------------
# Row mapper
# ---------------------------------------------------------------------------


def _row_to_record(row: Any) -> PaymentRecord:
    return PaymentRecord(
        id=row.record_id,
        payment_id=row.payment_id,
        order_id=row.order_id,
        user_id=row.user_id,
        amount=to_money(row.amount),
        paid_amount=to_money(row.paid_amount),
        discount_amount=to_money(row.discount_amount),
        payment_method=row.payment_method,
        discount_id=row.discount_id,
        discount_code=row.discount_code,
        order_description=row.order_description or "",
        paid_at=row.paid_at,
    )


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class PaymentRecordRepository:
    async def append(self, record: PaymentRecord, db: AsyncSession) -> PaymentRecord:
        result = await db.execute(
            _INSERT_RECORD_SQL,
            {
                "record_id": record.id,
                "payment_id": record.payment_id,
                "order_id": record.order_id,
                "amount": record.amount,
                "paid_amount": record.paid_amount,
                "discount_amount": record.discount_amount,
                "payment_method": record.payment_method,
                "user_id": record.user_id,
                "discount_id": record.discount_id,
                "discount_code": record.discount_code,
                "order_description": record.order_description,
                "paid_at": record.paid_at,
            },
        )
        row = result.fetchone()
        if row is None:
            raise InternalError("Payment record insert returned no rows")
        return _row_to_record(row)

    async def list_recent(
        self,
        order_id: str | None,
        user_id: str | None,
        limit: int,
        db: AsyncSession,
    ) -> list[PaymentRecord]:
        result = await db.execute(
            _LIST_RECORDS_SQL, {"order_id": order_id, "user_id": user_id, "limit": limit}
        )
        return [_row_to_record(row) for row in result.fetchall()]

    async def totals(self, db: AsyncSession) -> tuple[int, Decimal]:
        """(number of payments, sum of paid_amount)."""
        row = (await db.execute(_TOTALS_SQL)).fetchone()
        if row is None:
            return 0, ZERO
        return int(row.total_payments), to_money(row.total_revenue)
