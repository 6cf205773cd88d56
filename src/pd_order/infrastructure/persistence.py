# src/pd_order/infrastructure/persistence.py
"""OrderRepository: raw SQL persistence implementation.

Status transitions out of 'pending' are compare-and-set updates
(WHERE status = 'pending'); None back means another request got there first.
"""
from decimal import Decimal
from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.pd_common.datetime_utils import utc_now
from src.pd_common.errors import InternalError
from src.pd_common.money import to_money
from src.pd_order.domain.models import Order

# ---------------------------------------------------------------------------
# SQL statements
# ---------------------------------------------------------------------------

_COLUMNS = """
    order_id, payment_id, amount, balance, status, payment_method,
    description, user_id, created_at, updated_at
"""

# Columns a partial update may touch; keys double as bind parameter names
UPDATABLE_COLUMNS = ("status", "payment_method", "description", "balance")

_INSERT_ORDER_SQL = text(f"""
    INSERT INTO orders (order_id, payment_id, amount, balance, status,
        payment_method, description, user_id, created_at)
    VALUES (:order_id, :payment_id, :amount, :balance, :status,
        :payment_method, :description, :user_id, :created_at)
    RETURNING {_COLUMNS}
""")

_GET_ORDER_BY_ID_SQL = text(f"SELECT {_COLUMNS} FROM orders WHERE order_id = :order_id")

_MARK_PAID_SQL = text(f"""
    UPDATE orders
    SET status = 'paid', payment_method = :payment_method,
        balance = :balance, updated_at = :updated_at
    WHERE order_id = :order_id AND status = 'pending'
    RETURNING {_COLUMNS}
""")

_CANCEL_SQL = text(f"""
    UPDATE orders
    SET status = 'cancelled', updated_at = :updated_at
    WHERE order_id = :order_id AND status = 'pending'
    RETURNING {_COLUMNS}
""")

_LIST_ORDERS_SQL = text(f"""
    SELECT {_COLUMNS}
    FROM orders
    WHERE (CAST(:user_id AS TEXT) IS NULL OR user_id = :user_id)
    ORDER BY created_at DESC, order_id DESC
    LIMIT :limit
""")

_COUNT_SQL = text("SELECT COUNT(*) FROM orders")


def _build_update_sql(columns: list[str]) -> Any:
    assignments = ", ".join(f"{col} = :{col}" for col in columns)
    return text(f"""
        UPDATE orders
        SET {assignments}, updated_at = :updated_at
        WHERE order_id = :order_id AND status = 'pending'
        RETURNING {_COLUMNS}
    """)


# ---------------------------------------------------------------------------
# Row mapper
# ---------------------------------------------------------------------------


def _row_to_order(row: Any) -> Order:
    """Convert a DB result row to an Order domain object."""
    return Order(
        id=row.order_id,
        payment_id=row.payment_id,
        user_id=row.user_id,
        amount=to_money(row.amount),
        balance=to_money(row.balance),
        status=row.status,
        payment_method=row.payment_method,
        description=row.description or "",
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class OrderRepository:
    """Concrete implementation of OrderRepositoryProtocol using raw SQL."""

    async def save(self, order: Order, db: AsyncSession) -> Order:
        result = await db.execute(
            _INSERT_ORDER_SQL,
            {
                "order_id": order.id,
                "payment_id": order.payment_id,
                "amount": order.amount,
                "balance": order.balance,
                "status": order.status,
                "payment_method": order.payment_method,
                "description": order.description,
                "user_id": order.user_id,
                "created_at": order.created_at,
            },
        )
        row = result.fetchone()
        if row is None:
            raise InternalError("Order insert returned no rows")
        return _row_to_order(row)

    async def get_by_id(self, order_id: str, db: AsyncSession) -> Order | None:
        result = await db.execute(_GET_ORDER_BY_ID_SQL, {"order_id": order_id})
        row = result.fetchone()
        return _row_to_order(row) if row else None

    async def update_fields_if_pending(
        self, order_id: str, fields: dict[str, Any], db: AsyncSession
    ) -> Order | None:
        """Merge `fields` into a pending row; absent keys stay untouched.

        None back means the order is missing or already terminal.
        """
        columns = [col for col in UPDATABLE_COLUMNS if col in fields]
        unknown = set(fields) - set(UPDATABLE_COLUMNS)
        if unknown:
            raise ValueError(f"Not updatable: {sorted(unknown)}")
        if not columns:
            return await self.get_by_id(order_id, db)
        params = {col: fields[col] for col in columns}
        params.update({"order_id": order_id, "updated_at": utc_now()})
        result = await db.execute(_build_update_sql(columns), params)
        row = result.fetchone()
        return _row_to_order(row) if row else None

    async def mark_paid_if_pending(
        self,
        order_id: str,
        payment_method: str,
        balance: Decimal,
        db: AsyncSession,
    ) -> Order | None:
        result = await db.execute(
            _MARK_PAID_SQL,
            {
                "order_id": order_id,
                "payment_method": payment_method,
                "balance": balance,
                "updated_at": utc_now(),
            },
        )
        row = result.fetchone()
        return _row_to_order(row) if row else None

    async def cancel_if_pending(self, order_id: str, db: AsyncSession) -> Order | None:
        result = await db.execute(
            _CANCEL_SQL, {"order_id": order_id, "updated_at": utc_now()}
        )
        row = result.fetchone()
        return _row_to_order(row) if row else None

    async def list_recent(
        self, user_id: str | None, limit: int, db: AsyncSession
    ) -> list[Order]:
        result = await db.execute(_LIST_ORDERS_SQL, {"user_id": user_id, "limit": limit})
        return [_row_to_order(row) for row in result.fetchall()]

    async def count(self, db: AsyncSession) -> int:
        result = await db.execute(_COUNT_SQL)
        return int(result.scalar_one())
