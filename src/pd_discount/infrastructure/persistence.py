# src/pd_discount/infrastructure/persistence.py
"""DiscountRepository: raw SQL persistence implementation.

The usage increment is a single conditional UPDATE ... RETURNING: it only
succeeds while the code is active and under its cap, so two concurrent
redemptions can never push usage_count past max_usage.
"""
from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.pd_common.errors import InternalError
from src.pd_common.money import to_money
from src.pd_discount.domain.models import Discount

# ---------------------------------------------------------------------------
# SQL statements
# ---------------------------------------------------------------------------

_COLUMNS = """
    discount_id, code, balance, is_full_discount, status, description,
    usage_count, max_usage, min_amount, created_at
"""

_INSERT_DISCOUNT_SQL = text(f"""
    INSERT INTO discounts (discount_id, code, balance, is_full_discount, status,
        description, usage_count, max_usage, min_amount, created_at)
    VALUES (:discount_id, :code, :balance, :is_full_discount, :status,
        :description, 0, :max_usage, :min_amount, :created_at)
    RETURNING {_COLUMNS}
""")

_GET_BY_ID_SQL = text(f"SELECT {_COLUMNS} FROM discounts WHERE discount_id = :discount_id")

_GET_BY_CODE_SQL = text(f"SELECT {_COLUMNS} FROM discounts WHERE code = :code")

_LIST_RECENT_SQL = text(f"""
    SELECT {_COLUMNS}
    FROM discounts
    ORDER BY created_at DESC, discount_id DESC
    LIMIT :limit
""")

_INCREMENT_USAGE_SQL = text(f"""
    UPDATE discounts
    SET usage_count = usage_count + 1
    WHERE discount_id = :discount_id
      AND status = 'active'
      AND (max_usage IS NULL OR usage_count < max_usage)
    RETURNING {_COLUMNS}
""")

_UPDATE_STATUS_SQL = text(f"""
    UPDATE discounts
    SET status = :status
    WHERE discount_id = :discount_id
    RETURNING {_COLUMNS}
""")

_COUNT_SQL = text("SELECT COUNT(*) FROM discounts")


# ---------------------------------------------------------------------------
# Row mapper
# ---------------------------------------------------------------------------


def _row_to_discount(row: Any) -> Discount:
    """Convert a DB result row to a Discount domain object."""
    return Discount(
        id=row.discount_id,
        code=row.code,
        balance=to_money(row.balance),
        is_full_discount=bool(row.is_full_discount),
        status=row.status,
        description=row.description or "",
        usage_count=row.usage_count,
        max_usage=row.max_usage,
        min_amount=to_money(row.min_amount) if row.min_amount is not None else None,
        created_at=row.created_at,
    )


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class DiscountRepository:
    """Concrete implementation of DiscountRepositoryProtocol using raw SQL."""

    async def save(self, discount: Discount, db: AsyncSession) -> Discount:
        result = await db.execute(
            _INSERT_DISCOUNT_SQL,
            {
                "discount_id": discount.id,
                "code": discount.code,
                "balance": discount.balance,
                "is_full_discount": discount.is_full_discount,
                "status": discount.status,
                "description": discount.description,
                "max_usage": discount.max_usage,
                "min_amount": discount.min_amount,
                "created_at": discount.created_at,
            },
        )
        row = result.fetchone()
        if row is None:
            raise InternalError("Discount insert returned no rows")
        return _row_to_discount(row)

    async def get_by_id(self, discount_id: str, db: AsyncSession) -> Discount | None:
        result = await db.execute(_GET_BY_ID_SQL, {"discount_id": discount_id})
        row = result.fetchone()
        return _row_to_discount(row) if row else None

    async def get_by_code(self, code: str, db: AsyncSession) -> Discount | None:
        result = await db.execute(_GET_BY_CODE_SQL, {"code": code})
        row = result.fetchone()
        return _row_to_discount(row) if row else None

    async def list_recent(self, limit: int, db: AsyncSession) -> list[Discount]:
        result = await db.execute(_LIST_RECENT_SQL, {"limit": limit})
        return [_row_to_discount(row) for row in result.fetchall()]

    async def increment_usage(self, discount_id: str, db: AsyncSession) -> Discount | None:
        """Returns None when the code is no longer redeemable."""
        result = await db.execute(_INCREMENT_USAGE_SQL, {"discount_id": discount_id})
        row = result.fetchone()
        return _row_to_discount(row) if row else None

    async def update_status(
        self, discount_id: str, status: str, db: AsyncSession
    ) -> Discount | None:
        result = await db.execute(
            _UPDATE_STATUS_SQL, {"discount_id": discount_id, "status": status}
        )
        row = result.fetchone()
        return _row_to_discount(row) if row else None

    async def count(self, db: AsyncSession) -> int:
        result = await db.execute(_COUNT_SQL)
        return int(result.scalar_one())
