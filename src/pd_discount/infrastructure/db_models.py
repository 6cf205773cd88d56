# src/pd_discount/infrastructure/db_models.py
"""SQLAlchemy ORM model for the discounts table (DDL only; queries use raw SQL)."""
from datetime import datetime
from decimal import Decimal

from sqlalchemy import Boolean, CheckConstraint, DateTime, Integer, Numeric, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from src.pd_common.database import Base


class DiscountORM(Base):
    __tablename__ = "discounts"
    __table_args__ = (
        CheckConstraint("balance >= 0", name="ck_discounts_balance_gte_0"),
        CheckConstraint("usage_count >= 0", name="ck_discounts_usage_count_gte_0"),
        CheckConstraint(
            "status IN ('active', 'used', 'expired', 'disabled')", name="ck_discounts_status"
        ),
    )

    discount_id: Mapped[str] = mapped_column(String(50), primary_key=True)
    code: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    balance: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    is_full_discount: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="active", index=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    usage_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    max_usage: Mapped[int | None] = mapped_column(Integer, nullable=True)
    min_amount: Mapped[Decimal | None] = mapped_column(Numeric(10, 2), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
