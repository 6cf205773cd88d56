# src/pd_payment/infrastructure/db_models.py
"""SQLAlchemy ORM model for the payment_records table (DDL only; queries use raw SQL)."""
from datetime import datetime
from decimal import Decimal

from sqlalchemy import CheckConstraint, DateTime, Numeric, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from src.pd_common.database import Base


class PaymentRecordORM(Base):
    __tablename__ = "payment_records"
    __table_args__ = (
        CheckConstraint(
            "paid_amount + discount_amount = amount", name="ck_payment_records_conservation"
        ),
        CheckConstraint("paid_amount >= 0", name="ck_payment_records_paid_gte_0"),
        CheckConstraint("discount_amount >= 0", name="ck_payment_records_discount_gte_0"),
    )

    record_id: Mapped[str] = mapped_column(String(50), primary_key=True)
    payment_id: Mapped[str] = mapped_column(String(50), nullable=False)
    order_id: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    amount: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    paid_amount: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    discount_amount: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    payment_method: Mapped[str] = mapped_column(String(50), nullable=False)
    user_id: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    discount_id: Mapped[str] = mapped_column(String(50), nullable=False, default="")
    discount_code: Mapped[str] = mapped_column(String(100), nullable=False, default="")
    order_description: Mapped[str | None] = mapped_column(Text, nullable=True)
    paid_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), index=True
    )
