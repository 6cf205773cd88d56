"""Discount domain model: pure dataclass, no SQLAlchemy dependency."""
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal


@dataclass
class Discount:
    id: str
    code: str  # case-sensitive, unique
    balance: Decimal  # monetary value of the discount, >= 0
    is_full_discount: bool = False
    status: str = "active"  # active / used / expired / disabled
    description: str = ""
    usage_count: int = 0
    max_usage: int | None = None
    min_amount: Decimal | None = None
    created_at: datetime | None = None

    @property
    def is_exhausted(self) -> bool:
        return self.max_usage is not None and self.usage_count >= self.max_usage


@dataclass(frozen=True)
class DiscountBreakdown:
    """How much of an order amount a discount covers."""

    original_amount: Decimal
    discount_amount: Decimal
    final_amount: Decimal

    @property
    def savings(self) -> Decimal:
        return self.discount_amount
