"""Order domain model: pure dataclass, no SQLAlchemy dependency."""
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from src.pd_common.enums import TERMINAL_ORDER_STATUSES, OrderStatus


@dataclass
class Order:
    id: str
    payment_id: str  # reference carried onto the payment record
    user_id: str
    amount: Decimal  # original amount, > 0
    # Amount due while pending; amount actually settled once paid
    balance: Decimal
    status: str = OrderStatus.PENDING.value
    payment_method: str = "pending"
    description: str = ""
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def is_pending(self) -> bool:
        return self.status == OrderStatus.PENDING

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_ORDER_STATUSES
