"""Global enums: must match DB CHECK constraints exactly."""

from enum import Enum


class OrderStatus(str, Enum):
    PENDING = "pending"
    PAID = "paid"
    CANCELLED = "cancelled"


class DiscountStatus(str, Enum):
    ACTIVE = "active"
    USED = "used"
    EXPIRED = "expired"
    DISABLED = "disabled"


# Terminal order states: no further status change is accepted
TERMINAL_ORDER_STATUSES = frozenset({OrderStatus.PAID, OrderStatus.CANCELLED})
