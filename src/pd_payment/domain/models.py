"""Payment domain models: pure dataclasses, no business logic."""
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal


@dataclass
class PaymentRecord:
    """Append-only trace of one successful settlement.

    paid_amount + discount_amount == amount always holds.
    """

    id: str
    payment_id: str
    order_id: str
    user_id: str
    amount: Decimal
    paid_amount: Decimal
    discount_amount: Decimal
    payment_method: str
    discount_id: str = ""  # "" when no discount was applied
    discount_code: str = ""
    order_description: str = ""
    paid_at: datetime | None = None


@dataclass(frozen=True)
class GatewayCharge:
    """Outcome of one call to the payment gateway."""

    charge_id: str
    succeeded: bool
    amount: Decimal
    payment_method: str
