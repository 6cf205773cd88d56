# src/pd_order/application/schemas.py
from decimal import Decimal
from typing import Annotated, Literal

from pydantic import BaseModel, Field, field_validator

from src.pd_common.datetime_utils import to_iso
from src.pd_order.domain.models import Order

PositiveAmount = Annotated[Decimal, Field(gt=0, max_digits=10, decimal_places=2)]


class CreateOrderRequest(BaseModel):
    amount: PositiveAmount
    user_id: str = Field(max_length=50)
    description: str = ""

    @field_validator("user_id")
    @classmethod
    def user_id_not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("user_id must not be blank")
        return v


class UpdateOrderRequest(BaseModel):
    """Partial update: only fields present in the body are applied."""

    status: Literal["pending", "paid", "cancelled"] | None = None
    payment_method: str | None = Field(default=None, min_length=1, max_length=50)
    description: str | None = None


class OrderResponse(BaseModel):
    order_id: str
    payment_id: str
    user_id: str
    amount: float
    balance: float
    status: str
    payment_method: str
    description: str
    created_at: str | None = None
    updated_at: str | None = None

    @classmethod
    def from_domain(cls, o: Order) -> "OrderResponse":
        return cls(
            order_id=o.id,
            payment_id=o.payment_id,
            user_id=o.user_id,
            amount=float(o.amount),
            balance=float(o.balance),
            status=o.status,
            payment_method=o.payment_method,
            description=o.description,
            created_at=to_iso(o.created_at),
            updated_at=to_iso(o.updated_at),
        )
