# src/pd_payment/application/schemas.py
from pydantic import BaseModel, Field, field_validator

from src.pd_common.datetime_utils import to_iso
from src.pd_discount.application.schemas import DiscountResponse
from src.pd_order.application.schemas import OrderResponse
from src.pd_payment.domain.models import PaymentRecord


class SettlePaymentRequest(BaseModel):
    order_id: str = Field(max_length=50)
    payment_method: str = Field(max_length=50)  # alipay / wechat / bank / any other label
    user_id: str = Field(max_length=50)
    discount_code: str | None = Field(default=None, max_length=100)

    @field_validator("order_id", "payment_method", "user_id")
    @classmethod
    def required_not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("must not be blank")
        return v

    @field_validator("discount_code")
    @classmethod
    def blank_code_means_none(cls, v: str | None) -> str | None:
        if v is None:
            return None
        v = v.strip()
        return v or None


class PaymentRecordResponse(BaseModel):
    record_id: str
    payment_id: str
    order_id: str
    user_id: str
    amount: float
    paid_amount: float
    discount_amount: float
    payment_method: str
    discount_id: str
    discount_code: str
    order_description: str
    paid_at: str | None

    @classmethod
    def from_domain(cls, r: PaymentRecord) -> "PaymentRecordResponse":
        return cls(
            record_id=r.id,
            payment_id=r.payment_id,
            order_id=r.order_id,
            user_id=r.user_id,
            amount=float(r.amount),
            paid_amount=float(r.paid_amount),
            discount_amount=float(r.discount_amount),
            payment_method=r.payment_method,
            discount_id=r.discount_id,
            discount_code=r.discount_code,
            order_description=r.order_description,
            paid_at=to_iso(r.paid_at),
        )


class SettlementResponse(BaseModel):
    order: OrderResponse
    payment_record: PaymentRecordResponse
    discount: DiscountResponse | None
    original_amount: float
    discount_amount: float
    final_amount: float
    savings: float
