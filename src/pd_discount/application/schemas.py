# src/pd_discount/application/schemas.py
"""Pydantic schemas for pd_discount requests and responses.

Amounts arrive as JSON numbers and are parsed into Decimal; responses render
them back as numbers (float) so the dashboard can do arithmetic on them.
"""
from decimal import Decimal
from typing import Annotated, Literal

from pydantic import BaseModel, Field, field_validator

from src.pd_common.datetime_utils import to_iso
from src.pd_common.money import to_money
from src.pd_discount.domain.models import Discount, DiscountBreakdown

PositiveAmount = Annotated[Decimal, Field(gt=0, max_digits=10, decimal_places=2)]
NonNegativeAmount = Annotated[Decimal, Field(ge=0, max_digits=10, decimal_places=2)]

MIN_CODE_LENGTH = 3
MAX_CODE_LENGTH = 100


class CreateDiscountRequest(BaseModel):
    code: str = Field(max_length=MAX_CODE_LENGTH)
    balance: NonNegativeAmount
    is_full_discount: bool = False
    description: str = ""
    max_usage: int | None = Field(default=None, ge=1)
    min_amount: NonNegativeAmount | None = None

    @field_validator("code")
    @classmethod
    def strip_and_check_length(cls, v: str) -> str:
        v = v.strip()
        if len(v) < MIN_CODE_LENGTH:
            raise ValueError(f"code must be at least {MIN_CODE_LENGTH} characters")
        return v


class ValidateDiscountRequest(BaseModel):
    code: str = Field(max_length=MAX_CODE_LENGTH)
    amount: PositiveAmount

    @field_validator("code")
    @classmethod
    def not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("code must not be blank")
        return v


class UpdateDiscountStatusRequest(BaseModel):
    status: Literal["active", "used", "expired", "disabled"]


class DiscountResponse(BaseModel):
    discount_id: str
    code: str
    balance: float
    is_full_discount: bool
    status: str
    description: str
    usage_count: int
    max_usage: int | None
    min_amount: float | None
    created_at: str | None

    @classmethod
    def from_domain(cls, d: Discount) -> "DiscountResponse":
        return cls(
            discount_id=d.id,
            code=d.code,
            balance=float(d.balance),
            is_full_discount=d.is_full_discount,
            status=d.status,
            description=d.description,
            usage_count=d.usage_count,
            max_usage=d.max_usage,
            min_amount=float(d.min_amount) if d.min_amount is not None else None,
            created_at=to_iso(d.created_at),
        )


class DiscountPreviewResponse(BaseModel):
    """Result of a validate-only call: what the order would cost with the code."""

    discount: DiscountResponse
    original_amount: float
    discount_amount: float
    final_amount: float
    savings: float

    @classmethod
    def build(cls, discount: Discount, breakdown: DiscountBreakdown) -> "DiscountPreviewResponse":
        return cls(
            discount=DiscountResponse.from_domain(discount),
            original_amount=float(to_money(breakdown.original_amount)),
            discount_amount=float(breakdown.discount_amount),
            final_amount=float(breakdown.final_amount),
            savings=float(breakdown.savings),
        )
