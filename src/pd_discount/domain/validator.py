"""Discount eligibility and amount computation: pure functions, no I/O.

Checks run in a fixed order and the first failure wins:
  exists -> status == active -> usage below cap -> order meets minimum.

Amount formula (applied the same way for full and fixed discounts):
  discount_amount = min(balance, order_amount)
  final_amount    = max(0, order_amount - discount_amount)
"""

from dataclasses import dataclass
from decimal import Decimal

from src.pd_common.enums import DiscountStatus
from src.pd_common.errors import RejectionReason
from src.pd_common.money import ZERO, to_money
from src.pd_discount.domain.models import Discount, DiscountBreakdown


@dataclass(frozen=True)
class DiscountValidation:
    """Either valid (discount set) or rejected (reason + message set)."""

    valid: bool
    discount: Discount | None = None
    reason: RejectionReason | None = None
    message: str = ""

    @classmethod
    def accept(cls, discount: Discount) -> "DiscountValidation":
        return cls(valid=True, discount=discount)

    @classmethod
    def reject(cls, reason: RejectionReason, message: str) -> "DiscountValidation":
        return cls(valid=False, reason=reason, message=message)


def check_eligibility(
    discount: Discount | None, code: str, order_amount: Decimal
) -> DiscountValidation:
    """Decide whether `discount` (looked up by `code`) can be redeemed.

    Never mutates the discount: usage is only counted on redemption.
    """
    if discount is None:
        return DiscountValidation.reject(
            RejectionReason.NOT_FOUND, f"Discount code does not exist: {code}"
        )
    if discount.status != DiscountStatus.ACTIVE:
        return DiscountValidation.reject(
            RejectionReason.INACTIVE, f"Discount code is not active (status={discount.status})"
        )
    if discount.is_exhausted:
        return DiscountValidation.reject(
            RejectionReason.USAGE_EXCEEDED,
            f"Discount code usage limit reached ({discount.usage_count}/{discount.max_usage})",
        )
    if discount.min_amount is not None and order_amount < discount.min_amount:
        return DiscountValidation.reject(
            RejectionReason.BELOW_MINIMUM,
            f"Order amount must be at least {discount.min_amount} to use this code",
        )
    return DiscountValidation.accept(discount)


def compute_breakdown(discount: Discount | None, order_amount: Decimal) -> DiscountBreakdown:
    """Split `order_amount` into discount and amount still to pay.

    With no discount the whole amount is due. is_full_discount does not
    change the formula.
    """
    original = to_money(order_amount)
    if discount is None:
        return DiscountBreakdown(original_amount=original, discount_amount=ZERO, final_amount=original)
    discount_amount = min(to_money(discount.balance), original)
    final_amount = max(ZERO, original - discount_amount)
    return DiscountBreakdown(
        original_amount=original,
        discount_amount=discount_amount,
        final_amount=final_amount,
    )
