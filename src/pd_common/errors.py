"""Unified error kinds, codes and custom exceptions.

Every failure the API can report belongs to exactly one ErrorKind; the
numeric code narrows it down further.

Error code ranges:
  1xxx: Order
  2xxx: Discount
  3xxx: Payment
  9xxx: Request / System
"""

from enum import Enum


class ErrorKind(str, Enum):
    NOT_FOUND = "NotFound"
    VALIDATION_ERROR = "ValidationError"
    INVALID_STATE = "InvalidState"
    FORBIDDEN = "Forbidden"
    DISCOUNT_REJECTED = "DiscountRejected"
    PAYMENT_FAILED = "PaymentFailed"
    CONFLICT = "Conflict"
    RATE_LIMITED = "RateLimited"
    INTERNAL = "Internal"


class RejectionReason(str, Enum):
    """Why a discount code cannot be redeemed."""

    NOT_FOUND = "NotFound"
    INACTIVE = "Inactive"
    USAGE_EXCEEDED = "UsageExceeded"
    BELOW_MINIMUM = "BelowMinimum"


class AppError(Exception):
    """Base application error."""

    def __init__(
        self,
        code: int,
        message: str,
        http_status: int = 500,
        kind: ErrorKind = ErrorKind.INTERNAL,
    ) -> None:
        self.code = code
        self.message = message
        self.http_status = http_status
        self.kind = kind
        super().__init__(message)


# --- 1xxx: Order ---

class OrderNotFoundError(AppError):
    def __init__(self, order_id: str) -> None:
        super().__init__(1001, f"Order not found: {order_id}", 404, ErrorKind.NOT_FOUND)


class OrderNotPendingError(AppError):
    def __init__(self, order_id: str) -> None:
        super().__init__(
            1002, f"Order is not pending: {order_id}", 409, ErrorKind.INVALID_STATE
        )


class OrderForbiddenError(AppError):
    def __init__(self) -> None:
        super().__init__(1003, "Order belongs to another user", 403, ErrorKind.FORBIDDEN)


class OrderStatusTransitionError(AppError):
    def __init__(self, order_id: str, current: str, target: str) -> None:
        super().__init__(
            1004,
            f"Order {order_id} cannot move from {current} to {target}",
            409,
            ErrorKind.INVALID_STATE,
        )


# --- 2xxx: Discount ---

class DiscountNotFoundError(AppError):
    def __init__(self, ref: str) -> None:
        super().__init__(2001, f"Discount not found: {ref}", 404, ErrorKind.NOT_FOUND)


class DiscountCodeExistsError(AppError):
    def __init__(self, code: str) -> None:
        super().__init__(2002, f"Discount code already exists: {code}", 409, ErrorKind.CONFLICT)


class DiscountRejectedError(AppError):
    """A discount code exists but cannot be redeemed for this amount."""

    _CODES = {
        RejectionReason.NOT_FOUND: 2003,
        RejectionReason.INACTIVE: 2004,
        RejectionReason.USAGE_EXCEEDED: 2005,
        RejectionReason.BELOW_MINIMUM: 2006,
    }

    def __init__(self, reason: RejectionReason, message: str) -> None:
        self.reason = reason
        super().__init__(self._CODES[reason], message, 400, ErrorKind.DISCOUNT_REJECTED)


# --- 3xxx: Payment ---

class PaymentFailedError(AppError):
    def __init__(self, detail: str = "Payment failed") -> None:
        super().__init__(3001, detail, 402, ErrorKind.PAYMENT_FAILED)


# --- 9xxx: Request / System ---

class RequestValidationFailedError(AppError):
    def __init__(self, detail: str) -> None:
        super().__init__(9001, detail, 400, ErrorKind.VALIDATION_ERROR)


class RateLimitError(AppError):
    def __init__(self) -> None:
        super().__init__(9002, "Rate limit exceeded", 429, ErrorKind.RATE_LIMITED)


class InternalError(AppError):
    def __init__(self, detail: str = "Internal server error") -> None:
        super().__init__(9003, detail, 500, ErrorKind.INTERNAL)
