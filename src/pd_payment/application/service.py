"""SettlementService: turns a pending order into a paid one.

Phases, strictly sequential:

  1. Preconditions (read-only): order exists -> is pending -> belongs to
     the caller. First failure wins.
  2. Discount (read-only): validate the code against the order's original
     amount and compute the breakdown. Nothing is counted yet.
  3. Gateway: charge final_amount. A decline aborts here, before any
     write, so a failed payment never consumes a discount.
  4. Commit, one DB transaction:
       order     pending -> paid   (compare-and-set on status)
       discount  usage_count + 1   (conditional on active + under cap)
       record    append
     If any step fails the transaction is rolled back and the charge is
     refunded (compensating action).

Two concurrent settlements of the same order both may pass phase 1, but
only one wins the compare-and-set in phase 4; the loser is refunded and
gets InvalidState.
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from src.pd_common.datetime_utils import utc_now
from src.pd_common.errors import (
    DiscountRejectedError,
    OrderForbiddenError,
    OrderNotFoundError,
    OrderNotPendingError,
    PaymentFailedError,
    RejectionReason,
)
from src.pd_common.id_generator import PAYMENT_RECORD_PREFIX, generate_id
from src.pd_common.money import money_to_display
from src.pd_discount.application.schemas import DiscountResponse
from src.pd_discount.application.service import require_redeemable
from src.pd_discount.domain.models import Discount, DiscountBreakdown
from src.pd_discount.domain.repository import DiscountRepositoryProtocol
from src.pd_discount.domain.validator import check_eligibility, compute_breakdown
from src.pd_discount.infrastructure.persistence import DiscountRepository
from src.pd_order.application.schemas import OrderResponse
from src.pd_order.domain.models import Order
from src.pd_order.domain.repository import OrderRepositoryProtocol
from src.pd_order.infrastructure.persistence import OrderRepository
from src.pd_payment.application.schemas import (
    PaymentRecordResponse,
    SettlePaymentRequest,
    SettlementResponse,
)
from src.pd_payment.domain.gateway import PaymentGatewayProtocol
from src.pd_payment.domain.models import GatewayCharge, PaymentRecord
from src.pd_payment.domain.repository import PaymentRecordRepositoryProtocol
from src.pd_payment.infrastructure.mock_gateway import SimulatedGateway
from src.pd_payment.infrastructure.persistence import PaymentRecordRepository

logger = logging.getLogger("pd.payment")


class SettlementService:
    def __init__(
        self,
        orders: OrderRepositoryProtocol | None = None,
        discounts: DiscountRepositoryProtocol | None = None,
        records: PaymentRecordRepositoryProtocol | None = None,
        gateway: PaymentGatewayProtocol | None = None,
    ) -> None:
        self._orders: OrderRepositoryProtocol = orders or OrderRepository()
        self._discounts: DiscountRepositoryProtocol = discounts or DiscountRepository()
        self._records: PaymentRecordRepositoryProtocol = records or PaymentRecordRepository()
        self._gateway: PaymentGatewayProtocol = gateway or SimulatedGateway()

    async def settle(self, db: AsyncSession, req: SettlePaymentRequest) -> SettlementResponse:
        order = await self._check_preconditions(db, req)
        discount = await self._resolve_discount(db, req.discount_code, order)
        breakdown = compute_breakdown(discount, order.amount)
        # Release the read transaction (and its pooled connection) during the gateway call
        await db.rollback()

        charge = await self._gateway.charge(req.payment_method, breakdown.final_amount)
        if not charge.succeeded:
            logger.warning(
                "Payment declined for order %s (charge %s)", order.id, charge.charge_id
            )
            raise PaymentFailedError()

        try:
            paid_order, used_discount, record = await self._commit(
                db, req, order, discount, breakdown
            )
            await db.commit()
        except Exception:
            await db.rollback()
            await self._compensate(order, charge)
            raise

        logger.info(
            "Settled order %s: original=%s discount=%s paid=%s",
            order.id,
            breakdown.original_amount,
            breakdown.discount_amount,
            money_to_display(breakdown.final_amount),
        )
        return SettlementResponse(
            order=OrderResponse.from_domain(paid_order),
            payment_record=PaymentRecordResponse.from_domain(record),
            discount=DiscountResponse.from_domain(used_discount) if used_discount else None,
            original_amount=float(breakdown.original_amount),
            discount_amount=float(breakdown.discount_amount),
            final_amount=float(breakdown.final_amount),
            savings=float(breakdown.savings),
        )

    async def list_records(
        self,
        db: AsyncSession,
        order_id: str | None,
        user_id: str | None,
        limit: int,
    ) -> list[PaymentRecordResponse]:
        records = await self._records.list_recent(order_id, user_id, limit, db)
        return [PaymentRecordResponse.from_domain(r) for r in records]

    # ------------------------------------------------------------------
    # Phases
    # ------------------------------------------------------------------

    async def _check_preconditions(self, db: AsyncSession, req: SettlePaymentRequest) -> Order:
        order = await self._orders.get_by_id(req.order_id, db)
        if order is None:
            raise OrderNotFoundError(req.order_id)
        if not order.is_pending:
            raise OrderNotPendingError(req.order_id)
        if order.user_id != req.user_id:
            raise OrderForbiddenError()
        return order

    async def _resolve_discount(
        self, db: AsyncSession, code: str | None, order: Order
    ) -> Discount | None:
        if not code:
            return None
        found = await self._discounts.get_by_code(code, db)
        validation = check_eligibility(found, code, order.amount)
        return require_redeemable(validation, code)

    async def _commit(
        self,
        db: AsyncSession,
        req: SettlePaymentRequest,
        order: Order,
        discount: Discount | None,
        breakdown: DiscountBreakdown,
    ) -> tuple[Order, Discount | None, PaymentRecord]:
        paid_order = await self._orders.mark_paid_if_pending(
            order.id, req.payment_method, breakdown.final_amount, db
        )
        if paid_order is None:
            raise OrderNotPendingError(order.id)

        used_discount: Discount | None = None
        if discount is not None:
            used_discount = await self._discounts.increment_usage(discount.id, db)
            if used_discount is None:
                await self._raise_no_longer_redeemable(db, discount, order)

        record = await self._records.append(
            PaymentRecord(
                id=generate_id(PAYMENT_RECORD_PREFIX),
                payment_id=order.payment_id,
                order_id=order.id,
                user_id=req.user_id,
                amount=breakdown.original_amount,
                paid_amount=breakdown.final_amount,
                discount_amount=breakdown.discount_amount,
                payment_method=req.payment_method,
                discount_id=discount.id if discount else "",
                discount_code=discount.code if discount else "",
                order_description=order.description,
                paid_at=utc_now(),
            ),
            db,
        )
        return paid_order, used_discount, record

    async def _raise_no_longer_redeemable(
        self, db: AsyncSession, discount: Discount, order: Order
    ) -> None:
        """The code was valid at phase 2 but lost a race; report the current reason."""
        current = await self._discounts.get_by_id(discount.id, db)
        validation = check_eligibility(current, discount.code, order.amount)
        require_redeemable(validation, discount.code)
        raise DiscountRejectedError(
            RejectionReason.USAGE_EXCEEDED, "Discount code is no longer redeemable"
        )

    async def _compensate(self, order: Order, charge: GatewayCharge) -> None:
        """Refund the charge. A failing refund is logged; the caller re-raises the commit error."""
        logger.warning(
            "Settlement of order %s rolled back, refunding charge %s", order.id, charge.charge_id
        )
        try:
            await self._gateway.refund(charge)
        except Exception:
            logger.exception(
                "Refund of charge %s for order %s failed", charge.charge_id, order.id
            )
