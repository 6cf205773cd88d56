"""OrderApplicationService: order CRUD and administrative cancellation.

Orders are born pending with balance == amount. Settlement (pd_payment) is
the only way to reach 'paid'; this service only ever moves pending ->
cancelled, and refuses to touch an order once it is terminal.
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from src.pd_common.datetime_utils import utc_now
from src.pd_common.enums import OrderStatus
from src.pd_common.errors import (
    OrderNotFoundError,
    OrderNotPendingError,
    OrderStatusTransitionError,
)
from src.pd_common.id_generator import ORDER_PREFIX, PAYMENT_REF_PREFIX, generate_id
from src.pd_order.application.schemas import (
    CreateOrderRequest,
    OrderResponse,
    UpdateOrderRequest,
)
from src.pd_order.domain.models import Order
from src.pd_order.domain.repository import OrderRepositoryProtocol
from src.pd_order.infrastructure.persistence import OrderRepository

logger = logging.getLogger("pd.order")


class OrderApplicationService:
    def __init__(self, repo: OrderRepositoryProtocol | None = None) -> None:
        self._repo: OrderRepositoryProtocol = repo or OrderRepository()

    async def create_order(self, db: AsyncSession, req: CreateOrderRequest) -> OrderResponse:
        order = Order(
            id=generate_id(ORDER_PREFIX),
            payment_id=generate_id(PAYMENT_REF_PREFIX),
            user_id=req.user_id,
            amount=req.amount,
            balance=req.amount,
            status=OrderStatus.PENDING.value,
            payment_method="pending",
            description=req.description,
            created_at=utc_now(),
        )
        try:
            saved = await self._repo.save(order, db)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        logger.info("Created order %s for user %s amount=%s", saved.id, saved.user_id, saved.amount)
        return OrderResponse.from_domain(saved)

    async def get_order(self, db: AsyncSession, order_id: str) -> OrderResponse:
        order = await self._repo.get_by_id(order_id, db)
        if order is None:
            raise OrderNotFoundError(order_id)
        return OrderResponse.from_domain(order)

    async def list_orders(
        self, db: AsyncSession, user_id: str | None, limit: int
    ) -> list[OrderResponse]:
        orders = await self._repo.list_recent(user_id, limit, db)
        return [OrderResponse.from_domain(o) for o in orders]

    async def update_order(
        self, db: AsyncSession, order_id: str, req: UpdateOrderRequest
    ) -> OrderResponse:
        fields = req.model_dump(exclude_unset=True, exclude_none=True)
        try:
            order = await self._repo.get_by_id(order_id, db)
            if order is None:
                raise OrderNotFoundError(order_id)
            if order.is_terminal:
                raise OrderNotPendingError(order_id)

            target = fields.pop("status", None)
            if target is not None and target != order.status and target != OrderStatus.CANCELLED:
                raise OrderStatusTransitionError(order_id, order.status, target)

            # Both writes are conditional on 'pending': a settlement that commits
            # after the read above turns this update into InvalidState.
            if fields:
                updated = await self._repo.update_fields_if_pending(order_id, fields, db)
                if updated is None:
                    raise OrderNotPendingError(order_id)
                order = updated

            if target == OrderStatus.CANCELLED:
                cancelled = await self._repo.cancel_if_pending(order_id, db)
                if cancelled is None:
                    raise OrderNotPendingError(order_id)
                order = cancelled
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        return OrderResponse.from_domain(order)

    async def cancel_order(self, db: AsyncSession, order_id: str) -> OrderResponse:
        try:
            cancelled = await self._repo.cancel_if_pending(order_id, db)
            if cancelled is None:
                existing = await self._repo.get_by_id(order_id, db)
                if existing is None:
                    raise OrderNotFoundError(order_id)
                raise OrderNotPendingError(order_id)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        logger.info("Cancelled order %s", order_id)
        return OrderResponse.from_domain(cancelled)
