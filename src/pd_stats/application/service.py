# src/pd_stats/application/service.py
"""StatsService: read-only aggregate counters across the three stores."""
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from src.pd_common.money import money_to_display
from src.pd_discount.domain.repository import DiscountRepositoryProtocol
from src.pd_discount.infrastructure.persistence import DiscountRepository
from src.pd_order.domain.repository import OrderRepositoryProtocol
from src.pd_order.infrastructure.persistence import OrderRepository
from src.pd_payment.domain.repository import PaymentRecordRepositoryProtocol
from src.pd_payment.infrastructure.persistence import PaymentRecordRepository


class StatsService:
    def __init__(
        self,
        orders: OrderRepositoryProtocol | None = None,
        discounts: DiscountRepositoryProtocol | None = None,
        records: PaymentRecordRepositoryProtocol | None = None,
    ) -> None:
        self._orders: OrderRepositoryProtocol = orders or OrderRepository()
        self._discounts: DiscountRepositoryProtocol = discounts or DiscountRepository()
        self._records: PaymentRecordRepositoryProtocol = records or PaymentRecordRepository()

    async def get_stats(self, db: AsyncSession) -> dict[str, Any]:
        total_orders = await self._orders.count(db)
        total_discounts = await self._discounts.count(db)
        total_payments, revenue = await self._records.totals(db)
        return {
            "total_orders": total_orders,
            "total_discounts": total_discounts,
            "total_payments": total_payments,
            "total_revenue": float(revenue),
            "total_revenue_display": money_to_display(revenue),
        }
