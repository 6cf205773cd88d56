"""Unit tests for StatsService."""

from decimal import Decimal
from unittest.mock import AsyncMock

from src.pd_payment.application.schemas import SettlePaymentRequest
from src.pd_payment.application.service import SettlementService
from src.pd_stats.application.service import StatsService
from tests.fakes import (
    InMemoryDiscountRepository,
    InMemoryOrderRepository,
    InMemoryPaymentRecordRepository,
    ScriptedGateway,
    make_discount,
    make_order,
)


class TestStatsService:
    async def test_empty_store(
        self,
        db: AsyncMock,
        order_repo: InMemoryOrderRepository,
        discount_repo: InMemoryDiscountRepository,
        record_repo: InMemoryPaymentRecordRepository,
    ) -> None:
        stats = await StatsService(order_repo, discount_repo, record_repo).get_stats(db)
        assert stats == {
            "total_orders": 0,
            "total_discounts": 0,
            "total_payments": 0,
            "total_revenue": 0.0,
            "total_revenue_display": "¥0.00",
        }

    async def test_revenue_counts_paid_amounts(
        self,
        db: AsyncMock,
        order_repo: InMemoryOrderRepository,
        discount_repo: InMemoryDiscountRepository,
        record_repo: InMemoryPaymentRecordRepository,
    ) -> None:
        await order_repo.save(make_order("o1", amount="1000.00"), db)
        await order_repo.save(make_order("o2", amount="600.00"), db)
        await order_repo.save(make_order("o3", amount="5.00"), db)
        await discount_repo.save(make_discount(code="SAVE100", balance="100"), db)
        settlement = SettlementService(order_repo, discount_repo, record_repo, ScriptedGateway())
        await settlement.settle(
            db, SettlePaymentRequest(order_id="o1", payment_method="bank", user_id="user-1")
        )
        await settlement.settle(
            db,
            SettlePaymentRequest(
                order_id="o2", payment_method="bank", user_id="user-1", discount_code="SAVE100"
            ),
        )

        stats = await StatsService(order_repo, discount_repo, record_repo).get_stats(db)

        assert stats["total_orders"] == 3
        assert stats["total_discounts"] == 1
        assert stats["total_payments"] == 2
        assert Decimal(str(stats["total_revenue"])) == Decimal("1500.00")
        assert stats["total_revenue_display"] == "¥1,500.00"
