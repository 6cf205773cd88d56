"""Unit tests for SettlementService: preconditions, discount redemption,
gateway outcomes and compensation when the commit phase fails."""

from decimal import Decimal
from unittest.mock import AsyncMock

import pytest

from src.pd_common.errors import (
    DiscountNotFoundError,
    DiscountRejectedError,
    OrderForbiddenError,
    OrderNotFoundError,
    OrderNotPendingError,
    PaymentFailedError,
    RejectionReason,
)
from src.pd_payment.application.schemas import SettlePaymentRequest
from src.pd_payment.application.service import SettlementService
from tests.fakes import (
    InMemoryDiscountRepository,
    InMemoryOrderRepository,
    InMemoryPaymentRecordRepository,
    ScriptedGateway,
    make_discount,
    make_order,
)


def _req(
    order_id: str = "order_1",
    user_id: str = "user-1",
    discount_code: str | None = None,
    payment_method: str = "alipay",
) -> SettlePaymentRequest:
    return SettlePaymentRequest(
        order_id=order_id,
        payment_method=payment_method,
        user_id=user_id,
        discount_code=discount_code,
    )


@pytest.fixture
def gateway() -> ScriptedGateway:
    return ScriptedGateway()


@pytest.fixture
def service(
    order_repo: InMemoryOrderRepository,
    discount_repo: InMemoryDiscountRepository,
    record_repo: InMemoryPaymentRecordRepository,
    gateway: ScriptedGateway,
) -> SettlementService:
    return SettlementService(
        orders=order_repo, discounts=discount_repo, records=record_repo, gateway=gateway
    )


class TestSettleWithoutDiscount:
    async def test_pays_full_amount(
        self,
        db: AsyncMock,
        service: SettlementService,
        order_repo: InMemoryOrderRepository,
        record_repo: InMemoryPaymentRecordRepository,
        gateway: ScriptedGateway,
    ) -> None:
        await order_repo.save(make_order(amount="80.00", description="Headphones"), db)

        result = await service.settle(db, _req())

        assert result.order.status == "paid"
        assert result.order.payment_method == "alipay"
        assert result.order.balance == 80.0
        assert result.discount is None
        assert result.final_amount == 80.0
        assert result.discount_amount == 0.0
        assert gateway.charges[0].amount == Decimal("80.00")
        record = record_repo.rows[0]
        assert record.discount_id == ""
        assert record.discount_code == ""
        assert record.order_description == "Headphones"
        assert record.payment_id == "pay_order_1"
        assert record.id.startswith("payment_")
        db.commit.assert_awaited_once()

    async def test_record_conservation(
        self,
        db: AsyncMock,
        service: SettlementService,
        order_repo: InMemoryOrderRepository,
        record_repo: InMemoryPaymentRecordRepository,
    ) -> None:
        await order_repo.save(make_order(amount="19.99"), db)
        await service.settle(db, _req())
        record = record_repo.rows[0]
        assert record.paid_amount + record.discount_amount == record.amount


class TestSettleWithDiscount:
    async def test_discount_applied_and_counted(
        self,
        db: AsyncMock,
        service: SettlementService,
        order_repo: InMemoryOrderRepository,
        discount_repo: InMemoryDiscountRepository,
        record_repo: InMemoryPaymentRecordRepository,
        gateway: ScriptedGateway,
    ) -> None:
        await order_repo.save(make_order(amount="100.00"), db)
        await discount_repo.save(make_discount(code="SAVE30", balance="30"), db)

        result = await service.settle(db, _req(discount_code="SAVE30"))

        assert result.original_amount == 100.0
        assert result.discount_amount == 30.0
        assert result.final_amount == 70.0
        assert result.savings == 30.0
        assert result.order.balance == 70.0
        assert result.discount is not None
        assert result.discount.usage_count == 1
        assert discount_repo.rows["discount_1"].usage_count == 1
        assert gateway.charges[0].amount == Decimal("70.00")
        assert record_repo.rows[0].discount_code == "SAVE30"

    async def test_discount_larger_than_order_charges_zero(
        self,
        db: AsyncMock,
        service: SettlementService,
        order_repo: InMemoryOrderRepository,
        discount_repo: InMemoryDiscountRepository,
        gateway: ScriptedGateway,
    ) -> None:
        await order_repo.save(make_order(amount="20.00"), db)
        await discount_repo.save(make_discount(code="FREE", balance="50", is_full_discount=True), db)

        result = await service.settle(db, _req(discount_code="FREE"))

        assert result.final_amount == 0.0
        assert result.discount_amount == 20.0
        assert result.order.status == "paid"
        assert gateway.charges[0].amount == Decimal("0.00")

    async def test_single_use_code_second_order_rejected(
        self,
        db: AsyncMock,
        service: SettlementService,
        order_repo: InMemoryOrderRepository,
        discount_repo: InMemoryDiscountRepository,
    ) -> None:
        await order_repo.save(make_order("order_1"), db)
        await order_repo.save(make_order("order_2"), db)
        await discount_repo.save(make_discount(code="ONCE", max_usage=1), db)

        await service.settle(db, _req("order_1", discount_code="ONCE"))
        with pytest.raises(DiscountRejectedError) as exc_info:
            await service.settle(db, _req("order_2", discount_code="ONCE"))

        assert exc_info.value.reason == RejectionReason.USAGE_EXCEEDED
        assert order_repo.rows["order_2"].status == "pending"
        assert discount_repo.rows["discount_1"].usage_count == 1

    async def test_unknown_code_not_found(
        self, db: AsyncMock, service: SettlementService, order_repo: InMemoryOrderRepository
    ) -> None:
        await order_repo.save(make_order(), db)
        with pytest.raises(DiscountNotFoundError):
            await service.settle(db, _req(discount_code="GHOST"))
        assert order_repo.rows["order_1"].status == "pending"

    async def test_below_minimum_leaves_order_pending(
        self,
        db: AsyncMock,
        service: SettlementService,
        order_repo: InMemoryOrderRepository,
        discount_repo: InMemoryDiscountRepository,
        gateway: ScriptedGateway,
    ) -> None:
        await order_repo.save(make_order(amount="50.00"), db)
        await discount_repo.save(make_discount(code="BIG", min_amount="100"), db)

        with pytest.raises(DiscountRejectedError) as exc_info:
            await service.settle(db, _req(discount_code="BIG"))

        assert exc_info.value.reason == RejectionReason.BELOW_MINIMUM
        assert gateway.charges == []
        assert order_repo.rows["order_1"].status == "pending"

    async def test_blank_code_means_no_discount(
        self, db: AsyncMock, service: SettlementService, order_repo: InMemoryOrderRepository
    ) -> None:
        await order_repo.save(make_order(), db)
        result = await service.settle(db, _req(discount_code="   "))
        assert result.discount is None


class TestPreconditions:
    async def test_missing_order(self, db: AsyncMock, service: SettlementService) -> None:
        with pytest.raises(OrderNotFoundError):
            await service.settle(db, _req("order_404"))

    @pytest.mark.parametrize("status", ["paid", "cancelled"])
    async def test_not_pending(
        self,
        status: str,
        db: AsyncMock,
        service: SettlementService,
        order_repo: InMemoryOrderRepository,
        gateway: ScriptedGateway,
    ) -> None:
        await order_repo.save(make_order(status=status), db)
        with pytest.raises(OrderNotPendingError):
            await service.settle(db, _req())
        assert gateway.charges == []

    async def test_other_users_order(
        self, db: AsyncMock, service: SettlementService, order_repo: InMemoryOrderRepository
    ) -> None:
        await order_repo.save(make_order(user_id="alice"), db)
        with pytest.raises(OrderForbiddenError):
            await service.settle(db, _req(user_id="mallory"))
        assert order_repo.rows["order_1"].status == "pending"

    async def test_invalid_state_checked_before_ownership(
        self, db: AsyncMock, service: SettlementService, order_repo: InMemoryOrderRepository
    ) -> None:
        await order_repo.save(make_order(user_id="alice", status="paid"), db)
        with pytest.raises(OrderNotPendingError):
            await service.settle(db, _req(user_id="mallory"))

    async def test_second_settlement_rejected(
        self,
        db: AsyncMock,
        service: SettlementService,
        order_repo: InMemoryOrderRepository,
        record_repo: InMemoryPaymentRecordRepository,
    ) -> None:
        await order_repo.save(make_order(), db)
        await service.settle(db, _req())
        with pytest.raises(OrderNotPendingError):
            await service.settle(db, _req())
        assert len(record_repo.rows) == 1


class TestGatewayOutcomes:
    async def test_decline_mutates_nothing(
        self,
        db: AsyncMock,
        order_repo: InMemoryOrderRepository,
        discount_repo: InMemoryDiscountRepository,
        record_repo: InMemoryPaymentRecordRepository,
    ) -> None:
        gateway = ScriptedGateway(False)
        service = SettlementService(order_repo, discount_repo, record_repo, gateway)
        await order_repo.save(make_order(), db)
        await discount_repo.save(make_discount(code="SAVE30", max_usage=1), db)

        with pytest.raises(PaymentFailedError):
            await service.settle(db, _req(discount_code="SAVE30"))

        assert order_repo.rows["order_1"].status == "pending"
        assert discount_repo.rows["discount_1"].usage_count == 0
        assert record_repo.rows == []
        assert gateway.refunds == []
        db.commit.assert_not_awaited()

    async def test_retry_after_decline_succeeds(
        self,
        db: AsyncMock,
        order_repo: InMemoryOrderRepository,
        discount_repo: InMemoryDiscountRepository,
        record_repo: InMemoryPaymentRecordRepository,
    ) -> None:
        gateway = ScriptedGateway(False, True)
        service = SettlementService(order_repo, discount_repo, record_repo, gateway)
        await order_repo.save(make_order(), db)

        with pytest.raises(PaymentFailedError):
            await service.settle(db, _req())
        result = await service.settle(db, _req())

        assert result.order.status == "paid"
        assert len(gateway.charges) == 2


class TestCompensation:
    async def test_lost_order_race_refunds(
        self,
        db: AsyncMock,
        order_repo: InMemoryOrderRepository,
        discount_repo: InMemoryDiscountRepository,
        record_repo: InMemoryPaymentRecordRepository,
        gateway: ScriptedGateway,
    ) -> None:
        await order_repo.save(make_order(), db)
        # Another request settles the order between the checks and the commit
        order_repo.mark_paid_if_pending = AsyncMock(return_value=None)  # type: ignore[method-assign]
        service = SettlementService(order_repo, discount_repo, record_repo, gateway)

        with pytest.raises(OrderNotPendingError):
            await service.settle(db, _req())

        assert len(gateway.refunds) == 1
        assert gateway.refunds[0] is gateway.charges[0]
        assert record_repo.rows == []
        db.commit.assert_not_awaited()

    async def test_lost_discount_race_refunds(
        self,
        db: AsyncMock,
        order_repo: InMemoryOrderRepository,
        discount_repo: InMemoryDiscountRepository,
        record_repo: InMemoryPaymentRecordRepository,
        gateway: ScriptedGateway,
    ) -> None:
        await order_repo.save(make_order(), db)
        await discount_repo.save(make_discount(code="ONCE", max_usage=1), db)

        async def exhaust_then_fail(discount_id: str, session: object) -> None:
            discount_repo.rows[discount_id].usage_count = 1
            return None

        discount_repo.increment_usage = exhaust_then_fail  # type: ignore[method-assign]
        service = SettlementService(order_repo, discount_repo, record_repo, gateway)

        with pytest.raises(DiscountRejectedError) as exc_info:
            await service.settle(db, _req(discount_code="ONCE"))

        assert exc_info.value.reason == RejectionReason.USAGE_EXCEEDED
        assert len(gateway.refunds) == 1
        assert record_repo.rows == []
        db.rollback.assert_awaited()

    async def test_record_failure_refunds_and_reraises(
        self,
        db: AsyncMock,
        order_repo: InMemoryOrderRepository,
        discount_repo: InMemoryDiscountRepository,
        gateway: ScriptedGateway,
    ) -> None:
        await order_repo.save(make_order(), db)
        records = AsyncMock()
        records.append.side_effect = RuntimeError("insert failed")
        service = SettlementService(order_repo, discount_repo, records, gateway)

        with pytest.raises(RuntimeError, match="insert failed"):
            await service.settle(db, _req())

        assert len(gateway.refunds) == 1
        db.commit.assert_not_awaited()

    async def test_failed_refund_keeps_commit_error(
        self,
        db: AsyncMock,
        order_repo: InMemoryOrderRepository,
        discount_repo: InMemoryDiscountRepository,
        record_repo: InMemoryPaymentRecordRepository,
        gateway: ScriptedGateway,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        await order_repo.save(make_order(), db)
        order_repo.mark_paid_if_pending = AsyncMock(return_value=None)  # type: ignore[method-assign]
        gateway.refund = AsyncMock(side_effect=ConnectionError("gateway down"))  # type: ignore[method-assign]
        service = SettlementService(order_repo, discount_repo, record_repo, gateway)

        with pytest.raises(OrderNotPendingError):
            await service.settle(db, _req())

        gateway.refund.assert_awaited_once_with(gateway.charges[0])
        assert "Refund of charge" in caplog.text
        db.rollback.assert_awaited()


class TestListRecords:
    async def test_filters_by_order(
        self,
        db: AsyncMock,
        service: SettlementService,
        order_repo: InMemoryOrderRepository,
    ) -> None:
        await order_repo.save(make_order("order_1"), db)
        await order_repo.save(make_order("order_2"), db)
        await service.settle(db, _req("order_1"))
        await service.settle(db, _req("order_2"))

        records = await service.list_records(db, "order_2", None, 20)

        assert [r.order_id for r in records] == ["order_2"]
        assert records[0].paid_amount + records[0].discount_amount == records[0].amount
