# src/pd_payment/domain/repository.py
"""PaymentRecordRepository Protocol: append-only store contract."""
from decimal import Decimal
from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.pd_payment.domain.models import PaymentRecord


class PaymentRecordRepositoryProtocol(Protocol):
    async def append(self, record: PaymentRecord, db: AsyncSession) -> PaymentRecord: ...

    async def list_recent(
        self,
        order_id: str | None,
        user_id: str | None,
        limit: int,
        db: AsyncSession,
    ) -> list[PaymentRecord]: ...

    async def totals(self, db: AsyncSession) -> tuple[int, Decimal]: ...
