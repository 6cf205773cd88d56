# src/pd_order/domain/repository.py
"""OrderRepository Protocol: interface contract for persistence layer."""
from decimal import Decimal
from typing import Any, Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.pd_order.domain.models import Order


class OrderRepositoryProtocol(Protocol):
    async def save(self, order: Order, db: AsyncSession) -> Order: ...

    async def get_by_id(self, order_id: str, db: AsyncSession) -> Order | None: ...

    async def update_fields_if_pending(
        self, order_id: str, fields: dict[str, Any], db: AsyncSession
    ) -> Order | None: ...

    async def mark_paid_if_pending(
        self,
        order_id: str,
        payment_method: str,
        balance: Decimal,
        db: AsyncSession,
    ) -> Order | None: ...

    async def cancel_if_pending(self, order_id: str, db: AsyncSession) -> Order | None: ...

    async def list_recent(
        self, user_id: str | None, limit: int, db: AsyncSession
    ) -> list[Order]: ...

    async def count(self, db: AsyncSession) -> int: ...
