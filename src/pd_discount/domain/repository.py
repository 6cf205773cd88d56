# src/pd_discount/domain/repository.py
"""DiscountRepository Protocol: interface contract for persistence layer.

Unit tests inject a mock or in-memory fake that conforms to this Protocol.
"""
from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.pd_discount.domain.models import Discount


class DiscountRepositoryProtocol(Protocol):
    async def save(self, discount: Discount, db: AsyncSession) -> Discount: ...

    async def get_by_id(self, discount_id: str, db: AsyncSession) -> Discount | None: ...

    async def get_by_code(self, code: str, db: AsyncSession) -> Discount | None: ...

    async def list_recent(self, limit: int, db: AsyncSession) -> list[Discount]: ...

    async def increment_usage(self, discount_id: str, db: AsyncSession) -> Discount | None: ...

    async def update_status(
        self, discount_id: str, status: str, db: AsyncSession
    ) -> Discount | None: ...

    async def count(self, db: AsyncSession) -> int: ...
