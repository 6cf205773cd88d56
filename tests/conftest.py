"""Shared test fixtures."""

from unittest.mock import AsyncMock

import pytest
from httpx import ASGITransport, AsyncClient

from src.main import app
from tests.fakes import (
    InMemoryDiscountRepository,
    InMemoryOrderRepository,
    InMemoryPaymentRecordRepository,
)


@pytest.fixture
def db() -> AsyncMock:
    """Stand-in AsyncSession: commit/rollback are recorded, nothing executes."""
    return AsyncMock()


@pytest.fixture
def order_repo() -> InMemoryOrderRepository:
    return InMemoryOrderRepository()


@pytest.fixture
def discount_repo() -> InMemoryDiscountRepository:
    return InMemoryDiscountRepository()


@pytest.fixture
def record_repo() -> InMemoryPaymentRecordRepository:
    return InMemoryPaymentRecordRepository()


@pytest.fixture
async def client() -> AsyncClient:
    """Async HTTP client for testing FastAPI endpoints."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
