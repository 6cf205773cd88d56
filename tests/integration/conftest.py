"""Integration-test fixtures.

All integration tests share a single event-loop so that the module-level
SQLAlchemy async engine pool (created at import time) remains valid across
the entire test session.

Requires a reachable PostgreSQL at DATABASE_URL; the whole directory is
skipped otherwise. Tables are created on first use by init_store().
"""

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.exc import SQLAlchemyError

from src.main import app
from src.pd_common.database import init_store
from src.pd_payment.api import router as payment_router
from src.pd_payment.infrastructure.mock_gateway import SimulatedGateway


@pytest_asyncio.fixture(loop_scope="session", scope="session")
async def client() -> AsyncClient:  # type: ignore[override]
    """Session-scoped async HTTP client: keeps the engine pool alive."""
    try:
        await init_store()
    except (OSError, SQLAlchemyError) as exc:
        pytest.skip(f"PostgreSQL not reachable: {exc}")

    # Deterministic, instant gateway for end-to-end flows
    payment_router._service._gateway = SimulatedGateway(latency_seconds=0, success_rate=1.0)

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
