"""Async engine, session factory and idempotent store initialization.

init_store() is the single entry point that prepares the database: it is
called once from the application lifespan, verifies connectivity with
bounded exponential backoff and creates missing tables. Concurrent callers
wait on the same lock; only the first one does the work.
"""

import asyncio
import logging
from collections.abc import AsyncGenerator

from sqlalchemy import text
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from config.settings import settings

logger = logging.getLogger("pd.database")


class Base(DeclarativeBase):
    """Shared declarative base for all ORM models across modules."""

    pass


engine: AsyncEngine = create_async_engine(
    settings.DATABASE_URL,
    echo=settings.DEBUG,
    pool_size=settings.DB_POOL_SIZE,
    max_overflow=settings.DB_MAX_OVERFLOW,
    pool_pre_ping=True,
)

async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency: yields an AsyncSession, auto-closes after request."""
    async with async_session_factory() as session:
        yield session


class StoreInitializer:
    """Runs schema setup exactly once per process."""

    def __init__(
        self,
        db_engine: AsyncEngine,
        retries: int = settings.DB_CONNECT_RETRIES,
        backoff_seconds: float = settings.DB_CONNECT_BACKOFF_SECONDS,
    ) -> None:
        self._engine = db_engine
        self._retries = retries
        self._backoff_seconds = backoff_seconds
        self._lock = asyncio.Lock()
        self._initialized = False

    @property
    def initialized(self) -> bool:
        return self._initialized

    async def init(self) -> None:
        if self._initialized:
            return
        async with self._lock:
            if self._initialized:
                return
            await self._with_retry(self._create_schema)
            self._initialized = True
            logger.info("Store initialized")

    async def _create_schema(self) -> None:
        # Register every ORM table on Base.metadata before create_all
        import src.pd_discount.infrastructure.db_models  # noqa: F401
        import src.pd_order.infrastructure.db_models  # noqa: F401
        import src.pd_payment.infrastructure.db_models  # noqa: F401

        async with self._engine.begin() as conn:
            await conn.execute(text("SELECT 1"))
            await conn.run_sync(Base.metadata.create_all)

    async def _with_retry(self, operation) -> None:  # type: ignore[no-untyped-def]
        delay = self._backoff_seconds
        for attempt in range(1, self._retries + 1):
            try:
                await operation()
                return
            except (OperationalError, OSError) as exc:
                if attempt == self._retries:
                    logger.error("Database unreachable after %d attempts: %s", attempt, exc)
                    raise
                logger.warning(
                    "Database operation failed (attempt %d/%d), retrying in %.1fs: %s",
                    attempt,
                    self._retries,
                    delay,
                    exc,
                )
                await asyncio.sleep(delay)
                delay *= 2


_initializer = StoreInitializer(engine)


async def init_store() -> None:
    """Idempotent: safe to call from every startup hook."""
    await _initializer.init()
