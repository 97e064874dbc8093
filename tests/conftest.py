"""
Pytest configuration and fixtures for order payment tests.

Every test gets its own throwaway SQLite database file so that concurrent
sessions in the race tests really go through separate connections.
"""
from decimal import Decimal
from typing import Any, AsyncGenerator, Awaitable, Callable, Dict

import pytest
import pytest_asyncio
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from order_payments.config import InstallmentConfig, Settings
from order_payments.database.connection import create_session_factory
from order_payments.database.models import Base, Order, OrderItem, OutboxEvent


@pytest.fixture
def test_settings() -> Settings:
    """Create test settings."""
    return Settings(
        database_url="sqlite+aiosqlite:///:memory:",
        app_name="order-payments-test",
        app_env="test",
        log_level="DEBUG",
    )


@pytest.fixture
def installment_config() -> InstallmentConfig:
    """Installment rules used across planner tests."""
    return InstallmentConfig(
        min_amount=Decimal("300"),
        fee_rates={3: Decimal("2.5"), 6: Decimal("1"), 12: Decimal("0.75")},
        fine_rate=Decimal("0.05"),
    )


@pytest_asyncio.fixture
async def test_engine(tmp_path: Any) -> AsyncGenerator[AsyncEngine, Any]:
    """Create a per-test database with all tables."""
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'orders.db'}",
        poolclass=NullPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(test_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return create_session_factory(test_engine)


@pytest_asyncio.fixture
async def test_db(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession, Any]:
    """Create test database session."""
    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest.fixture
def make_order(
    session_factory: async_sessionmaker[AsyncSession],
) -> Callable[..., Awaitable[Order]]:
    """Factory persisting an order (and optional items) in its own session."""
    counter = {"n": 0}

    async def _make_order(
        no: str | None = None,
        total_amount: str = "1000.00",
        user_id: int = 1,
        product_ids: tuple[int, ...] = (),
        **fields: Any,
    ) -> Order:
        counter["n"] += 1
        extra = fields.pop("extra", {})
        order = Order(
            no=no or f"20261019000{counter['n']:03d}",
            user_id=user_id,
            total_amount=Decimal(total_amount),
            extra=extra,
            **fields,
        )
        order.items = [
            OrderItem(product_id=product_id, amount=1, price=Decimal(total_amount))
            for product_id in product_ids
        ]
        async with session_factory() as session:
            session.add(order)
            await session.commit()
        return order

    return _make_order


@pytest.fixture
def load_order(
    session_factory: async_sessionmaker[AsyncSession],
) -> Callable[[str], Awaitable[Order | None]]:
    """Reload an order from the database in a fresh session."""

    async def _load_order(no: str) -> Order | None:
        async with session_factory() as session:
            stmt = select(Order).where(Order.no == no)
            return (await session.execute(stmt)).scalar_one_or_none()

    return _load_order


@pytest.fixture
def count_outbox_events(
    session_factory: async_sessionmaker[AsyncSession],
) -> Callable[..., Awaitable[int]]:
    """Count outbox rows, optionally filtered by event type."""

    async def _count(event_type: str | None = None) -> int:
        async with session_factory() as session:
            stmt = select(func.count(OutboxEvent.id))
            if event_type is not None:
                stmt = stmt.where(OutboxEvent.event_type == event_type)
            return (await session.execute(stmt)).scalar_one()

    return _count


@pytest.fixture
def alipay_paid_payload() -> Dict[str, str]:
    """Verified Alipay notification for a successful trade."""
    return {
        "out_trade_no": "20261019000001",
        "trade_status": "TRADE_SUCCESS",
        "trade_no": "2026101922001400000000000001",
        "total_amount": "1000.00",
    }


@pytest.fixture
def wechat_paid_payload() -> Dict[str, str]:
    """Verified WeChat Pay notification for a successful payment."""
    return {
        "out_trade_no": "20261019000001",
        "return_code": "SUCCESS",
        "result_code": "SUCCESS",
        "transaction_id": "4200000000202610190000000001",
        "total_fee": "100000",
    }
