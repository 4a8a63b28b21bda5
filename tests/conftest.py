"""Pytest fixtures for driver payment engine tests."""

from __future__ import annotations

from collections.abc import AsyncGenerator
from datetime import date
from uuid import UUID, uuid4

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from driver_pay.calculators.types import PaymentConfiguration
from driver_pay.clock import FixedClock
from driver_pay.models import Base
from driver_pay.services.history_ledger import HistoryLedger

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

TODAY = date(2024, 6, 15)


@pytest.fixture
def clock() -> FixedClock:
    """Clock fixed at noon UTC on 2024-06-15."""
    return FixedClock.on(TODAY)


@pytest.fixture
def ledger(clock: FixedClock) -> HistoryLedger:
    return HistoryLedger(clock=clock)


@pytest.fixture
def employee_ids() -> list[UUID]:
    return [uuid4(), uuid4()]


@pytest.fixture
def percentage_config() -> PaymentConfiguration:
    """70 / 25 / 5 split."""
    return PaymentConfiguration.percentage(70, 25, 5)


@pytest.fixture
def flat_rate_config() -> PaymentConfiguration:
    return PaymentConfiguration.flat_rate(750)


@pytest.fixture
def per_mile_config() -> PaymentConfiguration:
    return PaymentConfiguration.per_mile("2.00")


@pytest_asyncio.fixture
async def engine():
    """Create an in-memory database with the history schema."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        poolclass=StaticPool,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


@pytest_asyncio.fixture
async def session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Create a database session for each test."""
    async with session_factory() as session:
        yield session
        await session.rollback()
