"""Test fixtures and configuration for CartWise API tests."""
from __future__ import annotations

import asyncio
import os
from collections.abc import AsyncIterator, Iterator
from contextlib import asynccontextmanager
from typing import Optional
from unittest.mock import AsyncMock, MagicMock, patch

import pytest


def pytest_configure(config):
    """Set up environment variables before any test imports happen."""
    os.environ["ENVIRONMENT"] = "development"
    os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
    os.environ["CORS_ORIGINS"] = "http://localhost:5173"
    os.environ.pop("COMPARISON_MAX_RESULTS", None)
    os.environ.pop("COMPARISON_CURRENCY", None)
    os.environ.pop("COMPARISON_CONCURRENCY", None)

    try:
        from cartwise.core.config import get_settings
        get_settings.cache_clear()
    except ImportError:
        pass


from fastapi.testclient import TestClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from cartwise.core.errors import DataAccessError
from cartwise.db.base import Base
from cartwise.schemas.comparison import PriceObservation, ShoppingListItem


class FakePriceProvider:
    """In-memory price data provider.

    ``prices`` maps (store, product name) to (price, shopper).
    """

    def __init__(
        self,
        stores: list[str],
        prices: Optional[dict[tuple[str, str], tuple[float, Optional[str]]]] = None,
        *,
        fail_stores: bool = False,
        fail_on: Optional[tuple[str, str]] = None,
        delay: float = 0.0,
    ) -> None:
        self.stores = list(stores)
        self.prices = dict(prices or {})
        self.fail_stores = fail_stores
        self.fail_on = fail_on
        self.delay = delay
        self.calls: list[tuple[str, Optional[str]]] = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def list_stores(self) -> list[str]:
        if self.fail_stores:
            raise DataAccessError("store list unavailable")
        return list(self.stores)

    async def price_and_contributor(
        self, item: ShoppingListItem, store: str
    ) -> Optional[PriceObservation]:
        self.calls.append((store, item.product_name))
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.delay)
            if self.fail_on == (store, item.product_name):
                raise DataAccessError(f"lookup failed for {item.product_name} at {store}")
            entry = self.prices.get((store, item.product_name))
            if entry is None:
                return None
            price, shopper = entry
            return PriceObservation(price=price, shopper=shopper)
        finally:
            self.in_flight -= 1


@pytest.fixture
def make_provider():
    """Factory for in-memory price providers."""
    return FakePriceProvider


@pytest.fixture
def milk_bread_provider() -> FakePriceProvider:
    """Stores A, B and C: A has both items, B only milk, C nothing."""
    return FakePriceProvider(
        ["A", "B", "C"],
        {
            ("A", "Milk"): (3.00, "alice"),
            ("A", "Bread"): (2.00, "bob"),
            ("B", "Milk"): (2.50, None),
        },
    )


@pytest.fixture
def milk_bread_items() -> list[ShoppingListItem]:
    return [ShoppingListItem(product_name="Milk"), ShoppingListItem(product_name="Bread")]


@pytest.fixture
async def async_engine():
    """Create an async SQLite engine for testing."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
async def async_session(async_engine) -> AsyncIterator[AsyncSession]:
    """Create an async session for testing."""
    factory = async_sessionmaker(async_engine, expire_on_commit=False)
    async with factory() as session:
        yield session


@pytest.fixture
def session_factory(async_engine):
    """A get_async_session stand-in bound to the test engine."""
    factory = async_sessionmaker(async_engine, expire_on_commit=False)

    @asynccontextmanager
    async def _get_session() -> AsyncIterator[AsyncSession]:
        async with factory() as session:
            yield session

    return _get_session


@pytest.fixture
def mock_session():
    """Mocked session for route tests that must not touch a database."""
    session = AsyncMock()
    session.execute = AsyncMock(return_value=MagicMock(scalar=MagicMock(return_value=1)))
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.close = AsyncMock()
    return session


@pytest.fixture
def client(milk_bread_provider, mock_session) -> Iterator[TestClient]:
    """Create a test client backed by the in-memory provider."""
    from cartwise.core.config import get_settings
    get_settings.cache_clear()

    @asynccontextmanager
    async def mock_get_session():
        yield mock_session

    from cartwise.main import app
    from cartwise.routes.comparison import get_price_provider

    app.dependency_overrides[get_price_provider] = lambda: milk_bread_provider
    try:
        with patch("cartwise.routes.comparison.get_async_session", mock_get_session):
            with patch("cartwise.routes.health.async_transaction", mock_get_session):
                with TestClient(app) as test_client:
                    yield test_client
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def test_settings():
    """Get test settings."""
    from cartwise.core.config import get_settings
    get_settings.cache_clear()
    return get_settings()
