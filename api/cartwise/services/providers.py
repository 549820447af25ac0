from __future__ import annotations

import logging
from typing import AsyncContextManager, Callable, Optional, Protocol

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from cartwise.core.errors import DataAccessError
from cartwise.db.models import GroceryItem, GroceryItemPrice
from cartwise.db.session import get_async_session
from cartwise.schemas.comparison import PriceObservation, ShoppingListItem

logger = logging.getLogger(__name__)

SessionFactory = Callable[[], AsyncContextManager[AsyncSession]]


class PriceDataProvider(Protocol):
    """Read-only access to store names and shopper-reported prices."""

    async def list_stores(self) -> list[str]:
        ...

    async def price_and_contributor(
        self, item: ShoppingListItem, store: str
    ) -> Optional[PriceObservation]:
        """Return the most relevant observation for ``item`` at ``store``, or None if there is none."""
        ...


class SqlPriceDataProvider:
    """Price data provider backed by the relational store.

    Every call opens its own session so that lookups for different stores
    can run concurrently.
    """

    def __init__(self, session_factory: SessionFactory = get_async_session) -> None:
        self._session_factory = session_factory

    async def list_stores(self) -> list[str]:
        query = (
            select(GroceryItemPrice.store)
            .where(GroceryItemPrice.store.is_not(None))
            .where(GroceryItemPrice.store != "")
            .distinct()
            .order_by(GroceryItemPrice.store)
        )
        try:
            async with self._session_factory() as session:
                result = await session.execute(query)
                stores = list(result.scalars().all())
        except SQLAlchemyError as exc:
            logger.error(f"Failed to list stores: {exc}")
            raise DataAccessError("Could not read store names") from exc
        return stores

    async def price_and_contributor(
        self, item: ShoppingListItem, store: str
    ) -> Optional[PriceObservation]:
        if not item.product_name:
            return None

        # Most recently updated observation wins
        query = (
            select(GroceryItemPrice.price, GroceryItemPrice.updated_by)
            .join(GroceryItem, GroceryItem.id == GroceryItemPrice.grocery_item_id)
            .where(func.lower(GroceryItem.product_name) == item.product_name.lower())
            .where(GroceryItemPrice.store == store)
            .order_by(
                GroceryItemPrice.last_updated.desc().nulls_last(),
                GroceryItemPrice.created_at.desc(),
            )
            .limit(1)
        )
        try:
            async with self._session_factory() as session:
                result = await session.execute(query)
                row = result.first()
        except SQLAlchemyError as exc:
            logger.error(f"Failed to look up price for {item.product_name!r} at {store!r}: {exc}")
            raise DataAccessError(f"Could not read price for {item.product_name!r} at {store!r}") from exc

        if row is None:
            return None
        price, shopper = row
        return PriceObservation(price=price, shopper=shopper or None)


__all__ = ["PriceDataProvider", "SqlPriceDataProvider", "SessionFactory"]
