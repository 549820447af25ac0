from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from cartwise.core.errors import DataAccessError
from cartwise.db.models import GroceryItem
from cartwise.schemas.comparison import ShoppingListItem

logger = logging.getLogger(__name__)


async def fetch_shopping_list(session: AsyncSession) -> list[ShoppingListItem]:
    """Return the items still to buy on the user's shopping list, oldest first."""
    query = (
        select(GroceryItem)
        .where(GroceryItem.is_in_shopping_list.is_(True))
        .where(GroceryItem.is_completed.is_(False))
        .order_by(GroceryItem.created_at, GroceryItem.id)
    )
    try:
        result = await session.execute(query)
        rows = result.scalars().all()
    except SQLAlchemyError as exc:
        logger.error(f"Failed to read shopping list: {exc}")
        raise DataAccessError("Could not read shopping list") from exc

    return [
        ShoppingListItem(
            id=item.id,
            product_name=item.product_name,
            brand=item.brand,
            category=item.category,
        )
        for item in rows
    ]


__all__ = ["fetch_shopping_list"]
