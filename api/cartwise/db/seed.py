from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone

from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession

from cartwise.core.logging import configure_logging
from cartwise.db.base import Base
from cartwise.db.models import GroceryItem, GroceryItemPrice, Location
from cartwise.db.session import get_async_engine, get_async_session

logger = logging.getLogger(__name__)

SEED_SHOPPER = "TestData"
PRICE_STEP_PER_STORE = 0.10

# (name, address, city, state, zip)
STORES = [
    ("Walmart", "123 Main St", "Springfield", "IL", "62701"),
    ("Target", "456 Oak Ave", "Springfield", "IL", "62702"),
    ("Kroger", "789 Pine Rd", "Springfield", "IL", "62703"),
    ("Safeway", "321 Elm St", "Springfield", "IL", "62704"),
    ("Whole Foods", "654 Maple Dr", "Springfield", "IL", "62705"),
    ("Trader Joe's", "987 Cedar Ln", "Springfield", "IL", "62706"),
]

# (name, barcode, category, base price)
GROCERY_ITEMS = [
    ("Milk 2%", "1234567890123", "Dairy", 3.99),
    ("Eggs Large", "1234567890124", "Dairy", 4.99),
    ("Cheese Cheddar", "1234567890125", "Dairy", 5.99),
    ("Butter Unsalted", "1234567890127", "Dairy", 4.49),
    ("Bananas", "1234567890131", "Produce", 1.99),
    ("Apples Red", "1234567890132", "Produce", 3.99),
    ("Tomatoes", "1234567890134", "Produce", 2.99),
    ("Bread White", "1234567890140", "Bakery", 2.49),
    ("Bagels Plain", "1234567890142", "Bakery", 3.49),
    ("Ketchup", "1234567890187", "Condiments", 2.99),
    ("Honey", "1234567890194", "Condiments", 4.99),
    ("Brown Sugar", "1234567890201", "Baking", 2.99),
]


async def seed_sample_data(session: AsyncSession) -> None:
    """Replace the catalog with sample stores, items and prices.

    Every item is priced at every store, 10 cents dearer per store in
    listing order. Every fifth item is placed on the shopping list.
    """
    await session.execute(delete(GroceryItemPrice))
    await session.execute(delete(GroceryItem))
    await session.execute(delete(Location))

    now = datetime.now(timezone.utc)
    locations = []
    for index, (name, address, city, state, zip_code) in enumerate(STORES):
        location = Location(
            name=name,
            address=address,
            city=city,
            state=state,
            zip_code=zip_code,
            favorited=index < 2,
            is_default=index == 0,
        )
        session.add(location)
        locations.append(location)
    await session.flush()

    for index, (name, barcode, category, base_price) in enumerate(GROCERY_ITEMS):
        item = GroceryItem(
            product_name=name,
            brand="Test Brand",
            category=category,
            barcode=barcode,
            is_in_shopping_list=index % 5 == 0,
            is_on_sale=index % 10 == 0,
        )
        session.add(item)
        await session.flush()

        for store_index, location in enumerate(locations):
            session.add(
                GroceryItemPrice(
                    grocery_item_id=item.id,
                    location_id=location.id,
                    store=location.name,
                    price=round(base_price + store_index * PRICE_STEP_PER_STORE, 2),
                    currency="USD",
                    updated_by=SEED_SHOPPER,
                    last_updated=now,
                )
            )

    await session.commit()
    logger.info(f"Seeded {len(STORES)} stores and {len(GROCERY_ITEMS)} items")


async def seed() -> None:
    async with get_async_engine().begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    async with get_async_session() as session:
        await seed_sample_data(session)


if __name__ == "__main__":
    configure_logging()
    asyncio.run(seed())
