from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import Boolean, DateTime, Float, ForeignKey, Index, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base


def _uuid() -> uuid.UUID:
    return uuid.uuid4()


def _now() -> datetime:
    return datetime.now(tz=timezone.utc)


class Location(Base):
    __tablename__ = "locations"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=_uuid)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    address: Mapped[Optional[str]] = mapped_column(String(255))
    city: Mapped[Optional[str]] = mapped_column(String(128))
    state: Mapped[Optional[str]] = mapped_column(String(64))
    zip_code: Mapped[Optional[str]] = mapped_column(String(16))
    favorited: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    is_default: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_now, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_now, onupdate=_now, nullable=False)

    prices: Mapped[list["GroceryItemPrice"]] = relationship(back_populates="location")


class GroceryItem(Base):
    __tablename__ = "grocery_items"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=_uuid)
    product_name: Mapped[Optional[str]] = mapped_column(String(255))
    brand: Mapped[Optional[str]] = mapped_column(String(128))
    category: Mapped[Optional[str]] = mapped_column(String(64))
    barcode: Mapped[Optional[str]] = mapped_column(String(64))
    image_url: Mapped[Optional[str]] = mapped_column(String(512))
    is_in_shopping_list: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    is_completed: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    is_favorite: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    is_on_sale: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_now, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_now, onupdate=_now, nullable=False)

    prices: Mapped[list["GroceryItemPrice"]] = relationship(back_populates="grocery_item")

    __table_args__ = (
        Index("ix_grocery_item_product_name", "product_name"),
        Index("ix_grocery_item_shopping_list", "is_in_shopping_list"),
    )


class GroceryItemPrice(Base):
    """A single shopper-reported price for one item at one store."""

    __tablename__ = "grocery_item_prices"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=_uuid)
    grocery_item_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("grocery_items.id"), nullable=False)
    location_id: Mapped[Optional[uuid.UUID]] = mapped_column(ForeignKey("locations.id"), nullable=True)
    store: Mapped[Optional[str]] = mapped_column(String(255))
    price: Mapped[float] = mapped_column(Float, nullable=False)
    currency: Mapped[str] = mapped_column(String(3), default="USD", nullable=False)
    updated_by: Mapped[Optional[str]] = mapped_column(String(128))  # shopper who reported it
    last_updated: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), default=_now)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_now, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_now, onupdate=_now, nullable=False)

    grocery_item: Mapped[GroceryItem] = relationship(back_populates="prices")
    location: Mapped[Optional[Location]] = relationship(back_populates="prices")

    __table_args__ = (
        Index("ix_grocery_item_price_store", "store"),
        Index("ix_grocery_item_price_item_store", "grocery_item_id", "store"),  # per-store lookups
        Index("ix_grocery_item_price_last_updated", "last_updated"),
    )


__all__ = ["Location", "GroceryItem", "GroceryItemPrice"]
