from __future__ import annotations

from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class ShoppingListItem(BaseModel):
    """A product the user wants to buy. Items without a name are ignored when comparing."""

    model_config = ConfigDict(frozen=True)

    product_name: Optional[str] = None
    id: Optional[UUID] = None
    brand: Optional[str] = None
    category: Optional[str] = None


class PriceObservation(BaseModel):
    model_config = ConfigDict(frozen=True)

    price: float
    shopper: Optional[str] = None


class StorePriceSummary(BaseModel):
    model_config = ConfigDict(frozen=True)

    store: str
    total_price: float
    currency: str
    available_item_count: int = Field(ge=0)
    unavailable_item_count: int = Field(ge=0)
    item_prices: dict[str, float]
    item_shoppers: Optional[dict[str, str]] = None


class PriceComparisonResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    store_prices: list[StorePriceSummary]
    best_store: Optional[str] = None
    best_total_price: float = 0.0
    best_currency: str
    total_items: int = Field(ge=0)
    available_items: int = Field(ge=0, description="Highest item coverage among the returned stores")


class PriceComparisonRequest(BaseModel):
    items: list[ShoppingListItem] = Field(..., min_length=1, max_length=100)


class StoreListResponse(BaseModel):
    stores: list[str]


__all__ = [
    "ShoppingListItem",
    "PriceObservation",
    "StorePriceSummary",
    "PriceComparisonResult",
    "PriceComparisonRequest",
    "StoreListResponse",
]
