from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status

from cartwise.core.config import get_settings
from cartwise.core.errors import DataAccessError
from cartwise.db.session import get_async_session
from cartwise.schemas.comparison import (
    PriceComparisonRequest,
    PriceComparisonResult,
    StoreListResponse,
)
from cartwise.services.comparison import LocalPriceComparisonEngine
from cartwise.services.providers import PriceDataProvider, SqlPriceDataProvider
from cartwise.services.shopping_list import fetch_shopping_list

logger = logging.getLogger(__name__)

router = APIRouter(tags=["price-comparison"])


def get_price_provider() -> PriceDataProvider:
    return SqlPriceDataProvider(get_async_session)


def get_comparison_engine(
    provider: PriceDataProvider = Depends(get_price_provider),
) -> LocalPriceComparisonEngine:
    settings = get_settings()
    return LocalPriceComparisonEngine(
        provider,
        max_results=settings.comparison_max_results,
        currency_code=settings.comparison_currency,
        concurrency=settings.comparison_concurrency,
    )


def _unavailable() -> HTTPException:
    return HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Price data unavailable")


@router.post("/price-comparison", response_model=PriceComparisonResult)
async def compare_prices(
    request: PriceComparisonRequest,
    engine: LocalPriceComparisonEngine = Depends(get_comparison_engine),
) -> PriceComparisonResult:
    """Compare the cost of the given items across known stores."""
    try:
        return await engine.compare(request.items)
    except DataAccessError:
        logger.exception("Price comparison failed")
        raise _unavailable()


@router.get("/shopping-list/price-comparison", response_model=Optional[PriceComparisonResult])
async def compare_shopping_list(
    engine: LocalPriceComparisonEngine = Depends(get_comparison_engine),
) -> Optional[PriceComparisonResult]:
    """Compare the saved shopping list. Returns null when the list is empty."""
    try:
        async with get_async_session() as session:
            items = await fetch_shopping_list(session)
    except DataAccessError:
        logger.exception("Failed to load shopping list")
        raise _unavailable()

    if not items:
        logger.info("Shopping list is empty; skipping price comparison")
        return None

    try:
        return await engine.compare(items)
    except DataAccessError:
        logger.exception("Shopping list price comparison failed")
        raise _unavailable()


@router.get("/stores", response_model=StoreListResponse)
async def list_stores(
    provider: PriceDataProvider = Depends(get_price_provider),
) -> StoreListResponse:
    try:
        stores = await provider.list_stores()
    except DataAccessError:
        logger.exception("Failed to list stores")
        raise _unavailable()
    return StoreListResponse(stores=stores)
