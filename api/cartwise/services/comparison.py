from __future__ import annotations

import asyncio
import logging
from decimal import Decimal
from typing import Optional, Sequence

from cartwise.schemas.comparison import (
    PriceComparisonResult,
    ShoppingListItem,
    StorePriceSummary,
)
from cartwise.services.providers import PriceDataProvider

logger = logging.getLogger(__name__)

DEFAULT_MAX_RESULTS = 3
DEFAULT_CURRENCY = "USD"
DEFAULT_CONCURRENCY = 4


def _named_items(items: Sequence[ShoppingListItem]) -> list[ShoppingListItem]:
    """Drop items without a product name."""
    return [item for item in items if item.product_name]


def assemble(
    summaries: Sequence[StorePriceSummary],
    total_items: int,
    *,
    max_results: int = DEFAULT_MAX_RESULTS,
    currency_code: str = DEFAULT_CURRENCY,
) -> PriceComparisonResult:
    """Rank store summaries by total cost and build the bounded result.

    Ties on total price are broken by store name so the ordering never
    depends on the order stores were enumerated or finished in.
    ``available_items`` is the best coverage among the returned stores,
    not a sum across them.
    """
    if max_results < 1:
        raise ValueError(f"max_results must be at least 1 (got {max_results})")

    ranked = sorted(summaries, key=lambda s: (s.total_price, s.store))[:max_results]

    if not ranked:
        return PriceComparisonResult(
            store_prices=[],
            best_store=None,
            best_total_price=0.0,
            best_currency=currency_code,
            total_items=total_items,
            available_items=0,
        )

    best = ranked[0]
    return PriceComparisonResult(
        store_prices=ranked,
        best_store=best.store,
        best_total_price=best.total_price,
        best_currency=best.currency,
        total_items=total_items,
        available_items=max(s.available_item_count for s in ranked),
    )


class LocalPriceComparisonEngine:
    """Compares the cost of a shopping list across every known store.

    The engine keeps no state between calls: the provider is the only
    collaborator and each ``compare`` works on fresh accumulators.
    """

    def __init__(
        self,
        provider: PriceDataProvider,
        *,
        max_results: int = DEFAULT_MAX_RESULTS,
        currency_code: str = DEFAULT_CURRENCY,
        concurrency: int = DEFAULT_CONCURRENCY,
    ) -> None:
        if max_results < 1:
            raise ValueError(f"max_results must be at least 1 (got {max_results})")
        if concurrency < 1:
            raise ValueError(f"concurrency must be at least 1 (got {concurrency})")
        self.provider = provider
        self.max_results = max_results
        self.currency_code = currency_code
        self.concurrency = concurrency

    async def compare(self, items: Sequence[ShoppingListItem]) -> PriceComparisonResult:
        named = _named_items(items)

        stores = await self.provider.list_stores()
        if not stores:
            logger.info(f"No stores known; nothing to compare for {len(items)} item(s)")
            return self._assemble([], len(items))

        logger.debug(f"Comparing {len(named)} item(s) across {len(stores)} store(s)")

        semaphore = asyncio.Semaphore(self.concurrency)
        tasks = [
            asyncio.create_task(self._summarize_store(store, named, semaphore))
            for store in stores
        ]
        try:
            results = await asyncio.gather(*tasks)
        except Exception as exc:
            # One failed lookup aborts the comparison; stop the remaining stores
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            logger.error(f"Price comparison aborted: {exc}")
            raise

        summaries = [summary for summary in results if summary is not None]
        result = self._assemble(summaries, len(named))
        logger.info(
            f"Price comparison complete: {len(summaries)}/{len(stores)} store(s) priced, "
            f"best store {result.best_store or 'None'} at {result.best_total_price} {result.best_currency}"
        )
        return result

    def _assemble(self, summaries: Sequence[StorePriceSummary], total_items: int) -> PriceComparisonResult:
        return assemble(
            summaries,
            total_items,
            max_results=self.max_results,
            currency_code=self.currency_code,
        )

    async def _summarize_store(
        self,
        store: str,
        items: Sequence[ShoppingListItem],
        semaphore: asyncio.Semaphore,
    ) -> Optional[StorePriceSummary]:
        """Price every item at one store. Returns None when nothing is priced there."""
        total = Decimal("0")
        available = 0
        unavailable = 0
        item_prices: dict[str, float] = {}
        item_shoppers: dict[str, str] = {}

        async with semaphore:
            for item in items:
                name = item.product_name
                observation = await self.provider.price_and_contributor(item, store)
                # A zero price counts as missing
                if observation is not None and observation.price > 0:
                    total += Decimal(str(observation.price))
                    available += 1
                    # Repeated names share one key; the last lookup wins
                    item_prices[name] = observation.price
                    if observation.shopper:
                        item_shoppers[name] = observation.shopper
                else:
                    unavailable += 1

        if available == 0:
            logger.debug(f"Store {store}: no priced items, skipping")
            return None

        logger.debug(f"Store {store}: {available} available, {unavailable} unavailable, total {total}")
        return StorePriceSummary(
            store=store,
            total_price=float(total),
            currency=self.currency_code,
            available_item_count=available,
            unavailable_item_count=unavailable,
            item_prices=item_prices,
            item_shoppers=item_shoppers or None,
        )


__all__ = [
    "LocalPriceComparisonEngine",
    "assemble",
    "DEFAULT_MAX_RESULTS",
    "DEFAULT_CURRENCY",
    "DEFAULT_CONCURRENCY",
]
