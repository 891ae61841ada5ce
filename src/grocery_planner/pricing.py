"""Retailer pricing and availability.

Plan generation only talks to a ``PricingOracle``. ``DealPricingOracle`` is
the local implementation: active deals first, otherwise the catalog's
reference price scaled by the retailer's price factor. Availability is a
stable hash of (retailer, product) compared with the retailer's rate, so
the same inputs always produce the same plan.
"""

import logging
import zlib
from datetime import datetime
from typing import Iterable, Protocol

from .catalog import Catalog
from .categorizer import ProductCategorizer
from .item_normalizer import identity_key
from .matching import plural_equal
from .models import Deal, PriceQuote, Retailer
from .similarity import similarity

logger = logging.getLogger(__name__)

DEFAULT_BASELINE_AVAILABILITY = 0.85
DEAL_MATCH_THRESHOLD = 0.8


class PricingOracle(Protocol):
    """Anything that can price an item at a retailer."""

    def quote(self, retailer: Retailer, item_name: str) -> PriceQuote: ...


def availability_roll(retailer_id: int, key: str) -> float:
    """Deterministic value in [0, 1) for a retailer/product pair."""
    return zlib.crc32(f"{retailer_id}:{key}".encode()) % 1000 / 1000


class DealPricingOracle:
    """Prices items from active deals and catalog reference prices."""

    def __init__(
        self,
        deals: Iterable[Deal] = (),
        catalog: Catalog | None = None,
        categorizer: ProductCategorizer | None = None,
        now: datetime | None = None,
        baseline_availability: float = DEFAULT_BASELINE_AVAILABILITY,
    ):
        """Initialize oracle.

        Args:
            deals: Known deals; expired ones are ignored
            catalog: Catalog supplying reference prices
            categorizer: ProductCategorizer for category fallback prices
            now: Reference time for deal activity
            baseline_availability: Share of products a retailer stocks
        """
        self.categorizer = categorizer or ProductCategorizer(catalog)
        self.catalog = catalog or self.categorizer.catalog
        self.baseline_availability = baseline_availability

        self._deals: dict[int, list[tuple[str, Deal]]] = {}
        for deal in deals:
            if deal.is_active(now):
                self._deals.setdefault(deal.retailer_id, []).append(
                    (identity_key(deal.product_name), deal)
                )

    def find_deal(self, retailer: Retailer, item_name: str) -> Deal | None:
        """Cheapest active deal at the retailer for this product."""
        key = identity_key(item_name)
        matches = [
            deal
            for deal_key, deal in self._deals.get(retailer.id, [])
            if plural_equal(key, deal_key) or similarity(key, deal_key) > DEAL_MATCH_THRESHOLD
        ]
        if not matches:
            return None
        return min(matches, key=lambda deal: deal.sale_price)

    def is_available(self, retailer: Retailer, item_name: str) -> bool:
        """Whether the retailer stocks the product."""
        key = identity_key(item_name)
        if any(plural_equal(key, identity_key(name)) for name in retailer.out_of_stock):
            return False
        rate = self.baseline_availability + retailer.availability_offset
        return availability_roll(retailer.id, key) < rate

    def quote(self, retailer: Retailer, item_name: str) -> PriceQuote:
        """Price one unit of an item at a retailer.

        Args:
            retailer: Retailer to price at
            item_name: Item name

        Returns:
            PriceQuote in cents; ``available=False`` with no price when the
            retailer doesn't stock it
        """
        deal = self.find_deal(retailer, item_name)
        if deal is not None:
            return PriceQuote(
                price=deal.sale_price,
                is_deal=True,
                available=True,
                regular_price=deal.regular_price,
            )

        if not self.is_available(retailer, item_name):
            logger.debug("%s unavailable at %s", item_name, retailer.name)
            return PriceQuote(available=False)

        category = self.categorizer.categorize(item_name).category
        base = self.catalog.reference_price(identity_key(item_name), category)
        price = max(1, round(base * retailer.price_factor))
        return PriceQuote(price=price, is_deal=False, available=True, regular_price=price)
