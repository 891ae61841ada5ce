"""Multi-retailer shopping plan generation."""

import logging
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime
from typing import Sequence
from uuid import UUID

from .catalog import Catalog
from .config import PlanningConfig
from .data_store import DataStore, DataStoreProtocol
from .list_manager import NoShoppingListAvailableError, list_lock
from .models import (
    Plan,
    PlanLine,
    PlanType,
    PriceQuote,
    Retailer,
    ShoppingListEntry,
    StoreAllocation,
)
from .pricing import DealPricingOracle, PricingOracle

logger = logging.getLogger(__name__)

BASE_MINUTES = 10
MINUTES_PER_ITEM = 2
MINUTES_PER_EXTRA_STORE = 15


class NoRetailersAvailableError(Exception):
    """Raised when a plan is requested with no retailers to shop at."""

    def __init__(self):
        super().__init__("No retailers available; add a retailer first")


def estimate_time(item_count: int, store_count: int) -> str:
    """Rough shopping time range for a plan."""
    if item_count == 0 or store_count == 0:
        return "0 min"
    minutes = (
        BASE_MINUTES
        + MINUTES_PER_ITEM * item_count
        + MINUTES_PER_EXTRA_STORE * (store_count - 1)
    )
    return f"{minutes}-{minutes + 10} min"


class PlanGenerator:
    """Partitions a list across retailers under one of three objectives.

    Every input item ends up on exactly one store line. Items a retailer
    doesn't carry stay on the plan flagged unavailable with a zero line
    total. Ties go to the retailer listed first.
    """

    def __init__(
        self,
        oracle: PricingOracle,
        max_workers: int = 1,
        best_value_premium: float = 0.15,
        balanced_premium: float = 0.12,
        reference_item_cost: int = 500,
    ):
        """Initialize plan generator.

        Args:
            oracle: Pricing and availability source
            max_workers: Threads used to fetch quotes; 1 fetches serially
            best_value_premium: Assumed single-store markup for best-value savings
            balanced_premium: Assumed single-store markup for balanced savings
            reference_item_cost: Typical item cost in cents for balanced scoring
        """
        self.oracle = oracle
        self.max_workers = max_workers
        self.best_value_premium = best_value_premium
        self.balanced_premium = balanced_premium
        self.reference_item_cost = reference_item_cost

    def generate(
        self,
        items: Sequence[ShoppingListEntry],
        retailers: Sequence[Retailer],
        plan_type: PlanType | str,
    ) -> Plan:
        """Build a costed plan.

        Args:
            items: Entries to buy
            retailers: Candidate retailers in preference order
            plan_type: single-store, best-value or balanced

        Returns:
            Plan; empty (no stores, zero cost) when there are no items

        Raises:
            NoRetailersAvailableError: If retailers is empty and there are items
        """
        plan_type = PlanType(plan_type)
        if not items:
            return Plan(plan_type=plan_type)
        if not retailers:
            raise NoRetailersAvailableError()

        quotes = self._gather_quotes(items, retailers)

        if plan_type == PlanType.BEST_VALUE:
            plan = self._best_value(items, retailers, quotes)
        elif plan_type == PlanType.BALANCED:
            plan = self._balanced(items, retailers, quotes)
        else:
            plan = self._single_store(items, retailers, quotes)

        logger.info(
            "%s plan: %d items across %d stores, total %d",
            plan_type.value,
            len(items),
            plan.store_count,
            plan.total_cost,
        )
        return plan

    def _gather_quotes(
        self, items: Sequence[ShoppingListEntry], retailers: Sequence[Retailer]
    ) -> list[list[PriceQuote]]:
        """Quote every item at every retailer; ``quotes[item][retailer]``."""
        pairs = [(item, retailer) for item in items for retailer in retailers]

        def fetch(pair: tuple[ShoppingListEntry, Retailer]) -> PriceQuote:
            item, retailer = pair
            return self.oracle.quote(retailer, item.canonical_name)

        if self.max_workers > 1:
            with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
                flat = list(executor.map(fetch, pairs))
        else:
            flat = [fetch(pair) for pair in pairs]

        width = len(retailers)
        return [flat[i * width : (i + 1) * width] for i in range(len(items))]

    @staticmethod
    def _line(
        item: ShoppingListEntry, quote: PriceQuote, substitute: int | None = None
    ) -> PlanLine:
        priced = quote.available and quote.price is not None
        return PlanLine(
            entry_id=item.id,
            name=item.canonical_name,
            quantity=item.quantity,
            unit=item.unit.value,
            unit_price=quote.price if priced else None,
            line_total=round(quote.price * item.quantity) if priced else 0,
            is_deal=quote.is_deal and priced,
            available=priced,
            substitute_retailer_id=None if priced else substitute,
        )

    @staticmethod
    def _column_stats(
        items: Sequence[ShoppingListEntry], column: list[PriceQuote]
    ) -> tuple[float, int, int]:
        """Availability rate, deal count and total cost for one retailer."""
        available = 0
        deals = 0
        total = 0
        for item, quote in zip(items, column):
            if quote.available and quote.price is not None:
                available += 1
                deals += int(quote.is_deal)
                total += round(quote.price * item.quantity)
        return available / len(items), deals, total

    def _allocate_to(
        self,
        index: int,
        items: Sequence[ShoppingListEntry],
        retailers: Sequence[Retailer],
        quotes: list[list[PriceQuote]],
    ) -> StoreAllocation:
        """Put every item at one retailer, pointing misses at a substitute."""
        retailer = retailers[index]
        lines = []
        for row, item in zip(quotes, items):
            substitute = next(
                (
                    retailers[other].id
                    for other, quote in enumerate(row)
                    if other != index and quote.available and quote.price is not None
                ),
                None,
            )
            lines.append(self._line(item, row[index], substitute))
        return StoreAllocation(retailer_id=retailer.id, retailer_name=retailer.name, items=lines)

    def _single_store_plan(
        self,
        plan_type: PlanType,
        allocation: StoreAllocation,
        item_count: int,
        savings: int,
    ) -> Plan:
        return Plan(
            plan_type=plan_type,
            stores=[allocation],
            estimated_time=estimate_time(item_count, 1),
            savings=savings,
            unavailable_items=[line.name for line in allocation.items if not line.available],
        )

    def _single_store(self, items, retailers, quotes) -> Plan:
        best_index = 0
        best_score = float("-inf")
        for index in range(len(retailers)):
            column = [row[index] for row in quotes]
            rate, deals, total = self._column_stats(items, column)
            score = rate + 0.1 * deals - total / 10000
            logger.debug("single-store score %s: %.4f", retailers[index].name, score)
            if score > best_score:
                best_index, best_score = index, score

        allocation = self._allocate_to(best_index, items, retailers, quotes)
        savings = 0
        for item, row in zip(items, quotes):
            quote = row[best_index]
            if quote.is_deal and quote.available and quote.price is not None:
                regular = quote.regular_price or quote.price
                savings += round(max(0, regular - quote.price) * item.quantity)
        return self._single_store_plan(PlanType.SINGLE_STORE, allocation, len(items), savings)

    def _best_value(self, items, retailers, quotes) -> Plan:
        assigned: dict[int, list[PlanLine]] = {}
        for item, row in zip(items, quotes):
            cheapest = None
            for index, quote in enumerate(row):
                if not quote.available or quote.price is None:
                    continue
                if cheapest is None or quote.price < row[cheapest].price:
                    cheapest = index
            if cheapest is None:
                # Available nowhere: keep it on the first store's list, flagged.
                assigned.setdefault(0, []).append(self._line(item, row[0]))
            else:
                assigned.setdefault(cheapest, []).append(self._line(item, row[cheapest]))

        stores = [
            StoreAllocation(
                retailer_id=retailers[index].id,
                retailer_name=retailers[index].name,
                items=assigned[index],
            )
            for index in range(len(retailers))
            if index in assigned
        ]
        plan = Plan(
            plan_type=PlanType.BEST_VALUE,
            stores=stores,
            estimated_time=estimate_time(len(items), len(stores)),
            unavailable_items=[
                line.name for store in stores for line in store.items if not line.available
            ],
        )
        plan.savings = round(plan.total_cost * self.best_value_premium)
        return plan

    def _balanced(self, items, retailers, quotes) -> Plan:
        count = len(items)
        best_index = 0
        best_score = float("-inf")
        for index in range(len(retailers)):
            column = [row[index] for row in quotes]
            rate, deals, total = self._column_stats(items, column)
            score = (
                0.4 * rate
                + 0.3 * (deals / count)
                + 0.3 * (1 - total / (count * self.reference_item_cost))
            )
            logger.debug("balanced score %s: %.4f", retailers[index].name, score)
            if score > best_score:
                best_index, best_score = index, score

        allocation = self._allocate_to(best_index, items, retailers, quotes)
        savings = round(allocation.subtotal * self.balanced_premium)
        return self._single_store_plan(PlanType.BALANCED, allocation, count, savings)


class PlanManager:
    """Generates plans for stored lists."""

    def __init__(
        self,
        data_store: DataStoreProtocol | None = None,
        planning: PlanningConfig | None = None,
        catalog: Catalog | None = None,
        oracle: PricingOracle | None = None,
    ):
        """Initialize plan manager.

        Args:
            data_store: DataStore instance. Creates new one if not provided.
            planning: Planning configuration
            catalog: Catalog for the default pricing oracle
            oracle: Pricing source. Builds a DealPricingOracle from stored
                deals on every request if not provided.
        """
        self.data_store = data_store or DataStore()
        self.planning = planning or PlanningConfig()
        self.catalog = catalog
        self.oracle = oracle

    def _resolve_list(self, list_id: UUID | str | None):
        if list_id is None:
            shopping_list = self.data_store.get_default_list()
        else:
            try:
                shopping_list = self.data_store.load_list(UUID(str(list_id)))
            except ValueError:
                shopping_list = None
        if shopping_list is None:
            raise NoShoppingListAvailableError(list_id)
        return shopping_list

    def _generator(self, now: datetime | None) -> PlanGenerator:
        oracle = self.oracle or DealPricingOracle(
            self.data_store.get_deals(now=now),
            catalog=self.catalog,
            now=now,
            baseline_availability=self.planning.baseline_availability,
        )
        return PlanGenerator(
            oracle,
            max_workers=self.planning.max_workers,
            best_value_premium=self.planning.best_value_premium,
            balanced_premium=self.planning.balanced_premium,
            reference_item_cost=self.planning.reference_item_cost,
        )

    def generate_plan(
        self,
        list_id: UUID | str | None = None,
        plan_type: PlanType | str = PlanType.BEST_VALUE,
        apply: bool = False,
        now: datetime | None = None,
    ) -> dict:
        """Generate a plan for a list's active items.

        Args:
            list_id: List ID. Uses the default list if not provided.
            plan_type: single-store, best-value or balanced
            apply: Record each item's planned retailer and price on the entry
            now: Reference time for deal activity

        Returns:
            Dict with success status and plan data

        Raises:
            NoShoppingListAvailableError: If no list can be resolved
            NoRetailersAvailableError: If the list has items but no retailers exist
        """
        shopping_list = self._resolve_list(list_id)
        plan = self._generator(now).generate(
            shopping_list.active_items, self.data_store.load_retailers(), plan_type
        )

        if apply:
            self._apply(plan, shopping_list.id)

        return {
            "success": True,
            "message": (
                f"{plan.plan_type.value} plan for {shopping_list.name}: "
                f"{plan.store_count} stores"
            ),
            "data": {"plan": plan.model_dump(mode="json")},
        }

    def compare_plans(self, list_id: UUID | str | None = None, now: datetime | None = None) -> dict:
        """Generate all three plan types side by side."""
        shopping_list = self._resolve_list(list_id)
        retailers = self.data_store.load_retailers()
        generator = self._generator(now)
        plans = [
            generator.generate(shopping_list.active_items, retailers, plan_type)
            for plan_type in PlanType
        ]
        return {
            "success": True,
            "data": {"plans": [plan.model_dump(mode="json") for plan in plans]},
        }

    def _apply(self, plan: Plan, list_id: UUID) -> None:
        with list_lock(list_id):
            for store in plan.stores:
                for line in store.items:
                    if line.entry_id is None:
                        continue
                    self.data_store.update_shopping_list_item(
                        line.entry_id,
                        {
                            "suggested_retailer_id": store.retailer_id if line.available else None,
                            "suggested_price": line.unit_price,
                        },
                    )
