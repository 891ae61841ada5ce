"""Tests for plan generation."""

import threading
from datetime import timedelta

import pytest

from conftest import TableOracle, make_entry, price
from grocery_planner.models import PlanType, Retailer, Unit
from grocery_planner.planner import (
    NoRetailersAvailableError,
    PlanGenerator,
    PlanManager,
    estimate_time,
)
from grocery_planner.pricing import DealPricingOracle


@pytest.fixture
def stores():
    return [Retailer(id=1, name="A"), Retailer(id=2, name="B")]


@pytest.fixture
def basket():
    return [
        make_entry("Milk", 2, Unit.GALLON),
        make_entry("Bread", 1),
        make_entry("Eggs", 1, Unit.DOZEN),
    ]


def line_names(store):
    return [line.name for line in store.items]


class TestEmptyAndErrors:
    @pytest.mark.parametrize("plan_type", list(PlanType))
    def test_empty_items(self, plan_type, stores):
        plan = PlanGenerator(TableOracle({})).generate([], stores, plan_type)
        assert plan.stores == []
        assert plan.total_cost == 0
        assert plan.store_count == 0
        assert plan.estimated_time == "0 min"

    @pytest.mark.parametrize("plan_type", list(PlanType))
    def test_empty_items_without_retailers(self, plan_type):
        assert PlanGenerator(TableOracle({})).generate([], [], plan_type).total_cost == 0

    def test_no_retailers(self, basket):
        with pytest.raises(NoRetailersAvailableError):
            PlanGenerator(TableOracle({})).generate(basket, [], PlanType.BEST_VALUE)

    def test_plan_type_from_string(self, basket, stores):
        plan = PlanGenerator(TableOracle({})).generate(basket, stores, "balanced")
        assert plan.plan_type == PlanType.BALANCED


class TestSingleStore:
    def test_cost_counts_available_items_only(self, basket, stores):
        oracle = TableOracle(
            {
                (1, "Milk"): price(300),
                (1, "Bread"): price(250),
                (2, "Milk"): price(2000),
                (2, "Bread"): price(2000),
                (2, "Eggs"): price(2000),
            }
        )
        plan = PlanGenerator(oracle).generate(basket, stores, PlanType.SINGLE_STORE)

        assert plan.store_count == 1
        store = plan.stores[0]
        assert store.retailer_id == 1
        assert line_names(store) == ["Milk", "Bread", "Eggs"]
        assert plan.total_cost == 300 * 2 + 250
        eggs = store.items[2]
        assert eggs.available is False
        assert eggs.line_total == 0
        assert eggs.substitute_retailer_id == 2
        assert plan.unavailable_items == ["Eggs"]
        assert plan.estimated_time == "16-26 min"

    def test_deal_savings(self, stores):
        oracle = TableOracle({(1, "Milk"): price(350, deal=True, regular=399)})
        plan = PlanGenerator(oracle).generate(
            [make_entry("Milk", 2, Unit.GALLON)], stores, PlanType.SINGLE_STORE
        )
        assert plan.savings == 49 * 2

    def test_tie_goes_to_first_retailer(self, stores):
        oracle = TableOracle({(1, "Milk"): price(300), (2, "Milk"): price(300)})
        plan = PlanGenerator(oracle).generate([make_entry("Milk")], stores, "single-store")
        assert plan.stores[0].retailer_id == 1


class TestBestValue:
    def test_cheapest_store_per_item(self, basket, stores):
        oracle = TableOracle(
            {
                (1, "Milk"): price(300, deal=True, regular=400),
                (1, "Bread"): price(250),
                (2, "Milk"): price(380),
                (2, "Bread"): price(200),
                (2, "Eggs"): price(350),
            }
        )
        plan = PlanGenerator(oracle).generate(basket, stores, PlanType.BEST_VALUE)

        assert [s.retailer_id for s in plan.stores] == [1, 2]
        assert line_names(plan.stores[0]) == ["Milk"]
        assert line_names(plan.stores[1]) == ["Bread", "Eggs"]
        assert plan.stores[0].items[0].is_deal is True
        assert plan.total_cost == 600 + 200 + 350
        assert plan.total_cost == sum(s.subtotal for s in plan.stores)
        assert plan.savings == round(plan.total_cost * 0.15)
        assert plan.estimated_time == "31-41 min"

    def test_unavailable_everywhere_is_flagged_not_dropped(self, stores):
        plan = PlanGenerator(TableOracle({})).generate(
            [make_entry("Saffron")], stores, PlanType.BEST_VALUE
        )
        assert plan.stores[0].retailer_id == 1
        assert plan.stores[0].items[0].available is False
        assert plan.unavailable_items == ["Saffron"]
        assert plan.total_cost == 0

    def test_allocation_is_complete(self):
        items = [
            make_entry("Milk", 1, Unit.GALLON),
            make_entry("Eggs", 1, Unit.DOZEN),
            make_entry("Bread"),
            make_entry("Bananas", 2, Unit.LB),
            make_entry("Salmon", 1, Unit.LB),
        ]
        retailers = [
            Retailer(id=1, name="A", price_factor=1.0),
            Retailer(id=2, name="B", price_factor=0.9, availability_offset=-0.2),
            Retailer(id=3, name="C", price_factor=1.2, availability_offset=0.1),
        ]
        plan = PlanGenerator(DealPricingOracle()).generate(items, retailers, PlanType.BEST_VALUE)

        allocated = [line.entry_id for store in plan.stores for line in store.items]
        assert sorted(allocated) == sorted(item.id for item in items)
        assert len(allocated) == len(set(allocated))

    def test_price_ties_go_to_first_retailer(self, stores):
        oracle = TableOracle({(1, "Milk"): price(300), (2, "Milk"): price(300)})
        plan = PlanGenerator(oracle).generate([make_entry("Milk")], stores, PlanType.BEST_VALUE)
        assert [s.retailer_id for s in plan.stores] == [1]


class TestBalanced:
    def test_deal_density_changes_the_pick(self, stores):
        items = [make_entry("Milk"), make_entry("Bread")]
        oracle = TableOracle(
            {
                (1, "Milk"): price(400),
                (1, "Bread"): price(300),
                (2, "Milk"): price(350, deal=True, regular=399),
            }
        )
        generator = PlanGenerator(oracle, reference_item_cost=500)

        single = generator.generate(items, stores, PlanType.SINGLE_STORE)
        balanced = generator.generate(items, stores, PlanType.BALANCED)

        assert single.stores[0].retailer_id == 1
        assert balanced.stores[0].retailer_id == 2
        assert balanced.total_cost == 350
        assert balanced.savings == 42
        assert balanced.unavailable_items == ["Bread"]


class TestQuoteGathering:
    def test_one_quote_per_item_and_retailer(self, basket, stores):
        oracle = TableOracle({})
        PlanGenerator(oracle).generate(basket, stores, PlanType.BEST_VALUE)
        assert len(oracle.calls) == len(basket) * len(stores)

    def test_parallel_matches_serial(self, basket):
        retailers = [Retailer(id=i, name=f"R{i}", price_factor=1 + i / 10) for i in range(1, 5)]
        oracle = DealPricingOracle()
        serial = PlanGenerator(oracle).generate(basket, retailers, PlanType.BEST_VALUE)
        parallel = PlanGenerator(oracle, max_workers=4).generate(
            basket, retailers, PlanType.BEST_VALUE
        )
        assert parallel.model_dump() == serial.model_dump()


class TestEstimateTime:
    def test_empty(self):
        assert estimate_time(0, 0) == "0 min"

    def test_extra_stores(self):
        assert estimate_time(5, 3) == "50-60 min"


class TestScenario:
    """Milk on sale at the first of two stores."""

    def test_best_value_uses_the_deal(self, retailers, milk_deal, categorizer, normalizer):
        assert categorizer.categorize("Eggs").category.value == "Dairy & Eggs"
        eggs = normalizer.normalize("Eggs", 12, "COUNT")
        assert (eggs.suggested_quantity, eggs.suggested_unit) == (1, "DOZEN")

        items = [make_entry("Milk", 1, Unit.GALLON), make_entry("Eggs", 12, Unit.COUNT)]
        plan = PlanGenerator(DealPricingOracle([milk_deal])).generate(
            items, retailers, PlanType.BEST_VALUE
        )

        milk = next(
            (store.retailer_id, line)
            for store in plan.stores
            for line in store.items
            if line.name == "Milk"
        )
        assert milk[0] == 1
        assert milk[1].unit_price == 350
        assert milk[1].is_deal is True


class TestPlanManager:
    """Tests for plans over stored lists."""

    @pytest.fixture
    def stocked(self, data_store, list_manager, shopping_list, retailers, milk_deal):
        data_store.save_retailers(retailers)
        data_store.save_deals([milk_deal])
        list_manager.add_item("Milk", 1, "GALLON")
        list_manager.add_item("Eggs", 1, "DOZEN")
        return data_store

    def test_generate_plan(self, stocked):
        result = PlanManager(stocked).generate_plan(plan_type="best-value")

        plan = result["data"]["plan"]
        assert result["success"] is True
        assert plan["plan_type"] == "best-value"
        lines = [line for store in plan["stores"] for line in store["items"]]
        assert {line["name"] for line in lines} == {"Milk", "Eggs"}
        assert plan["total_cost"] == sum(store["subtotal"] for store in plan["stores"])

    def test_completed_items_left_out(self, stocked, list_manager):
        milk = list_manager.get_list()["data"]["list"]["items"][0]["id"]
        list_manager.toggle_item(milk)

        plan = PlanManager(stocked).generate_plan(plan_type="single-store")["data"]["plan"]
        assert [line["name"] for line in plan["stores"][0]["items"]] == ["Eggs"]

    def test_apply_records_suggestions(self, stocked, list_manager):
        PlanManager(stocked).generate_plan(plan_type="best-value", apply=True)

        items = {i["canonical_name"]: i for i in list_manager.get_list()["data"]["list"]["items"]}
        assert items["Milk"]["suggested_retailer_id"] == 1
        assert items["Milk"]["suggested_price"] == 350

    def test_apply_does_not_lose_concurrent_merges(self, stocked, list_manager):
        manager = PlanManager(stocked)
        workers = [
            threading.Thread(target=list_manager.add_item, args=("eggs", 1, "DOZEN"))
            for _ in range(6)
        ] + [
            threading.Thread(
                target=manager.generate_plan, kwargs={"plan_type": "best-value", "apply": True}
            )
            for _ in range(6)
        ]
        for worker in workers:
            worker.start()
        for worker in workers:
            worker.join()

        items = {i["canonical_name"]: i for i in list_manager.get_list()["data"]["list"]["items"]}
        assert items["Eggs"]["quantity"] == 7
        assert items["Milk"]["suggested_price"] == 350

    def test_compare_plans(self, stocked):
        plans = PlanManager(stocked).compare_plans()["data"]["plans"]
        assert [p["plan_type"] for p in plans] == ["single-store", "best-value", "balanced"]

    def test_no_retailers(self, data_store, list_manager, shopping_list):
        list_manager.add_item("Milk")
        with pytest.raises(NoRetailersAvailableError):
            PlanManager(data_store).generate_plan()

    def test_empty_list_without_retailers(self, data_store, shopping_list):
        plan = PlanManager(data_store).generate_plan()["data"]["plan"]
        assert plan["stores"] == []
        assert plan["total_cost"] == 0

    def test_expired_deals_not_used(self, stocked, milk_deal):
        later = milk_deal.end_date + timedelta(days=1)
        plan = PlanManager(stocked).generate_plan(plan_type="best-value", now=later)["data"]["plan"]
        milk = [
            line for store in plan["stores"] for line in store["items"] if line["name"] == "Milk"
        ][0]
        assert milk["is_deal"] is False

    def test_unknown_list(self, stocked):
        from grocery_planner.list_manager import NoShoppingListAvailableError

        with pytest.raises(NoShoppingListAvailableError):
            PlanManager(stocked).generate_plan("missing")
