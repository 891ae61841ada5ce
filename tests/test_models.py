"""Tests for data models."""

from datetime import datetime, timedelta
from uuid import UUID, uuid4

import pytest
from pydantic import ValidationError

from grocery_planner.models import (
    Category,
    Deal,
    Plan,
    PlanLine,
    PlanType,
    QuantitySuggestion,
    Retailer,
    ShoppingList,
    ShoppingListEntry,
    StoreAllocation,
    Unit,
)


class TestShoppingListEntry:
    """Tests for ShoppingListEntry model."""

    def test_create_minimal(self):
        """Create entry with only required fields."""
        entry = ShoppingListEntry(list_id=uuid4(), canonical_name="Milk", raw_name="milk")
        assert entry.quantity == 1.0
        assert entry.unit == Unit.COUNT
        assert entry.category == Category.PANTRY
        assert entry.is_completed is False
        assert isinstance(entry.id, UUID)
        assert isinstance(entry.added_at, datetime)

    def test_quantity_must_be_positive(self):
        with pytest.raises(ValidationError):
            ShoppingListEntry(list_id=uuid4(), canonical_name="Milk", raw_name="milk", quantity=0)

    def test_unit_from_string(self):
        entry = ShoppingListEntry(
            list_id=uuid4(), canonical_name="Eggs", raw_name="eggs", unit="DOZEN"
        )
        assert entry.unit == Unit.DOZEN


class TestShoppingList:
    def test_active_items(self):
        shopping_list = ShoppingList(name="Weekly")
        done = ShoppingListEntry(
            list_id=shopping_list.id, canonical_name="Milk", raw_name="milk", is_completed=True
        )
        todo = ShoppingListEntry(list_id=shopping_list.id, canonical_name="Bread", raw_name="bread")
        shopping_list.items = [done, todo]

        assert shopping_list.active_items == [todo]


class TestRetailerAndDeal:
    def test_retailer_is_frozen(self):
        retailer = Retailer(id=1, name="Corner Market")
        with pytest.raises(ValidationError):
            retailer.name = "Other"

    def test_deal_activity_and_discount(self):
        now = datetime(2026, 3, 1)
        deal = Deal(
            retailer_id=1,
            product_name="Milk",
            regular_price=399,
            sale_price=350,
            end_date=now + timedelta(days=1),
        )
        assert deal.is_active(now) is True
        assert deal.is_active(now + timedelta(days=2)) is False
        assert deal.discount == 49


class TestQuantitySuggestion:
    def test_changed(self):
        same = QuantitySuggestion(
            original_quantity=1,
            original_unit="GALLON",
            suggested_quantity=1,
            suggested_unit="GALLON",
            reason="No conversion needed",
        )
        assert same.changed is False
        assert same.model_copy(update={"suggested_unit": "DOZEN"}).changed is True


class TestPlan:
    """Tests for computed plan totals."""

    def test_totals(self):
        plan = Plan(
            plan_type=PlanType.BEST_VALUE,
            stores=[
                StoreAllocation(
                    retailer_id=1,
                    retailer_name="A",
                    items=[
                        PlanLine(name="Milk", quantity=2, unit="GALLON", unit_price=300, line_total=600),
                        PlanLine(name="Eggs", quantity=1, unit="DOZEN", available=False),
                    ],
                ),
                StoreAllocation(
                    retailer_id=2,
                    retailer_name="B",
                    items=[PlanLine(name="Bread", quantity=1, unit="COUNT", unit_price=250, line_total=250)],
                ),
            ],
        )
        assert plan.stores[0].subtotal == 600
        assert plan.total_cost == 850
        assert plan.store_count == 2

        dumped = plan.model_dump(mode="json")
        assert dumped["total_cost"] == 850
        assert dumped["plan_type"] == "best-value"

    def test_empty_plan(self):
        plan = Plan(plan_type=PlanType.BALANCED)
        assert plan.total_cost == 0
        assert plan.store_count == 0
        assert plan.estimated_time == "0 min"
