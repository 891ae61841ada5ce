"""Shared test fixtures for Grocery Planner."""

from datetime import datetime, timedelta
from uuid import uuid4

import pytest

from grocery_planner.categorizer import ProductCategorizer
from grocery_planner.data_store import DataStore
from grocery_planner.list_manager import ListManager
from grocery_planner.models import Deal, PriceQuote, Retailer, ShoppingListEntry, Unit
from grocery_planner.quantity_normalizer import QuantityNormalizer


@pytest.fixture
def temp_data_dir(tmp_path):
    """Create a temporary data directory."""
    data_dir = tmp_path / "test_data"
    data_dir.mkdir()
    return data_dir


@pytest.fixture
def data_store(temp_data_dir):
    """Create a DataStore with temporary directory."""
    return DataStore(data_dir=temp_data_dir)


@pytest.fixture
def categorizer():
    return ProductCategorizer()


@pytest.fixture
def normalizer(categorizer):
    return QuantityNormalizer(categorizer=categorizer)


@pytest.fixture
def list_manager(data_store):
    """Create a ListManager with temporary storage."""
    return ListManager(data_store=data_store)


@pytest.fixture
def shopping_list(list_manager):
    """A default list to add items to."""
    result = list_manager.create_list("Weekly")
    return result["data"]["list"]["id"]


@pytest.fixture
def retailers():
    """Two retailers that always stock everything."""
    return [
        Retailer(id=1, name="Corner Market", availability_offset=0.15),
        Retailer(id=2, name="MegaMart", availability_offset=0.15),
    ]


@pytest.fixture
def milk_deal():
    """Active deal on milk at retailer 1."""
    now = datetime.now()
    return Deal(
        retailer_id=1,
        product_name="Milk",
        regular_price=399,
        sale_price=350,
        start_date=now - timedelta(days=1),
        end_date=now + timedelta(days=6),
        category="Dairy & Eggs",
    )


def make_entry(name: str, quantity: float = 1, unit: Unit = Unit.COUNT) -> ShoppingListEntry:
    """Build a detached list entry."""
    return ShoppingListEntry(
        list_id=uuid4(),
        canonical_name=name,
        raw_name=name.lower(),
        quantity=quantity,
        unit=unit,
    )


class TableOracle:
    """Pricing oracle backed by a fixed table; missing pairs are unavailable."""

    def __init__(self, table: dict[tuple[int, str], PriceQuote]):
        self.table = table
        self.calls: list[tuple[int, str]] = []

    def quote(self, retailer: Retailer, item_name: str) -> PriceQuote:
        self.calls.append((retailer.id, item_name))
        return self.table.get((retailer.id, item_name), PriceQuote(available=False))


def price(cents: int, deal: bool = False, regular: int | None = None) -> PriceQuote:
    return PriceQuote(price=cents, is_deal=deal, available=True, regular_price=regular or cents)
