"""Tests for the deal-backed pricing oracle."""

from datetime import datetime, timedelta

from grocery_planner.models import Deal, Retailer
from grocery_planner.pricing import DealPricingOracle, availability_roll


class TestDealPricingOracle:
    """Tests for DealPricingOracle.quote()."""

    def test_active_deal_wins(self, retailers, milk_deal):
        oracle = DealPricingOracle([milk_deal])
        quote = oracle.quote(retailers[0], "Milk")

        assert quote.price == 350
        assert quote.is_deal is True
        assert quote.available is True
        assert quote.regular_price == 399

    def test_deal_matches_plural_and_descriptors(self, retailers, milk_deal):
        oracle = DealPricingOracle([milk_deal])
        assert oracle.quote(retailers[0], "Organic Milk 1 gal").is_deal is True

    def test_deal_only_at_its_retailer(self, retailers, milk_deal):
        oracle = DealPricingOracle([milk_deal])
        quote = oracle.quote(retailers[1], "Milk")
        assert quote.is_deal is False
        assert quote.price == 399

    def test_expired_deal_ignored(self, retailers, milk_deal):
        expired = milk_deal.model_copy(update={"end_date": datetime.now() - timedelta(days=1)})
        quote = DealPricingOracle([expired]).quote(retailers[0], "Milk")
        assert quote.is_deal is False

    def test_cheapest_matching_deal(self, retailers, milk_deal):
        cheaper = milk_deal.model_copy(update={"sale_price": 299})
        assert DealPricingOracle([milk_deal, cheaper]).quote(retailers[0], "milk").price == 299

    def test_price_factor(self):
        pricey = Retailer(id=3, name="Boutique", price_factor=1.1, availability_offset=0.15)
        assert DealPricingOracle().quote(pricey, "Milk").price == 439

    def test_out_of_stock(self):
        retailer = Retailer(id=4, name="Tiny", availability_offset=0.15, out_of_stock=["eggs"])
        quote = DealPricingOracle().quote(retailer, "Organic Eggs")
        assert quote.available is False
        assert quote.price is None

    def test_never_available(self):
        retailer = Retailer(id=5, name="Empty", availability_offset=-1.0)
        assert DealPricingOracle().quote(retailer, "Milk").available is False

    def test_deal_implies_available(self, milk_deal):
        retailer = Retailer(id=1, name="Empty", availability_offset=-1.0)
        assert DealPricingOracle([milk_deal]).quote(retailer, "Milk").available is True

    def test_deterministic(self):
        retailer = Retailer(id=9, name="Average")
        oracle = DealPricingOracle()
        names = ["milk", "eggs", "bread", "salmon", "ketchup", "rice"]
        assert [oracle.quote(retailer, n) for n in names] == [
            oracle.quote(retailer, n) for n in names
        ]

    def test_category_deal_filtering_by_time(self, retailers):
        future = Deal(
            retailer_id=1,
            product_name="Bread",
            regular_price=299,
            sale_price=199,
            end_date=datetime(2026, 1, 10),
        )
        oracle = DealPricingOracle([future], now=datetime(2026, 1, 1))
        assert oracle.quote(retailers[0], "bread").price == 199


class TestAvailabilityRoll:
    def test_range_and_stability(self):
        rolls = [availability_roll(r, "milk") for r in range(50)]
        assert all(0 <= roll < 1 for roll in rolls)
        assert rolls == [availability_roll(r, "milk") for r in range(50)]
