"""Tests for CLI commands."""

import json

import pytest
from typer.testing import CliRunner

from grocery_planner.main import app

runner = CliRunner()


@pytest.fixture
def cli(temp_data_dir):
    """Invoke the app in JSON mode against a temporary data directory."""

    def invoke(*args: str):
        return runner.invoke(app, ["--json", "--data-dir", str(temp_data_dir), *args])

    return invoke


@pytest.fixture
def with_list(cli):
    result = cli("lists", "create", "Weekly")
    assert result.exit_code == 0
    return json.loads(result.stdout)["data"]["list"]["id"]


class TestListsCommands:
    """Tests for the lists subcommands."""

    def test_create_and_show(self, cli):
        result = cli("lists", "create", "Weekly")
        assert result.exit_code == 0
        created = json.loads(result.stdout)
        assert created["success"] is True
        assert created["data"]["list"]["is_default"] is True

        shown = json.loads(cli("lists", "show").stdout)
        assert [lst["name"] for lst in shown["data"]["lists"]] == ["Weekly"]

    def test_delete(self, cli, with_list):
        result = cli("lists", "delete", with_list)
        assert result.exit_code == 0
        assert json.loads(cli("lists", "show").stdout)["data"]["lists"] == []

    def test_delete_unknown(self, cli):
        result = cli("lists", "delete", "nope")
        assert result.exit_code == 1
        assert json.loads(result.stdout)["error_code"] == "NO_SHOPPING_LIST"


class TestAddCommand:
    """Tests for add command."""

    def test_add_item_basic(self, cli, with_list):
        result = cli("add", "Milk")
        assert result.exit_code == 0

        data = json.loads(result.stdout)
        assert data["success"] is True
        assert data["data"]["item"]["canonical_name"] == "Milk"
        assert data["data"]["merged"] is False

    def test_add_merges(self, cli, with_list):
        cli("add", "Bananas", "--quantity", "2", "--unit", "lb")
        result = cli("add", "banana", "-q", "1", "-u", "LB")

        data = json.loads(result.stdout)
        assert data["data"]["merged"] is True
        assert data["data"]["item"]["quantity"] == 3

        listed = json.loads(cli("list").stdout)
        assert listed["data"]["list"]["total_items"] == 1

    def test_add_without_units_sums_requests(self, cli, with_list):
        cli("add", "Banana")
        data = json.loads(cli("add", "bananas").stdout)

        assert data["data"]["merged"] is True
        assert data["data"]["item"]["quantity"] == 2

    def test_add_without_list(self, cli):
        result = cli("add", "Milk")
        assert result.exit_code == 1
        data = json.loads(result.stdout)
        assert data["success"] is False
        assert data["error_code"] == "NO_SHOPPING_LIST"

    def test_add_invalid_quantity(self, cli, with_list):
        result = cli("add", "Milk", "--quantity", "0")
        assert result.exit_code == 1
        assert json.loads(result.stdout)["error_code"] == "INVALID_QUANTITY"


class TestItemCommands:
    """Tests for commands that act on one item."""

    def _add(self, cli, name: str) -> str:
        return json.loads(cli("add", name).stdout)["data"]["item"]["id"]

    def test_toggle_and_clear(self, cli, with_list):
        milk = self._add(cli, "Milk")
        self._add(cli, "Bread")

        toggled = json.loads(cli("toggle", milk).stdout)
        assert toggled["data"]["item"]["is_completed"] is True

        active = json.loads(cli("list", "--active").stdout)
        assert [i["canonical_name"] for i in active["data"]["list"]["items"]] == ["Bread"]

        cleared = json.loads(cli("clear").stdout)
        assert cleared["data"]["removed_count"] == 1

    def test_update(self, cli, with_list):
        milk = self._add(cli, "Milk")
        result = json.loads(cli("update", milk, "--quantity", "2").stdout)
        assert result["data"]["item"]["quantity"] == 2

    def test_remove_unknown(self, cli, with_list):
        result = cli("remove", "00000000-0000-0000-0000-000000000000")
        assert result.exit_code == 1
        assert json.loads(result.stdout)["error_code"] == "ITEM_NOT_FOUND"

    def test_by_category(self, cli, with_list):
        self._add(cli, "Bread")
        self._add(cli, "Apples")
        grouped = json.loads(cli("list", "--by-category").stdout)["data"]["by_category"]
        assert list(grouped) == ["Produce", "Bakery"]


class TestLookupCommands:
    def test_categorize(self, cli):
        data = json.loads(cli("categorize", "sirloin steak").stdout)
        assert data["data"]["profile"]["category"] == "Meat & Seafood"

    def test_normalize(self, cli):
        data = json.loads(cli("normalize", "eggs", "-q", "12").stdout)
        quantity = data["data"]["quantity"]
        assert quantity["suggested_quantity"] == 1
        assert quantity["suggested_unit"] == "DOZEN"


class TestPlanCommand:
    """Tests for retailers, deals and planning from the CLI."""

    @pytest.fixture
    def stocked(self, cli, with_list):
        cli("retailer", "add", "Corner Market", "--availability-offset", "0.15")
        cli("retailer", "add", "MegaMart", "--availability-offset", "0.15")
        cli("add", "Milk", "-u", "gallon")
        cli("add", "Eggs", "-u", "dozen")
        return cli

    def test_retailer_list(self, stocked):
        data = json.loads(stocked("retailer", "list").stdout)
        assert [r["id"] for r in data["data"]["retailers"]] == [1, 2]

    def test_deal_add_and_list(self, stocked):
        result = stocked("deal", "add", "1", "Milk", "--regular", "3.99", "--sale", "3.50")
        assert result.exit_code == 0
        deal = json.loads(result.stdout)["data"]["deal"]
        assert deal["sale_price"] == 350

        deals = json.loads(stocked("deal", "list").stdout)["data"]["deals"]
        assert len(deals) == 1

    def test_deal_unknown_retailer(self, stocked):
        result = stocked("deal", "add", "7", "Milk", "--regular", "3.99", "--sale", "3.50")
        assert result.exit_code == 1
        assert json.loads(result.stdout)["error_code"] == "RETAILER_NOT_FOUND"

    def test_plan_uses_deal(self, stocked):
        stocked("deal", "add", "1", "Milk", "--regular", "3.99", "--sale", "3.50")
        result = stocked("plan", "--type", "best-value")
        assert result.exit_code == 0

        plan = json.loads(result.stdout)["data"]["plan"]
        milk = [
            (store["retailer_id"], line)
            for store in plan["stores"]
            for line in store["items"]
            if line["name"] == "Milk"
        ][0]
        assert milk[0] == 1
        assert milk[1]["is_deal"] is True

    def test_plan_compare(self, stocked):
        plans = json.loads(stocked("plan", "--compare").stdout)["data"]["plans"]
        assert len(plans) == 3

    def test_plan_without_retailers(self, cli, with_list):
        cli("add", "Milk")
        result = cli("plan")
        assert result.exit_code == 1
        assert json.loads(result.stdout)["error_code"] == "NO_RETAILERS"
