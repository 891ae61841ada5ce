"""CLI entry point for Grocery Planner."""

import logging
from datetime import datetime
from pathlib import Path
from typing import Annotated

import typer

from .catalog import load_catalog
from .categorizer import ProductCategorizer
from .config import ConfigManager
from .data_store import DataStore
from .list_manager import (
    InvalidQuantityError,
    ItemNotFoundError,
    ListManager,
    NoShoppingListAvailableError,
)
from .models import PlanType
from .output_formatter import OutputFormatter
from .planner import NoRetailersAvailableError, PlanManager
from .quantity_normalizer import QuantityNormalizer
from .retailers import RetailerDirectory, RetailerNotFoundError

app = typer.Typer(
    name="grocery-plan",
    help="Shopping lists that merge duplicates and plan trips across stores",
    no_args_is_help=True,
)

logger = logging.getLogger(__name__)

# Global state (set by callback)
formatter: OutputFormatter = OutputFormatter()
config: ConfigManager | None = None
data_store: DataStore | None = None
categorizer: ProductCategorizer | None = None
list_manager: ListManager | None = None

ERROR_CODES: dict[type[Exception], str] = {
    InvalidQuantityError: "INVALID_QUANTITY",
    NoShoppingListAvailableError: "NO_SHOPPING_LIST",
    ItemNotFoundError: "ITEM_NOT_FOUND",
    NoRetailersAvailableError: "NO_RETAILERS",
    RetailerNotFoundError: "RETAILER_NOT_FOUND",
}


def get_config() -> ConfigManager:
    """Get or create ConfigManager instance."""
    global config
    if config is None:
        config = ConfigManager()
    return config


def get_data_store() -> DataStore:
    """Get or create DataStore instance using config values."""
    global data_store
    if data_store is None:
        data_store = DataStore(get_config().data.storage_dir)
    return data_store


def get_categorizer() -> ProductCategorizer:
    """Get or create ProductCategorizer with the configured catalog."""
    global categorizer
    if categorizer is None:
        categorizer = ProductCategorizer(load_catalog(get_config().catalog.overrides_path))
    return categorizer


def get_list_manager() -> ListManager:
    """Get or create ListManager instance."""
    global list_manager
    if list_manager is None:
        list_manager = ListManager(
            get_data_store(),
            categorizer=get_categorizer(),
            default_list_name=get_config().defaults.list_name,
        )
    return list_manager


def fail(error: Exception) -> typer.Exit:
    """Report an error with its code and return the exit to raise."""
    code = next(
        (code for kind, code in ERROR_CODES.items() if isinstance(error, kind)),
        None,
    )
    logger.debug("Command failed", exc_info=error)
    formatter.error(str(error), error_code=code)
    return typer.Exit(code=1)


def to_cents(dollars: float) -> int:
    return round(dollars * 100)


@app.callback()
def main(
    json_output: Annotated[
        bool, typer.Option("--json", help="Output as JSON for programmatic use")
    ] = False,
    data_dir: Annotated[Path | None, typer.Option("--data-dir", help="Data directory path")] = None,
    config_path: Annotated[
        Path | None, typer.Option("--config", help="Path to config.toml")
    ] = None,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Debug logging")] = False,
) -> None:
    """Grocery Planner CLI - normalize shopping lists and plan store trips."""
    global formatter, config, data_store, categorizer, list_manager

    formatter = OutputFormatter(json_mode=json_output)
    config = ConfigManager(config_path)

    level = logging.DEBUG if verbose else getattr(logging, config.logging.level, logging.WARNING)
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")

    # CLI --data-dir overrides config, which overrides default
    data_store = DataStore(data_dir or config.data.storage_dir)
    categorizer = None
    list_manager = None


# --- Lists ---

lists_app = typer.Typer(help="Shopping list commands")
app.add_typer(lists_app, name="lists")


@lists_app.command("create")
def lists_create(
    name: Annotated[str | None, typer.Argument(help="List name")] = None,
    default: Annotated[bool, typer.Option("--default", help="Make it the default list")] = False,
) -> None:
    """Create a shopping list."""
    try:
        result = get_list_manager().create_list(name, is_default=default)
        formatter.success(result["message"], result["data"])
    except Exception as e:
        raise fail(e)


@lists_app.command("show")
def lists_show() -> None:
    """Show all shopping lists."""
    try:
        formatter.output(get_list_manager().get_lists())
    except Exception as e:
        raise fail(e)


@lists_app.command("delete")
def lists_delete(
    list_id: Annotated[str, typer.Argument(help="List ID to delete")],
) -> None:
    """Delete a list and everything on it."""
    try:
        result = get_list_manager().delete_list(list_id)
        formatter.success(result["message"], result["data"])
    except Exception as e:
        raise fail(e)


# --- Items ---


@app.command()
def add(
    item: Annotated[str, typer.Argument(help="Item name to add")],
    quantity: Annotated[str, typer.Option("--quantity", "-q", help="Quantity to buy")] = "1",
    unit: Annotated[str | None, typer.Option("--unit", "-u", help="Unit of measurement")] = None,
    list_id: Annotated[str | None, typer.Option("--list", "-l", help="Target list ID")] = None,
) -> None:
    """Add an item, merging it with a matching entry if there is one."""
    try:
        result = get_list_manager().add_item(item, quantity=quantity, unit=unit, list_id=list_id)
        formatter.output(result, result["message"])
    except Exception as e:
        raise fail(e)


@app.command()
def remove(
    item_id: Annotated[str, typer.Argument(help="Item ID to remove")],
) -> None:
    """Remove an item from its list."""
    try:
        result = get_list_manager().remove_item(item_id)
        formatter.output(result, result["message"])
    except Exception as e:
        raise fail(e)


@app.command()
def toggle(
    item_id: Annotated[str, typer.Argument(help="Item ID to toggle")],
) -> None:
    """Mark an item completed, or active again."""
    try:
        result = get_list_manager().toggle_item(item_id)
        formatter.output(result, result["message"])
    except Exception as e:
        raise fail(e)


@app.command()
def update(
    item_id: Annotated[str, typer.Argument(help="Item ID to update")],
    name: Annotated[str | None, typer.Option("--name", help="New name")] = None,
    quantity: Annotated[str | None, typer.Option("--quantity", "-q", help="New quantity")] = None,
    unit: Annotated[str | None, typer.Option("--unit", "-u", help="New unit")] = None,
    category: Annotated[str | None, typer.Option("--category", "-c", help="New category")] = None,
) -> None:
    """Update an existing item."""
    try:
        result = get_list_manager().update_item(
            item_id, name=name, quantity=quantity, unit=unit, category=category
        )
        formatter.output(result, result["message"])
    except Exception as e:
        raise fail(e)


@app.command(name="list")
def list_items(
    list_id: Annotated[str | None, typer.Option("--list", "-l", help="List ID")] = None,
    category: Annotated[
        str | None, typer.Option("--category", "-c", help="Filter by category")
    ] = None,
    completed: Annotated[
        bool | None, typer.Option("--completed/--active", help="Filter by completion")
    ] = None,
    by_category: Annotated[
        bool, typer.Option("--by-category", help="Group by category in aisle order")
    ] = False,
) -> None:
    """View a shopping list."""
    try:
        manager = get_list_manager()
        if by_category:
            result = manager.get_by_category(list_id)
        else:
            result = manager.get_list(list_id, category=category, completed=completed)
        formatter.output(result)
    except Exception as e:
        raise fail(e)


@app.command()
def clear(
    list_id: Annotated[str | None, typer.Option("--list", "-l", help="List ID")] = None,
) -> None:
    """Remove completed items from a list."""
    try:
        result = get_list_manager().clear_completed(list_id)
        formatter.success(result["message"], result["data"])
    except Exception as e:
        raise fail(e)


@app.command()
def suggest(
    list_id: Annotated[str | None, typer.Option("--list", "-l", help="List ID")] = None,
) -> None:
    """Suggest canonical names and retail quantities for the list."""
    try:
        result = get_list_manager().suggest_optimizations(list_id)
        formatter.output(result, result["message"])
    except Exception as e:
        raise fail(e)


# --- Catalog lookups ---


@app.command()
def categorize(
    item: Annotated[str, typer.Argument(help="Item name")],
) -> None:
    """Show the shelf category profile for an item name."""
    profile = get_categorizer().categorize(item)
    formatter.output({"success": True, "data": {"profile": profile.model_dump(mode="json")}})


@app.command()
def normalize(
    item: Annotated[str, typer.Argument(help="Item name")],
    quantity: Annotated[str, typer.Option("--quantity", "-q", help="Requested quantity")] = "1",
    unit: Annotated[str | None, typer.Option("--unit", "-u", help="Requested unit")] = None,
) -> None:
    """Suggest a retail-sized quantity for an item."""
    normalizer = QuantityNormalizer(categorizer=get_categorizer())
    suggestion = normalizer.normalize(item, quantity, unit or get_config().defaults.unit)
    formatter.output({"success": True, "data": {"quantity": suggestion.model_dump(mode="json")}})


# --- Retailers and deals ---

retailer_app = typer.Typer(help="Retailer directory commands")
app.add_typer(retailer_app, name="retailer")


@retailer_app.command("add")
def retailer_add(
    name: Annotated[str, typer.Argument(help="Retailer name")],
    price_factor: Annotated[
        float, typer.Option("--price-factor", help="Multiplier on reference prices")
    ] = 1.0,
    availability: Annotated[
        float, typer.Option("--availability-offset", help="Added to baseline availability")
    ] = 0.0,
    out_of_stock: Annotated[
        list[str] | None, typer.Option("--out-of-stock", help="Product never carried")
    ] = None,
) -> None:
    """Add a retailer."""
    try:
        retailer = RetailerDirectory(get_data_store()).add_retailer(
            name, price_factor, availability, out_of_stock
        )
        formatter.success(
            f"Added retailer {retailer.name} (#{retailer.id})",
            {"retailer": retailer.model_dump(mode="json")},
        )
    except Exception as e:
        raise fail(e)


@retailer_app.command("list")
def retailer_list() -> None:
    """List retailers."""
    try:
        retailers = RetailerDirectory(get_data_store()).list_retailers()
        formatter.output(
            {"success": True, "data": {"retailers": [r.model_dump(mode="json") for r in retailers]}}
        )
    except Exception as e:
        raise fail(e)


deal_app = typer.Typer(help="Deal commands")
app.add_typer(deal_app, name="deal")


@deal_app.command("add")
def deal_add(
    retailer_id: Annotated[int, typer.Argument(help="Retailer ID")],
    product: Annotated[str, typer.Argument(help="Product name")],
    regular: Annotated[float, typer.Option("--regular", help="Regular price in dollars")],
    sale: Annotated[float, typer.Option("--sale", help="Sale price in dollars")],
    days: Annotated[int, typer.Option("--days", help="Days the deal runs")] = 7,
    ends: Annotated[
        datetime | None, typer.Option("--ends", help="End date (overrides --days)")
    ] = None,
    category: Annotated[str | None, typer.Option("--category", "-c", help="Category")] = None,
) -> None:
    """Record a retailer deal."""
    try:
        deal = RetailerDirectory(get_data_store()).add_deal(
            retailer_id,
            product,
            to_cents(regular),
            to_cents(sale),
            days=days,
            end_date=ends,
            category=category,
        )
        formatter.success(
            f"Added deal on {deal.product_name} at retailer #{retailer_id}",
            {"deal": deal.model_dump(mode="json")},
        )
    except Exception as e:
        raise fail(e)


@deal_app.command("list")
def deal_list(
    retailer_id: Annotated[int | None, typer.Option("--retailer", "-r", help="Retailer ID")] = None,
    category: Annotated[str | None, typer.Option("--category", "-c", help="Category")] = None,
) -> None:
    """List active deals."""
    try:
        deals = RetailerDirectory(get_data_store()).active_deals(retailer_id, category)
        formatter.output(
            {"success": True, "data": {"deals": [d.model_dump(mode="json") for d in deals]}}
        )
    except Exception as e:
        raise fail(e)


# --- Planning ---


@app.command()
def plan(
    plan_type: Annotated[
        PlanType, typer.Option("--type", "-t", help="Plan objective")
    ] = PlanType.BEST_VALUE,
    list_id: Annotated[str | None, typer.Option("--list", "-l", help="List ID")] = None,
    compare: Annotated[bool, typer.Option("--compare", help="Show all plan types")] = False,
    apply: Annotated[
        bool, typer.Option("--apply", help="Save planned retailer and price on each item")
    ] = False,
) -> None:
    """Plan a shopping trip across retailers."""
    try:
        manager = PlanManager(
            get_data_store(),
            planning=get_config().planning,
            catalog=get_categorizer().catalog,
        )
        if compare:
            formatter.output(manager.compare_plans(list_id))
        else:
            result = manager.generate_plan(list_id, plan_type, apply=apply)
            formatter.output(result, result["message"])
    except Exception as e:
        raise fail(e)


if __name__ == "__main__":
    app()
