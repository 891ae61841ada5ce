"""Grocery Planner - Shopping list normalization and multi-store trip planning."""

from .catalog import CATALOG_VERSION, Catalog, default_catalog, load_catalog
from .categorizer import ProductCategorizer
from .config import ConfigManager
from .data_store import DataStore
from .list_manager import (
    InvalidQuantityError,
    ItemNotFoundError,
    ListManager,
    NoShoppingListAvailableError,
)
from .models import (
    Category,
    CategoryProfile,
    Deal,
    Plan,
    PlanLine,
    PlanType,
    PriceQuote,
    QuantitySuggestion,
    Retailer,
    ShoppingList,
    ShoppingListEntry,
    StoreAllocation,
    Unit,
)
from .output_formatter import OutputFormatter
from .planner import NoRetailersAvailableError, PlanGenerator, PlanManager
from .pricing import DealPricingOracle, PricingOracle
from .quantity_normalizer import QuantityNormalizer
from .retailers import RetailerDirectory, RetailerNotFoundError
from .similarity import similarity

__version__ = "0.1.0"

__all__ = [
    "CATALOG_VERSION",
    "Catalog",
    "Category",
    "CategoryProfile",
    "ConfigManager",
    "DataStore",
    "Deal",
    "DealPricingOracle",
    "default_catalog",
    "InvalidQuantityError",
    "ItemNotFoundError",
    "ListManager",
    "load_catalog",
    "NoRetailersAvailableError",
    "NoShoppingListAvailableError",
    "OutputFormatter",
    "Plan",
    "PlanGenerator",
    "PlanLine",
    "PlanManager",
    "PlanType",
    "PriceQuote",
    "PricingOracle",
    "ProductCategorizer",
    "QuantityNormalizer",
    "QuantitySuggestion",
    "Retailer",
    "RetailerDirectory",
    "RetailerNotFoundError",
    "ShoppingList",
    "ShoppingListEntry",
    "similarity",
    "StoreAllocation",
    "Unit",
]
