"""Curated product, brand and category tables.

The tables are read-only process-wide configuration. ``default_catalog()``
builds them once; ``load_catalog()`` layers a TOML overrides file on top and
returns a new ``Catalog`` without touching the default one.
"""

import logging
import re
import tomllib
from dataclasses import dataclass, field, replace
from functools import lru_cache
from pathlib import Path
from types import MappingProxyType
from typing import Any, Mapping

from .models import Category, Unit

logger = logging.getLogger(__name__)

CATALOG_VERSION = "2026.10.1"


@dataclass(frozen=True)
class ShelfInfo:
    """Where a category lives in the store and how it is usually sold."""

    category: Category
    aisle: str
    section: str
    unit: Unit
    confidence: float
    subcategory: str | None = None


@dataclass(frozen=True)
class ProductEntry:
    """A curated canonical product name."""

    name: str
    shelf: ShelfInfo
    brands: tuple[str, ...] = ()


def _shelf(category, aisle, section, unit, confidence, subcategory=None) -> ShelfInfo:
    return ShelfInfo(category, aisle, section, unit, confidence, subcategory)


# Category-level defaults used when only a regex pattern matched.
CATEGORY_DEFAULTS: Mapping[str, ShelfInfo] = MappingProxyType(
    {
        "produce": _shelf(Category.PRODUCE, "Aisle 1", "Produce Section", Unit.LB, 0.8),
        "dairy": _shelf(Category.DAIRY, "Aisle 2", "Dairy Cooler", Unit.COUNT, 0.8),
        "meat": _shelf(Category.MEAT, "Aisle 3", "Meat Counter", Unit.LB, 0.8),
        "pantry": _shelf(Category.PANTRY, "Aisle 4-6", "Center Store", Unit.COUNT, 0.7),
        "frozen": _shelf(Category.FROZEN, "Aisle 7", "Frozen Section", Unit.PKG, 0.8),
        "bakery": _shelf(Category.BAKERY, "Aisle 8", "Bakery", Unit.COUNT, 0.8),
        "personal_care": _shelf(
            Category.PERSONAL_CARE, "Aisle 9", "Health & Beauty", Unit.COUNT, 0.7
        ),
        "household": _shelf(Category.HOUSEHOLD, "Aisle 10", "Household", Unit.COUNT, 0.7),
    }
)

FALLBACK_SHELF = _shelf(
    Category.PANTRY, "Aisle 4-6", "Center Store", Unit.COUNT, 0.3, subcategory="General"
)

# Ordered: the first category with any matching pattern wins.
CATEGORY_PATTERNS: tuple[tuple[str, tuple[re.Pattern, ...]], ...] = tuple(
    (key, tuple(re.compile(p, re.IGNORECASE) for p in patterns))
    for key, patterns in (
        (
            "produce",
            (
                r"\b(banana|apple|orange|grape|strawberr|blueberr|raspberr|peach|pear)\w*\b",
                r"\b(tomato|onion|carrot|potato|lettuce|spinach|broccoli|pepper|cucumber)\w*\b",
                r"\b(fresh|organic|ripe|seasonal)\b.*\b(fruit|vegetable)\w*\b",
            ),
        ),
        (
            "dairy",
            (
                r"\b(milk|cheese|yogurt|butter|cream|sour cream)\b",
                r"\b(egg|dozen|grade a)\w*\b",
                r"\b(dairy|lactose)\b",
            ),
        ),
        (
            "meat",
            (
                r"\b(beef|chicken|pork|turkey|fish|salmon|tuna|ground)\w*\b",
                r"\b(steak|roast|chop|fillet|breast|thigh|wing)\w*\b",
                r"\b(fresh|lean|organic|grass fed)\b.*\b(meat|protein)\b",
            ),
        ),
        (
            "pantry",
            (
                r"\b(rice|pasta|flour|sugar|salt|pepper|spice|sauce)\w*\b",
                r"\b(can|jar|bottle|box)\w*\b",
                r"\b(cereal|oatmeal|granola|crackers|chips)\w*\b",
            ),
        ),
        (
            "frozen",
            (
                r"\b(frozen|ice cream|popsicle|dinner|entree)\w*\b",
                r"\b(freezer|cold|arctic)\b",
            ),
        ),
        (
            "bakery",
            (
                r"\b(bread|loaf|roll|bun|bagel|muffin|cake|cookie)\w*\b",
                r"\b(wheat|white|sourdough|rye|pumpernickel)\b.*\bbread\b",
            ),
        ),
        (
            "personal_care",
            (
                r"\b(shampoo|soap|toothpaste|deodorant|lotion|sunscreen)\w*\b",
                r"\b(hygiene|beauty|skincare|haircare)\b",
            ),
        ),
        (
            "household",
            (
                r"\b(cleaner|detergent|soap|towel|tissue|trash|garbage)\w*\b",
                r"\b(cleaning|laundry|kitchen|bathroom)\b.*\b(supplies|products)\b",
            ),
        ),
    )
)

_FRUIT = _shelf(Category.PRODUCE, "Aisle 1", "Produce Section", Unit.LB, 0.95, "Fresh Fruits")
_VEG = _shelf(Category.PRODUCE, "Aisle 1", "Produce Section", Unit.LB, 0.95, "Fresh Vegetables")
_MILK = _shelf(Category.DAIRY, "Aisle 2", "Dairy Cooler", Unit.GALLON, 0.98, "Milk")
_EGGS = _shelf(Category.DAIRY, "Aisle 2", "Dairy Cooler", Unit.DOZEN, 0.98, "Eggs")
_CHEESE = _shelf(Category.DAIRY, "Aisle 2", "Dairy Cooler", Unit.COUNT, 0.95, "Cheese & Yogurt")
_GROUND = _shelf(Category.MEAT, "Aisle 3", "Meat Counter", Unit.LB, 0.97, "Ground Meat")
_POULTRY = _shelf(Category.MEAT, "Aisle 3", "Meat Counter", Unit.LB, 0.95, "Poultry")
_SEAFOOD = _shelf(Category.MEAT, "Aisle 3", "Seafood Counter", Unit.LB, 0.93, "Seafood")
_CANNED = _shelf(Category.PANTRY, "Aisle 4-6", "Center Store", Unit.CAN, 0.90, "Canned Goods")
_DRY = _shelf(Category.PANTRY, "Aisle 4-6", "Center Store", Unit.BOX, 0.90, "Dry Goods")
_CONDIMENT = _shelf(Category.PANTRY, "Aisle 4-6", "Center Store", Unit.BOTTLE, 0.88, "Condiments")
_FROZEN_VEG = _shelf(Category.FROZEN, "Aisle 7", "Frozen Section", Unit.PKG, 0.92, "Frozen Vegetables")
_FROZEN_MEALS = _shelf(Category.FROZEN, "Aisle 7", "Frozen Section", Unit.PKG, 0.90, "Frozen Meals")
_BREAD = _shelf(Category.BAKERY, "Aisle 8", "Bakery", Unit.COUNT, 0.95, "Bread")
_BATH = _shelf(Category.PERSONAL_CARE, "Aisle 9", "Health & Beauty", Unit.COUNT, 0.88, "Bath & Body")
_CLEANING = _shelf(Category.HOUSEHOLD, "Aisle 10", "Household", Unit.COUNT, 0.85, "Cleaning")
_PAPER = _shelf(Category.HOUSEHOLD, "Aisle 10", "Household", Unit.ROLL, 0.85, "Paper Goods")

_PRODUCT_GROUPS: tuple[tuple[ShelfInfo, tuple[str, ...], tuple[str, ...]], ...] = (
    (
        _FRUIT,
        (
            "bananas", "banana", "fresh bananas", "organic bananas", "premium bananas",
            "apples", "apple", "oranges", "strawberries", "blueberries", "grapes", "lemons",
        ),
        ("Chiquita", "Dole", "Del Monte", "Organic"),
    ),
    (
        _VEG,
        (
            "tomatoes", "tomato", "fresh tomatoes", "vine ripened tomatoes", "roma tomatoes",
            "cherry tomatoes", "potatoes", "onions", "carrots", "broccoli", "spinach",
            "lettuce", "bell pepper", "cucumbers", "avocados",
        ),
        ("Organic", "Greenhouse", "Vine Ripened", "Local"),
    ),
    (
        _MILK,
        ("milk", "whole milk", "2% reduced fat milk", "1% low fat milk", "skim milk", "almond milk"),
        ("Great Value", "Horizon Organic", "Lactaid", "Fairlife"),
    ),
    (
        _EGGS,
        ("eggs", "egg", "large grade a eggs", "extra large eggs", "organic brown eggs"),
        ("Great Value", "Eggland's Best", "Organic Valley", "Cage Free"),
    ),
    (
        _CHEESE,
        (
            "cheese", "cheddar cheese", "shredded mozzarella", "cream cheese", "yogurt",
            "greek yogurt", "butter", "sour cream",
        ),
        ("Kraft", "Tillamook", "Chobani", "Land O Lakes"),
    ),
    (
        _GROUND,
        ("ground beef", "ground beef 80/20", "lean ground beef", "ground turkey", "ground chicken"),
        ("Fresh", "Organic", "Grass Fed", "Antibiotic Free"),
    ),
    (
        _POULTRY,
        ("chicken", "chicken breast", "chicken thighs", "whole chicken", "chicken wings"),
        ("Tyson", "Perdue", "Foster Farms", "Organic"),
    ),
    (
        _SEAFOOD,
        ("salmon", "salmon fillet", "shrimp", "tilapia", "cod"),
        ("Wild Caught", "Farm Raised", "Fresh"),
    ),
    (
        _CANNED,
        (
            "canned tomatoes", "diced tomatoes", "tomato sauce", "crushed tomatoes",
            "black beans", "chicken broth", "canned tuna", "canned corn",
        ),
        ("Hunt's", "Del Monte", "Muir Glen", "Great Value"),
    ),
    (
        _DRY,
        ("pasta", "spaghetti", "penne", "rice", "brown rice", "cereal", "oatmeal", "flour", "sugar"),
        ("Barilla", "Uncle Ben's", "Quaker", "Great Value"),
    ),
    (
        _CONDIMENT,
        ("olive oil", "vegetable oil", "ketchup", "mustard", "peanut butter", "salsa"),
        ("Heinz", "Skippy", "Jif", "Bertolli"),
    ),
    (
        _FROZEN_VEG,
        ("frozen vegetables", "frozen mixed vegetables", "frozen broccoli", "frozen peas"),
        ("Birds Eye", "Green Giant", "Great Value", "Organic"),
    ),
    (
        _FROZEN_MEALS,
        ("ice cream", "frozen pizza", "frozen waffles", "frozen dinner"),
        ("Ben & Jerry's", "DiGiorno", "Eggo", "Stouffer's"),
    ),
    (
        _BREAD,
        (
            "bread", "white bread", "whole wheat bread", "sourdough bread", "artisan bread",
            "bagels", "tortillas", "hamburger buns",
        ),
        ("Wonder", "Pepperidge Farm", "Sara Lee", "Dave's Killer Bread"),
    ),
    (
        _BATH,
        ("body wash", "shampoo", "conditioner", "bar soap", "toothpaste", "deodorant"),
        ("Dove", "Olay", "Head & Shoulders", "Pantene"),
    ),
    (
        _CLEANING,
        ("all-purpose cleaner", "dish soap", "laundry detergent", "trash bags", "sponges"),
        ("Tide", "Dawn", "Lysol", "Clorox"),
    ),
    (
        _PAPER,
        ("paper towels", "toilet paper", "napkins", "tissues"),
        ("Bounty", "Charmin", "Kleenex", "Scott"),
    ),
)

BRAND_NAMES: Mapping[str, str] = MappingProxyType(
    {
        "coca cola": "Coca Cola",
        "pepsi": "Pepsi",
        "dr pepper": "Dr Pepper",
        "mountain dew": "Mountain Dew",
        "kraft": "Kraft",
        "heinz": "Heinz",
        "campbell": "Campbell's",
        "campbells": "Campbell's",
        "kellogg": "Kellogg's",
        "kelloggs": "Kellogg's",
        "general mills": "General Mills",
        "quaker": "Quaker",
        "tide": "Tide",
        "dawn": "Dawn",
        "bounty": "Bounty",
        "charmin": "Charmin",
        "kleenex": "Kleenex",
        "lysol": "Lysol",
        "clorox": "Clorox",
        "oreo": "Oreo",
        "cheerios": "Cheerios",
        "honey nut cheerios": "Honey Nut Cheerios",
        "frosted flakes": "Frosted Flakes",
        "lucky charms": "Lucky Charms",
        "doritos": "Doritos",
        "cheetos": "Cheetos",
        "lays": "Lay's",
        "lay's": "Lay's",
        "pringles": "Pringles",
        "ritz": "Ritz",
        "philadelphia": "Philadelphia",
        "velveeta": "Velveeta",
        "oscar mayer": "Oscar Mayer",
        "tyson": "Tyson",
        "perdue": "Perdue",
        "spam": "SPAM",
        "hunts": "Hunt's",
        "hunt's": "Hunt's",
        "del monte": "Del Monte",
        "green giant": "Green Giant",
        "birds eye": "Birds Eye",
        "stouffers": "Stouffer's",
        "lean cuisine": "Lean Cuisine",
        "hot pockets": "Hot Pockets",
        "eggo": "Eggo",
        "pillsbury": "Pillsbury",
        "duncan hines": "Duncan Hines",
        "betty crocker": "Betty Crocker",
        "skippy": "Skippy",
        "jif": "Jif",
        "planters": "Planters",
        "welchs": "Welch's",
        "welch's": "Welch's",
        "tropicana": "Tropicana",
        "minute maid": "Minute Maid",
        "ocean spray": "Ocean Spray",
        "gatorade": "Gatorade",
        "powerade": "Powerade",
        "red bull": "Red Bull",
        "starbucks": "Starbucks",
        "folgers": "Folgers",
        "maxwell house": "Maxwell House",
        "nescafe": "Nescafé",
        "lipton": "Lipton",
        "great value": "Great Value",
        "kirkland": "Kirkland Signature",
        "ben & jerry's": "Ben & Jerry's",
        "digiorno": "DiGiorno",
        "mcvities": "McVitie's",
    }
)

# Two-word products kept together, with their exact display form.
COMPOUND_PRODUCTS: Mapping[str, str] = MappingProxyType(
    {
        "ground beef": "Ground Beef",
        "ground turkey": "Ground Turkey",
        "paper towel": "Paper Towel",
        "paper towels": "Paper Towels",
        "toilet paper": "Toilet Paper",
        "dish soap": "Dish Soap",
        "olive oil": "Olive Oil",
        "bell pepper": "Bell Pepper",
        "ice cream": "Ice Cream",
        "sour cream": "Sour Cream",
        "cream cheese": "Cream Cheese",
        "peanut butter": "Peanut Butter",
        "bbq sauce": "BBQ Sauce",
        "half-and-half": "Half-and-Half",
        "all-purpose cleaner": "All-Purpose Cleaner",
        "body wash": "Body Wash",
    }
)

# Misspellings and Spanish/Spanglish variants, matched per word.
WORD_VARIANTS: Mapping[str, str] = MappingProxyType(
    {
        "tomatoe": "tomato",
        "tomatos": "tomatoes",
        "potatoe": "potato",
        "potatos": "potatoes",
        "bannana": "banana",
        "bananna": "banana",
        "banan": "banana",
        "chiken": "chicken",
        "chikken": "chicken",
        "beff": "beef",
        "bred": "bread",
        "apel": "apple",
        "aple": "apple",
        "lemmon": "lemon",
        "oneon": "onion",
        "onyon": "onion",
        "carot": "carrot",
        "selery": "celery",
        "brocoli": "broccoli",
        "begetables": "vegetables",
        "vejetables": "vegetables",
        "cherrios": "cheerios",
        "cheeios": "cheerios",
        "confleis": "cornflakes",
        "cornfleis": "cornflakes",
        "otemil": "oatmeal",
        "oatmil": "oatmeal",
        "avena": "oatmeal",
        "pankeiks": "pancakes",
        "wafleis": "waffles",
        "tost": "toast",
        "yoghurt": "yogurt",
        "yogert": "yogurt",
        "leche": "milk",
        "pollo": "chicken",
        "huevos": "eggs",
        "queso": "cheese",
        "arroz": "rice",
        "mantequilla": "butter",
        "papas": "potatoes",
        "tomates": "tomatoes",
        "cebollas": "onions",
        "zanahorias": "carrots",
        "frijoles": "beans",
        "galletas": "cookies",
        "dulces": "candy",
        "azucar": "sugar",
        "grande": "large",
    }
)

# Multi-word variants applied before the per-word pass.
PHRASE_VARIANTS: Mapping[str, str] = MappingProxyType(
    {
        "leche milk": "milk",
        "milk leche": "milk",
        "pollo chicken": "chicken",
        "chicken pollo": "chicken",
        "huevos eggs": "eggs",
        "eggs huevos": "eggs",
        "carne molida": "ground beef",
        "frijoles negros": "black beans",
        "leche entera": "whole milk",
        "leche descremada": "skim milk",
        "aceite oliva": "olive oil",
        "frosfleiks": "frosted flakes",
    }
)

# Average weight of one unit, in pounds.
AVERAGE_WEIGHTS_LB: Mapping[str, float] = MappingProxyType(
    {
        "banana": 0.3,
        "apple": 0.4,
        "orange": 0.5,
        "potato": 0.3,
        "onion": 0.25,
        "tomato": 0.3,
        "pepper": 0.2,
        "avocado": 0.4,
        "lemon": 0.25,
        "cucumber": 0.5,
        "carrot": 0.15,
    }
)
DEFAULT_UNIT_WEIGHT_LB = 0.35

# Reference shelf prices in cents, matched by keyword.
REFERENCE_PRICES: Mapping[str, int] = MappingProxyType(
    {
        "milk": 399,
        "egg": 349,
        "bread": 299,
        "banana": 69,
        "apple": 199,
        "tomato": 249,
        "chicken": 449,
        "ground beef": 549,
        "salmon": 1099,
        "pasta": 179,
        "rice": 299,
        "cheese": 449,
        "yogurt": 129,
        "butter": 499,
        "cereal": 429,
        "paper towel": 199,
        "toilet paper": 99,
        "detergent": 1199,
        "shampoo": 649,
    }
)

CATEGORY_REFERENCE_PRICES: Mapping[Category, int] = MappingProxyType(
    {
        Category.PRODUCE: 249,
        Category.DAIRY: 399,
        Category.MEAT: 699,
        Category.PANTRY: 249,
        Category.FROZEN: 399,
        Category.BAKERY: 349,
        Category.PERSONAL_CARE: 599,
        Category.HOUSEHOLD: 799,
    }
)

CATEGORY_ICONS: Mapping[Category, str] = MappingProxyType(
    {
        Category.PRODUCE: "\U0001f34e",
        Category.DAIRY: "\U0001f95b",
        Category.MEAT: "\U0001f969",
        Category.PANTRY: "\U0001f96b",
        Category.FROZEN: "❄️",
        Category.BAKERY: "\U0001f35e",
        Category.PERSONAL_CARE: "\U0001f9fc",
        Category.HOUSEHOLD: "\U0001f3e0",
    }
)


def _build_products(groups) -> Mapping[str, ProductEntry]:
    products: dict[str, ProductEntry] = {}
    for shelf, names, brands in groups:
        for name in names:
            products[name.lower()] = ProductEntry(name=name.lower(), shelf=shelf, brands=brands)
    return MappingProxyType(products)


@dataclass(frozen=True)
class Catalog:
    """Immutable bundle of every lookup table the normalizers need."""

    version: str
    products: Mapping[str, ProductEntry]
    brands: Mapping[str, str] = field(default_factory=lambda: BRAND_NAMES)
    compounds: Mapping[str, str] = field(default_factory=lambda: COMPOUND_PRODUCTS)
    word_variants: Mapping[str, str] = field(default_factory=lambda: WORD_VARIANTS)
    phrase_variants: Mapping[str, str] = field(default_factory=lambda: PHRASE_VARIANTS)
    average_weights: Mapping[str, float] = field(default_factory=lambda: AVERAGE_WEIGHTS_LB)
    reference_prices: Mapping[str, int] = field(default_factory=lambda: REFERENCE_PRICES)
    category_defaults: Mapping[str, ShelfInfo] = field(default_factory=lambda: CATEGORY_DEFAULTS)
    category_patterns: tuple[tuple[str, tuple[re.Pattern, ...]], ...] = CATEGORY_PATTERNS

    def reference_price(self, name: str, category: Category) -> int:
        """Typical shelf price for a product, falling back to its category."""
        lowered = name.lower()
        for keyword, price in self.reference_prices.items():
            # Whole words only, so "eggplant" is not priced as eggs.
            if re.search(rf"\b{re.escape(keyword)}(?:s|es)?\b", lowered):
                return price
        return CATEGORY_REFERENCE_PRICES[category]


@lru_cache(maxsize=1)
def default_catalog() -> Catalog:
    """Return the built-in catalog, built once per process."""
    return Catalog(version=CATALOG_VERSION, products=_build_products(_PRODUCT_GROUPS))


def _merged(base: Mapping, extra: dict[str, Any] | None, lower_keys: bool = True) -> Mapping:
    if not extra:
        return base
    merged = dict(base)
    for key, value in extra.items():
        merged[key.lower() if lower_keys else key] = value
    return MappingProxyType(merged)


def load_catalog(overrides_path: Path | None = None) -> Catalog:
    """Load the catalog, applying a TOML overrides file when one exists.

    The overrides file may contain ``version`` plus ``[brands]``,
    ``[compounds]``, ``[word_variants]``, ``[phrase_variants]``,
    ``[average_weights]``, ``[reference_prices]`` tables and ``[[products]]``
    entries with ``name``, ``category_key`` and optional ``subcategory``,
    ``unit`` and ``confidence``.

    Args:
        overrides_path: Optional path to a TOML overrides file

    Returns:
        A Catalog; the default one when there is nothing to override
    """
    base = default_catalog()
    if overrides_path is None or not overrides_path.exists():
        return base

    with open(overrides_path, "rb") as f:
        data = tomllib.load(f)

    products = dict(base.products)
    for entry in data.get("products", []):
        defaults = CATEGORY_DEFAULTS.get(entry.get("category_key", "pantry"), FALLBACK_SHELF)
        shelf = replace(
            defaults,
            unit=Unit(entry.get("unit", defaults.unit.value)),
            confidence=float(entry.get("confidence", 0.9)),
            subcategory=entry.get("subcategory"),
        )
        name = entry["name"].lower()
        products[name] = ProductEntry(name=name, shelf=shelf, brands=tuple(entry.get("brands", ())))

    catalog = replace(
        base,
        version=data.get("version", f"{base.version}+local"),
        products=MappingProxyType(products),
        brands=_merged(base.brands, data.get("brands")),
        compounds=_merged(base.compounds, data.get("compounds")),
        word_variants=_merged(base.word_variants, data.get("word_variants")),
        phrase_variants=_merged(base.phrase_variants, data.get("phrase_variants")),
        average_weights=_merged(base.average_weights, data.get("average_weights")),
        reference_prices=_merged(base.reference_prices, data.get("reference_prices")),
    )
    logger.info("Loaded catalog %s from %s", catalog.version, overrides_path)
    return catalog
