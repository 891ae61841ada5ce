"""Retail-size quantity suggestions.

Each category owns a ``CategoryRule``: an ordered tuple of ``QuantityRule``
(predicate, adjustment) pairs evaluated first-match-wins. A generic rule set
runs when no category rule applies. Results are rounded (0.25 lb or whole
units), floored to a practical minimum, and dropped entirely when they would
change the request by less than a quarter unit.
"""

import logging
import math
import re
from dataclasses import dataclass
from typing import Any, Callable

from .catalog import DEFAULT_UNIT_WEIGHT_LB, Catalog
from .categorizer import ProductCategorizer
from .item_normalizer import normalize_item_name
from .models import Category, CategoryProfile, QuantitySuggestion, Unit

logger = logging.getLogger(__name__)

NO_CONVERSION = "No conversion needed"
MIN_WEIGHT_LB = 0.5
MIN_UNITS = 1.0
NOOP_TOLERANCE = 0.25

PACKAGE_UNITS = {Unit.PKG, Unit.BOX, Unit.CAN, Unit.BOTTLE, Unit.JAR}
EGG_CARTONS = (12, 18, 24)
PAPER_PACKS = (6, 12, 24)


@dataclass(frozen=True)
class QuantityRequest:
    """Everything a rule may look at."""

    name: str
    quantity: float
    unit: str
    profile: CategoryProfile
    catalog: Catalog


@dataclass(frozen=True)
class Adjustment:
    """A rule's raw (unrounded) suggestion."""

    quantity: float
    unit: str
    reason: str


@dataclass(frozen=True)
class QuantityRule:
    """One keyword predicate and the adjustment it triggers."""

    label: str
    applies: Callable[[QuantityRequest], bool]
    adjust: Callable[[QuantityRequest], Adjustment]


@dataclass(frozen=True)
class CategoryRule:
    """Ordered quantity rules for one category."""

    category: Category | None
    rules: tuple[QuantityRule, ...]

    def apply(self, request: QuantityRequest) -> tuple[str, Adjustment] | None:
        """Return the first matching rule's label and adjustment."""
        for rule in self.rules:
            if rule.applies(request):
                return rule.label, rule.adjust(request)
        return None


def _mentions(*patterns: str) -> Callable[[QuantityRequest], bool]:
    regex = re.compile(r"\b(?:" + "|".join(patterns) + ")")
    return lambda req: bool(regex.search(req.name))


def _unit_in(*units: Unit) -> Callable[[QuantityRequest], bool]:
    values = {u.value for u in units}
    return lambda req: req.unit in values


def _all(*predicates: Callable[[QuantityRequest], bool]) -> Callable[[QuantityRequest], bool]:
    return lambda req: all(p(req) for p in predicates)


def _unit_weight(req: QuantityRequest) -> float:
    for keyword, weight in req.catalog.average_weights.items():
        if keyword in req.name:
            return weight
    return DEFAULT_UNIT_WEIGHT_LB


# --- Produce ---


def _bunch_band(req: QuantityRequest) -> Adjustment:
    weight = req.quantity * _unit_weight(req)
    if weight <= 2:
        return Adjustment(2, Unit.LB.value, f"About 2 lb (a typical bunch) instead of {req.quantity:g} items")
    return Adjustment(3, Unit.LB.value, f"Capped at 3 lb to limit spoilage instead of {req.quantity:g} items")


def _count_to_weight(req: QuantityRequest) -> Adjustment:
    weight = req.quantity * _unit_weight(req)
    return Adjustment(weight, Unit.LB.value, f"About {weight:.2f} lb for {req.quantity:g} items (typical weight)")


# --- Dairy & Eggs ---


def _egg_carton(req: QuantityRequest) -> Adjustment:
    count = req.quantity * 12 if req.unit == Unit.DOZEN.value else req.quantity
    for carton in EGG_CARTONS:
        if count <= carton:
            break
    else:
        dozens = math.ceil(count / 12)
        return Adjustment(dozens, Unit.DOZEN.value, f"Rounded up to {dozens} dozen eggs")
    if carton == 18:
        return Adjustment(18, Unit.COUNT.value, "Eggs come in an 18-count carton")
    return Adjustment(carton // 12, Unit.DOZEN.value, "Eggs are sold by the dozen")


def _milk_gallons(req: QuantityRequest) -> Adjustment:
    if req.quantity > 2:
        return Adjustment(2, Unit.GALLON.value, "Capped at 2 gallons before it spoils")
    return Adjustment(req.quantity, Unit.GALLON.value, "Milk is sold by the gallon")


def _yogurt_pack(req: QuantityRequest) -> Adjustment:
    return Adjustment(4, Unit.COUNT.value, "Yogurt usually comes in a 4-pack")


_LARGE_CONTAINER = _mentions(r"tub", r"large", r"quart", r"32\s?oz")

# --- Meat & Seafood ---


def _family_portion(req: QuantityRequest) -> Adjustment:
    pounds = max(1.0, req.quantity) if req.unit == Unit.COUNT.value else req.quantity
    bounded = min(4.0, max(2.0, pounds))
    return Adjustment(bounded, Unit.LB.value, f"{bounded:g} lb family portion (2-4 lb)")


def _meat_by_weight(req: QuantityRequest) -> Adjustment:
    pounds = max(1.0, req.quantity)
    return Adjustment(pounds, Unit.LB.value, f"{pounds:g} lb - meat is sold by weight")


def _meat_minimum(req: QuantityRequest) -> Adjustment:
    return Adjustment(1, Unit.LB.value, "Minimum 1 lb for practical shopping")


# --- Pantry ---


def _pantry_stock_up(req: QuantityRequest) -> Adjustment:
    unit = req.unit
    if unit == Unit.COUNT.value and req.profile.suggested_unit in PACKAGE_UNITS:
        unit = req.profile.suggested_unit.value
    bounded = min(6.0, max(2.0, req.quantity))
    if bounded > req.quantity:
        reason = f"Buy {bounded:g} to cover several meals"
    elif bounded < req.quantity:
        reason = f"Capped at {bounded:g} to avoid overstocking"
    else:
        reason = f"Sold by the {unit.lower()}"
    return Adjustment(bounded, unit, reason)


# --- Household ---


def _paper_pack(req: QuantityRequest) -> Adjustment:
    pack = next((size for size in PAPER_PACKS if req.quantity <= size), PAPER_PACKS[-1])
    return Adjustment(pack, Unit.ROLL.value, f"{pack}-pack is the usual retail size")


# --- Generic ---


def _package_relabel(req: QuantityRequest) -> Adjustment:
    unit = req.profile.suggested_unit.value
    return Adjustment(req.quantity, unit, f"Sold by the {unit.lower()}")


CATEGORY_RULES: dict[Category, CategoryRule] = {
    Category.PRODUCE: CategoryRule(
        Category.PRODUCE,
        (
            QuantityRule(
                "produce-bunch",
                _all(_mentions("banana", "apple"), _unit_in(Unit.COUNT)),
                _bunch_band,
            ),
            QuantityRule(
                "produce-count-to-weight",
                _all(_unit_in(Unit.COUNT), lambda req: req.profile.suggested_unit == Unit.LB),
                _count_to_weight,
            ),
        ),
    ),
    Category.DAIRY: CategoryRule(
        Category.DAIRY,
        (
            QuantityRule(
                "dairy-eggs",
                _all(_mentions(r"eggs?\b"), _unit_in(Unit.COUNT, Unit.DOZEN)),
                _egg_carton,
            ),
            QuantityRule(
                "dairy-milk",
                _all(_mentions("milk"), _unit_in(Unit.COUNT, Unit.GALLON)),
                _milk_gallons,
            ),
            QuantityRule(
                "dairy-yogurt",
                _all(
                    _mentions("yogurt"),
                    _unit_in(Unit.COUNT),
                    lambda req: req.quantity < 4 and not _LARGE_CONTAINER(req),
                ),
                _yogurt_pack,
            ),
        ),
    ),
    Category.MEAT: CategoryRule(
        Category.MEAT,
        (
            QuantityRule(
                "meat-family-portion",
                _all(_mentions("chicken", "ground"), _unit_in(Unit.COUNT, Unit.LB)),
                _family_portion,
            ),
            QuantityRule(
                "meat-by-weight",
                _all(_unit_in(Unit.COUNT), lambda req: req.profile.suggested_unit == Unit.LB),
                _meat_by_weight,
            ),
            QuantityRule(
                "meat-minimum",
                _all(_unit_in(Unit.LB), lambda req: req.quantity < 1),
                _meat_minimum,
            ),
        ),
    ),
    Category.PANTRY: CategoryRule(
        Category.PANTRY,
        (
            QuantityRule(
                "pantry-stock-up",
                _mentions("pasta", "spaghetti", "penne", "macaroni", "rice", "canned", r"cans?\b"),
                _pantry_stock_up,
            ),
        ),
    ),
    Category.HOUSEHOLD: CategoryRule(
        Category.HOUSEHOLD,
        (
            QuantityRule(
                "household-paper-pack",
                _all(
                    _mentions("paper towel", "toilet paper", "napkin", "tissue"),
                    _unit_in(Unit.COUNT, Unit.ROLL),
                ),
                _paper_pack,
            ),
        ),
    ),
}

GENERIC_RULES = CategoryRule(
    None,
    (
        QuantityRule(
            "package-relabel",
            _all(_unit_in(Unit.COUNT), lambda req: req.profile.suggested_unit in PACKAGE_UNITS),
            _package_relabel,
        ),
    ),
)


def round_quantity(quantity: float, unit: str) -> float:
    """Round to 0.25 lb or whole units and floor to a practical minimum."""
    if unit == Unit.LB.value:
        return max(MIN_WEIGHT_LB, math.floor(quantity * 4 + 0.5) / 4)
    return max(MIN_UNITS, float(math.floor(quantity + 0.5)))


def _coerce_unit(unit: Any) -> str:
    if isinstance(unit, Unit):
        return unit.value
    text = str(unit or Unit.COUNT.value).strip().upper()
    return text or Unit.COUNT.value


class QuantityNormalizer:
    """Suggests shopping-sane quantities for list entries."""

    def __init__(
        self,
        categorizer: ProductCategorizer | None = None,
        rules: dict[Category, CategoryRule] | None = None,
    ):
        """Initialize normalizer.

        Args:
            categorizer: ProductCategorizer used to pick the rule set
            rules: Category rule sets. Uses CATEGORY_RULES if not provided.
        """
        self.categorizer = categorizer or ProductCategorizer()
        self.rules = rules if rules is not None else CATEGORY_RULES

    def normalize(self, name: str, quantity: Any, unit: Any = Unit.COUNT) -> QuantitySuggestion:
        """Suggest a retail quantity and unit. Never raises.

        Args:
            name: Item name
            quantity: Requested amount
            unit: Requested unit

        Returns:
            QuantitySuggestion; the request itself when nothing needs changing
        """
        unit_text = _coerce_unit(unit)
        try:
            amount = float(quantity)
        except (TypeError, ValueError):
            amount = math.nan

        if not math.isfinite(amount) or amount <= 0:
            fixed = MIN_WEIGHT_LB if unit_text == Unit.LB.value else MIN_UNITS
            return QuantitySuggestion(
                original_quantity=0.0,
                original_unit=unit_text,
                suggested_quantity=fixed,
                suggested_unit=unit_text,
                reason="Quantity must be positive; using the smallest practical amount",
            )

        profile = self.categorizer.categorize(name)
        request = QuantityRequest(
            name=normalize_item_name(name or ""),
            quantity=amount,
            unit=unit_text,
            profile=profile,
            catalog=self.categorizer.catalog,
        )

        label, adjustment = self._adjust(request)
        suggested_quantity = round_quantity(adjustment.quantity, adjustment.unit)
        unchanged = (
            adjustment.unit == unit_text
            and abs(suggested_quantity - amount) < NOOP_TOLERANCE
        )
        if unchanged:
            return QuantitySuggestion(
                original_quantity=amount,
                original_unit=unit_text,
                suggested_quantity=amount,
                suggested_unit=unit_text,
                reason=NO_CONVERSION,
            )

        logger.debug(
            "Quantity rule %s: %g %s -> %g %s",
            label,
            amount,
            unit_text,
            suggested_quantity,
            adjustment.unit,
        )
        reason = adjustment.reason
        if reason == NO_CONVERSION:
            reason = "Rounded to a practical shopping amount"
        return QuantitySuggestion(
            original_quantity=amount,
            original_unit=unit_text,
            suggested_quantity=suggested_quantity,
            suggested_unit=adjustment.unit,
            reason=reason,
        )

    def _adjust(self, request: QuantityRequest) -> tuple[str, Adjustment]:
        category_rule = self.rules.get(request.profile.category)
        matched = category_rule.apply(request) if category_rule else None
        if matched is None:
            matched = GENERIC_RULES.apply(request)
        if matched is None:
            return "none", Adjustment(request.quantity, request.unit, NO_CONVERSION)
        return matched
