"""Product categorization from freeform item names."""

import logging

from .catalog import FALLBACK_SHELF, CATEGORY_ICONS, Catalog, ShelfInfo, default_catalog
from .item_normalizer import canonical_item_display_name, normalize_item_name
from .models import CategoryProfile
from .similarity import best_match

logger = logging.getLogger(__name__)

FUZZY_THRESHOLD = 0.7
FUZZY_CONFIDENCE_FACTOR = 0.8

_RETAIL_PREFIXES = ("organic", "fresh", "premium", "store brand", "great value")


class ProductCategorizer:
    """Maps raw item names to a shelf category profile.

    Resolution order is exact catalog lookup, fuzzy catalog match, category
    regex patterns, then the pantry fallback. ``categorize`` never raises.
    """

    def __init__(self, catalog: Catalog | None = None):
        """Initialize categorizer.

        Args:
            catalog: Catalog tables. Uses the built-in catalog if not provided.
        """
        self.catalog = catalog or default_catalog()

    def categorize(self, raw_name: str) -> CategoryProfile:
        """Categorize a product name.

        Args:
            raw_name: Item name as typed or spoken

        Returns:
            CategoryProfile with a canonical name and confidence in [0, 1]
        """
        name = normalize_item_name(raw_name or "")
        shelf, confidence, match_type, brands = self._resolve(name)

        profile = CategoryProfile(
            category=shelf.category,
            subcategory=shelf.subcategory,
            aisle=shelf.aisle,
            section=shelf.section,
            suggested_unit=shelf.unit,
            confidence=round(min(1.0, max(0.0, confidence)), 4),
            canonical_name=canonical_item_display_name(name, self.catalog),
            match_type=match_type,
            brand_variations=list(brands) or self._brand_variations(name),
            typical_retail_names=self._retail_names(name),
            icon=CATEGORY_ICONS.get(shelf.category, ""),
        )
        logger.debug(
            "Categorized %r as %s (%s, %.2f)",
            raw_name,
            profile.category.value,
            match_type,
            profile.confidence,
        )
        return profile

    def _resolve(self, name: str) -> tuple[ShelfInfo, float, str, tuple[str, ...]]:
        entry = self.catalog.products.get(name)
        if entry is not None:
            return entry.shelf, entry.shelf.confidence, "exact", entry.brands

        if name:
            match, score = best_match(name, self.catalog.products, threshold=FUZZY_THRESHOLD)
            if match is not None:
                entry = self.catalog.products[match]
                confidence = max(score, entry.shelf.confidence * FUZZY_CONFIDENCE_FACTOR)
                return entry.shelf, confidence, "fuzzy", entry.brands

        for key, patterns in self.catalog.category_patterns:
            if any(pattern.search(name) for pattern in patterns):
                shelf = self.catalog.category_defaults[key]
                return shelf, shelf.confidence, "pattern", ()

        return FALLBACK_SHELF, FALLBACK_SHELF.confidence, "fallback", ()

    def categorize_batch(self, items: list[dict], normalizer=None) -> list[dict]:
        """Categorize many items, keeping only those with something to change.

        Args:
            items: Dicts with ``name`` and optional ``quantity`` and ``unit``
            normalizer: QuantityNormalizer used for quantity suggestions

        Returns:
            List of dicts with ``name``, ``profile`` and ``quantity``
            suggestion for items whose name, quantity or unit would change
        """
        if normalizer is None:
            from .quantity_normalizer import QuantityNormalizer

            normalizer = QuantityNormalizer(categorizer=self)

        results = []
        for item in items:
            name = item["name"]
            profile = self.categorize(name)
            suggestion = normalizer.normalize(
                name, item.get("quantity", 1), item.get("unit") or "COUNT"
            )
            renamed = bool(profile.canonical_name) and profile.canonical_name != name
            if renamed or suggestion.changed:
                result = {
                    "name": name,
                    "profile": profile.model_dump(mode="json"),
                    "quantity": suggestion.model_dump(mode="json"),
                }
                if "id" in item:
                    result["id"] = item["id"]
                results.append(result)
        return results

    def _brand_variations(self, name: str) -> list[str]:
        if "milk" in name or "dairy" in name:
            return ["Great Value", "Horizon Organic", "Lactaid", "Fairlife", "Store Brand"]
        if "bread" in name or "bakery" in name:
            return ["Wonder", "Pepperidge Farm", "Sara Lee", "Dave's Killer Bread", "Store Brand"]
        if any(word in name for word in ("meat", "beef", "chicken")):
            return ["Fresh", "Organic", "Grass Fed", "Antibiotic Free", "Store Brand"]
        if any(word in name for word in ("fruit", "vegetable", "produce")):
            return ["Organic", "Fresh", "Local", "Store Brand"]
        return ["Generic", "Store Brand", "Name Brand"]

    def _retail_names(self, name: str) -> list[str]:
        cleaned = name
        for prefix in _RETAIL_PREFIXES:
            if cleaned.startswith(prefix + " "):
                cleaned = cleaned[len(prefix) + 1 :]
        display = canonical_item_display_name(cleaned, self.catalog)
        if not display:
            return []
        return [
            display,
            f"Organic {display}",
            f"Premium {display}",
            f"Store Brand {display}",
            f"Great Value {display}",
        ]
