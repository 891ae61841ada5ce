"""Shopping list management operations."""

import logging
import math
import threading
from typing import Any
from uuid import UUID

from .categorizer import ProductCategorizer
from .data_store import DataStore, DataStoreProtocol
from .matching import reconcile
from .models import Category, QuantitySuggestion, ShoppingList, ShoppingListEntry, Unit
from .quantity_normalizer import QuantityNormalizer

logger = logging.getLogger(__name__)

# One lock per list id, shared by every ListManager in the process.
_list_locks: dict[UUID, threading.Lock] = {}
_list_locks_guard = threading.Lock()


def list_lock(list_id: UUID) -> threading.Lock:
    """The lock serializing read-modify-write cycles on one list."""
    with _list_locks_guard:
        if list_id not in _list_locks:
            _list_locks[list_id] = threading.Lock()
        return _list_locks[list_id]


class InvalidQuantityError(ValueError):
    """Raised when a quantity is non-numeric, non-finite or not positive."""

    def __init__(self, quantity: Any):
        self.quantity = quantity
        super().__init__(f"Invalid quantity '{quantity}': must be a positive number")


class NoShoppingListAvailableError(Exception):
    """Raised when no target list can be resolved."""

    def __init__(self, list_id: UUID | str | None = None):
        self.list_id = list_id
        if list_id is None:
            message = "No shopping list available; create one first"
        else:
            message = f"Shopping list '{list_id}' not found"
        super().__init__(message)


class ItemNotFoundError(Exception):
    """Raised when an item is not found."""

    def __init__(self, item_id: UUID | str):
        self.item_id = item_id
        super().__init__(f"Item with ID '{item_id}' not found")


def parse_quantity(quantity: Any) -> float:
    """Coerce a requested quantity to a positive finite float.

    Raises:
        InvalidQuantityError: If it isn't one
    """
    if isinstance(quantity, bool):
        raise InvalidQuantityError(quantity)
    try:
        value = float(quantity)
    except (TypeError, ValueError):
        raise InvalidQuantityError(quantity) from None
    if not math.isfinite(value) or value <= 0:
        raise InvalidQuantityError(quantity)
    return value


def parse_unit(unit: Unit | str | None) -> Unit | None:
    """Parse a unit name case-insensitively.

    Raises:
        ValueError: If the unit is unknown
    """
    if unit is None or isinstance(unit, Unit):
        return unit
    try:
        return Unit(unit.strip().upper())
    except ValueError:
        valid = ", ".join(u.value for u in Unit)
        raise ValueError(f"Unknown unit '{unit}'. Valid units: {valid}") from None


class ListManager:
    """Manages shopping lists and reconciles new items against them."""

    def __init__(
        self,
        data_store: DataStoreProtocol | None = None,
        categorizer: ProductCategorizer | None = None,
        normalizer: QuantityNormalizer | None = None,
        default_list_name: str = "Groceries",
    ):
        """Initialize list manager.

        Args:
            data_store: DataStore instance. Creates new one if not provided.
            categorizer: ProductCategorizer for new entries
            normalizer: QuantityNormalizer for new entries
            default_list_name: Name used by create_list when none is given
        """
        self.data_store = data_store or DataStore()
        self.categorizer = categorizer or ProductCategorizer()
        self.normalizer = normalizer or QuantityNormalizer(categorizer=self.categorizer)
        self.default_list_name = default_list_name

    def _resolve_list(self, list_id: UUID | str | None = None) -> ShoppingList:
        """Load the given list, or the default list when no id is given.

        Raises:
            NoShoppingListAvailableError: If nothing resolves
        """
        if list_id is None:
            shopping_list = self.data_store.get_default_list()
        else:
            if isinstance(list_id, str):
                try:
                    list_id = UUID(list_id)
                except ValueError:
                    raise NoShoppingListAvailableError(list_id) from None
            shopping_list = self.data_store.load_list(list_id)
        if shopping_list is None:
            raise NoShoppingListAvailableError(list_id)
        return shopping_list

    def _find_entry(self, item_id: UUID | str) -> ShoppingListEntry:
        if isinstance(item_id, str):
            try:
                item_id = UUID(item_id)
            except ValueError:
                raise ItemNotFoundError(item_id) from None
        for shopping_list in self.data_store.get_lists():
            for entry in shopping_list.items:
                if entry.id == item_id:
                    return entry
        raise ItemNotFoundError(item_id)

    # --- Lists ---

    def create_list(self, name: str | None = None, is_default: bool = False) -> dict:
        """Create a new shopping list.

        Args:
            name: List name
            is_default: Make it the default list

        Returns:
            Dict with success status and list data
        """
        shopping_list = self.data_store.create_list(name or self.default_list_name, is_default)
        return {
            "success": True,
            "message": f"Created list {shopping_list.name}",
            "data": {"list": shopping_list.model_dump(mode="json")},
        }

    def get_lists(self) -> dict:
        """Summaries of all lists."""
        lists = [
            {
                "id": str(lst.id),
                "name": lst.name,
                "is_default": lst.is_default,
                "total_items": len(lst.items),
                "active_items": len(lst.active_items),
            }
            for lst in self.data_store.get_lists()
        ]
        return {"success": True, "data": {"lists": lists}}

    def delete_list(self, list_id: UUID | str) -> dict:
        """Delete a list and all its entries.

        Raises:
            NoShoppingListAvailableError: If the list doesn't exist
        """
        shopping_list = self._resolve_list(list_id)
        with list_lock(shopping_list.id):
            self.data_store.delete_list(shopping_list.id)
        return {
            "success": True,
            "message": f"Deleted list {shopping_list.name} ({len(shopping_list.items)} items)",
            "data": {"list_id": str(shopping_list.id), "removed_count": len(shopping_list.items)},
        }

    # --- Items ---

    def add_item(
        self,
        raw_name: str,
        quantity: float | str = 1,
        unit: Unit | str | None = None,
        list_id: UUID | str | None = None,
    ) -> dict:
        """Add an item, merging it into a matching entry when there is one.

        Args:
            raw_name: Item name as typed or spoken
            quantity: Amount to buy
            unit: Explicit unit. New entries default to COUNT.
            list_id: Target list. Uses the default list if not provided.

        Returns:
            Dict with success status and ``item``, ``merged`` and
            ``corrected`` data. New entries also carry an advisory
            ``suggestion`` for a retail-sized quantity, or None.

        Raises:
            InvalidQuantityError: If quantity isn't a positive number
            NoShoppingListAvailableError: If no list can be resolved
        """
        amount = parse_quantity(quantity)
        requested_unit = parse_unit(unit)
        shopping_list = self._resolve_list(list_id)

        with list_lock(shopping_list.id):
            entries = self.data_store.get_shopping_list_items(shopping_list.id)
            result = reconcile(raw_name, entries, self.categorizer.catalog)

            if result.matched:
                entry = self._merge(result.entry, amount, requested_unit)
                logger.info(
                    "Merged %r into %s via %s match", raw_name, entry.canonical_name, result.strategy
                )
                return {
                    "success": True,
                    "message": f"Updated {entry.canonical_name} to {entry.quantity:g} {entry.unit.value}",
                    "data": {
                        "item": entry.model_dump(mode="json"),
                        "merged": True,
                        "corrected": result.corrected,
                    },
                }

            name = result.corrected_name if result.corrected else result.name
            entry = self._create(shopping_list.id, raw_name, name, amount, requested_unit)
            logger.info("Added %s to list %s", entry.canonical_name, shopping_list.name)

        suggestion = self._suggest(entry, requested_unit)
        message = f"Added {entry.canonical_name} to {shopping_list.name}"
        if result.corrected:
            message += f" (corrected from '{raw_name.strip()}')"
        return {
            "success": True,
            "message": message,
            "data": {
                "item": entry.model_dump(mode="json"),
                "merged": False,
                "corrected": result.corrected,
                "suggestion": suggestion.model_dump(mode="json") if suggestion else None,
            },
        }

    def _merge(
        self, entry: ShoppingListEntry, amount: float, unit: Unit | None
    ) -> ShoppingListEntry:
        # A completed entry was already bought; the new request starts it over.
        quantity = amount if entry.is_completed else entry.quantity + amount
        partial: dict[str, Any] = {"quantity": quantity, "is_completed": False}
        if unit is not None and unit != entry.unit:
            partial["unit"] = unit
        updated = self.data_store.update_shopping_list_item(entry.id, partial)
        if updated is None:
            raise ItemNotFoundError(entry.id)
        return updated

    def _create(
        self,
        list_id: UUID,
        raw_name: str,
        name: str,
        amount: float,
        unit: Unit | None,
    ) -> ShoppingListEntry:
        profile = self.categorizer.categorize(name)
        entry = ShoppingListEntry(
            list_id=list_id,
            canonical_name=profile.canonical_name or raw_name.strip(),
            raw_name=raw_name.strip(),
            quantity=amount,
            unit=unit or Unit.COUNT,
            category=profile.category,
        )
        return self.data_store.add_shopping_list_item(entry)

    def _suggest(self, entry: ShoppingListEntry, unit: Unit | None) -> QuantitySuggestion | None:
        """Retail quantity hint for a new entry. It is returned, never applied.

        Only offered when the caller didn't pin a non-default unit.
        """
        if unit not in (None, Unit.COUNT):
            return None
        suggestion = self.normalizer.normalize(entry.canonical_name, entry.quantity, entry.unit)
        return suggestion if suggestion.changed else None

    def get_list(
        self,
        list_id: UUID | str | None = None,
        category: str | None = None,
        completed: bool | None = None,
    ) -> dict:
        """Get a shopping list with optional filtering.

        Args:
            list_id: List ID. Uses the default list if not provided.
            category: Filter by category
            completed: Filter by completion state

        Returns:
            Dict with list data
        """
        shopping_list = self._resolve_list(list_id)
        items = shopping_list.items

        if category:
            items = [i for i in items if i.category.value.lower() == category.lower()]

        if completed is not None:
            items = [i for i in items if i.is_completed == completed]

        return {
            "success": True,
            "data": {
                "list": {
                    "id": str(shopping_list.id),
                    "name": shopping_list.name,
                    "updated_at": shopping_list.updated_at.isoformat(),
                    "items": [item.model_dump(mode="json") for item in items],
                    "total_items": len(items),
                }
            },
        }

    def get_item(self, item_id: UUID | str) -> ShoppingListEntry:
        """Get a specific item by ID.

        Raises:
            ItemNotFoundError: If item not found
        """
        return self._find_entry(item_id)

    def update_item(
        self,
        item_id: UUID | str,
        name: str | None = None,
        quantity: float | str | None = None,
        unit: Unit | str | None = None,
        category: Category | str | None = None,
    ) -> dict:
        """Edit an existing item.

        Renaming re-derives the canonical name and category unless a
        category is given explicitly. A new name that matches another
        entry on the list (by the same rules as ``add_item``) merges the
        two, keeping the other entry.

        Raises:
            ItemNotFoundError: If item not found
            InvalidQuantityError: If quantity isn't a positive number
        """
        partial: dict[str, Any] = {}
        if quantity is not None:
            partial["quantity"] = parse_quantity(quantity)
        if unit is not None:
            partial["unit"] = parse_unit(unit)
        if category is not None:
            partial["category"] = Category(category)

        entry = self._find_entry(item_id)
        with list_lock(entry.list_id):
            if name is not None:
                others = [
                    other
                    for other in self.data_store.get_shopping_list_items(entry.list_id)
                    if other.id != entry.id
                ]
                result = reconcile(name, others, self.categorizer.catalog)
                if result.matched:
                    return self._merge_rename(entry, result.entry, partial)

                profile = self.categorizer.categorize(
                    result.corrected_name if result.corrected else name
                )
                partial["raw_name"] = name.strip()
                partial["canonical_name"] = profile.canonical_name or name.strip()
                partial.setdefault("category", profile.category)

            updated = self.data_store.update_shopping_list_item(entry.id, partial)
        if updated is None:
            raise ItemNotFoundError(item_id)

        return {
            "success": True,
            "message": f"Updated {updated.canonical_name}",
            "data": {"item": updated.model_dump(mode="json"), "merged": False},
        }

    def _merge_rename(
        self, entry: ShoppingListEntry, target: ShoppingListEntry, partial: dict[str, Any]
    ) -> dict:
        # Renaming onto an existing item folds the renamed entry into it.
        merged = self._merge(
            target, partial.get("quantity", entry.quantity), partial.get("unit")
        )
        self.data_store.delete_shopping_list_item(entry.id)
        logger.info("Merged renamed %s into %s", entry.canonical_name, merged.canonical_name)
        return {
            "success": True,
            "message": f"Merged {entry.canonical_name} into {merged.canonical_name}",
            "data": {
                "item": merged.model_dump(mode="json"),
                "merged": True,
                "removed_id": str(entry.id),
            },
        }

    def toggle_item(self, item_id: UUID | str) -> dict:
        """Flip an item between active and completed.

        Raises:
            ItemNotFoundError: If item not found
        """
        entry = self._find_entry(item_id)
        with list_lock(entry.list_id):
            updated = self.data_store.update_shopping_list_item(
                entry.id, {"is_completed": not entry.is_completed}
            )
        if updated is None:
            raise ItemNotFoundError(item_id)

        state = "completed" if updated.is_completed else "active"
        return {
            "success": True,
            "message": f"Marked {updated.canonical_name} as {state}",
            "data": {"item": updated.model_dump(mode="json")},
        }

    def remove_item(self, item_id: UUID | str) -> dict:
        """Remove an item from its list.

        Raises:
            ItemNotFoundError: If item not found
        """
        entry = self._find_entry(item_id)
        with list_lock(entry.list_id):
            removed = self.data_store.delete_shopping_list_item(entry.id)
        if removed is None:
            raise ItemNotFoundError(item_id)

        return {
            "success": True,
            "message": f"Removed {removed.canonical_name} from shopping list",
            "data": {"item": removed.model_dump(mode="json")},
        }

    def clear_completed(self, list_id: UUID | str | None = None) -> dict:
        """Remove all completed items from a list.

        Returns:
            Dict with count of removed items
        """
        shopping_list = self._resolve_list(list_id)
        with list_lock(shopping_list.id):
            shopping_list = self._resolve_list(shopping_list.id)
            original_count = len(shopping_list.items)
            shopping_list.items = shopping_list.active_items
            removed_count = original_count - len(shopping_list.items)
            self.data_store.save_list(shopping_list)

        return {
            "success": True,
            "message": f"Cleared {removed_count} completed items",
            "data": {"removed_count": removed_count},
        }

    def get_by_category(self, list_id: UUID | str | None = None) -> dict:
        """Get active items grouped by category in store-walk order.

        Returns:
            Dict with ``by_category`` mapping category name to aisle and items
        """
        shopping_list = self._resolve_list(list_id)
        aisles = {
            shelf.category: shelf.aisle
            for shelf in self.categorizer.catalog.category_defaults.values()
        }

        by_category: dict[str, dict] = {}
        for category in Category:
            items = [i for i in shopping_list.active_items if i.category == category]
            if items:
                by_category[category.value] = {
                    "aisle": aisles.get(category, ""),
                    "items": [item.model_dump(mode="json") for item in items],
                }

        return {
            "success": True,
            "data": {"by_category": by_category},
        }

    def suggest_optimizations(self, list_id: UUID | str | None = None) -> dict:
        """Suggest canonical names and retail quantities for active items.

        Returns:
            Dict with a ``suggestions`` list; items already in shape are
            left out
        """
        shopping_list = self._resolve_list(list_id)
        suggestions = self.categorizer.categorize_batch(
            [
                {
                    "id": str(item.id),
                    "name": item.canonical_name,
                    "quantity": item.quantity,
                    "unit": item.unit.value,
                }
                for item in shopping_list.active_items
            ],
            normalizer=self.normalizer,
        )
        return {
            "success": True,
            "message": f"{len(suggestions)} suggestions for {shopping_list.name}",
            "data": {"suggestions": suggestions},
        }
