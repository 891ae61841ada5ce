"""JSON persistence for Grocery Planner.

Layout under the data directory::

    lists/<list id>.json   one ShoppingList with its entries
    retailers.json         the retailer directory
    deals.json             all known deals, active or expired
"""

import json
import logging
import os
import threading
from datetime import date, datetime
from pathlib import Path
from typing import Any, Protocol
from uuid import UUID

from .models import Deal, Retailer, ShoppingList, ShoppingListEntry

logger = logging.getLogger(__name__)


class DataStoreProtocol(Protocol):
    """Protocol defining the data store interface."""

    def load_list(self, list_id: UUID) -> ShoppingList | None: ...
    def save_list(self, shopping_list: ShoppingList) -> None: ...
    def get_lists(self) -> list[ShoppingList]: ...
    def get_default_list(self) -> ShoppingList | None: ...
    def create_list(self, name: str, is_default: bool = False) -> ShoppingList: ...
    def delete_list(self, list_id: UUID) -> bool: ...
    def get_shopping_list_items(self, list_id: UUID) -> list[ShoppingListEntry]: ...
    def add_shopping_list_item(self, entry: ShoppingListEntry) -> ShoppingListEntry: ...
    def update_shopping_list_item(
        self, item_id: UUID, partial: dict[str, Any]
    ) -> ShoppingListEntry | None: ...
    def delete_shopping_list_item(self, item_id: UUID) -> ShoppingListEntry | None: ...
    def load_retailers(self) -> list[Retailer]: ...
    def save_retailers(self, retailers: list[Retailer]) -> None: ...
    def load_deals(self) -> list[Deal]: ...
    def save_deals(self, deals: list[Deal]) -> None: ...
    def get_deals(
        self,
        retailer_id: int | None = None,
        category: str | None = None,
        now: datetime | None = None,
    ) -> list[Deal]: ...


class JSONEncoder(json.JSONEncoder):
    """Custom JSON encoder for our data types."""

    def default(self, obj: Any) -> Any:
        if isinstance(obj, UUID):
            return str(obj)
        if isinstance(obj, (datetime, date)):
            return obj.isoformat()
        return super().default(obj)


_UUID_KEYS = ("id", "list_id")
_DATETIME_KEYS = ("added_at", "created_at", "updated_at", "start_date", "end_date")


def json_decoder(data: dict[str, Any]) -> dict[str, Any]:
    """Decode JSON data back to Python objects."""
    for key, value in data.items():
        if not isinstance(value, str):
            continue
        if key in _UUID_KEYS:
            try:
                data[key] = UUID(value)
            except ValueError:
                pass
        elif key in _DATETIME_KEYS:
            try:
                data[key] = datetime.fromisoformat(value)
            except ValueError:
                pass
    return data


class DataStore:
    """Manages JSON file persistence for shopping lists, retailers and deals."""

    def __init__(self, data_dir: Path | None = None):
        """Initialize data store.

        Args:
            data_dir: Directory for data files. Defaults to ./data
        """
        self.data_dir = data_dir or Path.cwd() / "data"
        self._ensure_directories()

    def _ensure_directories(self) -> None:
        """Create necessary directories if they don't exist."""
        self.data_dir.mkdir(parents=True, exist_ok=True)
        (self.data_dir / "lists").mkdir(exist_ok=True)

    def _list_path(self, list_id: UUID | str) -> Path:
        return self.data_dir / "lists" / f"{list_id}.json"

    def _retailers_path(self) -> Path:
        return self.data_dir / "retailers.json"

    def _deals_path(self) -> Path:
        return self.data_dir / "deals.json"

    def _read(self, path: Path) -> Any:
        with open(path) as f:
            return json.load(f, object_hook=json_decoder)

    def _write(self, path: Path, data: Any) -> None:
        # Readers never see a half-written file.
        tmp_path = path.with_name(f"{path.name}.{threading.get_ident()}.tmp")
        with open(tmp_path, "w") as f:
            json.dump(data, f, cls=JSONEncoder, indent=2)
        os.replace(tmp_path, path)

    # --- Shopping List Operations ---

    def load_list(self, list_id: UUID) -> ShoppingList | None:
        """Load a shopping list.

        Args:
            list_id: List ID

        Returns:
            ShoppingList if found, None otherwise
        """
        path = self._list_path(list_id)
        if not path.exists():
            return None
        return ShoppingList(**self._read(path))

    def save_list(self, shopping_list: ShoppingList) -> None:
        """Save a shopping list with its entries.

        Args:
            shopping_list: ShoppingList to save
        """
        shopping_list.updated_at = datetime.now()
        self._write(self._list_path(shopping_list.id), shopping_list.model_dump())

    def get_lists(self) -> list[ShoppingList]:
        """All lists, oldest first."""
        lists = [ShoppingList(**self._read(path)) for path in (self.data_dir / "lists").glob("*.json")]
        return sorted(lists, key=lambda lst: lst.created_at)

    def get_default_list(self) -> ShoppingList | None:
        """The list flagged default, else the oldest list, else None."""
        lists = self.get_lists()
        for shopping_list in lists:
            if shopping_list.is_default:
                return shopping_list
        return lists[0] if lists else None

    def create_list(self, name: str, is_default: bool = False) -> ShoppingList:
        """Create and persist an empty list.

        The first list created becomes the default.

        Args:
            name: List name
            is_default: Make this the default list

        Returns:
            The new ShoppingList
        """
        existing = self.get_lists()
        is_default = is_default or not existing
        if is_default:
            for other in existing:
                if other.is_default:
                    other.is_default = False
                    self.save_list(other)

        shopping_list = ShoppingList(name=name, is_default=is_default)
        self.save_list(shopping_list)
        logger.info("Created list %s (%s)", name, shopping_list.id)
        return shopping_list

    def delete_list(self, list_id: UUID) -> bool:
        """Delete a list and all its entries.

        Returns:
            True if the list existed
        """
        path = self._list_path(list_id)
        if not path.exists():
            return False
        path.unlink()
        logger.info("Deleted list %s", list_id)
        return True

    # --- Entry Operations ---

    def _find_entry(self, item_id: UUID) -> tuple[ShoppingList, int] | None:
        for shopping_list in self.get_lists():
            for index, entry in enumerate(shopping_list.items):
                if entry.id == item_id:
                    return shopping_list, index
        return None

    def get_shopping_list_items(self, list_id: UUID) -> list[ShoppingListEntry]:
        """Entries of a list, empty if the list doesn't exist."""
        shopping_list = self.load_list(list_id)
        return shopping_list.items if shopping_list else []

    def add_shopping_list_item(self, entry: ShoppingListEntry) -> ShoppingListEntry:
        """Append an entry to its list.

        Raises:
            KeyError: If the entry's list doesn't exist
        """
        shopping_list = self.load_list(entry.list_id)
        if shopping_list is None:
            raise KeyError(f"List '{entry.list_id}' not found")
        shopping_list.items.append(entry)
        self.save_list(shopping_list)
        return entry

    def update_shopping_list_item(
        self, item_id: UUID, partial: dict[str, Any]
    ) -> ShoppingListEntry | None:
        """Apply a partial update to an entry.

        Args:
            item_id: Entry ID
            partial: Field values to change

        Returns:
            Updated entry, or None if not found
        """
        found = self._find_entry(item_id)
        if found is None:
            return None
        shopping_list, index = found
        current = shopping_list.items[index]
        updated = ShoppingListEntry(**{**current.model_dump(), **partial})
        shopping_list.items[index] = updated
        self.save_list(shopping_list)
        return updated

    def delete_shopping_list_item(self, item_id: UUID) -> ShoppingListEntry | None:
        """Remove an entry.

        Returns:
            The removed entry, or None if not found
        """
        found = self._find_entry(item_id)
        if found is None:
            return None
        shopping_list, index = found
        removed = shopping_list.items.pop(index)
        self.save_list(shopping_list)
        return removed

    # --- Retailer Operations ---

    def load_retailers(self) -> list[Retailer]:
        """Load the retailer directory in stored order."""
        path = self._retailers_path()
        if not path.exists():
            return []
        return [Retailer(**data) for data in self._read(path)]

    def save_retailers(self, retailers: list[Retailer]) -> None:
        """Save the retailer directory."""
        self._write(self._retailers_path(), [r.model_dump() for r in retailers])

    # --- Deal Operations ---

    def load_deals(self) -> list[Deal]:
        """Load every stored deal, including expired ones."""
        path = self._deals_path()
        if not path.exists():
            return []
        return [Deal(**data) for data in self._read(path)]

    def save_deals(self, deals: list[Deal]) -> None:
        """Save deals."""
        self._write(self._deals_path(), [d.model_dump() for d in deals])

    def get_deals(
        self,
        retailer_id: int | None = None,
        category: str | None = None,
        now: datetime | None = None,
    ) -> list[Deal]:
        """Active deals with optional filtering.

        Args:
            retailer_id: Filter by retailer
            category: Filter by category (case-insensitive)
            now: Reference time for activity. Defaults to the current time.

        Returns:
            Deals whose end date has not passed
        """
        deals = [deal for deal in self.load_deals() if deal.is_active(now)]
        if retailer_id is not None:
            deals = [deal for deal in deals if deal.retailer_id == retailer_id]
        if category:
            deals = [
                deal for deal in deals if deal.category and deal.category.lower() == category.lower()
            ]
        return deals
