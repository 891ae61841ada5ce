"""Match strategies deciding whether a requested item is already on a list.

Each strategy looks at a normalized request name and the list entries and
returns the matching entry or ``None``. ``reconcile`` runs them in order and
stops at the first hit.
"""

from dataclasses import dataclass
from typing import Callable, Iterable

from .catalog import Catalog, default_catalog
from .item_normalizer import apply_variants, normalize_item_name
from .models import ShoppingListEntry

MAX_LENGTH_DIFF = 2
PREFIX_LENGTH = 3

MatchStrategy = Callable[[str, list[ShoppingListEntry], Catalog], ShoppingListEntry | None]


@dataclass(frozen=True)
class Reconciliation:
    """Outcome of matching one request against a list."""

    name: str
    corrected_name: str
    corrected: bool
    entry: ShoppingListEntry | None = None
    strategy: str | None = None

    @property
    def matched(self) -> bool:
        return self.entry is not None


def entry_names(entry: ShoppingListEntry) -> set[str]:
    """Normalized names an entry answers to."""
    return {normalize_item_name(entry.canonical_name), normalize_item_name(entry.raw_name)}


def plural_equal(a: str, b: str) -> bool:
    """Equal, or equal after adding or dropping one trailing "s"."""
    if a == b:
        return True
    return a + "s" == b or b + "s" == a


def contains_either(a: str, b: str) -> bool:
    """One name contains the other."""
    return a in b or b in a


def same_by_prefix(a: str, b: str) -> bool:
    """Containment or shared three-letter prefix, within the length guard.

    "tomato"/"tomatoe" qualify; "tomato"/"tomato soup" do not.
    """
    if abs(len(a) - len(b)) > MAX_LENGTH_DIFF:
        return False
    if contains_either(a, b):
        return True
    return len(a) > PREFIX_LENGTH and len(b) > PREFIX_LENGTH and a[:PREFIX_LENGTH] == b[:PREFIX_LENGTH]


def _first(entries: Iterable[ShoppingListEntry], test: Callable[[str], bool]) -> ShoppingListEntry | None:
    for entry in entries:
        if any(test(candidate) for candidate in entry_names(entry)):
            return entry
    return None


def exact_or_plural_match(
    name: str, entries: list[ShoppingListEntry], catalog: Catalog
) -> ShoppingListEntry | None:
    """Match "banana" against "banana", "bananas" and vice versa."""
    return _first(entries, lambda candidate: plural_equal(name, candidate))


def dictionary_corrected_match(
    name: str, entries: list[ShoppingListEntry], catalog: Catalog
) -> ShoppingListEntry | None:
    """Re-check entries after fixing known misspellings and translations.

    A corrected name is trusted, so plain containment is enough: "tomatoe"
    joins "Cherry Tomato".
    """
    corrected, changed = apply_variants(name, catalog)
    if not changed:
        return None
    return _first(
        entries,
        lambda candidate: plural_equal(corrected, candidate)
        or contains_either(corrected, candidate),
    )


def prefix_length_match(
    name: str, entries: list[ShoppingListEntry], catalog: Catalog
) -> ShoppingListEntry | None:
    """Last resort: containment or a shared prefix with similar length."""
    return _first(entries, lambda candidate: same_by_prefix(name, candidate))


DEFAULT_STRATEGIES: tuple[tuple[str, MatchStrategy], ...] = (
    ("exact", exact_or_plural_match),
    ("dictionary", dictionary_corrected_match),
    ("prefix", prefix_length_match),
)


def reconcile(
    raw_name: str,
    entries: list[ShoppingListEntry],
    catalog: Catalog | None = None,
    strategies: tuple[tuple[str, MatchStrategy], ...] = DEFAULT_STRATEGIES,
) -> Reconciliation:
    """Find the entry a request should merge into.

    Args:
        raw_name: Item name as requested
        entries: Current list entries
        catalog: Catalog supplying the variant dictionaries
        strategies: Ordered (label, strategy) pairs

    Returns:
        Reconciliation with the matched entry (if any) and the
        dictionary-corrected name
    """
    catalog = catalog or default_catalog()
    name = normalize_item_name(raw_name)
    corrected_name, corrected = apply_variants(name, catalog)

    for label, strategy in strategies:
        entry = strategy(name, entries, catalog)
        if entry is not None:
            return Reconciliation(name, corrected_name, corrected, entry, label)
    return Reconciliation(name, corrected_name, corrected)
