"""Shared item name normalization utilities."""

import re

from .catalog import Catalog, default_catalog

_LEADING_DESCRIPTORS = {
    "organic",
    "fresh",
    "premium",
    "large",
    "small",
}
_TRAILING_FILLER = {
    "pack", "packs", "count", "ct", "pkg", "pk", "bag", "bottle", "can",
    "lb", "lbs", "oz", "gal", "kg", "g",
}
_MEASURE_TOKEN = re.compile(r"^\d+(?:\.\d+)?(?:oz|lb|lbs|g|kg|ml|l|ct|pk|gal)$")
_SIMPLE_NUMERIC = re.compile(r"^\d+(?:\.\d+)?%?$")


def normalize_item_name(item_name: str) -> str:
    """Lowercase, trim and collapse whitespace."""
    return re.sub(r"\s+", " ", item_name.strip().lower())


def identity_key(item_name: str) -> str:
    """Reduce an item name to the words that identify the product.

    Drops leading descriptors ("organic", "fresh") and trailing size or
    packaging tokens, so "Organic Bananas 3 lb" and "bananas" share a key.
    """
    cleaned = re.sub(r"[^a-z0-9%&' ]+", " ", item_name.lower())
    tokens = [token for token in cleaned.split() if token]

    while tokens and tokens[0] in _LEADING_DESCRIPTORS:
        tokens.pop(0)

    while tokens and (
        tokens[-1] in _TRAILING_FILLER
        or _MEASURE_TOKEN.match(tokens[-1])
        or _SIMPLE_NUMERIC.match(tokens[-1])
    ):
        tokens.pop()

    if not tokens:
        return normalize_item_name(item_name)
    return " ".join(tokens)


def apply_variants(item_name: str, catalog: Catalog | None = None) -> tuple[str, bool]:
    """Replace known misspellings and Spanish variants.

    Args:
        item_name: Already-normalized item name
        catalog: Catalog supplying the variant dictionaries

    Returns:
        Tuple of (corrected name, whether anything changed)
    """
    catalog = catalog or default_catalog()
    corrected = normalize_item_name(item_name)

    for phrase, replacement in catalog.phrase_variants.items():
        corrected = re.sub(rf"\b{re.escape(phrase)}\b", replacement, corrected)

    words = [catalog.word_variants.get(word, word) for word in corrected.split()]
    corrected = " ".join(words)
    return corrected, corrected != normalize_item_name(item_name)


def _capitalize(word: str) -> str:
    if _MEASURE_TOKEN.match(word):
        return word.upper()
    return word[:1].upper() + word[1:].lower()


def canonical_item_display_name(item_name: str, catalog: Catalog | None = None) -> str:
    """Build the display form used as an entry's canonical name.

    Known brands keep their proper capitalization, two-word products from the
    compound dictionary keep their exact form, size tokens such as ``12oz``
    are uppercased and every other word is capitalized.
    """
    catalog = catalog or default_catalog()
    tokens = normalize_item_name(item_name).split()
    words: list[str] = []
    i = 0
    while i < len(tokens):
        for width in (3, 2, 1):
            if i + width > len(tokens):
                continue
            chunk = " ".join(tokens[i : i + width])
            mapped = catalog.brands.get(chunk) or catalog.compounds.get(chunk)
            if mapped:
                words.append(mapped)
                i += width
                break
        else:
            words.append(_capitalize(tokens[i]))
            i += 1
    return " ".join(words)
