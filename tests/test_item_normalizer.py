"""Tests for item name normalization."""

from grocery_planner.item_normalizer import (
    apply_variants,
    canonical_item_display_name,
    identity_key,
    normalize_item_name,
)


class TestNormalizeItemName:
    def test_lowercase_trim_collapse(self):
        assert normalize_item_name("  Whole   MILK ") == "whole milk"


class TestIdentityKey:
    """Tests for identity_key()."""

    def test_strips_descriptors_and_sizes(self):
        assert identity_key("Organic Bananas 3 lb") == "bananas"

    def test_strips_measure_tokens(self):
        assert identity_key("Greek Yogurt 32oz") == "greek yogurt"

    def test_keeps_name_when_everything_is_filler(self):
        assert identity_key("Pack") == "pack"


class TestApplyVariants:
    """Tests for misspelling and translation correction."""

    def test_word_variant(self):
        assert apply_variants("tomatoe") == ("tomato", True)

    def test_spanish_word(self):
        assert apply_variants("Leche") == ("milk", True)

    def test_phrase_before_words(self):
        assert apply_variants("carne molida") == ("ground beef", True)

    def test_unchanged(self):
        assert apply_variants("milk") == ("milk", False)


class TestCanonicalDisplayName:
    """Tests for display-name derivation."""

    def test_per_word_capitalization(self):
        assert canonical_item_display_name("whole wheat bread") == "Whole Wheat Bread"

    def test_compound_product(self):
        assert canonical_item_display_name("bbq sauce") == "BBQ Sauce"

    def test_brand_capitalization(self):
        assert canonical_item_display_name("campbells soup") == "Campbell's Soup"

    def test_size_token_uppercased(self):
        assert canonical_item_display_name("coca cola 12oz") == "Coca Cola 12OZ"

    def test_empty(self):
        assert canonical_item_display_name("") == ""
