"""Core data models for Grocery Planner."""

from datetime import datetime
from enum import Enum
from uuid import UUID, uuid4

from pydantic import BaseModel, Field, computed_field, field_validator


class Category(str, Enum):
    """Shelf categories."""

    PRODUCE = "Produce"
    DAIRY = "Dairy & Eggs"
    MEAT = "Meat & Seafood"
    PANTRY = "Pantry & Canned Goods"
    FROZEN = "Frozen Foods"
    BAKERY = "Bakery"
    PERSONAL_CARE = "Personal Care"
    HOUSEHOLD = "Household Items"


class Unit(str, Enum):
    """Units of measurement for list entries."""

    COUNT = "COUNT"
    LB = "LB"
    OZ = "OZ"
    PKG = "PKG"
    BOX = "BOX"
    CAN = "CAN"
    BOTTLE = "BOTTLE"
    JAR = "JAR"
    BUNCH = "BUNCH"
    ROLL = "ROLL"
    GALLON = "GALLON"
    DOZEN = "DOZEN"
    PACK = "PACK"


class PlanType(str, Enum):
    """Shopping plan objectives."""

    SINGLE_STORE = "single-store"
    BEST_VALUE = "best-value"
    BALANCED = "balanced"


class ShoppingListEntry(BaseModel):
    """A single item on a shopping list."""

    id: UUID = Field(default_factory=uuid4)
    list_id: UUID
    canonical_name: str
    raw_name: str
    quantity: float = 1.0
    unit: Unit = Unit.COUNT
    category: Category = Category.PANTRY
    is_completed: bool = False
    suggested_retailer_id: int | None = None
    suggested_price: int | None = None
    added_at: datetime = Field(default_factory=datetime.now)

    @field_validator("quantity")
    @classmethod
    def quantity_must_be_positive(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("quantity must be positive")
        return v


class ShoppingList(BaseModel):
    """A named shopping list and its entries."""

    id: UUID = Field(default_factory=uuid4)
    name: str
    is_default: bool = False
    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: datetime = Field(default_factory=datetime.now)
    items: list[ShoppingListEntry] = Field(default_factory=list)

    @property
    def active_items(self) -> list[ShoppingListEntry]:
        """Entries not yet completed."""
        return [item for item in self.items if not item.is_completed]


class Retailer(BaseModel):
    """A retailer and its baseline pricing characteristics."""

    id: int
    name: str
    price_factor: float = 1.0
    availability_offset: float = 0.0
    out_of_stock: list[str] = Field(default_factory=list)

    model_config = {"frozen": True}


class Deal(BaseModel):
    """A time-bounded discounted price at one retailer.

    Prices are stored in cents.
    """

    id: UUID = Field(default_factory=uuid4)
    retailer_id: int
    product_name: str
    regular_price: int
    sale_price: int
    start_date: datetime = Field(default_factory=datetime.now)
    end_date: datetime
    category: str | None = None

    def is_active(self, now: datetime | None = None) -> bool:
        """A deal is active until its end date passes."""
        return (now or datetime.now()) < self.end_date

    @property
    def discount(self) -> int:
        """Cents saved per unit."""
        return max(0, self.regular_price - self.sale_price)


class CategoryProfile(BaseModel):
    """Shelf metadata derived for a product name."""

    category: Category
    subcategory: str | None = None
    aisle: str
    section: str
    suggested_unit: Unit
    confidence: float = Field(ge=0.0, le=1.0)
    canonical_name: str = ""
    match_type: str = "fallback"
    brand_variations: list[str] = Field(default_factory=list)
    typical_retail_names: list[str] = Field(default_factory=list)
    icon: str = ""


class QuantitySuggestion(BaseModel):
    """Advisory retail-size quantity for a requested amount."""

    original_quantity: float
    original_unit: str
    suggested_quantity: float
    suggested_unit: str
    reason: str

    @property
    def changed(self) -> bool:
        """Whether the suggestion differs from the request."""
        return (
            self.suggested_quantity != self.original_quantity
            or self.suggested_unit != self.original_unit
        )


class PriceQuote(BaseModel):
    """A retailer's price for one item, in cents."""

    price: int | None = None
    is_deal: bool = False
    available: bool = True
    regular_price: int | None = None


class PlanLine(BaseModel):
    """One item line inside a store allocation."""

    entry_id: UUID | None = None
    name: str
    quantity: float
    unit: str
    unit_price: int | None = None
    line_total: int = 0
    is_deal: bool = False
    available: bool = True
    substitute_retailer_id: int | None = None


class StoreAllocation(BaseModel):
    """The part of a plan bought at one retailer."""

    retailer_id: int
    retailer_name: str
    items: list[PlanLine] = Field(default_factory=list)

    @computed_field
    @property
    def subtotal(self) -> int:
        """Sum of line totals in cents."""
        return sum(line.line_total for line in self.items)


class Plan(BaseModel):
    """A costed, store-partitioned shopping proposal."""

    plan_type: PlanType
    stores: list[StoreAllocation] = Field(default_factory=list)
    estimated_time: str = "0 min"
    savings: int = 0
    unavailable_items: list[str] = Field(default_factory=list)

    @computed_field
    @property
    def total_cost(self) -> int:
        """Sum of store subtotals in cents."""
        return sum(store.subtotal for store in self.stores)

    @computed_field
    @property
    def store_count(self) -> int:
        """Number of stores visited."""
        return len(self.stores)

