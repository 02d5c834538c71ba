"""Domain models for shopping lists."""

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import StrEnum
from uuid import UUID


class ShoppingMode(StrEnum):
    """Quantity scaling mode."""

    NORMAL = "normal"
    SAVING = "saving"


class PriceStatus(StrEnum):
    """Freshness classification of a cached price."""

    FRESH = "fresh"
    STALE = "stale"
    ABSENT = "absent"


@dataclass(frozen=True)
class ShoppingListItem:
    """Aggregated, scaled and priced demand for one ingredient."""

    ingredient_id: UUID
    name: str
    unit: str
    base_quantity: float
    quantity: float
    unit_price: float
    currency: str
    estimated_cost: float
    price_status: PriceStatus
    is_estimate: bool
    price_updated_at: datetime | None = None


@dataclass(frozen=True)
class ShoppingList:
    """Shopping list for a date range."""

    start: date
    end: date
    servings: int
    mode: ShoppingMode
    items: list[ShoppingListItem]
    total_cost: float
    currency: str
    incomplete: bool = False
    missing_recipe_ids: list[UUID] = field(default_factory=list)


@dataclass(frozen=True)
class CostProjection:
    """Total vs remaining cost for a caller-owned checked set."""

    total: float
    checked: float
    remaining: float
