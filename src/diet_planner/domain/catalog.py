"""Domain models for the ingredient catalog."""

from dataclasses import dataclass, field, fields
from datetime import datetime
from uuid import UUID

from diet_planner.domain.errors import InvalidInputError

MACRO_FIELDS = ("kcal", "protein", "fat", "carbs")
NUTRIENT_FIELDS = (*MACRO_FIELDS, "fiber", "sugar", "sodium")


@dataclass(frozen=True)
class NutritionFacts:
    """Nutrition per 100 canonical units; ``None`` means unknown."""

    kcal: float | None = None
    protein: float | None = None
    fat: float | None = None
    carbs: float | None = None
    fiber: float | None = None
    sugar: float | None = None
    sodium: float | None = None

    def __post_init__(self) -> None:
        for item in fields(self):
            value = getattr(self, item.name)
            if value is not None and value < 0:
                raise InvalidInputError(f"{item.name} must be >= 0, got {value}")


@dataclass(frozen=True)
class PriceInfo:
    """Cached market price per canonical unit."""

    amount: float
    currency: str = "VND"
    updated_at: datetime | None = None

    def __post_init__(self) -> None:
        if self.amount < 0:
            raise InvalidInputError(f"price must be >= 0, got {self.amount}")


@dataclass(frozen=True)
class Ingredient:
    """Catalog record for an ingredient."""

    id: UUID
    name: str
    unit: str
    nutrition: NutritionFacts = field(default_factory=NutritionFacts)
    price: PriceInfo | None = None
