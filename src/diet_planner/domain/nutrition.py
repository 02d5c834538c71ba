"""Nutrition summary models."""

from dataclasses import dataclass, field
from datetime import date
from enum import StrEnum
from uuid import UUID

from diet_planner.domain.mealplans import SLOTS
from diet_planner.domain.recipes import RecipeNutrition


class NutritionSource(StrEnum):
    """Where a day's totals came from."""

    ACTUAL = "actual"
    PLANNED = "planned"
    NONE = "none"


@dataclass(frozen=True)
class MacroTotals:
    """Calories and gram macros."""

    calories: float = 0.0
    protein: float = 0.0
    fat: float = 0.0
    carbs: float = 0.0

    def __add__(self, other: "MacroTotals") -> "MacroTotals":
        return MacroTotals(
            calories=self.calories + other.calories,
            protein=self.protein + other.protein,
            fat=self.fat + other.fat,
            carbs=self.carbs + other.carbs,
        )


@dataclass(frozen=True)
class PlannedMeal:
    """A resolved recipe planned in one slot."""

    recipe_id: UUID
    title: str
    nutrition: RecipeNutrition


def empty_meals() -> dict[str, list[PlannedMeal]]:
    return {slot: [] for slot in SLOTS}


@dataclass(frozen=True)
class DailyNutrition:
    """Totals for a single date with their source.

    Planned days also list the resolved recipes per slot in ``meals``.
    """

    day: date
    calories: float
    protein: float
    fat: float
    carbs: float
    source: NutritionSource
    incomplete: bool = False
    meals: dict[str, list[PlannedMeal]] = field(default_factory=empty_meals)

    @property
    def totals(self) -> MacroTotals:
        return MacroTotals(self.calories, self.protein, self.fat, self.carbs)


@dataclass(frozen=True)
class NutritionSummary:
    """Daily totals for a range plus the per-day average."""

    daily: list[DailyNutrition]
    average: MacroTotals
