"""Domain models for meal plans and food logs."""

from dataclasses import dataclass, field
from datetime import date
from uuid import UUID

from diet_planner.domain.errors import InvalidInputError

SLOTS = ("breakfast", "lunch", "dinner")


def validate_slot(slot: str) -> str:
    """Return the slot name or raise for unknown slots."""
    if slot not in SLOTS:
        raise InvalidInputError(f"Unknown slot {slot!r}; expected one of {SLOTS}")
    return slot


def empty_slots() -> dict[str, list[UUID]]:
    """Return a fresh mapping with every slot empty."""
    return {slot: [] for slot in SLOTS}


def normalize_slots(slots: dict[str, list[UUID]] | None) -> dict[str, list[UUID]]:
    """Fill missing slots and drop unknown keys."""
    normalized = empty_slots()
    for slot, ids in (slots or {}).items():
        if slot in normalized:
            normalized[slot] = list(ids)
    return normalized


@dataclass(frozen=True)
class MealPlan:
    """Planned recipes for one user and calendar day."""

    id: UUID
    user_id: UUID
    day: date
    slots: dict[str, list[UUID]] = field(default_factory=empty_slots)
    version: int = 0
    note: str | None = None

    def slot(self, slot: str) -> list[UUID]:
        """Return a copy of the recipe IDs in a slot."""
        return list(self.slots.get(validate_slot(slot), []))

    def recipe_ids(self) -> list[UUID]:
        """Return every recipe occurrence across slots, in slot order."""
        return [recipe_id for slot in SLOTS for recipe_id in self.slots.get(slot, [])]


@dataclass(frozen=True)
class MacroOverride:
    """Explicitly entered macros for a food log entry."""

    kcal: float | None = None
    protein: float | None = None
    fat: float | None = None
    carbs: float | None = None


@dataclass(frozen=True)
class FoodLog:
    """Actual consumption entry, independent of the meal plan."""

    id: UUID
    user_id: UUID
    day: date
    meal_type: str
    recipe_id: UUID | None = None
    macros: MacroOverride | None = None
    note: str | None = None
