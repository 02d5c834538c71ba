"""Meal slot store with idempotent, version-checked mutations."""

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from datetime import date
from typing import Protocol
from uuid import UUID

from diet_planner.domain.dates import validate_range, week_bounds
from diet_planner.domain.errors import ConflictError
from diet_planner.domain.mealplans import MealPlan, normalize_slots, validate_slot
from diet_planner.services.recipes import RecipeService

_logger = logging.getLogger(__name__)

SlotOperation = Callable[[list[UUID]], list[UUID]]


class MealPlanRepository(Protocol):
    """Persistence interface for meal plans."""

    def get_meal_plan(self, user_id: UUID, day: date) -> MealPlan | None:
        """Return the plan for a user and date, if present."""

    def list_meal_plans(self, user_id: UUID, start: date, end: date) -> list[MealPlan]:
        """Return plans within an inclusive date range ordered by date."""

    def create_meal_plan(self, user_id: UUID, day: date) -> MealPlan:
        """Insert an empty plan unless one exists; return the stored plan."""

    def update_slots(
        self,
        user_id: UUID,
        day: date,
        slots: dict[str, list[UUID]],
        expected_version: int,
    ) -> MealPlan:
        """Write slots if the stored version matches, else raise ConflictError."""

    def replace_range(
        self,
        user_id: UUID,
        start: date,
        end: date,
        plans: list[tuple[date, dict[str, list[UUID]], str | None]],
    ) -> int:
        """Replace every plan in the range with the given ones; return count."""


@dataclass
class MealSlotService:
    """Mutations on per-date meal slots."""

    repository: MealPlanRepository
    recipes: RecipeService | None = None
    max_attempts: int = 3

    def ensure(self, user_id: UUID, day: date) -> MealPlan:
        """Return the plan for ``day``, creating an empty one if absent."""
        existing = self.repository.get_meal_plan(user_id, day)
        if existing is not None:
            return existing
        return self.repository.create_meal_plan(user_id, day)

    def get_range(self, user_id: UUID, start: date, end: date) -> list[MealPlan]:
        """Return plans between two dates inclusive."""
        validate_range(start, end)
        return self.repository.list_meal_plans(user_id, start, end)

    def set_slot(
        self,
        user_id: UUID,
        day: date,
        slot: str,
        recipe_ids: Iterable[UUID],
        expected_version: int | None = None,
    ) -> MealPlan:
        """Replace a slot's contents as given, duplicates included."""
        replacement = list(recipe_ids)
        return self._mutate(
            user_id,
            day,
            slot,
            lambda _current: list(replacement),
            expected_version,
            new_recipe_ids=replacement,
        )

    def add_to_slot(
        self,
        user_id: UUID,
        day: date,
        slot: str,
        recipe_id: UUID,
        expected_version: int | None = None,
    ) -> MealPlan:
        """Append a recipe unless present; duplicates already in the slot collapse."""
        return self._mutate(
            user_id,
            day,
            slot,
            lambda current: _add(current, recipe_id),
            expected_version,
            new_recipe_ids=[recipe_id],
        )

    def remove_from_slot(
        self,
        user_id: UUID,
        day: date,
        slot: str,
        recipe_id: UUID,
        expected_version: int | None = None,
    ) -> MealPlan:
        """Remove every occurrence of a recipe; absent ids are a no-op."""
        return self._mutate(
            user_id,
            day,
            slot,
            lambda current: [item for item in current if item != recipe_id],
            expected_version,
        )

    def replace_in_slot(  # noqa: PLR0913
        self,
        user_id: UUID,
        day: date,
        slot: str,
        old_recipe_id: UUID,
        new_recipe_id: UUID,
        expected_version: int | None = None,
    ) -> MealPlan:
        """Swap ``old_recipe_id`` for ``new_recipe_id`` in place.

        When the old recipe is not in the slot the new one is appended instead,
        exactly as ``add_to_slot`` would. The result never repeats an id.
        """

        def operation(current: list[UUID]) -> list[UUID]:
            if old_recipe_id not in current:
                _logger.info(
                    "Recipe %s not in %s on %s; adding %s instead",
                    old_recipe_id,
                    slot,
                    day,
                    new_recipe_id,
                )
                return _add(current, new_recipe_id)
            substituted = (
                new_recipe_id if item == old_recipe_id else item for item in current
            )
            return list(dict.fromkeys(substituted))

        return self._mutate(
            user_id,
            day,
            slot,
            operation,
            expected_version,
            new_recipe_ids=[new_recipe_id],
        )

    def copy_week(self, user_id: UUID, source_day: date, target_day: date) -> int:
        """Copy the Monday-based week of ``source_day`` onto that of ``target_day``."""
        source_start, source_end = week_bounds(source_day)
        target_start, target_end = week_bounds(target_day)
        source_plans = self.repository.list_meal_plans(
            user_id, source_start, source_end
        )
        shift = target_start - source_start
        copies = [
            (plan.day + shift, normalize_slots(plan.slots), plan.note)
            for plan in source_plans
        ]
        copied = self.repository.replace_range(
            user_id, target_start, target_end, copies
        )
        _logger.info(
            "Copied %s meal plan(s) from week %s to week %s",
            copied,
            source_start,
            target_start,
        )
        return copied

    def _mutate(  # noqa: PLR0913
        self,
        user_id: UUID,
        day: date,
        slot: str,
        operation: SlotOperation,
        expected_version: int | None,
        new_recipe_ids: Iterable[UUID] = (),
    ) -> MealPlan:
        validate_slot(slot)
        if self.recipes is not None:
            self.recipes.require_recipes(new_recipe_ids)
        attempts = 1 if expected_version is not None else max(self.max_attempts, 1)
        attempt = 0
        while True:
            attempt += 1
            plan = self.ensure(user_id, day)
            if expected_version is not None and plan.version != expected_version:
                raise ConflictError(expected_version, plan.version)
            slots = normalize_slots(plan.slots)
            updated = operation(list(slots[slot]))
            if updated == slots[slot]:
                return plan
            slots[slot] = updated
            try:
                return self.repository.update_slots(
                    user_id, day, slots, expected_version=plan.version
                )
            except ConflictError as exc:
                if attempt >= attempts:
                    raise
                _logger.warning(
                    "Slot write conflict on %s (attempt %s/%s): %s",
                    day,
                    attempt,
                    attempts,
                    exc,
                )


def _add(current: list[UUID], recipe_id: UUID) -> list[UUID]:
    unique = list(dict.fromkeys(current))
    if recipe_id in unique:
        return unique
    return [*unique, recipe_id]
