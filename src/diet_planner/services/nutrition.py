"""Daily and window nutrition from food logs and meal plans."""

import logging
from collections import defaultdict
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import date
from typing import Protocol
from uuid import UUID

from diet_planner.domain.dates import days_between
from diet_planner.domain.mealplans import SLOTS, FoodLog, MacroOverride, MealPlan
from diet_planner.domain.nutrition import (
    DailyNutrition,
    MacroTotals,
    NutritionSource,
    NutritionSummary,
    PlannedMeal,
    empty_meals,
)
from diet_planner.domain.recipes import Recipe, RecipeNutrition
from diet_planner.services.mealplans import MealPlanRepository
from diet_planner.services.recipes import RecipeService

_logger = logging.getLogger(__name__)


class FoodLogRepository(Protocol):
    """Persistence interface for food log entries."""

    def list_food_logs(self, user_id: UUID, start: date, end: date) -> list[FoodLog]:
        """Return food logs within an inclusive date range."""


@dataclass
class NutritionAggregator:
    """Merges logged and planned intake into per-day totals."""

    food_logs: FoodLogRepository
    meal_plans: MealPlanRepository
    recipes: RecipeService

    def daily_nutrition(self, user_id: UUID, day: date) -> DailyNutrition:
        """Return totals for one date, preferring logged over planned intake."""
        return self._daily_for_days(user_id, [day])[day]

    def window_average(self, user_id: UUID, days: Iterable[date]) -> MacroTotals:
        """Mean of daily totals over the supplied dates, empty days counted as zero."""
        requested = list(days)
        if not requested:
            return MacroTotals()
        by_day = self._daily_for_days(user_id, requested)
        return average_macros([by_day[day] for day in requested])

    def summarize_range(
        self, user_id: UUID, start: date, end: date
    ) -> NutritionSummary:
        """Daily totals for every date in the range plus their average."""
        days = days_between(start, end)
        by_day = self._daily_for_days(user_id, days)
        daily = [by_day[day] for day in days]
        return NutritionSummary(daily=daily, average=average_macros(daily))

    def _daily_for_days(
        self, user_id: UUID, days: list[date]
    ) -> dict[date, DailyNutrition]:
        unique_days = sorted(set(days))
        if not unique_days:
            return {}
        start, end = unique_days[0], unique_days[-1]
        wanted = set(unique_days)

        logs_by_day: dict[date, list[FoodLog]] = defaultdict(list)
        for log in self.food_logs.list_food_logs(user_id, start, end):
            if log.day in wanted:
                logs_by_day[log.day].append(log)
        plans = {
            plan.day: plan
            for plan in self.meal_plans.list_meal_plans(user_id, start, end)
            if plan.day in wanted
        }

        recipe_ids = [
            log.recipe_id
            for logs in logs_by_day.values()
            for log in logs
            if log.recipe_id is not None
        ]
        recipe_ids.extend(
            recipe_id for plan in plans.values() for recipe_id in plan.recipe_ids()
        )
        resolved = self.recipes.resolve_recipes(recipe_ids)

        return {
            day: _resolve_day(day, logs_by_day.get(day, []), plans.get(day), resolved)
            for day in unique_days
        }


def average_macros(daily: list[DailyNutrition]) -> MacroTotals:
    """Arithmetic mean per macro; an empty list yields zeros."""
    if not daily:
        return MacroTotals()
    total = MacroTotals()
    for entry in daily:
        total = total + entry.totals
    count = len(daily)
    return MacroTotals(
        calories=total.calories / count,
        protein=total.protein / count,
        fat=total.fat / count,
        carbs=total.carbs / count,
    )


def _resolve_day(
    day: date,
    logs: list[FoodLog],
    plan: MealPlan | None,
    resolved: Mapping[UUID, tuple[Recipe, RecipeNutrition]],
) -> DailyNutrition:
    logged = MacroTotals()
    logged_incomplete = False
    for log in logs:
        totals, incomplete = _log_totals(log, resolved)
        logged = logged + totals
        logged_incomplete = logged_incomplete or incomplete
    if logged.calories > 0:
        return _daily(day, logged, NutritionSource.ACTUAL, logged_incomplete)

    if plan is not None:
        planned = RecipeNutrition()
        meals = empty_meals()
        unresolved = 0
        for slot in SLOTS:
            for recipe_id in plan.slots.get(slot, []):
                entry = resolved.get(recipe_id)
                if entry is None:
                    unresolved += 1
                    continue
                recipe, recipe_nutrition = entry
                planned = planned + recipe_nutrition
                meals[slot].append(
                    PlannedMeal(
                        recipe_id=recipe.id,
                        title=recipe.title,
                        nutrition=recipe_nutrition,
                    )
                )
        if unresolved:
            _logger.info(
                "Meal plan on %s references %s unresolvable recipe(s)", day, unresolved
            )
        if any(meals.values()):
            totals = MacroTotals(
                calories=planned.kcal,
                protein=planned.protein,
                fat=planned.fat,
                carbs=planned.carbs,
            )
            return _daily(
                day,
                totals,
                NutritionSource.PLANNED,
                planned.incomplete or unresolved > 0,
                meals,
            )

    return _daily(day, MacroTotals(), NutritionSource.NONE, logged_incomplete)


def _log_totals(
    log: FoodLog, resolved: Mapping[UUID, tuple[Recipe, RecipeNutrition]]
) -> tuple[MacroTotals, bool]:
    """Explicit macros win; gaps are filled from the logged recipe."""
    override = log.macros or MacroOverride()
    entry = resolved.get(log.recipe_id) if log.recipe_id is not None else None
    nutrition = entry[1] if entry is not None else None
    explicit = (override.kcal, override.protein, override.fat, override.carbs)
    derived = (
        (nutrition.kcal, nutrition.protein, nutrition.fat, nutrition.carbs)
        if nutrition is not None
        else (0.0, 0.0, 0.0, 0.0)
    )
    values = [
        value if value is not None else fallback
        for value, fallback in zip(explicit, derived, strict=True)
    ]
    needs_recipe = any(value is None for value in explicit)
    incomplete = bool(
        needs_recipe
        and log.recipe_id is not None
        and (nutrition is None or nutrition.incomplete)
    )
    return MacroTotals(*values), incomplete


def _daily(
    day: date,
    totals: MacroTotals,
    source: NutritionSource,
    incomplete: bool,
    meals: dict[str, list[PlannedMeal]] | None = None,
) -> DailyNutrition:
    return DailyNutrition(
        day=day,
        calories=totals.calories,
        protein=totals.protein,
        fat=totals.fat,
        carbs=totals.carbs,
        source=source,
        incomplete=incomplete,
        meals=meals if meals is not None else empty_meals(),
    )
