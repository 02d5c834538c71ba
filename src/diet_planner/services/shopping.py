"""Shopping list aggregation, scaling and pricing."""

import logging
from collections.abc import Collection, Iterable, Mapping
from dataclasses import dataclass
from datetime import UTC, date, datetime
from uuid import UUID

from diet_planner.domain.catalog import Ingredient
from diet_planner.domain.dates import validate_range
from diet_planner.domain.errors import InvalidInputError
from diet_planner.domain.recipes import Recipe
from diet_planner.domain.shopping import (
    CostProjection,
    PriceStatus,
    ShoppingList,
    ShoppingListItem,
    ShoppingMode,
)
from diet_planner.services.catalog import CatalogService
from diet_planner.services.mealplans import MealPlanRepository
from diet_planner.services.prices import PriceService
from diet_planner.services.recipes import RecipeService

_logger = logging.getLogger(__name__)

SAVING_FACTOR = 0.85


def scale_multiplier(
    servings: int, mode: ShoppingMode, saving_factor: float = SAVING_FACTOR
) -> float:
    """Quantity multiplier for a servings count and mode."""
    factor = saving_factor if mode == ShoppingMode.SAVING else 1.0
    return servings * factor


def aggregate_demand(
    recipe_occurrences: Iterable[UUID], recipes: Mapping[UUID, Recipe]
) -> dict[UUID, float]:
    """Sum item amounts per ingredient, once per recipe occurrence.

    Amounts stay in the ingredient's canonical unit; display unit overrides are
    ignored.
    """
    demand: dict[UUID, float] = {}
    for recipe_id in recipe_occurrences:
        recipe = recipes.get(recipe_id)
        if recipe is None:
            continue
        for item in recipe.items:
            current = demand.get(item.ingredient_id, 0.0)
            demand[item.ingredient_id] = current + item.amount
    return demand


def project_costs(
    shopping_list: ShoppingList, checked_ids: Collection[UUID]
) -> CostProjection:
    """Split the estimated total into checked and remaining cost."""
    checked = sum(
        item.estimated_cost
        for item in shopping_list.items
        if item.ingredient_id in checked_ids
    )
    total = sum(item.estimated_cost for item in shopping_list.items)
    return CostProjection(
        total=round(total, 2),
        checked=round(checked, 2),
        remaining=round(total - checked, 2),
    )


@dataclass
class ShoppingListBuilder:
    """Builds priced shopping lists from the meal plans in a date range."""

    meal_plans: MealPlanRepository
    recipes: RecipeService
    catalog: CatalogService
    prices: PriceService
    default_unit_price: float = 50.0
    default_currency: str = "VND"
    default_servings: int = 2
    saving_factor: float = SAVING_FACTOR

    def build(  # noqa: PLR0913
        self,
        user_id: UUID,
        start: date,
        end: date,
        servings: int | None = None,
        mode: ShoppingMode | str = ShoppingMode.NORMAL,
        now: datetime | None = None,
    ) -> ShoppingList:
        """Aggregate, scale and price ingredient demand between two dates."""
        validate_range(start, end)
        resolved_servings = self.default_servings if servings is None else servings
        if (
            isinstance(resolved_servings, bool)
            or not isinstance(resolved_servings, int)
            or resolved_servings <= 0
        ):
            raise InvalidInputError(
                f"servings must be a positive integer, got {resolved_servings!r}"
            )
        resolved_mode = _parse_mode(mode)
        moment = now or datetime.now(tz=UTC)

        plans = self.meal_plans.list_meal_plans(user_id, start, end)
        occurrences = [recipe_id for plan in plans for recipe_id in plan.recipe_ids()]
        recipes = self.recipes.get_recipes(occurrences)
        missing_recipes = [
            recipe_id
            for recipe_id in dict.fromkeys(occurrences)
            if recipe_id not in recipes
        ]
        if missing_recipes:
            _logger.info(
                "Shopping list %s..%s skipped %s unresolvable recipe(s)",
                start,
                end,
                len(missing_recipes),
            )

        demand = aggregate_demand(occurrences, recipes)
        snapshot = self.catalog.get_ingredients(demand.keys())
        multiplier = scale_multiplier(
            resolved_servings, resolved_mode, self.saving_factor
        )
        items = [
            self._price_item(
                ingredient_id,
                snapshot.get(ingredient_id),
                base_quantity,
                base_quantity * multiplier,
                moment,
            )
            for ingredient_id, base_quantity in demand.items()
        ]
        items.sort(key=lambda item: (item.name.lower(), str(item.ingredient_id)))

        currencies = {item.currency for item in items}
        currency = self.default_currency
        if len(currencies) == 1:
            currency = next(iter(currencies))
        elif len(currencies) > 1:
            _logger.warning("Shopping list mixes currencies; total uses %s", currency)

        return ShoppingList(
            start=start,
            end=end,
            servings=resolved_servings,
            mode=resolved_mode,
            items=items,
            total_cost=round(sum(item.estimated_cost for item in items), 2),
            currency=currency,
            incomplete=bool(missing_recipes)
            or any(item.ingredient_id not in snapshot for item in items),
            missing_recipe_ids=missing_recipes,
        )

    def _price_item(
        self,
        ingredient_id: UUID,
        ingredient: Ingredient | None,
        base_quantity: float,
        quantity: float,
        now: datetime,
    ) -> ShoppingListItem:
        status = self.prices.classify(ingredient, now)
        price = ingredient.price if ingredient else None
        if status != PriceStatus.ABSENT and price is not None:
            unit_price = price.amount
            currency = price.currency
            updated_at = price.updated_at
        else:
            unit_price = self.default_unit_price
            currency = self.default_currency
            updated_at = None
        return ShoppingListItem(
            ingredient_id=ingredient_id,
            name=ingredient.name if ingredient else str(ingredient_id),
            unit=ingredient.unit if ingredient else "",
            base_quantity=base_quantity,
            quantity=quantity,
            unit_price=unit_price,
            currency=currency,
            estimated_cost=round(unit_price * quantity, 2),
            price_status=status,
            is_estimate=status != PriceStatus.FRESH,
            price_updated_at=updated_at,
        )


def _parse_mode(mode: ShoppingMode | str) -> ShoppingMode:
    try:
        return ShoppingMode(mode)
    except ValueError as exc:
        raise InvalidInputError(f"Unknown shopping mode {mode!r}") from exc
